from typing import Optional, Union

from pydantic import BaseModel, EmailStr


class AccessRequestIn(BaseModel):
    # presence is checked by the workflow so the message names all three fields
    name: Optional[str] = None
    email: Optional[str] = None
    reason: Optional[str] = None


class EmailSendIn(BaseModel):
    email: Optional[EmailStr] = None


class OtpVerifyIn(BaseModel):
    email: Optional[str] = None
    otp: Optional[Union[str, int]] = None
