from fastapi import APIRouter, Depends

from survey_api.config import Settings, get_settings
from survey_api.errors import ValidationError
from survey_api.schemas.access import EmailSendIn, OtpVerifyIn
from survey_api.services import mailer
from survey_api.services.otp import issue_otp, verify_otp
from survey_api.services.ttl_store import TTLStore, get_store

router = APIRouter(prefix="/api/email", tags=["email"])


@router.post("/send")
async def send_verification_email(
    payload: EmailSendIn,
    store: TTLStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not payload.email:
        raise ValidationError("Email is required")

    otp = issue_otp(store, settings, payload.email)
    await mailer.send_otp_email(settings, payload.email, otp)

    return {"success": True, "message": "Verification code sent to your email"}


@router.post("/verify")
def verify_email_code(
    payload: OtpVerifyIn,
    store: TTLStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    if not payload.email or payload.otp in (None, ""):
        raise ValidationError("Email and OTP are required")

    check = verify_otp(store, settings, payload.email, str(payload.otp))
    if not check.valid:
        raise ValidationError(check.message)

    return {"success": True, "message": "Email verified successfully"}
