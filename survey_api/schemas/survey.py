import re
import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

AgeGroup = Literal["18–22", "23–30", "31–45", "46+"]
Occupation = Literal["Student", "Salaried Employee", "Self-Employed", "Homemaker", "Other"]
YesNo = Literal["Yes", "No"]
PlatformFeature = Literal[
    "Hidden charges", "EMI burden", "Risk score", "Agreement clauses", "Scam detection", "All of the above"
]

# C0 controls other than tab, newline and carriage return
CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


class SurveyBase(BaseModel):
    # camelCase on the wire, snake_case in Python
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr

    age_group: AgeGroup
    occupation: Occupation
    loan_experience: Literal["Yes", "No", "Planning to"]

    interest_rate_understanding: Literal["Yes", "Partially", "No"]
    total_repayment_calculation: YesNo
    hidden_charges_experience: Literal["Yes", "No", "Not sure"]
    apr_knowledge: YesNo
    agreement_reading_confidence: Literal["Very confident", "Somewhat confident", "Not confident"]

    processing_fee_uncertainty: YesNo
    fraud_experience: YesNo
    agreement_reading_habit: Literal["Always", "Sometimes", "Rarely"]

    rental_agreement_experience: YesNo
    rental_terms_understanding: Literal["Yes", "No", "Not completely"]

    platform_usage_willingness: Literal["Definitely", "Maybe", "No"]
    platform_features: List[PlatformFeature] = Field(default_factory=list)
    biggest_fear: str = Field(min_length=1)

    risk_scale: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("name", "biggest_fear")
    @classmethod
    def no_control_characters(cls, value: str) -> str:
        if CONTROL_CHARS_RE.search(value):
            raise ValueError("must not contain control characters")
        return value

    @field_validator("risk_scale", mode="before")
    @classmethod
    def blank_risk_scale(cls, value):
        if value in ("", 0):
            return None
        return value


class SurveyIn(SurveyBase):
    pass


class SurveyOut(BaseModel):
    """A stored survey as returned by the API.

    Fields are plain types so rows written outside the API still serialise.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: uuid.UUID = Field(serialization_alias="_id")
    name: str
    email: str
    email_verified: bool

    age_group: str
    occupation: str
    loan_experience: str

    interest_rate_understanding: str
    total_repayment_calculation: str
    hidden_charges_experience: str
    apr_knowledge: str
    agreement_reading_confidence: str

    processing_fee_uncertainty: str
    fraud_experience: str
    agreement_reading_habit: str

    rental_agreement_experience: str
    rental_terms_understanding: str

    platform_usage_willingness: str
    platform_features: List[str] = Field(default_factory=list)
    biggest_fear: str

    risk_scale: Optional[int] = None
    submitted_at: datetime
