"""Flatten survey rows into an Excel workbook."""

from __future__ import annotations

from io import BytesIO
from typing import Any, Iterable, Sequence, Tuple
from zoneinfo import ZoneInfo

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils import get_column_letter

from survey_api.models.survey import Survey
from survey_api.services.tokens import as_utc, utcnow

SHEET_TITLE = "Survey Data"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, column width)
COLUMNS: Sequence[Tuple[str, int]] = [
    ("_id", 25),
    ("name", 20),
    ("email", 30),
    ("emailVerified", 15),
    ("submittedAt", 20),
    ("ipAddress", 15),
    ("ageGroup", 15),
    ("occupation", 20),
    ("loanExperience", 25),
    ("interestRateUnderstanding", 30),
    ("totalRepaymentCalculation", 25),
    ("hiddenChargesExperience", 25),
    ("aprKnowledge", 20),
    ("agreementReadingConfidence", 25),
    ("processingFeeUncertainty", 25),
    ("fraudExperience", 20),
    ("agreementReadingHabit", 25),
    ("rentalAgreementExperience", 30),
    ("rentalTermsUnderstanding", 25),
    ("platformUsageWillingness", 25),
    ("platformFeatures", 40),
    ("biggestFear", 50),
    ("riskScale", 12),
    ("userAgent", 30),
]


def _text(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, str):
        # control characters are not allowed in worksheet XML
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value


def flatten(survey: Survey, tz: ZoneInfo) -> list[Any]:
    submitted = ""
    if survey.submitted_at is not None:
        submitted = as_utc(survey.submitted_at).astimezone(tz).strftime("%d/%m/%Y, %I:%M:%S %p")

    return [
        str(survey.id),
        _text(survey.name),
        _text(survey.email),
        bool(survey.email_verified),
        submitted,
        _text(survey.ip_address),
        _text(survey.age_group),
        _text(survey.occupation),
        _text(survey.loan_experience),
        _text(survey.interest_rate_understanding),
        _text(survey.total_repayment_calculation),
        _text(survey.hidden_charges_experience),
        _text(survey.apr_knowledge),
        _text(survey.agreement_reading_confidence),
        _text(survey.processing_fee_uncertainty),
        _text(survey.fraud_experience),
        _text(survey.agreement_reading_habit),
        _text(survey.rental_agreement_experience),
        _text(survey.rental_terms_understanding),
        _text(survey.platform_usage_willingness),
        _text(", ".join(survey.platform_features or [])),
        _text(survey.biggest_fear),
        _text(survey.risk_scale),
        _text(survey.user_agent),
    ]


def build_workbook(surveys: Iterable[Survey], timezone_name: str) -> bytes:
    """Return the ``.xlsx`` bytes; the header row is written even with no surveys."""
    tz = ZoneInfo(timezone_name)
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE
    ws.append([header for header, _ in COLUMNS])
    for index, (_, width) in enumerate(COLUMNS, start=1):
        ws.column_dimensions[get_column_letter(index)].width = width

    for survey in surveys:
        ws.append(flatten(survey, tz))
        # answers are text; openpyxl would store a leading "=" as a formula
        for cell in ws[ws.max_row]:
            if cell.data_type == "f":
                cell.data_type = "s"

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def export_filename() -> str:
    return f"survey_data_{utcnow().date().isoformat()}.xlsx"
