import logging
import math

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from survey_api.config import Settings, get_settings
from survey_api.database import get_db
from survey_api.errors import ValidationError
from survey_api.models.survey import Survey
from survey_api.schemas.survey import SurveyIn, SurveyOut
from survey_api.services import analytics
from survey_api.services.authz import require_admin
from survey_api.services.export import XLSX_MEDIA_TYPE, build_workbook, export_filename
from survey_api.services.otp import consume_verified_email
from survey_api.services.tokens import utcnow
from survey_api.services.ttl_store import TTLStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/survey", tags=["survey"])


def _out(survey: Survey) -> dict:
    return SurveyOut.model_validate(survey).model_dump(by_alias=True, mode="json")


@router.post("", status_code=201)
def submit_survey(
    payload: SurveyIn,
    req: Request,
    db: Session = Depends(get_db),
    store: TTLStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    email = payload.email.lower()
    verified = consume_verified_email(store, email)
    if settings.require_verified_email and not verified:
        raise ValidationError("Please verify your email before submitting the survey")

    survey = Survey(
        **payload.model_dump(exclude={"email"}),
        email=email,
        email_verified=verified,
        ip_address=req.client.host if req.client else None,
        user_agent=req.headers.get("user-agent"),
        submitted_at=utcnow(),
    )
    db.add(survey)
    db.commit()
    db.refresh(survey)
    logger.info("Survey %s submitted", survey.id)

    return {"success": True, "message": "Survey submitted successfully", "data": _out(survey)}


@router.get("")
def list_surveys(
    db: Session = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    q = (
        select(Survey)
        .order_by(desc(Survey.submitted_at))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    surveys = db.execute(q).scalars().all()
    total = db.execute(select(func.count()).select_from(Survey)).scalar_one()

    return {
        "success": True,
        "data": [_out(s) for s in surveys],
        "pagination": {"current": page, "pages": math.ceil(total / limit), "total": total},
    }


@router.get("/stats")
def survey_stats(db: Session = Depends(get_db)):
    return {"success": True, "data": analytics.survey_stats(db)}


@router.get("/export", dependencies=[Depends(require_admin)])
def export_surveys(db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    surveys = db.execute(select(Survey).order_by(desc(Survey.submitted_at))).scalars().all()
    content = build_workbook(surveys, settings.export_timezone)
    filename = export_filename()

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
