"""Aggregates over stored surveys for the admin dashboard.

Grouped counts are returned as ``[{"_id": value, "count": n}]`` sorted by
count, the shape the dashboard charts consume. A missing answer is grouped
under ``None`` rather than dropped, so the counts of one field always add up
to the number of surveys.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from survey_api.errors import ValidationError
from survey_api.models.survey import Survey
from survey_api.services.tokens import as_utc, utcnow

GroupedCounts = list[dict[str, Any]]


def grouped_counts(db: Session, column) -> GroupedCounts:
    count = func.count()
    rows = db.execute(select(column, count).group_by(column).order_by(count.desc(), column)).all()
    return [{"_id": value, "count": n} for value, n in rows]


def _ranked(counter: Counter, limit: int | None = None) -> GroupedCounts:
    ranked = sorted(counter.items(), key=lambda kv: (-kv[1], kv[0]))
    if limit is not None:
        ranked = ranked[:limit]
    return [{"_id": value, "count": n} for value, n in ranked]


def total_responses(db: Session) -> int:
    return db.execute(select(func.count()).select_from(Survey)).scalar_one()


def local_day_start() -> datetime:
    midnight = datetime.now().astimezone().replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight.astimezone(timezone.utc)


def today_responses(db: Session) -> int:
    return db.execute(
        select(func.count()).select_from(Survey).where(Survey.submitted_at >= local_day_start())
    ).scalar_one()


def daily_trend(db: Session, days: int = 7) -> GroupedCounts:
    since = utcnow() - timedelta(days=days)
    stamps = db.execute(select(Survey.submitted_at).where(Survey.submitted_at >= since)).scalars()
    per_day = Counter(as_utc(ts).date().isoformat() for ts in stamps)
    return [{"_id": day, "count": per_day[day]} for day in sorted(per_day)]


def average_risk_scale(db: Session) -> float:
    avg = db.execute(select(func.avg(Survey.risk_scale)).where(Survey.risk_scale.isnot(None))).scalar()
    return float(avg) if avg is not None else 0


def _rate(db: Session, *conditions) -> float:
    total = total_responses(db)
    if total == 0:
        return 0
    hits = db.execute(select(func.count()).select_from(Survey).where(*conditions)).scalar_one()
    return hits / total * 100


def fraud_experience_rate(db: Session) -> float:
    return _rate(db, Survey.fraud_experience == "Yes")


def hidden_charges_rate(db: Session) -> float:
    return _rate(db, Survey.hidden_charges_experience == "Yes")


def platform_interest_rate(db: Session) -> float:
    return _rate(db, Survey.platform_usage_willingness.in_(("Definitely", "Maybe")))


def basic_info(db: Session) -> dict[str, GroupedCounts]:
    return {
        "ageGroups": grouped_counts(db, Survey.age_group),
        "occupations": grouped_counts(db, Survey.occupation),
        "loanExperience": grouped_counts(db, Survey.loan_experience),
    }


def loan_awareness(db: Session) -> dict[str, GroupedCounts]:
    return {
        "interestUnderstanding": grouped_counts(db, Survey.interest_rate_understanding),
        "repaymentCalculation": grouped_counts(db, Survey.total_repayment_calculation),
        "hiddenCharges": grouped_counts(db, Survey.hidden_charges_experience),
        "aprKnowledge": grouped_counts(db, Survey.apr_knowledge),
        "confidence": grouped_counts(db, Survey.agreement_reading_confidence),
    }


def financial_risk(db: Session) -> dict[str, GroupedCounts]:
    return {
        "processingFeeUncertainty": grouped_counts(db, Survey.processing_fee_uncertainty),
        "fraudExperience": grouped_counts(db, Survey.fraud_experience),
        "readingHabit": grouped_counts(db, Survey.agreement_reading_habit),
    }


def rental_awareness(db: Session) -> dict[str, GroupedCounts]:
    return {
        "rentalExperience": grouped_counts(db, Survey.rental_agreement_experience),
        "termsUnderstanding": grouped_counts(db, Survey.rental_terms_understanding),
    }


def platform_need(db: Session) -> dict[str, GroupedCounts]:
    features: Counter = Counter()
    for selected in db.execute(select(Survey.platform_features)).scalars():
        features.update(selected or [])

    fears = Counter(
        db.execute(
            select(Survey.biggest_fear).where(Survey.biggest_fear.isnot(None), Survey.biggest_fear != "")
        ).scalars()
    )

    return {
        "willingness": grouped_counts(db, Survey.platform_usage_willingness),
        "features": _ranked(features),
        "fears": _ranked(fears, limit=10),
    }


SECTION_BUILDERS = {
    "basic-info": basic_info,
    "loan-awareness": loan_awareness,
    "financial-risk": financial_risk,
    "rental-awareness": rental_awareness,
    "platform-need": platform_need,
}


def section(db: Session, name: str) -> dict[str, GroupedCounts]:
    builder = SECTION_BUILDERS.get(name)
    if builder is None:
        raise ValidationError("Invalid section specified")
    return builder(db)


def dashboard(db: Session) -> dict[str, Any]:
    return {
        "metrics": {
            "totalResponses": total_responses(db),
            "todayResponses": today_responses(db),
            "avgRiskScale": average_risk_scale(db),
            "fraudExperienceRate": fraud_experience_rate(db),
            "hiddenChargesRate": hidden_charges_rate(db),
            "platformInterestRate": platform_interest_rate(db),
        },
        "dailyTrend": daily_trend(db),
        "sections": {
            "basicInfo": basic_info(db),
            "loanAwareness": loan_awareness(db),
            "financialRisk": financial_risk(db),
            "rentalAwareness": rental_awareness(db),
            "platformNeed": platform_need(db),
        },
    }


def survey_stats(db: Session) -> dict[str, Any]:
    return {
        "totalResponses": total_responses(db),
        "ageGroupStats": grouped_counts(db, Survey.age_group),
        "occupationStats": grouped_counts(db, Survey.occupation),
        "loanExperienceStats": grouped_counts(db, Survey.loan_experience),
        "interestRateUnderstandingStats": grouped_counts(db, Survey.interest_rate_understanding),
        "hiddenChargesStats": grouped_counts(db, Survey.hidden_charges_experience),
        "fraudExperienceStats": grouped_counts(db, Survey.fraud_experience),
        "platformWillingnessStats": grouped_counts(db, Survey.platform_usage_willingness),
        "avgRiskScale": average_risk_scale(db),
    }
