import uuid
from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from survey_api.database import Base
from survey_api.services.tokens import utcnow


class Survey(Base):
    __tablename__ = "surveys"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Pre-survey
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    email_verified: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Section 1: basic information
    age_group: Mapped[str] = mapped_column(String(20), nullable=False)
    occupation: Mapped[str] = mapped_column(String(40), nullable=False)
    loan_experience: Mapped[str] = mapped_column(String(20), nullable=False)

    # Section 2: loan awareness
    interest_rate_understanding: Mapped[str] = mapped_column(String(20), nullable=False)
    total_repayment_calculation: Mapped[str] = mapped_column(String(20), nullable=False)
    hidden_charges_experience: Mapped[str] = mapped_column(String(20), nullable=False)
    apr_knowledge: Mapped[str] = mapped_column(String(20), nullable=False)
    agreement_reading_confidence: Mapped[str] = mapped_column(String(30), nullable=False)

    # Section 3: financial risk experience
    processing_fee_uncertainty: Mapped[str] = mapped_column(String(20), nullable=False)
    fraud_experience: Mapped[str] = mapped_column(String(20), nullable=False)
    agreement_reading_habit: Mapped[str] = mapped_column(String(20), nullable=False)

    # Section 4: rental / agreement awareness
    rental_agreement_experience: Mapped[str] = mapped_column(String(20), nullable=False)
    rental_terms_understanding: Mapped[str] = mapped_column(String(20), nullable=False)

    # Section 5: validation platform need
    platform_usage_willingness: Mapped[str] = mapped_column(String(20), nullable=False)
    platform_features: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    biggest_fear: Mapped[str] = mapped_column(Text, nullable=False)

    # Optional 1..5
    risk_scale: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Metadata
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(512), nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)


Index("ix_surveys_age_group_occupation", Survey.age_group, Survey.occupation)
