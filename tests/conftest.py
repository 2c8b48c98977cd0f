"""Pytest fixtures: in-memory SQLite, a controllable clock and a captured outbox."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CREATE_TABLES_ON_STARTUP", "false")

import re
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from survey_api.config import Settings, get_settings
from survey_api.database import Base, get_db
from survey_api.main import app
from survey_api.models import Survey
from survey_api.services import mailer
from survey_api.services.tokens import utcnow
from survey_api.services.ttl_store import MemoryTTLStore, get_store

ADMIN_KEY = "static-admin-key"
ADMIN_EMAILS = ["admin1@example.com", "admin2@example.com"]


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(engine)
        engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        admin_keys=ADMIN_KEY,
        admin_emails=",".join(ADMIN_EMAILS),
        resend_api_key="re_test",
        email_from="Survey <no-reply@example.com>",
        app_base_url="http://testserver/",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> MemoryTTLStore:
    return MemoryTTLStore(clock=clock)


@pytest.fixture
def outbox(monkeypatch):
    sent = []

    async def fake_send_email(settings, to, subject, html_body):
        sent.append({"to": to, "subject": subject, "html": html_body})
        return {"id": f"email-{len(sent)}"}

    monkeypatch.setattr(mailer, "send_email", fake_send_email)
    return sent


@pytest.fixture
def client(session_factory, settings, store, outbox):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"x-admin-key": ADMIN_KEY}


def survey_answers(**overrides):
    """A complete, valid survey body in wire (camelCase) format."""
    body = {
        "name": "Asha Rao",
        "email": "asha@example.com",
        "ageGroup": "23–30",
        "occupation": "Salaried Employee",
        "loanExperience": "Yes",
        "interestRateUnderstanding": "Partially",
        "totalRepaymentCalculation": "No",
        "hiddenChargesExperience": "Yes",
        "aprKnowledge": "No",
        "agreementReadingConfidence": "Somewhat confident",
        "processingFeeUncertainty": "Yes",
        "fraudExperience": "No",
        "agreementReadingHabit": "Sometimes",
        "rentalAgreementExperience": "Yes",
        "rentalTermsUnderstanding": "Not completely",
        "platformUsageWillingness": "Definitely",
        "platformFeatures": ["Hidden charges", "Risk score"],
        "biggestFear": "Hidden fees",
        "riskScale": 3,
    }
    body.update(overrides)
    return body


@pytest.fixture
def answers():
    return survey_answers


@pytest.fixture
def make_survey(db):
    """Insert a Survey row directly; ``days_ago`` shifts submitted_at back."""

    def _make(days_ago: float = 0, **overrides) -> Survey:
        values = dict(
            name="Respondent",
            email="respondent@example.com",
            email_verified=True,
            age_group="18–22",
            occupation="Student",
            loan_experience="No",
            interest_rate_understanding="Yes",
            total_repayment_calculation="Yes",
            hidden_charges_experience="No",
            apr_knowledge="Yes",
            agreement_reading_confidence="Very confident",
            processing_fee_uncertainty="No",
            fraud_experience="No",
            agreement_reading_habit="Always",
            rental_agreement_experience="No",
            rental_terms_understanding="Yes",
            platform_usage_willingness="No",
            platform_features=[],
            biggest_fear="Debt",
            risk_scale=None,
            ip_address="127.0.0.1",
            user_agent="pytest",
            submitted_at=utcnow() - timedelta(days=days_ago),
        )
        values.update(overrides)
        survey = Survey(**values)
        db.add(survey)
        db.commit()
        db.refresh(survey)
        return survey

    return _make


def extract(pattern: str, text: str) -> str:
    match = re.search(pattern, text)
    assert match, f"pattern {pattern!r} not found"
    return match.group(1)
