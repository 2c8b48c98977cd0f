"""Tests for survey submission, listing and the app-level error handlers."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select

from conftest import extract
from survey_api.main import app
from survey_api.models.survey import Survey


def _verify(client, outbox, email="asha@example.com"):
    client.post("/api/email/send", json={"email": email})
    otp = extract(r">(\d{6})<", outbox[-1]["html"])
    assert client.post("/api/email/verify", json={"email": email, "otp": otp}).status_code == 200


class TestSubmit:
    def test_unverified_email_is_rejected(self, client, db, answers):
        resp = client.post("/api/survey", json=answers())
        assert resp.status_code == 400
        assert resp.json()["message"] == "Please verify your email before submitting the survey"
        assert db.execute(select(Survey)).first() is None

    def test_verified_submission(self, client, db, outbox, answers):
        _verify(client, outbox)

        resp = client.post(
            "/api/survey",
            json=answers(email="Asha@Example.com"),
            headers={"user-agent": "survey-form/1.0"},
        )
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Survey submitted successfully"

        data = body["data"]
        assert data["_id"]
        assert data["email"] == "asha@example.com"
        assert data["emailVerified"] is True
        assert data["platformFeatures"] == ["Hidden charges", "Risk score"]
        assert "ipAddress" not in data
        assert "userAgent" not in data

        stored = db.execute(select(Survey)).scalar_one()
        assert stored.user_agent == "survey-form/1.0"
        assert stored.ip_address
        assert stored.age_group == "23–30"

    def test_verification_is_single_use(self, client, outbox, answers):
        _verify(client, outbox)
        assert client.post("/api/survey", json=answers()).status_code == 201
        assert client.post("/api/survey", json=answers()).status_code == 400

    def test_verification_not_required(self, client, db, settings, answers):
        settings.require_verified_email = False
        resp = client.post("/api/survey", json=answers())
        assert resp.status_code == 201
        assert resp.json()["data"]["emailVerified"] is False

    def test_blank_risk_scale_is_stored_as_null(self, client, db, settings, answers):
        settings.require_verified_email = False
        resp = client.post("/api/survey", json=answers(riskScale=""))
        assert resp.status_code == 201
        assert resp.json()["data"]["riskScale"] is None

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"ageGroup": "60+"}, "ageGroup"),
            ({"riskScale": 6}, "riskScale"),
            ({"platformFeatures": ["Crypto tips"]}, "platformFeatures"),
            ({"email": "not-an-email"}, "email"),
            ({"biggestFear": "   "}, "biggestFear"),
        ],
    )
    def test_invalid_answers(self, client, settings, answers, overrides, field):
        settings.require_verified_email = False
        resp = client.post("/api/survey", json=answers(**overrides))
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert field in body["message"]

    @pytest.mark.parametrize("field", ["name", "biggestFear"])
    def test_control_characters_are_rejected(self, client, db, settings, answers, field):
        settings.require_verified_email = False
        resp = client.post("/api/survey", json=answers(**{field: "loan\x01shark"}))
        assert resp.status_code == 400
        assert field in resp.json()["message"]
        assert db.execute(select(Survey)).first() is None

    def test_line_breaks_are_allowed(self, client, settings, answers):
        settings.require_verified_email = False
        resp = client.post("/api/survey", json=answers(biggestFear="Hidden fees\nand penalties"))
        assert resp.status_code == 201

    def test_missing_answer(self, client, settings, answers):
        settings.require_verified_email = False
        body = answers()
        del body["occupation"]
        resp = client.post("/api/survey", json=body)
        assert resp.status_code == 400
        assert "occupation" in resp.json()["message"]


class TestListing:
    def test_pagination(self, client, make_survey):
        for i in range(12):
            make_survey(name=f"R{i:02d}", days_ago=i)

        resp = client.get("/api/survey", params={"page": 2, "limit": 5})
        assert resp.status_code == 200
        body = resp.json()
        assert body["pagination"] == {"current": 2, "pages": 3, "total": 12}
        assert [s["name"] for s in body["data"]] == ["R05", "R06", "R07", "R08", "R09"]

    def test_defaults(self, client, make_survey):
        make_survey()
        body = client.get("/api/survey").json()
        assert body["pagination"] == {"current": 1, "pages": 1, "total": 1}
        assert "ipAddress" not in body["data"][0]

    def test_rows_written_outside_the_api_are_listed(self, client, make_survey):
        make_survey(biggest_fear="", risk_scale=9, age_group="unknown")

        resp = client.get("/api/survey")
        assert resp.status_code == 200
        row = resp.json()["data"][0]
        assert row["biggestFear"] == ""
        assert row["riskScale"] == 9
        assert row["ageGroup"] == "unknown"

    def test_empty(self, client):
        body = client.get("/api/survey").json()
        assert body["data"] == []
        assert body["pagination"]["total"] == 0

    def test_bad_page(self, client):
        assert client.get("/api/survey", params={"page": 0}).status_code == 400


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "OK"
    assert resp.json()["timestamp"]


class TestUnexpectedErrors:
    @pytest.fixture
    def failing_client(self, client, settings, monkeypatch):
        def boom(db):
            raise RuntimeError("database on fire")

        monkeypatch.setattr("survey_api.services.analytics.survey_stats", boom)
        monkeypatch.setattr("survey_api.main.get_settings", lambda: settings)
        return TestClient(app, raise_server_exceptions=False)

    def test_generic_message_in_production(self, failing_client, settings):
        settings.environment = "production"
        resp = failing_client.get("/api/survey/stats")
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "message": "Internal server error"}

    def test_detail_in_development(self, failing_client, settings):
        settings.environment = "development"
        resp = failing_client.get("/api/survey/stats")
        assert resp.status_code == 500
        assert resp.json()["error"] == "database on fire"
