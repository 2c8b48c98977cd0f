"""Tests for the admin guard: static keys first, then hashed access codes."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from conftest import ADMIN_KEY
from survey_api.errors import Forbidden
from survey_api.models import AccessToken
from survey_api.services.access_workflow import purge_expired_tokens
from survey_api.services.authz import Verdict, authorize, check_access_token, check_static_key
from survey_api.services.tokens import hash_token, utcnow

PROTECTED = [
    ("get", "/api/analytics/dashboard"),
    ("get", "/api/analytics/section/basic-info"),
    ("get", "/api/survey/export"),
    ("post", "/api/admin/verify"),
]


def _add_token(db, code: str, expires_in_minutes: float) -> AccessToken:
    token = AccessToken(
        token_hash=hash_token(code),
        email="viewer@example.com",
        expires_at=utcnow() + timedelta(minutes=expires_in_minutes),
    )
    db.add(token)
    db.commit()
    return token


@pytest.mark.parametrize("method,path", PROTECTED)
def test_missing_credential_is_forbidden(client, method, path):
    resp = getattr(client, method)(path)
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "message": "Access restricted"}


@pytest.mark.parametrize("method,path", PROTECTED)
def test_static_key_opens_every_admin_endpoint(client, admin_headers, method, path):
    resp = getattr(client, method)(path, headers=admin_headers)
    assert resp.status_code == 200


def test_unknown_key_gets_the_same_message(client):
    resp = client.get("/api/analytics/dashboard", headers={"x-admin-key": "guess"})
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access restricted"


def test_one_of_several_static_keys(client, settings):
    settings.admin_keys = "first, second ,third"
    resp = client.post("/api/admin/verify", headers={"x-admin-key": "second"})
    assert resp.status_code == 200


def test_valid_access_code(client, db):
    _add_token(db, "a1b2c3d4e5f6a7b8c9", expires_in_minutes=5)
    resp = client.get("/api/analytics/dashboard", headers={"x-admin-key": "a1b2c3d4e5f6a7b8c9"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True


def test_expired_access_code_is_rejected_and_removed(client, db):
    _add_token(db, "a1b2c3d4e5f6a7b8c9", expires_in_minutes=-1)

    resp = client.get("/api/analytics/dashboard", headers={"x-admin-key": "a1b2c3d4e5f6a7b8c9"})
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access restricted"

    db.expire_all()
    assert db.execute(select(AccessToken)).first() is None


def test_hash_itself_is_not_a_credential(client, db):
    token = _add_token(db, "a1b2c3d4e5f6a7b8c9", expires_in_minutes=5)
    resp = client.post("/api/admin/verify", headers={"x-admin-key": token.token_hash})
    assert resp.status_code == 403


class TestCheckers:
    def test_static_key_checker(self, settings):
        assert check_static_key(ADMIN_KEY, None, settings) is Verdict.AUTHORIZED
        assert check_static_key("nope", None, settings) is Verdict.UNKNOWN

    def test_static_key_short_circuits_before_token_lookup(self, settings):
        # no database session is needed when the static key matches
        assert authorize(ADMIN_KEY, None, settings) == "check_static_key"

    def test_token_checker_verdicts(self, db, settings):
        _add_token(db, "live-code", expires_in_minutes=5)
        _add_token(db, "old-code", expires_in_minutes=-5)

        assert check_access_token("live-code", db, settings) is Verdict.AUTHORIZED
        assert check_access_token("missing", db, settings) is Verdict.UNKNOWN
        assert check_access_token("old-code", db, settings) is Verdict.DENIED
        assert check_access_token("old-code", db, settings) is Verdict.UNKNOWN

    def test_authorize_reports_token_checker(self, db, settings):
        _add_token(db, "live-code", expires_in_minutes=5)
        assert authorize("live-code", db, settings) == "check_access_token"

    @pytest.mark.parametrize("credential", [None, ""])
    def test_authorize_without_credential(self, db, settings, credential):
        with pytest.raises(Forbidden):
            authorize(credential, db, settings)


def test_purge_removes_only_expired_tokens(db):
    _add_token(db, "live-code", expires_in_minutes=5)
    _add_token(db, "old-1", expires_in_minutes=-5)
    _add_token(db, "old-2", expires_in_minutes=-60)

    assert purge_expired_tokens(db) == 2
    remaining = db.execute(select(AccessToken.token_hash)).scalars().all()
    assert remaining == [hash_token("live-code")]


def test_purge_treats_expiry_instant_as_expired(db, monkeypatch):
    now = utcnow()
    monkeypatch.setattr("survey_api.services.access_workflow.utcnow", lambda: now)
    db.add(AccessToken(token_hash=hash_token("edge"), email="viewer@example.com", expires_at=now))
    db.commit()

    assert purge_expired_tokens(db) == 1
    assert db.execute(select(AccessToken)).first() is None
