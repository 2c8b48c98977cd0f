"""Dashboard access requests.

A requester submits name, email and reason; every configured admin receives
approve/deny links carrying a random approval token. Following a link decides
the request exactly once. Approval issues a short-lived access code which is
emailed to the requester and stored only as a hash.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from survey_api.config import Settings
from survey_api.errors import AlreadyDecided, ConfigurationError, InvalidAction, NotFound, ValidationError
from survey_api.models.access_request import AccessRequest
from survey_api.models.access_token import AccessToken
from survey_api.services import mailer
from survey_api.services.rate_limit import enforce_access_request_limit
from survey_api.services.state_machine import ensure_transition
from survey_api.services.tokens import expires_in, hash_token, new_access_code, new_approval_token, utcnow
from survey_api.services.ttl_store import TTLStore
from survey_api.utils.constants import DECISION_ACTIONS

logger = logging.getLogger(__name__)


async def submit_request(
    db: Session,
    store: TTLStore,
    settings: Settings,
    name: str | None,
    email: str | None,
    reason: str | None,
) -> AccessRequest:
    name = (name or "").strip()
    email = (email or "").strip().lower()
    reason = (reason or "").strip()
    if not name or not email or not reason:
        raise ValidationError("Name, email and reason are required")

    enforce_access_request_limit(store, settings, email)

    recipients = settings.admin_recipients
    if not recipients:
        raise ConfigurationError("ADMIN_EMAILS or ADMIN_NOTIFICATION_EMAIL is not configured on the server")

    req = AccessRequest(
        name=name,
        email=email,
        reason=reason,
        status="pending",
        approval_token=new_approval_token(),
    )
    db.add(req)
    db.commit()
    db.refresh(req)
    logger.info("Access request %s created for %s", req.id, email)

    for recipient in recipients:
        await mailer.send_access_request_email(settings, recipient, name, email, reason, req.approval_token)

    return req


def get_request_by_token(db: Session, token: str) -> AccessRequest | None:
    return db.execute(
        select(AccessRequest).where(AccessRequest.approval_token == token)
    ).scalar_one_or_none()


async def decide(db: Session, settings: Settings, token: str, action: str | None) -> str:
    if not token or not action:
        raise ValidationError("Invalid request")

    req = get_request_by_token(db, token)
    if req is None:
        raise NotFound("Request not found")

    if not req.is_pending():
        raise AlreadyDecided(req.status)

    target = DECISION_ACTIONS.get(str(action).strip().lower())
    if target is None:
        raise InvalidAction("Invalid action")

    ensure_transition(req.status, target)

    now = utcnow()
    # only the first decision matches status == pending
    moved = db.execute(
        update(AccessRequest)
        .where(AccessRequest.id == req.id, AccessRequest.status == "pending")
        .values(status=target, decided_at=now, updated_at=now)
    ).rowcount
    if not moved:
        db.rollback()
        db.refresh(req)
        raise AlreadyDecided(req.status)

    access_code = None
    expires_at = None
    if target == "approved":
        access_code = new_access_code()
        expires_at = expires_in(settings.access_token_ttl_minutes)
        db.add(AccessToken(token_hash=hash_token(access_code), email=req.email, expires_at=expires_at))

    db.commit()
    db.refresh(req)
    logger.info("Access request %s %s", req.id, target)

    # the decision is already committed; a failed email does not undo it
    if access_code is not None:
        await mailer.send_access_approved_email(settings, req.email, access_code, expires_at)
        return "Approved. Access code sent to the requester."

    await mailer.send_access_denied_email(settings, req.email)
    return "Disapproved. Requester notified via email."


def purge_expired_tokens(db: Session) -> int:
    removed = db.execute(delete(AccessToken).where(AccessToken.expires_at <= utcnow())).rowcount
    db.commit()
    return removed or 0
