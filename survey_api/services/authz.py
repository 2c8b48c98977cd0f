import enum
import logging
from typing import Callable

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession

from survey_api.config import Settings, get_settings
from survey_api.database import get_db
from survey_api.errors import Forbidden
from survey_api.models.access_token import AccessToken
from survey_api.services.tokens import as_utc, hash_token, utcnow

logger = logging.getLogger(__name__)

ADMIN_HEADER = "x-admin-key"


class Verdict(enum.Enum):
    AUTHORIZED = "authorized"
    DENIED = "denied"
    UNKNOWN = "unknown"


def check_static_key(credential: str, db: DbSession, settings: Settings) -> Verdict:
    if credential in settings.admin_key_set:
        return Verdict.AUTHORIZED
    return Verdict.UNKNOWN


def check_access_token(credential: str, db: DbSession, settings: Settings) -> Verdict:
    token = db.execute(
        select(AccessToken).where(AccessToken.token_hash == hash_token(credential))
    ).scalar_one_or_none()
    if token is None:
        return Verdict.UNKNOWN

    if as_utc(token.expires_at) <= utcnow():
        email = token.email
        db.delete(token)
        db.commit()
        logger.info("Expired access token for %s removed", email)
        return Verdict.DENIED

    return Verdict.AUTHORIZED


CHECKERS: list[Callable[[str, DbSession, Settings], Verdict]] = [
    check_static_key,
    check_access_token,
]


def authorize(credential: str | None, db: DbSession, settings: Settings) -> str:
    """Return the name of the checker that accepted ``credential`` or raise Forbidden."""
    if not credential:
        logger.info("Admin access denied: no credential")
        raise Forbidden()

    for checker in CHECKERS:
        verdict = checker(credential, db, settings)
        if verdict is Verdict.AUTHORIZED:
            return checker.__name__
        if verdict is Verdict.DENIED:
            logger.info("Admin access denied by %s", checker.__name__)
            raise Forbidden()

    logger.info("Admin access denied: unknown credential")
    raise Forbidden()


def require_admin(
    x_admin_key: str | None = Header(default=None, alias=ADMIN_HEADER),
    db: DbSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return authorize(x_admin_key, db, settings)
