"""One-time codes proving ownership of an email address before a survey is accepted."""

import hmac
import logging
from dataclasses import dataclass

from survey_api.config import Settings
from survey_api.services.tokens import new_otp
from survey_api.services.ttl_store import TTLStore

logger = logging.getLogger(__name__)


@dataclass
class OtpCheck:
    valid: bool
    message: str


def _otp_key(email: str) -> str:
    return f"otp:{email.strip().lower()}"


def _verified_key(email: str) -> str:
    return f"verified:{email.strip().lower()}"


def issue_otp(store: TTLStore, settings: Settings, email: str) -> str:
    # one active code per email; a new one replaces the previous
    otp = new_otp()
    store.set(_otp_key(email), otp, settings.otp_ttl_minutes * 60)
    logger.info("OTP issued for %s", email)
    return otp


def verify_otp(store: TTLStore, settings: Settings, email: str, provided: str) -> OtpCheck:
    stored = store.get(_otp_key(email))
    if stored is None:
        return OtpCheck(False, "OTP not found or expired")

    if not hmac.compare_digest(stored.encode("utf-8"), str(provided).strip().encode("utf-8")):
        return OtpCheck(False, "Invalid OTP")

    store.delete(_otp_key(email))
    store.set(_verified_key(email), "1", settings.verified_email_ttl_minutes * 60)
    return OtpCheck(True, "OTP verified successfully")


def consume_verified_email(store: TTLStore, email: str) -> bool:
    return store.pop(_verified_key(email)) is not None
