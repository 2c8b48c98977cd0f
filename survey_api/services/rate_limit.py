import logging

from survey_api.config import Settings
from survey_api.errors import RateLimited
from survey_api.services.ttl_store import TTLStore

logger = logging.getLogger(__name__)


def enforce_access_request_limit(store: TTLStore, settings: Settings, email: str) -> None:
    """Sliding window per requester email; raises RateLimited once the quota is used."""
    wait = store.record_hit(
        f"access-request:{email.strip().lower()}",
        settings.access_request_window_minutes * 60,
        settings.access_request_max,
    )
    if wait is not None:
        logger.warning("Access requests for %s rate limited, retry in %.0fs", email, wait)
        raise RateLimited(wait)
