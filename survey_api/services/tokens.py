import hashlib
import secrets
from datetime import datetime, timedelta, timezone

def new_approval_token() -> str:
    return secrets.token_hex(24)

def new_access_code() -> str:
    return secrets.token_hex(9)

def new_otp() -> str:
    return str(100000 + secrets.randbelow(900000))

def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()

def utcnow():
    return datetime.now(timezone.utc)

def expires_in(minutes: int):
    return utcnow() + timedelta(minutes=minutes)

def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
