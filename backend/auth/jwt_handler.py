from datetime import datetime, timedelta, timezone

import jwt

from backend.core import config

def create_access_token(
    subject: str,
    expires_hours: int | None = None,
    now: datetime | None = None,
) -> str:
    issued_at = now or datetime.now(timezone.utc)
    if expires_hours is None:
        expires_hours = config.JWT_EXPIRES_HOURS
    expire = issued_at + timedelta(hours=expires_hours)
    payload = {"sub": str(subject), "exp": expire, "iat": issued_at}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str, now: datetime | None = None) -> dict:
    # Time claims are checked here rather than by PyJWT so callers can pin the clock.
    payload = jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp"]},
    )
    current = (now or datetime.now(timezone.utc)).timestamp()
    if current >= payload["exp"]:
        raise jwt.ExpiredSignatureError("Signature has expired")
    return payload
