from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import jwt

from college_timetable.core.config import get_settings

settings = get_settings()


def create_access_token(subject: str, *, role: str, expires_minutes: int | None = None) -> str:
    """Mint a bearer token the way the login service does.

    Login itself lives outside this service; this is used by tooling and tests.
    """
    lifetime = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(timezone.utc) + timedelta(minutes=lifetime)
    claims = {"sub": subject, "role": role, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
