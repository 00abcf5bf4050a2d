from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from student_records.core.config import settings

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
_ALGORITHM = "HS256"

ACCESS = "access"
REFRESH = "refresh"


def hash_password(plain: str) -> str:
    return _pwd_context.hash(plain)


def verify_password(plain: str, hashed: str) -> bool:
    return _pwd_context.verify(plain, hashed)


def _encode(subject: Any, claims: dict, secret: str, minutes: int) -> str:
    expire = datetime.utcnow() + timedelta(minutes=minutes)
    return jwt.encode(
        {**claims, "sub": str(subject), "exp": expire},
        secret,
        algorithm=_ALGORITHM,
    )


def create_access_token(subject: Any, email: str = "", role: str = "") -> str:
    return _encode(
        subject,
        {"email": email, "role": role, "type": ACCESS},
        settings.jwt_secret,
        settings.access_token_expire_minutes,
    )


def create_refresh_token(subject: Any, email: str = "", role: str = "") -> str:
    return _encode(
        subject,
        {"email": email, "role": role, "type": REFRESH},
        settings.jwt_refresh_secret,
        settings.refresh_token_expire_minutes,
    )


def decode_access_token(token: str) -> int | None:
    return _decode(token, settings.jwt_secret, ACCESS)


def decode_refresh_token(token: str) -> int | None:
    return _decode(token, settings.jwt_refresh_secret, REFRESH)


def _decode(token: str, secret: str, expected_type: str) -> int | None:
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
        if payload.get("type") != expected_type:
            return None
        return int(payload["sub"])
    except (JWTError, KeyError, ValueError):
        return None
