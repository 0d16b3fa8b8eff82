import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import parse_qsl, urlencode
from uuid import UUID

from jose import jwt, JWTError
from passlib.context import CryptContext

from shiftkeeper.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    subject: str | UUID,
    company_id: str | UUID,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = datetime.now(timezone.utc) + expires_delta
    payload: dict[str, Any] = {
        "sub": str(subject),
        "company_id": str(company_id),
        "role": role,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_refresh_token(
    subject: str | UUID,
    company_id: str | UUID,
) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    payload: dict[str, Any] = {
        "sub": str(subject),
        "company_id": str(company_id),
        "exp": expire,
        "type": "refresh",
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError as e:
        raise ValueError(f"Invalid token: {e}")


# ── Telegram WebApp init-data ────────────────────────────────────────────────

@dataclass(frozen=True)
class TelegramUser:
    id: int
    first_name: str = ""
    last_name: str | None = None
    username: str | None = None
    language_code: str | None = None


def _init_data_hash(data_check_string: str, bot_token: str) -> str:
    secret_key = hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()
    return hmac.new(secret_key, data_check_string.encode(), hashlib.sha256).hexdigest()


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """Builds a signed init-data query string (used by tests and local tooling)."""
    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    params = dict(fields)
    params["hash"] = _init_data_hash(data_check_string, bot_token)
    return urlencode(params)


def validate_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int | None = None,
) -> TelegramUser:
    """
    Validates the Telegram WebApp init-data string and returns the signed user.

    data_check_string = alle Felder außer ``hash``, alphabetisch sortiert,
    als ``key=value`` mit Zeilenumbruch verbunden.
    Raises ValueError if the signature is missing, wrong or expired.
    """
    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received_hash = fields.pop("hash", None)
    if not received_hash:
        raise ValueError("Init data has no hash")

    data_check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    expected_hash = _init_data_hash(data_check_string, bot_token)
    if not hmac.compare_digest(expected_hash, received_hash):
        raise ValueError("Invalid init data signature")

    if max_age_seconds:
        if "auth_date" not in fields:
            raise ValueError("Init data has no auth_date")
        try:
            auth_date = int(fields["auth_date"])
        except ValueError:
            raise ValueError("Invalid auth_date")
        if time.time() - auth_date > max_age_seconds:
            raise ValueError("Init data expired")

    raw_user = fields.get("user")
    if not raw_user:
        raise ValueError("Init data has no user")
    try:
        user = json.loads(raw_user)
        return TelegramUser(
            id=int(user["id"]),
            first_name=user.get("first_name", ""),
            last_name=user.get("last_name"),
            username=user.get("username"),
            language_code=user.get("language_code"),
        )
    except (json.JSONDecodeError, KeyError, TypeError) as e:
        raise ValueError(f"Invalid user payload: {e}")
