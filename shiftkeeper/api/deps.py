from typing import Annotated
import logging
import uuid

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from shiftkeeper.core.config import settings
from shiftkeeper.core.database import get_db
from shiftkeeper.core.security import decode_token, validate_init_data, TelegramUser
from shiftkeeper.models.company import Company
from shiftkeeper.models.user import User

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(credentials.credentials)
        if payload.get("type") != "access":
            raise credentials_exception
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, KeyError):
        raise credentials_exception

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        raise credentials_exception

    return user


async def get_current_manager_or_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Allows admin and manager roles."""
    if current_user.role not in ("admin", "manager"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions – admin or manager required",
        )
    return current_user


def ensure_same_company(user: User, company_id: uuid.UUID) -> None:
    if user.company_id != company_id:
        raise HTTPException(status_code=403, detail="Access to this company is not allowed")


async def get_company(
    company_id: uuid.UUID,
    current_user: Annotated[User, Depends(get_current_manager_or_admin)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Company:
    """Resolves ``{company_id}`` from the path, scoped to the caller's company."""
    company = await db.get(Company, company_id)
    if company is None:
        raise HTTPException(status_code=404, detail="Company not found")
    ensure_same_company(current_user, company.id)
    return company

# ── Telegram WebApp ──────────────────────────────────────────────────────────


async def get_telegram_user(
    x_telegram_init_data: Annotated[str | None, Header()] = None,
) -> TelegramUser | None:
    """
    Validates the ``X-Telegram-Init-Data`` header.
    Returns None only when the development bypass is active.
    """
    if settings.TELEGRAM_AUTH_BYPASS and settings.is_development:
        logger.warning("Telegram WebApp authentication bypassed (development mode)")
        return None

    if not x_telegram_init_data:
        raise HTTPException(status_code=401, detail="Missing Telegram init data")
    if not settings.TELEGRAM_BOT_TOKEN:
        logger.error("TELEGRAM_BOT_TOKEN is not configured, rejecting WebApp request")
        raise HTTPException(status_code=401, detail="Telegram authentication is not configured")

    try:
        return validate_init_data(
            x_telegram_init_data,
            settings.TELEGRAM_BOT_TOKEN,
            settings.TELEGRAM_INIT_DATA_MAX_AGE_SECONDS,
        )
    except ValueError as e:
        logger.info("Rejected Telegram init data: %s", e)
        raise HTTPException(status_code=401, detail="Invalid Telegram init data")


def ensure_telegram_identity(tg_user: TelegramUser | None, telegram_id: int) -> None:
    if tg_user is not None and tg_user.id != telegram_id:
        raise HTTPException(status_code=403, detail="Telegram user does not match telegramId")


CurrentUser = Annotated[User, Depends(get_current_user)]
ManagerOrAdmin = Annotated[User, Depends(get_current_manager_or_admin)]
CompanyScope = Annotated[Company, Depends(get_company)]
TelegramAuth = Annotated[TelegramUser | None, Depends(get_telegram_user)]
DB = Annotated[AsyncSession, Depends(get_db)]
