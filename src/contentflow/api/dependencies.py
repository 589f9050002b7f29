"""Shared FastAPI dependencies: sessions, caller identity, permissions."""
import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import get_config
from ..core.integrations.manager import NotificationService
from ..core.models import User
from ..core.permissions import has_permission
from ..core.storage.database import get_db

logger = logging.getLogger(__name__)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    db = get_db()
    async with db.session() as session:
        yield session


async def verify_api_key(x_api_key: Optional[str] = Header(None)) -> None:
    """Reject requests without the configured API key when auth is enabled."""
    config = get_config()
    if not config.enable_auth:
        return
    if not x_api_key or x_api_key != config.api_key:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


async def get_current_user(
    x_user_id: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the caller asserted by the upstream identity provider."""
    return await resolve_user(session, x_user_id)


async def resolve_user(session: AsyncSession, x_user_id: Optional[str]) -> User:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid X-User-Id header")

    user = await session.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Unknown user")
    return user


def require_permission(permission: str):
    """Build a dependency that returns the caller if their role grants ``permission``."""

    async def checker(user: User = Depends(get_current_user)) -> User:
        if not has_permission(user.role, permission):
            logger.warning(f"User {user.id} ({user.role}) denied {permission}")
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return user

    return checker


def get_notifier(request: Request) -> NotificationService:
    notifier = getattr(request.app.state, "notifications", None)
    if notifier is None:
        notifier = NotificationService(get_db().session)
        request.app.state.notifications = notifier
    return notifier
