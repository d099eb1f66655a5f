"""FastAPI dependencies for database, admin authentication, and booking sessions."""

from datetime import datetime, timezone
from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends, Header
from jwt import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.booking_store import BookingSessionRegistry, BookingStateStore, booking_registry
from ..services.notification_service import NotificationDispatcher, notification_dispatcher
from .config import settings
from .database import get_async_session
from .exceptions import AuthenticationError, AuthorizationError

ADMIN_ROLE = "admin"


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database dependency that provides async database sessions.

    Yields:
        AsyncSession: Database session
    """
    async for session in get_async_session():
        yield session


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> dict:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        dict: User information from validated token

    Raises:
        AuthenticationError: If token is invalid or missing
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format") from None
    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}") from None

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError(detail="Invalid token payload")

    exp = payload.get("exp")
    if exp and datetime.now(timezone.utc).timestamp() > exp:
        raise AuthenticationError(detail="Token has expired")

    return {
        "user_id": user_id,
        "email": payload.get("email"),
        "roles": payload.get("roles", []),
    }


async def get_current_admin(user: dict = Depends(get_current_user)) -> dict:
    """
    Require the ``admin`` role.

    Raises:
        AuthorizationError: If the authenticated user is not an admin
    """
    if ADMIN_ROLE not in user["roles"]:
        raise AuthorizationError(
            detail="Admin access required",
            required_permissions=[ADMIN_ROLE],
        )
    return user


def get_booking_registry() -> BookingSessionRegistry:
    return booking_registry


def get_booking_store(
    session_id: Optional[str] = Header(None, alias="X-Booking-Session"),
    registry: BookingSessionRegistry = Depends(get_booking_registry),
) -> BookingStateStore:
    """
    Resolve the booking store for the ``X-Booking-Session`` header.

    Raises:
        NotFoundError: If the header is missing or the session is unknown
    """
    return registry.get(session_id)


def get_notifier() -> NotificationDispatcher:
    return notification_dispatcher


DatabaseSession = Depends(get_db)
AdminUser = Depends(get_current_admin)
BookingStore = Depends(get_booking_store)
Notifier = Depends(get_notifier)
