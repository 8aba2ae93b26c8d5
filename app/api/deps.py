"""
Juni — Shared API dependencies

Caller identity comes from the upstream identity layer as an opaque user id
in the ``X-User-Id`` header, and the caller's role in ``X-User-Role``.
Service providers build the domain services on top of the session factory
so tests can swap the database with a single dependency override.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import get_db, get_session_factory
from app.errors import AuthorizationError, NotFoundError
from app.models.companion import Companion
from app.models.enums import UserRole
from app.services.companion_service import CompanionService
from app.services.matching_service import MatchingService
from app.services.payout_service import PayoutService
from app.services.transfer_service import TransferService
from app.services.visit_service import VisitService

logger = structlog.get_logger("juni.api.deps")

# ── Service singletons ────────────────────────────────────────────────────────

_transfer_service: TransferService | None = None


def get_transfer_service() -> TransferService:
    global _transfer_service
    if _transfer_service is None:
        _transfer_service = TransferService()
    return _transfer_service


def get_matching_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> MatchingService:
    return MatchingService(session_factory)


def get_visit_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> VisitService:
    return VisitService(session_factory)


def get_companion_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> CompanionService:
    return CompanionService(session_factory)


def get_payout_service(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    transfer_service: TransferService = Depends(get_transfer_service),
) -> PayoutService:
    return PayoutService(session_factory, transfer_service=transfer_service)


# ── Identity ──────────────────────────────────────────────────────────────────

def get_current_user_id(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
) -> uuid.UUID:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Malformed user id",
        )


async def get_current_companion_id(
    user_id: uuid.UUID = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> uuid.UUID:
    """Resolve the caller's companion account."""
    companion_id = (
        await db.execute(select(Companion.id).where(Companion.user_id == user_id))
    ).scalar_one_or_none()
    if companion_id is None:
        raise NotFoundError("Companion")
    return companion_id


def get_current_role(
    x_user_role: str | None = Header(None, alias="X-User-Role"),
) -> UserRole | None:
    """The caller's role, or ``None`` when the identity layer sent none."""
    if not x_user_role:
        return None
    try:
        return UserRole(x_user_role.strip().lower())
    except ValueError:
        return None


def require_admin(
    user_id: uuid.UUID = Depends(get_current_user_id),
    role: UserRole | None = Depends(get_current_role),
) -> uuid.UUID:
    """Admin-only routes.  Returns the admin's user id."""
    if role is not UserRole.ADMIN:
        logger.warning(
            "admin_access_denied",
            user_id=str(user_id),
            role=role.value if role else None,
        )
        label = role.value if role else "anonymous"
        raise AuthorizationError(f"Role '{label}' is not permitted to access this resource")
    return user_id
