"""Auth service — access-token issuing and session bookkeeping.

Login UX (OAuth, invites, password reset) lives outside this service; it
only mints a JWT for an already-identified employee and records the
session row that ``get_current_user`` later checks.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from datetime import datetime, timedelta
from typing import Optional

from jose import jwt
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hrms.auth.models import RoleAssignment, UserSession
from hrms.common.constants import UserRole
from hrms.common.timeutils import now_utc
from hrms.config import settings

logger = logging.getLogger(__name__)

# Highest role first
_ROLE_PRIORITY: tuple[UserRole, ...] = (
    UserRole.system_admin,
    UserRole.hr_admin,
    UserRole.manager,
    UserRole.employee,
)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


class AuthService:
    """Token and session operations."""

    @staticmethod
    async def get_highest_role(db: AsyncSession, employee_id: uuid.UUID) -> UserRole:
        """Return the most privileged active role granted to an employee."""
        result = await db.execute(
            select(RoleAssignment.role).where(
                RoleAssignment.employee_id == employee_id,
                RoleAssignment.is_active.is_(True),
            )
        )
        granted = set(result.scalars().all())
        for role in _ROLE_PRIORITY:
            if role in granted:
                return role
        return UserRole.employee

    @staticmethod
    def create_access_token(
        employee_id: uuid.UUID,
        role: UserRole,
        *,
        now: Optional[datetime] = None,
    ) -> tuple[str, datetime]:
        """Encode a signed access token. Returns (token, expires_at)."""
        issued = now or now_utc()
        expires_at = issued + timedelta(hours=settings.JWT_EXPIRY_HOURS)
        payload = {
            "sub": str(employee_id),
            "role": role.value,
            "type": "access",
            "jti": uuid.uuid4().hex,
            "iat": issued,
            "exp": expires_at,
        }
        token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
        return token, expires_at

    @staticmethod
    async def issue_session(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        role: Optional[UserRole] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        """Mint an access token and persist the matching session row."""
        if role is None:
            role = await AuthService.get_highest_role(db, employee_id)
        token, expires_at = AuthService.create_access_token(employee_id, role)
        db.add(
            UserSession(
                employee_id=employee_id,
                token_hash=hash_token(token),
                ip_address=ip_address,
                user_agent=user_agent,
                expires_at=expires_at,
                is_revoked=False,
            )
        )
        await db.flush()
        logger.info("Issued session for employee %s (role=%s)", employee_id, role.value)
        return token

    @staticmethod
    async def revoke_session(db: AsyncSession, token: str) -> bool:
        """Revoke the session bound to *token*. Returns True if one was live."""
        result = await db.execute(
            update(UserSession)
            .where(
                UserSession.token_hash == hash_token(token),
                UserSession.is_revoked.is_(False),
            )
            .values(is_revoked=True)
        )
        return result.rowcount > 0
