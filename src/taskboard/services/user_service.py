"""User service — registration, login, and profile management.

Learn: Users can always see and edit themselves; ADMINs can see and edit
anyone. Only an ADMIN can change a role, including their own. Like
projects and tasks, existence is checked before permission.
"""

import math
from typing import Optional

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.auth.dependencies import Identity
from taskboard.auth.password import hash_password, verify_password
from taskboard.db.models import Role, User
from taskboard.errors import (
    Conflict,
    Forbidden,
    InvalidCredential,
    InvalidRequest,
    NotFound,
)

logger = structlog.get_logger()


def _escape_like(text: str) -> str:
    """Make LIKE wildcards in user input match literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    # ─── Registration / login ────────────────────────────

    async def register(
        self, name: str, email: str, password: str, role: Role = Role.USER
    ) -> User:
        if await self.get_by_email(email):
            raise Conflict("Email already registered")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email.
            await self.db.rollback()
            logger.warning("user.register_conflict")
            raise Conflict("Email already registered")
        logger.info("user.registered", user_id=user.id, role=user.role.value)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials. Same error for unknown email and bad password."""
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning("auth.login_failed")
            raise InvalidCredential("Invalid email or password")
        return user

    # ─── Read ────────────────────────────────────────────

    async def list_users(
        self, page: int = 1, limit: int = 10, search: str = ""
    ) -> tuple[list[User], int]:
        """Paginated users, newest first, optionally filtered by name/email."""
        where = []
        if search:
            pattern = f"%{_escape_like(search.lower())}%"
            where.append(
                or_(
                    func.lower(User.name).like(pattern, escape="\\"),
                    func.lower(User.email).like(pattern, escape="\\"),
                )
            )

        total = (
            await self.db.execute(select(func.count()).select_from(User).where(*where))
        ).scalar_one()
        result = await self.db.execute(
            select(User)
            .where(*where)
            .order_by(User.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    async def get_user(self, identity: Identity, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound("user", user_id)
        if not identity.is_admin and user_id != identity.subject_id:
            raise Forbidden("You do not have permission to view this user profile")
        return user

    # ─── Update ──────────────────────────────────────────

    async def update_user(
        self,
        identity: Identity,
        user_id: str,
        name: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFound("user", user_id)
        if not identity.is_admin and user_id != identity.subject_id:
            raise Forbidden("You do not have permission to update this user")
        if role is not None and not identity.is_admin:
            raise Forbidden("Only administrators can update user roles")
        if name is None and role is None:
            raise InvalidRequest("At least one field (name or role) must be provided")

        if name is not None:
            user.name = name
        if role is not None:
            user.role = role
        await self.db.commit()
        logger.info("user.updated", user_id=user_id, role_changed=role is not None)
        return user


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
