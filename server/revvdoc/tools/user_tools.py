"""User lookups used for role checks."""

from typing import Optional

from revvdoc.errors import ForbiddenError
from revvdoc.models.user import User, UserRole
from sqlalchemy.ext.asyncio import AsyncSession


async def get_user_role(db: AsyncSession, user_id: str) -> Optional[UserRole]:
    """Role of a user, or None if no profile exists."""
    user = await db.get(User, user_id)
    return user.role if user else None


async def require_role(db: AsyncSession, user_id: str, *roles: UserRole) -> UserRole:
    """Raise ForbiddenError unless the user holds one of ``roles``."""
    role = await get_user_role(db, user_id)
    if role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError(f"Requires role: {allowed}")
    return role
