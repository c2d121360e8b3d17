"""User repository implementation."""
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, or_

from polygram.domain.users.models import User
from polygram.domain.users.services import UserRepository
from polygram.infra.db.models.user import UserModel


class UserRepositoryImpl(UserRepository):
    """User repository implementation. Writes are flushed, never committed."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, user: User) -> User:
        """Insert a new user."""
        model = UserModel.from_entity(user)
        self.session.add(model)
        await self.session.flush()
        return model.to_entity()

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        model = result.scalar_one_or_none()
        return model.to_entity() if model else None

    async def get_by_username(self, username: str, verified: Optional[bool] = None) -> Optional[User]:
        """Get user by username, optionally restricted by verification state."""
        q = select(UserModel).where(UserModel.username == username)
        if verified is not None:
            q = q.where(UserModel.verified.is_(verified))
        result = await self.session.execute(q)
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def get_by_email(self, email: str, verified: Optional[bool] = None) -> Optional[User]:
        """Get user by email, optionally restricted by verification state."""
        q = select(UserModel).where(UserModel.email == email)
        if verified is not None:
            q = q.where(UserModel.verified.is_(verified))
        result = await self.session.execute(q)
        model = result.scalars().first()
        return model.to_entity() if model else None

    async def delete_unverified(self, username: str, email: str) -> int:
        """Delete unverified users holding either credential. Returns count deleted."""
        result = await self.session.execute(
            delete(UserModel).where(
                or_(UserModel.username == username, UserModel.email == email),
                UserModel.verified.is_(False),
            )
        )
        return result.rowcount or 0

    async def update_fields(self, user_id: str, **values: Any) -> None:
        """Set the given columns on one user."""
        if not values:
            return
        await self.session.execute(update(UserModel).where(UserModel.id == user_id).values(**values))

    async def get_followed_topics(self, user_id: str) -> list[str]:
        """Stored followed topics, locking the row where the dialect supports it."""
        result = await self.session.execute(
            select(UserModel.followed_topics).where(UserModel.id == user_id).with_for_update()
        )
        return list(result.scalar_one_or_none() or [])

    async def replace_followed_topics(self, user_id: str, expected: list[str], followed: list[str]) -> bool:
        """Write ``followed`` only if the stored list still equals ``expected``."""
        result = await self.session.execute(
            update(UserModel)
            .where(UserModel.id == user_id, UserModel.followed_topics == expected)
            .values(followed_topics=followed)
        )
        return bool(result.rowcount)

    async def delete(self, user_id: str) -> int:
        """Delete the user row itself."""
        result = await self.session.execute(delete(UserModel).where(UserModel.id == user_id))
        return result.rowcount or 0

