"""Device repository for push tokens."""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from polygram.infra.db.models.device import DeviceModel
from polygram.infra.db.models.user import UserModel
from polygram.domain.common.types import generate_id, utc_now


class DeviceRepository:
    """Device repository. Writes are flushed, never committed."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert_by_token(
        self, user_id: str, push_token: str, platform: str
    ) -> DeviceModel:
        """Insert or update device by push_token. Same token overwrites (one token per device)."""
        existing = await self.session.execute(
            select(DeviceModel).where(DeviceModel.push_token == push_token)
        )
        row = existing.scalar_one_or_none()
        if row:
            row.user_id = user_id
            row.platform = platform
            await self.session.flush()
            return row
        model = DeviceModel(
            id=generate_id(),
            user_id=user_id,
            push_token=push_token,
            platform=platform,
            created_at=utc_now(),
        )
        self.session.add(model)
        await self.session.flush()
        return model

    async def list_tokens_by_user(self, user_id: str) -> list[tuple]:
        """List (push_token, platform) for a user. Used by push sender."""
        result = await self.session.execute(
            select(DeviceModel.push_token, DeviceModel.platform).where(
                DeviceModel.user_id == user_id
            )
        )
        return list(result.all())

    async def delete_token(self, user_id: str, push_token: Optional[str] = None) -> int:
        """Forget one of the user's tokens, or all of them when no token is given."""
        q = delete(DeviceModel).where(DeviceModel.user_id == user_id)
        if push_token is not None:
            q = q.where(DeviceModel.push_token == push_token)
        result = await self.session.execute(q)
        return result.rowcount or 0

    async def delete_stale_token(self, push_token: str) -> None:
        """Drop a token the push provider reported as unregistered."""
        await self.session.execute(delete(DeviceModel).where(DeviceModel.push_token == push_token))

    async def users_with_devices(self, usernames: Optional[list[str]] = None) -> list[str]:
        """Ids of users with at least one device, optionally limited to some usernames."""
        q = select(DeviceModel.user_id).distinct()
        if usernames:
            q = q.join(UserModel, UserModel.id == DeviceModel.user_id).where(
                UserModel.username.in_(usernames)
            )
        result = await self.session.execute(q)
        return list(result.scalars().all())
