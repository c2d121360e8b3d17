"""Picture repository."""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete

from polygram.domain.common.types import generate_id
from polygram.infra.db.base import dialect_insert
from polygram.infra.db.models.picture import PictureModel


class PictureRepository:
    """Binary picture storage keyed by (owner_key, type)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self, owner_key: str, type: str, data: bytes, content_type: str) -> str:
        """Insert or replace the owner's picture of this type. Returns the picture id."""
        stmt = dialect_insert(self.session, PictureModel).values(
            id=generate_id(),
            owner_key=owner_key,
            type=type,
            data=data,
            content_type=content_type,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[PictureModel.owner_key, PictureModel.type],
            set_={"data": stmt.excluded.data, "content_type": stmt.excluded.content_type},
        )
        await self.session.execute(stmt)
        result = await self.session.execute(
            select(PictureModel.id).where(PictureModel.owner_key == owner_key, PictureModel.type == type)
        )
        return result.scalar_one()

    async def get(self, picture_id: str) -> Optional[PictureModel]:
        result = await self.session.execute(select(PictureModel).where(PictureModel.id == picture_id))
        return result.scalar_one_or_none()

    async def delete_by_owner(self, owner_key: str) -> int:
        result = await self.session.execute(delete(PictureModel).where(PictureModel.owner_key == owner_key))
        return result.rowcount or 0
