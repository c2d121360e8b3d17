"""Picture routes."""
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.api.deps import get_db
from polygram.domain.common.errors import NotFoundError
from polygram.domain.common.validation import validate_id
from polygram.infra.db.repositories.picture_repo import PictureRepository

router = APIRouter()


@router.get("/{picture_id}")
async def get_picture(picture_id: str, db: AsyncSession = Depends(get_db)):
    """Serve a stored image with its content type."""
    validate_id(picture_id, "id", required=True)
    picture = await PictureRepository(db).get(picture_id)
    if picture is None:
        raise NotFoundError("Picture", picture_id)
    return Response(content=picture.data, media_type=picture.content_type)
