"""Opinion and vote routes."""
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.api.deps import cursor_params, get_current_user, get_db, get_optional_user
from polygram.domain.common.pagination import CursorParams
from polygram.domain.polls.services import OpinionService
from polygram.domain.users.models import User

router = APIRouter()


class OpinionCreateRequest(BaseModel):
    question_id: Optional[str] = None
    content: Optional[str] = None
    option: Optional[str] = None


@router.get("")
async def list_opinions(
    question_id: Optional[str] = None,
    params: CursorParams = Depends(cursor_params),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Opinions on a question. Logged-in viewers also get is_upvoted / is_downvoted."""
    page = await OpinionService(db).list_opinions(viewer, question_id, params)
    return {"msg": "Opinions Found", "data": {"opinions": page.items}}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_opinion(
    request: OpinionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    opinion = await OpinionService(db).create_opinion(
        user, request.question_id, request.content, request.option
    )
    return {"msg": "Opinion created successfully", "data": {"opinion": opinion}}


@router.delete("/{opinion_id}")
async def delete_opinion(
    opinion_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await OpinionService(db).delete_opinion(user, opinion_id)
    return {"msg": "Opinion deleted successfully"}


@router.post("/{opinion_id}/upvote", status_code=status.HTTP_201_CREATED)
async def add_upvote(
    opinion_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    counts = await OpinionService(db).add_upvote(user, opinion_id)
    return {"msg": "Upvote added successfully", "data": counts}


@router.post("/{opinion_id}/downvote", status_code=status.HTTP_201_CREATED)
async def add_downvote(
    opinion_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    counts = await OpinionService(db).add_downvote(user, opinion_id)
    return {"msg": "Downvote added successfully", "data": counts}


@router.delete("/{opinion_id}/upvote")
async def remove_upvote(
    opinion_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    counts = await OpinionService(db).remove_upvote(user, opinion_id)
    return {"msg": "Upvote removed successfully", "data": counts}


@router.delete("/{opinion_id}/downvote")
async def remove_downvote(
    opinion_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    counts = await OpinionService(db).remove_downvote(user, opinion_id)
    return {"msg": "Downvote removed successfully", "data": counts}
