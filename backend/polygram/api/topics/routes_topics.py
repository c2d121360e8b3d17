"""Topic routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.api.deps import cursor_params, get_current_user, get_db, get_optional_user
from polygram.domain.common.pagination import CursorParams
from polygram.domain.polls.services import TopicService
from polygram.domain.users.models import User

router = APIRouter()


class FollowTopicsRequest(BaseModel):
    topics: Optional[list[str]] = None


class TopicCreateRequest(BaseModel):
    name: Optional[str] = None
    master_password: Optional[str] = None


@router.get("")
async def list_topics(
    search: Optional[str] = None,
    count: bool = Query(False),
    params: CursorParams = Depends(cursor_params),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Topics, with followed_by_user and (when count=true) question_count."""
    page = await TopicService(db).list_topics(viewer, params, search=search, count=count)
    return {"msg": "Topics Found", "data": {"topics": page.items}}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_topic(request: TopicCreateRequest, db: AsyncSession = Depends(get_db)):
    """Create a topic (admin, master password)."""
    topic = await TopicService(db).create_topic(request.master_password, request.name)
    return {"msg": "Topic created successfully", "data": {"topic": topic}}


@router.post("/follow")
async def follow_topics(
    request: FollowTopicsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    followed = await TopicService(db).follow(user, request.topics)
    return {"msg": "Updated followed topics successfully", "data": {"followed_topics": followed}}


@router.post("/unfollow")
async def unfollow_topics(
    request: FollowTopicsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    followed = await TopicService(db).unfollow(user, request.topics)
    return {"msg": "Updated followed topics successfully", "data": {"followed_topics": followed}}


@router.get("/{topic_id}")
async def get_topic(
    topic_id: str,
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    topic = await TopicService(db).get_topic(viewer, topic_id)
    return {"msg": "Topic Found", "data": {"topic": topic}}
