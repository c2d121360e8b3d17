"""Question routes."""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from polygram.api.deps import cursor_params, get_current_user, get_db, get_optional_user
from polygram.domain.common.pagination import CursorParams
from polygram.domain.polls.services import QuestionService
from polygram.domain.users.models import User

router = APIRouter()


class QuestionCreateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    options: Optional[list[str]] = None
    topics: Optional[list[str]] = None


@router.get("")
async def list_questions(
    topic: Optional[str] = None,
    search: Optional[str] = None,
    user_id: Optional[str] = None,
    following: bool = Query(False),
    params: CursorParams = Depends(cursor_params),
    viewer: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Newest-first questions, filtered by topic, search text, author or followed topics."""
    page = await QuestionService(db).list_questions(
        viewer, params, topic=topic, search=search, user_id=user_id, following=following
    )
    return {"msg": "Questions found", "data": {"questions": page.items}}


@router.get("/{question_id}")
async def get_question(question_id: str, db: AsyncSession = Depends(get_db)):
    """Question with the percentage breakdown of its options."""
    detail = await QuestionService(db).get_question(question_id)
    return {
        "msg": "Question Found",
        "data": {
            "question": {
                **vars(detail.question),
                "options": detail.options,
                "opinion_count": detail.opinion_count,
            }
        },
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_question(
    request: QuestionCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    question = await QuestionService(db).create_question(
        user, request.title, request.content, request.options, request.topics
    )
    return {"msg": "Question successfully created", "data": {"question": question}}


@router.delete("/{question_id}")
async def delete_question(
    question_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await QuestionService(db).delete_question(user, question_id)
    return {"msg": "Question deleted successfully"}
