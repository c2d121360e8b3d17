"""Questions API."""
from fastapi import APIRouter

from polygram.api.questions import routes_questions

router = APIRouter()

router.include_router(routes_questions.router, prefix="/questions", tags=["questions"])
