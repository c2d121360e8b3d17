"""Topics API."""
from fastapi import APIRouter

from polygram.api.topics import routes_topics

router = APIRouter()

router.include_router(routes_topics.router, prefix="/topics", tags=["topics"])
