"""Users API."""
from fastapi import APIRouter

from polygram.api.users import routes_users

router = APIRouter()

router.include_router(routes_users.router, prefix="/users", tags=["users"])
