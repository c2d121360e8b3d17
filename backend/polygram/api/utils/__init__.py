"""Utils API."""
from fastapi import APIRouter

from polygram.api.utils import routes_utils

router = APIRouter()

router.include_router(routes_utils.router, prefix="/utils", tags=["utils"])
