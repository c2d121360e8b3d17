"""Pictures API."""
from fastapi import APIRouter

from polygram.api.pictures import routes_pictures

router = APIRouter()

router.include_router(routes_pictures.router, prefix="/pictures", tags=["pictures"])
