"""Opinions API."""
from fastapi import APIRouter

from polygram.api.opinions import routes_opinions

router = APIRouter()

router.include_router(routes_opinions.router, prefix="/opinions", tags=["opinions"])
