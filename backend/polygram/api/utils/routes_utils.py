"""Utility routes."""
from typing import Optional

from fastapi import APIRouter, Depends

from polygram.domain.common.errors import ValidationError
from polygram.domain.common.validation import validate_url
from polygram.infra.vendors.link_preview import LinkPreviewClient, LinkPreviewError

router = APIRouter()


def get_link_preview_client() -> LinkPreviewClient:
    return LinkPreviewClient()


@router.get("/link-preview")
async def get_link_preview(
    url: Optional[str] = None,
    client: LinkPreviewClient = Depends(get_link_preview_client),
):
    """Title, description and images of a web page."""
    validate_url(url, "url", required=True)
    try:
        data = await client.fetch(url)
    except LinkPreviewError:
        raise ValidationError("Unable to get link preview", field="url")
    return {"data": data}
