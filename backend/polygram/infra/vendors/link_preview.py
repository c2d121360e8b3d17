"""Link preview client: fetch a page and read its title/OpenGraph tags."""
from html.parser import HTMLParser
import logging
from typing import Optional
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)


class LinkPreviewError(Exception):
    """Page could not be fetched or is not HTML."""


class _MetaParser(HTMLParser):
    """Collects <title>, <meta> and <link rel=icon> from the document head."""

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.title = ""
        self.meta: dict[str, str] = {}
        self.favicon: Optional[str] = None
        self._in_title = False

    def handle_starttag(self, tag, attrs):
        attrs = {k.lower(): (v or "") for k, v in attrs}
        if tag == "title":
            self._in_title = True
        elif tag == "meta":
            key = (attrs.get("property") or attrs.get("name") or "").lower()
            if key and "content" in attrs:
                self.meta.setdefault(key, attrs["content"].strip())
        elif tag == "link" and "icon" in attrs.get("rel", "").lower() and attrs.get("href"):
            self.favicon = self.favicon or attrs["href"]

    def handle_endtag(self, tag):
        if tag == "title":
            self._in_title = False

    def handle_data(self, data):
        if self._in_title:
            self.title += data


class LinkPreviewClient:
    """Fetches link previews over HTTP."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    async def fetch(self, url: str) -> dict:
        """Return {url, title, description, images, site_name, favicons, content_type}."""
        if not url.startswith(("http://", "https://")):
            url = f"http://{url}"
        headers = {"User-Agent": "Mozilla/5.0 (compatible; PolygramLinkPreview/1.0)"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await client.get(url, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.info("Link preview fetch failed for %s: %s", url, e)
            raise LinkPreviewError(str(e)) from e

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        final_url = str(response.url)
        if content_type.startswith("image/"):
            return {
                "url": final_url,
                "media_type": "image",
                "content_type": content_type,
                "title": None,
                "description": None,
                "images": [final_url],
                "site_name": None,
                "favicons": [],
            }
        if content_type and content_type != "text/html":
            raise LinkPreviewError(f"Unsupported content type {content_type}")

        parser = _MetaParser()
        parser.feed(response.text)
        meta = parser.meta
        image = meta.get("og:image") or meta.get("twitter:image")
        favicon = parser.favicon or "/favicon.ico"
        return {
            "url": final_url,
            "media_type": meta.get("og:type") or "website",
            "content_type": content_type or "text/html",
            "title": meta.get("og:title") or meta.get("twitter:title") or parser.title.strip() or None,
            "description": meta.get("og:description") or meta.get("description") or None,
            "images": [urljoin(final_url, image)] if image else [],
            "site_name": meta.get("og:site_name") or None,
            "favicons": [urljoin(final_url, favicon)],
        }
