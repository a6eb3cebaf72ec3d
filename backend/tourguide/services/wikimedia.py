"""
Wikimedia Commons client
Looks up freely licensed images for a search term via the MediaWiki API
"""

import logging

import httpx

from tourguide.core.config import (
    WIKIMEDIA_API_URL,
    WIKIMEDIA_HTTP_TIMEOUT,
    WIKIMEDIA_THUMB_WIDTH,
    WIKIMEDIA_USER_AGENT,
)
from tourguide.core.errors import EnrichmentLookupError
from tourguide.models.place import WikimediaImageInfo

logger = logging.getLogger(__name__)

FILE_NAMESPACE = 6

# A 200 response whose JSON has the wrong shape surfaces as one of these
MALFORMED_PAYLOAD_ERRORS = (AttributeError, TypeError, KeyError, IndexError, ValueError)


def _meta_value(metadata: dict, key: str, default: str) -> str:
    value = (metadata.get(key) or {}).get("value")
    return value if value else default


def parse_image_info(page: dict) -> WikimediaImageInfo | None:
    """
    Turn one `pages` entry of an imageinfo query into WikimediaImageInfo.
    Raises EnrichmentLookupError when the entry is malformed.
    """
    try:
        return _parse_page(page)
    except MALFORMED_PAYLOAD_ERRORS as e:
        raise EnrichmentLookupError(f"Wikimedia returned malformed image info: {e}") from e


def _parse_page(page: dict) -> WikimediaImageInfo | None:
    infos = page.get("imageinfo") or []
    if not infos:
        return None
    info = infos[0]
    thumb_url = info.get("thumburl") or info.get("url")
    if not thumb_url:
        return None
    metadata = info.get("extmetadata") or {}
    return WikimediaImageInfo(
        thumbnail_url=thumb_url,
        description_html=_meta_value(metadata, "ImageDescription", ""),
        artist_name=_meta_value(metadata, "Artist", "Unknown"),
        attribution_url=info.get("descriptionurl") or "",
        license_name=_meta_value(metadata, "License", "Unknown license"),
        license_url=_meta_value(metadata, "LicenseUrl", ""),
    )


class WikimediaClient:
    """
    Two-step lookup: full-text search restricted to the File namespace, then
    imageinfo (thumbnail, licence, attribution) for the chosen titles.

    Empty results come back as None / []. Transport failures, non-2xx
    responses and malformed payloads raise EnrichmentLookupError.
    """

    def __init__(
        self,
        api_url: str = WIKIMEDIA_API_URL,
        timeout: float | None = WIKIMEDIA_HTTP_TIMEOUT,
        thumb_width: int = WIKIMEDIA_THUMB_WIDTH,
        user_agent: str = WIKIMEDIA_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_url = api_url
        self.timeout = timeout
        self.thumb_width = thumb_width
        self.user_agent = user_agent
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            headers={"User-Agent": self.user_agent},
            transport=self._transport,
        )

    async def _query(self, client: httpx.AsyncClient, params: dict) -> dict:
        params = {"action": "query", "format": "json", **params}
        try:
            response = await client.get(self.api_url, params=params)
        except httpx.HTTPError as e:
            raise EnrichmentLookupError(f"Wikimedia request failed: {e}") from e
        if response.status_code != 200:
            raise EnrichmentLookupError(
                f"Wikimedia API error {response.status_code}: {response.text[:200]}"
            )
        try:
            data = response.json()
        except ValueError as e:
            raise EnrichmentLookupError(f"Wikimedia returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise EnrichmentLookupError("Wikimedia returned an unexpected payload")
        return data

    async def _search_titles(self, client: httpx.AsyncClient, search_term: str, limit: int) -> list[str]:
        data = await self._query(
            client,
            {
                "list": "search",
                "srsearch": search_term,
                "srnamespace": FILE_NAMESPACE,
                "srlimit": limit,
            },
        )
        try:
            results = (data.get("query") or {}).get("search") or []
            return [r["title"] for r in results if r.get("title")][:limit]
        except MALFORMED_PAYLOAD_ERRORS as e:
            raise EnrichmentLookupError(f"Wikimedia returned malformed search results: {e}") from e

    async def _image_pages(self, client: httpx.AsyncClient, titles: list[str]) -> list[dict]:
        data = await self._query(
            client,
            {
                "titles": "|".join(titles),
                "prop": "imageinfo",
                "iiprop": "url|extmetadata",
                "iiurlwidth": self.thumb_width,
            },
        )
        try:
            pages = (data.get("query") or {}).get("pages") or {}
        except AttributeError as e:
            raise EnrichmentLookupError(f"Wikimedia returned malformed pages: {e}") from e
        if not isinstance(pages, dict):
            raise EnrichmentLookupError("Wikimedia returned malformed pages")
        return list(pages.values())

    async def fetch_image(self, search_term: str) -> WikimediaImageInfo | None:
        """Best single match for the search term, or None."""
        async with self._client() as client:
            titles = await self._search_titles(client, search_term, limit=1)
            if not titles:
                logger.debug(f"[wikimedia] No images found for: {search_term}")
                return None

            pages = await self._image_pages(client, titles[:1])
            image = parse_image_info(pages[0]) if pages else None
            if image is None:
                logger.debug(f"[wikimedia] No image info found for: {titles[0]}")
            return image

    async def fetch_images(self, search_term: str, limit: int = 5) -> list[WikimediaImageInfo]:
        """Up to `limit` images for the search term, fetched with a single info request."""
        async with self._client() as client:
            titles = await self._search_titles(client, search_term, limit=limit)
            if not titles:
                return []
            pages = await self._image_pages(client, titles)

        images = []
        for page in pages:
            try:
                image = parse_image_info(page)
            except EnrichmentLookupError as e:
                logger.debug(f"[wikimedia] Skipping image for '{search_term}': {e}")
                continue
            if image is not None:
                images.append(image)
        return images


def get_wikimedia_client() -> WikimediaClient:
    """FastAPI dependency; overridden in tests."""
    return WikimediaClient()
