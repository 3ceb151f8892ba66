"""Binary content retrieval from the messaging platform."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from line_hooks.config import LineConfig
from line_hooks.content.mime import ContentResult, detect_mime_type
from line_hooks.core.errors import ContentFetchError
from line_hooks.log import get_logger

logger = get_logger(__name__)

# Image messages carry no file name; image workflows pass this hint since the
# platform serves them as JPEG.
DEFAULT_IMAGE_FILE_NAME = "image.jpg"


class ContentFetcher(ABC):
    """Retrieves the bytes behind an attachment identifier."""

    @abstractmethod
    async def fetch(self, content_id: str, file_name: Optional[str] = None) -> ContentResult:
        """Fetch content and classify its media type.

        Raises:
            ContentFetchError: The retrieval failed. Partial bytes are never
                returned.
        """
        ...


class LineContentFetcher(ContentFetcher):
    """Fetches message content from the LINE data API with a bearer token."""

    def __init__(self, config: LineConfig, http_client: httpx.AsyncClient):
        self._base_url = config.data_api_base.rstrip("/")
        self._token = config.channel_access_token
        self._use_response_content_type = config.use_response_content_type
        self._http = http_client

    def content_url(self, content_id: str) -> str:
        return f"{self._base_url}/v2/bot/message/{content_id}/content"

    async def fetch(self, content_id: str, file_name: Optional[str] = None) -> ContentResult:
        url = self.content_url(content_id)
        try:
            response = await self._http.get(
                url, headers={"Authorization": f"Bearer {self._token}"}
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "content_fetch_failed",
                content_id=content_id,
                status_code=e.response.status_code,
            )
            raise ContentFetchError(
                f"Content API returned {e.response.status_code} for message {content_id}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("content_fetch_failed", content_id=content_id, error=str(e))
            raise ContentFetchError(f"Failed to get content for message {content_id}: {e}") from e

        hint = response.headers.get("content-type") if self._use_response_content_type else None
        mime_type = detect_mime_type(file_name or "", hint)
        result = ContentResult.from_bytes(response.content, mime_type)
        logger.info(
            "content_fetched",
            content_id=content_id,
            mime_type=result.mime_type,
            size=result.size,
        )
        return result
