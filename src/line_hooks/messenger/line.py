"""LINE Messaging API push adapter."""

from __future__ import annotations

import httpx

from line_hooks.config import LineConfig
from line_hooks.core.errors import DeliveryError
from line_hooks.log import get_logger
from line_hooks.messenger.base import Messenger

logger = get_logger(__name__)

# Platform limit for a single text message object
MAX_TEXT_LENGTH = 5000


class LineMessenger(Messenger):
    """Pushes text messages through ``/v2/bot/message/push``."""

    def __init__(self, config: LineConfig, http_client: httpx.AsyncClient):
        self._push_url = f"{config.api_base.rstrip('/')}/v2/bot/message/push"
        self._token = config.channel_access_token
        self._http = http_client

    @property
    def platform_name(self) -> str:
        return "line"

    async def push_text(self, to: str, text: str) -> None:
        if len(text) > MAX_TEXT_LENGTH:
            logger.warning("push_text_truncated", to=to, text_length=len(text))
            text = text[: MAX_TEXT_LENGTH - 1] + "…"

        payload = {"to": to, "messages": [{"type": "text", "text": text}]}
        try:
            response = await self._http.post(
                self._push_url,
                json=payload,
                headers={"Authorization": f"Bearer {self._token}"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "push_failed",
                to=to,
                status_code=e.response.status_code,
                body=e.response.text[:200],
            )
            raise DeliveryError(
                f"Push API returned {e.response.status_code} for user {to}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("push_failed", to=to, error=str(e))
            raise DeliveryError(f"Failed to send message to user {to}: {e}") from e

        logger.info("message_sent", to=to, text_length=len(text))
