"""Abstract messenger interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

ERROR_MARKER = "❌"
DEFAULT_ERROR_TEXT = "Sorry, I encountered an error. Please try again."


class Messenger(ABC):
    """Delivers outbound text messages to a platform user.

    To add a new messenger, subclass this and implement :meth:`push_text`.
    """

    @property
    @abstractmethod
    def platform_name(self) -> str:
        """Return platform identifier string."""
        ...

    @abstractmethod
    async def push_text(self, to: str, text: str) -> None:
        """Push one text message. Raises ``DeliveryError`` on transport failure."""
        ...

    async def send(self, user_id: str, text: str) -> None:
        """Send exactly one text message to *user_id*."""
        await self.push_text(user_id, text)

    async def send_error(self, user_id: str, text: Optional[str] = None) -> None:
        """Send an apology, prefixed with the error marker."""
        await self.push_text(user_id, f"{ERROR_MARKER} {text or DEFAULT_ERROR_TEXT}")
