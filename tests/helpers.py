"""Test helpers: in-memory fakes for the network collaborators and event builders."""

from __future__ import annotations

import base64

from line_hooks.ai.client import CompletionClient
from line_hooks.ai.conversation import AnalysisRequest
from line_hooks.config import AIConfig
from line_hooks.content.fetcher import ContentFetcher
from line_hooks.content.mime import ContentResult, detect_mime_type
from line_hooks.core.errors import CompletionError, ContentFetchError, DeliveryError
from line_hooks.messenger.base import Messenger

PNG_BYTES = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)


class FakeFetcher(ContentFetcher):
    def __init__(self, data: bytes = PNG_BYTES, file_name: str | None = None, fail: bool = False):
        self.data = data
        self.file_name = file_name
        self.fail = fail
        self.calls: list[str] = []

    async def fetch(self, content_id, file_name=None):
        self.calls.append(content_id)
        if self.fail:
            raise ContentFetchError(f"boom {content_id}")
        return ContentResult.from_bytes(self.data, detect_mime_type(self.file_name or file_name or ""))


class FakeCompletion(CompletionClient):
    def __init__(self, reply: str = "analysis", fail_on: set[str] | None = None):
        super().__init__(AIConfig(model="fake-model"))
        self.reply = reply
        self.fail_on = fail_on or set()
        self.requests: list[AnalysisRequest] = []

    async def _create(self, request):
        self.requests.append(request)
        if "*" in self.fail_on or any(marker in request.prompt for marker in self.fail_on):
            raise CompletionError("provider down")
        return self.reply


class FakeMessenger(Messenger):
    def __init__(self, fail_sends: bool = False, fail_errors: bool = False):
        self.fail_sends = fail_sends
        self.fail_errors = fail_errors
        self.sent: list[tuple[str, str]] = []
        self.errors: list[tuple[str, str | None]] = []
        self.pushed: list[tuple[str, str]] = []

    @property
    def platform_name(self) -> str:
        return "fake"

    async def push_text(self, to, text):
        self.pushed.append((to, text))

    async def send(self, user_id, text):
        if self.fail_sends:
            raise DeliveryError("push rejected")
        self.sent.append((user_id, text))
        await super().send(user_id, text)

    async def send_error(self, user_id, text=None):
        if self.fail_errors:
            raise DeliveryError("push rejected")
        self.errors.append((user_id, text))
        await super().send_error(user_id, text)


def text_event(user_id: str | None = "U1", text: str = "hello", event_id: str = "evt-text", redelivery: bool = False) -> dict:
    source = {"type": "user", "userId": user_id} if user_id else {"type": "group", "groupId": "G1"}
    return {
        "type": "message",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": source,
        "webhookEventId": event_id,
        "deliveryContext": {"isRedelivery": redelivery},
        "replyToken": "reply-token",
        "message": {"id": f"m-{event_id}", "type": "text", "text": text},
    }


def image_event(user_id: str = "U1", provider: str = "line", event_id: str = "evt-image") -> dict:
    return {
        "type": "message",
        "mode": "active",
        "timestamp": 1700000000000,
        "source": {"type": "user", "userId": user_id},
        "webhookEventId": event_id,
        "deliveryContext": {"isRedelivery": False},
        "message": {"id": f"img-{event_id}", "type": "image", "contentProvider": {"type": provider}},
    }
