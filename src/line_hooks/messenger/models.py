"""Webhook event and message models, and the parser that builds them."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

from line_hooks.core.errors import InvalidPayload
from line_hooks.core.types import ContentProviderType, EventType, MessageType, SourceType


@dataclass(frozen=True, slots=True)
class Source:
    type: SourceType | str
    user_id: Optional[str] = None
    group_id: Optional[str] = None
    room_id: Optional[str] = None

    @property
    def target_id(self) -> Optional[str]:
        """Identifier matching the source kind (user, group or room)."""
        match self.type:
            case SourceType.GROUP:
                return self.group_id
            case SourceType.ROOM:
                return self.room_id
            case _:
                return self.user_id


@dataclass(frozen=True, slots=True)
class ContentProvider:
    type: ContentProviderType | str
    original_content_url: Optional[str] = None
    preview_image_url: Optional[str] = None

    @property
    def is_platform_hosted(self) -> bool:
        return self.type == ContentProviderType.LINE


# --- Message variants ---


@dataclass(frozen=True, slots=True)
class TextMessage:
    id: str
    text: str
    quote_token: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ImageMessage:
    id: str
    content_provider: Optional[ContentProvider] = None


@dataclass(frozen=True, slots=True)
class VideoMessage:
    id: str
    duration: int = 0
    content_provider: Optional[ContentProvider] = None


@dataclass(frozen=True, slots=True)
class AudioMessage:
    id: str
    duration: int = 0
    content_provider: Optional[ContentProvider] = None


@dataclass(frozen=True, slots=True)
class FileMessage:
    id: str
    file_name: str = ""
    file_size: int = 0


@dataclass(frozen=True, slots=True)
class LocationMessage:
    id: str
    title: str = ""
    address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0


@dataclass(frozen=True, slots=True)
class StickerMessage:
    id: str
    package_id: str = ""
    sticker_id: str = ""
    sticker_resource_type: str = ""
    keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class UnknownMessage:
    """A message type this service does not model yet."""

    id: str
    type: str


Message = Union[
    TextMessage,
    ImageMessage,
    VideoMessage,
    AudioMessage,
    FileMessage,
    LocationMessage,
    StickerMessage,
    UnknownMessage,
]


# --- Event variants ---


@dataclass(frozen=True, slots=True, kw_only=True)
class _EventBase:
    source: Source
    timestamp: int = 0
    mode: str = "active"
    webhook_event_id: str = ""
    is_redelivery: bool = False
    reply_token: Optional[str] = None


@dataclass(frozen=True, slots=True, kw_only=True)
class MessageEvent(_EventBase):
    message: Message
    type: str = field(default=EventType.MESSAGE, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class FollowEvent(_EventBase):
    type: str = field(default=EventType.FOLLOW, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class UnfollowEvent(_EventBase):
    type: str = field(default=EventType.UNFOLLOW, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class JoinEvent(_EventBase):
    type: str = field(default=EventType.JOIN, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class LeaveEvent(_EventBase):
    type: str = field(default=EventType.LEAVE, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class PostbackEvent(_EventBase):
    data: str = ""
    type: str = field(default=EventType.POSTBACK, init=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class OtherEvent(_EventBase):
    """Any event type without a dedicated variant (memberJoined, beacon, ...)."""

    type: str


InboundEvent = Union[
    MessageEvent,
    FollowEvent,
    UnfollowEvent,
    JoinEvent,
    LeaveEvent,
    PostbackEvent,
    OtherEvent,
]


@dataclass(frozen=True, slots=True)
class WebhookRequest:
    destination: str
    events: list[InboundEvent]


# --- Parsing ---


def _parse_source(raw: Any) -> Source:
    if not isinstance(raw, dict):
        return Source(type="unknown")
    source_type = raw.get("type", "")
    try:
        source_type = SourceType(source_type)
    except ValueError:
        pass
    return Source(
        type=source_type,
        user_id=raw.get("userId"),
        group_id=raw.get("groupId"),
        room_id=raw.get("roomId"),
    )


def _parse_content_provider(raw: Any) -> Optional[ContentProvider]:
    if not isinstance(raw, dict):
        return None
    provider_type = raw.get("type", "")
    try:
        provider_type = ContentProviderType(provider_type)
    except ValueError:
        pass
    return ContentProvider(
        type=provider_type,
        original_content_url=raw.get("originalContentUrl"),
        preview_image_url=raw.get("previewImageUrl"),
    )


def parse_message(raw: Any) -> Message:
    """Build the message variant for a raw webhook ``message`` object."""
    if not isinstance(raw, dict):
        return UnknownMessage(id="", type="invalid")

    message_id = str(raw.get("id", ""))
    match raw.get("type"):
        case MessageType.TEXT:
            return TextMessage(
                id=message_id,
                text=str(raw.get("text") or ""),
                quote_token=raw.get("quoteToken"),
            )
        case MessageType.IMAGE:
            return ImageMessage(
                id=message_id,
                content_provider=_parse_content_provider(raw.get("contentProvider")),
            )
        case MessageType.VIDEO:
            return VideoMessage(
                id=message_id,
                duration=int(raw.get("duration") or 0),
                content_provider=_parse_content_provider(raw.get("contentProvider")),
            )
        case MessageType.AUDIO:
            return AudioMessage(
                id=message_id,
                duration=int(raw.get("duration") or 0),
                content_provider=_parse_content_provider(raw.get("contentProvider")),
            )
        case MessageType.FILE:
            return FileMessage(
                id=message_id,
                file_name=raw.get("fileName") or "",
                file_size=int(raw.get("fileSize") or 0),
            )
        case MessageType.LOCATION:
            return LocationMessage(
                id=message_id,
                title=raw.get("title") or "",
                address=raw.get("address") or "",
                latitude=float(raw.get("latitude") or 0.0),
                longitude=float(raw.get("longitude") or 0.0),
            )
        case MessageType.STICKER:
            return StickerMessage(
                id=message_id,
                package_id=str(raw.get("packageId", "")),
                sticker_id=str(raw.get("stickerId", "")),
                sticker_resource_type=raw.get("stickerResourceType") or "",
                keywords=tuple(raw.get("keywords") or ()),
            )
        case other:
            return UnknownMessage(id=message_id, type=str(other))


def parse_event(raw: Any) -> InboundEvent:
    """Build the event variant for one entry of the webhook ``events`` array.

    Entries that are not objects, or whose fields cannot be read, become an
    ``OtherEvent`` of type ``invalid`` so one bad entry never rejects the
    whole delivery.
    """
    if not isinstance(raw, dict):
        return _invalid_event()
    try:
        return _parse_event_object(raw)
    except (ValueError, TypeError, AttributeError):
        # Badly typed fields (e.g. a non-numeric timestamp) invalidate only this entry
        return _invalid_event()


def _invalid_event() -> OtherEvent:
    return OtherEvent(type="invalid", source=Source(type="unknown"))


def _parse_event_object(raw: dict[str, Any]) -> InboundEvent:
    delivery = raw.get("deliveryContext")
    common: dict[str, Any] = {
        "source": _parse_source(raw.get("source")),
        "timestamp": int(raw.get("timestamp") or 0),
        "mode": raw.get("mode") or "active",
        "webhook_event_id": raw.get("webhookEventId") or "",
        "is_redelivery": bool(delivery.get("isRedelivery")) if isinstance(delivery, dict) else False,
        "reply_token": raw.get("replyToken"),
    }

    match raw.get("type"):
        case EventType.MESSAGE:
            return MessageEvent(message=parse_message(raw.get("message")), **common)
        case EventType.FOLLOW:
            return FollowEvent(**common)
        case EventType.UNFOLLOW:
            return UnfollowEvent(**common)
        case EventType.JOIN:
            return JoinEvent(**common)
        case EventType.LEAVE:
            return LeaveEvent(**common)
        case EventType.POSTBACK:
            postback = raw.get("postback")
            data = postback.get("data", "") if isinstance(postback, dict) else ""
            return PostbackEvent(data=data, **common)
        case other:
            return OtherEvent(type=str(other), **common)


def parse_webhook(body: bytes | str | dict | None) -> WebhookRequest:
    """Decode and validate a webhook body.

    Raises:
        InvalidPayload: The body is absent, not a JSON object, or has no
            array-valued ``events`` field.
    """
    if body is None or body == b"" or body == "":
        raise InvalidPayload("Invalid webhook data format")

    if isinstance(body, (bytes, str)):
        try:
            body = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidPayload("Invalid webhook data format") from exc

    if not isinstance(body, dict):
        raise InvalidPayload("Invalid webhook data format")

    raw_events = body.get("events")
    if not isinstance(raw_events, list):
        raise InvalidPayload("Invalid webhook data format")

    return WebhookRequest(
        destination=str(body.get("destination", "")),
        events=[parse_event(raw) for raw in raw_events],
    )
