"""Shared types and enumerations."""

from __future__ import annotations

from enum import StrEnum


class EventType(StrEnum):
    MESSAGE = "message"
    FOLLOW = "follow"
    UNFOLLOW = "unfollow"
    JOIN = "join"
    LEAVE = "leave"
    POSTBACK = "postback"


class MessageType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    FILE = "file"
    LOCATION = "location"
    STICKER = "sticker"


class SourceType(StrEnum):
    USER = "user"
    GROUP = "group"
    ROOM = "room"


class ContentProviderType(StrEnum):
    LINE = "line"
    EXTERNAL = "external"


class ResponseType(StrEnum):
    HELPFUL = "helpful"
    EDUCATIONAL = "educational"
    PROBLEM_SOLVING = "problem-solving"
    ENCOURAGING = "encouraging"


class TextMessageKind(StrEnum):
    """Caller-declared kind of a text message, see ``process_text_message``."""

    GENERAL = "general"
    PROBLEM = "problem"
    QUESTION = "question"
    ENCOURAGEMENT = "encouragement"
