"""MIME type detection and the immutable content value built from fetched bytes."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Optional

DEFAULT_MIME_TYPE = "application/octet-stream"

EXTENSION_MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "pdf": "application/pdf",
    "txt": "text/plain",
}


def detect_mime_type(file_name: str | None, content_type: Optional[str] = None) -> str:
    """Return the MIME type for a file name, or the explicit hint when given.

    The hint always wins. Without one, the last extension of *file_name* is
    looked up case-insensitively; anything unknown maps to
    ``application/octet-stream``.
    """
    if content_type:
        return content_type

    name = file_name or ""
    if "." not in name:
        return DEFAULT_MIME_TYPE
    extension = name.rsplit(".", 1)[1].lower()
    return EXTENSION_MIME_TYPES.get(extension, DEFAULT_MIME_TYPE)


@dataclass(frozen=True, slots=True)
class ContentResult:
    """Fetched attachment bytes with their derived encodings.

    Build with :meth:`from_bytes` so ``size``, ``base64`` and ``data_uri``
    always agree with ``raw_bytes``.
    """

    raw_bytes: bytes
    base64: str
    data_uri: str
    mime_type: str
    size: int

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> ContentResult:
        encoded = base64.b64encode(raw).decode("ascii")
        return cls(
            raw_bytes=raw,
            base64=encoded,
            data_uri=f"data:{mime_type};base64,{encoded}",
            mime_type=mime_type,
            size=len(raw),
        )

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")
