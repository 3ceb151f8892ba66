"""Convert an analysis request into provider message formats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

_DATA_URI_PREFIX = "data:"


@dataclass(frozen=True, slots=True)
class AnalysisRequest:
    """One completion call: prompt, optional system instruction, optional image."""

    prompt: str
    system_instruction: Optional[str] = None
    image_data_uri: Optional[str] = None
    max_output_tokens: int = 1000


def build_openai_messages(request: AnalysisRequest) -> list[dict[str, Any]]:
    """Build a chat-completions message list.

    The image, when present, is passed as-is in an ``image_url`` block since the
    API accepts data URIs directly.
    """
    messages: list[dict[str, Any]] = []
    if request.system_instruction:
        messages.append({"role": "system", "content": request.system_instruction})

    if request.image_data_uri:
        messages.append(
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": request.prompt},
                    {"type": "image_url", "image_url": {"url": request.image_data_uri}},
                ],
            }
        )
    else:
        messages.append({"role": "user", "content": request.prompt})
    return messages


def split_data_uri(data_uri: str) -> tuple[str, str]:
    """Return ``(media_type, base64_payload)`` from a base64 data URI."""
    if not data_uri.startswith(_DATA_URI_PREFIX) or ";base64," not in data_uri:
        raise ValueError("Not a base64 data URI")
    header, payload = data_uri[len(_DATA_URI_PREFIX):].split(";base64,", 1)
    return header, payload


def build_anthropic_messages(request: AnalysisRequest) -> list[dict[str, Any]]:
    """Build a Messages API list; the system instruction travels separately.

    Anthropic takes images as base64 source blocks, so the data URI is split
    back into its media type and payload.
    """
    if not request.image_data_uri:
        return [{"role": "user", "content": request.prompt}]

    media_type, data = split_data_uri(request.image_data_uri)
    return [
        {
            "role": "user",
            "content": [
                {
                    "type": "image",
                    "source": {"type": "base64", "media_type": media_type, "data": data},
                },
                {"type": "text", "text": request.prompt},
            ],
        }
    ]
