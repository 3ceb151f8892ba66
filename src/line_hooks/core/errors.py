"""Error taxonomy for the webhook pipeline.

``InvalidPayload`` is raised before any event is dispatched and surfaces as
HTTP 400. Every other kind is caught at the workflow boundary in
:mod:`line_hooks.ai.orchestrator` and turned into an apology message.
"""

from __future__ import annotations


class LineHooksError(Exception):
    """Base class for all pipeline errors."""

    kind = "LineHooksError"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.kind)
        self.detail = detail


class InvalidPayload(LineHooksError):
    kind = "InvalidPayload"


class ContentFetchError(LineHooksError):
    kind = "ContentFetchError"


class NotAnImage(LineHooksError):
    kind = "NotAnImage"


class CompletionError(LineHooksError):
    kind = "CompletionError"


class DeliveryError(LineHooksError):
    kind = "DeliveryError"
