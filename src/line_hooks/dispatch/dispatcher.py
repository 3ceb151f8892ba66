"""Webhook event dispatcher.

``dispatch`` validates a delivery, classifies every event and schedules the
matching workflow as a detached ``asyncio`` task, then returns at once. The
webhook response therefore never waits for AI or delivery calls; each
workflow is its own error boundary and always ends in one user-visible
message (see :mod:`line_hooks.ai.orchestrator`). This is the fire-and-forget,
at-least-once model the platform expects: it retries deliveries that are not
acknowledged quickly.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union, assert_never

from line_hooks.ai.orchestrator import AnalysisOrchestrator, WorkflowOutcome
from line_hooks.core.errors import InvalidPayload
from line_hooks.dispatch.dedupe import ProcessAllPolicy, RedeliveryPolicy
from line_hooks.log import get_logger
from line_hooks.messenger.models import (
    AudioMessage,
    FileMessage,
    FollowEvent,
    ImageMessage,
    InboundEvent,
    JoinEvent,
    LeaveEvent,
    LocationMessage,
    MessageEvent,
    OtherEvent,
    PostbackEvent,
    StickerMessage,
    TextMessage,
    UnfollowEvent,
    UnknownMessage,
    VideoMessage,
    parse_webhook,
)

logger = get_logger(__name__)

Workflow = Callable[[], Awaitable[WorkflowOutcome]]


@dataclass(frozen=True, slots=True)
class DispatchSummary:
    event_count: int
    event_types: list[str]
    scheduled: int = 0
    skipped_redeliveries: int = 0


@dataclass(frozen=True, slots=True)
class DispatchRejected:
    """The delivery was malformed; no event was processed."""

    error: str


DispatchResult = Union[DispatchSummary, DispatchRejected]


@dataclass
class _Counters:
    scheduled: int = 0
    skipped: int = 0


class EventDispatcher:
    """Routes webhook events to analysis workflows."""

    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        redelivery_policy: Optional[RedeliveryPolicy] = None,
        max_concurrent_workflows: Optional[int] = None,
    ):
        self._orchestrator = orchestrator
        self._redelivery_policy = redelivery_policy or ProcessAllPolicy()
        # None keeps the number of concurrent workflows unbounded.
        self._semaphore = (
            asyncio.Semaphore(max_concurrent_workflows) if max_concurrent_workflows else None
        )
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, payload: bytes | str | dict | None) -> DispatchResult:
        """Validate *payload* and schedule one workflow per actionable event.

        Must be called from a running event loop. Returns once every event
        has been classified and scheduled, not when workflows finish.
        """
        try:
            request = parse_webhook(payload)
        except InvalidPayload as e:
            logger.warning("webhook_rejected", error=str(e))
            return DispatchRejected(error=str(e))

        event_types = [event.type for event in request.events]
        logger.info(
            "webhook_received",
            destination=request.destination,
            event_count=len(request.events),
            event_types=event_types,
        )

        counters = _Counters()
        for index, event in enumerate(request.events):
            # One bad event must not stop the rest of the delivery.
            try:
                self._accept(event, counters)
            except Exception as e:
                logger.exception("event_dispatch_failed", index=index, event_type=event.type, error=str(e))

        return DispatchSummary(
            event_count=len(request.events),
            event_types=event_types,
            scheduled=counters.scheduled,
            skipped_redeliveries=counters.skipped,
        )

    def _accept(self, event: InboundEvent, counters: _Counters) -> None:
        # First deliveries go through the policy too so it can remember their ids.
        if not self._redelivery_policy.should_process(event):
            counters.skipped += 1
            logger.info(
                "redelivery_skipped",
                webhook_event_id=event.webhook_event_id,
                is_redelivery=event.is_redelivery,
            )
            return

        workflow = self._route(event)
        if workflow is not None:
            self._schedule(event, workflow)
            counters.scheduled += 1

    def _route(self, event: InboundEvent) -> Optional[Workflow]:
        match event:
            case MessageEvent():
                return self._route_message(event)
            case FollowEvent() | UnfollowEvent():
                logger.info(f"{event.type}_event", user_id=event.source.user_id, timestamp=event.timestamp)
                return None
            case JoinEvent() | LeaveEvent():
                logger.info(
                    f"{event.type}_event",
                    source_type=str(event.source.type),
                    source_id=event.source.target_id,
                    timestamp=event.timestamp,
                )
                return None
            case PostbackEvent():
                logger.info(
                    "postback_event",
                    source_id=event.source.target_id,
                    data=event.data,
                    timestamp=event.timestamp,
                )
                return None
            case OtherEvent():
                logger.info("unhandled_event_type", event_type=event.type)
                return None
            case _:
                assert_never(event)

    def _route_message(self, event: MessageEvent) -> Optional[Workflow]:
        message = event.message
        user_id = event.source.user_id
        log = logger.bind(message_id=message.id, source_type=str(event.source.type))

        match message:
            case TextMessage():
                if not user_id:
                    log.info("text_message_without_user")
                    return None
                log.info("text_message", text_length=len(message.text))
                return lambda: self._orchestrator.handle_message_intelligently(message.text, user_id)
            case ImageMessage():
                provider = message.content_provider
                if provider is None or not provider.is_platform_hosted:
                    log.info("external_image_message", provider=provider.type if provider else None)
                    return None
                if not user_id:
                    log.info("image_message_without_user")
                    return None
                log.info("image_message")
                return lambda: self._orchestrator.analyze_image(message.id, user_id)
            case VideoMessage():
                log.info("video_message", duration=message.duration)
                return None
            case AudioMessage():
                log.info("audio_message", duration=message.duration)
                return None
            case FileMessage():
                log.info("file_message", file_name=message.file_name, file_size=message.file_size)
                return None
            case LocationMessage():
                log.info(
                    "location_message",
                    title=message.title,
                    latitude=message.latitude,
                    longitude=message.longitude,
                )
                return None
            case StickerMessage():
                log.info("sticker_message", package_id=message.package_id, sticker_id=message.sticker_id)
                return None
            case UnknownMessage():
                log.info("unhandled_message_type", message_type=message.type)
                return None
            case _:
                assert_never(message)

    def _schedule(self, event: InboundEvent, workflow: Workflow) -> None:
        task = asyncio.create_task(
            self._run_workflow(event, workflow),
            name=f"workflow:{event.webhook_event_id or event.type}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_workflow(self, event: InboundEvent, workflow: Workflow) -> Optional[WorkflowOutcome]:
        try:
            if self._semaphore is None:
                return await workflow()
            async with self._semaphore:
                return await workflow()
        except Exception as e:
            # Workflows convert their own failures; this only catches defects.
            logger.exception(
                "workflow_crashed",
                webhook_event_id=event.webhook_event_id,
                event_type=event.type,
                error=str(e),
            )
            return None

    async def wait_idle(self) -> None:
        """Wait until every scheduled workflow has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
