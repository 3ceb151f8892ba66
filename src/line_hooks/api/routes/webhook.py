"""LINE webhook routes.

The POST handler acknowledges a valid delivery as soon as its events are
scheduled. Workflow outcomes never change the response: once the body
validates the answer is 200, otherwise the platform would redeliver and
users would get duplicate replies.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from line_hooks.dispatch.dispatcher import DispatchRejected, EventDispatcher
from line_hooks.log import get_logger

router = APIRouter(prefix="/line-webhook", tags=["webhooks"])

logger = get_logger(__name__)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_dispatcher(request: Request) -> EventDispatcher:
    """Dispatcher wired by the app factory (tests may set their own)."""
    return request.app.state.dispatcher


@router.post("")
@router.post("/")
async def line_webhook(request: Request) -> JSONResponse:
    """Receive a LINE webhook delivery.

    Returns:
        200 with ``{success, message, timestamp, eventCount, eventTypes}``.
        400 when the body is not an object with an ``events`` array.
        500 on an unexpected fault before events were scheduled.
    """
    try:
        body = await request.body()
        result = _get_dispatcher(request).dispatch(body)
    except Exception:
        logger.exception("webhook_processing_failed")
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": "Internal server error",
                "timestamp": _now_iso(),
            },
        )

    if isinstance(result, DispatchRejected):
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": result.error, "timestamp": _now_iso()},
        )

    return JSONResponse(
        status_code=200,
        content={
            "success": True,
            "message": "Webhook processed successfully",
            "timestamp": _now_iso(),
            "eventCount": result.event_count,
            "eventTypes": result.event_types,
        },
    )


@router.get("/health")
async def line_webhook_health() -> dict:
    return {
        "status": "OK",
        "message": "Line webhook endpoint is healthy",
        "timestamp": _now_iso(),
        "endpoint": "/line-webhook",
        "method": "POST",
    }
