"""Health, readiness and liveness endpoints."""

import os
import platform
import resource
import time
from datetime import datetime, timezone

from fastapi import APIRouter, Request

from line_hooks.config import APP_VERSION

router = APIRouter(prefix="/health", tags=["health"])


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _base(request: Request) -> dict:
    state = request.app.state
    return {
        "status": "OK",
        "timestamp": _now_iso(),
        "uptime": round(time.monotonic() - state.started_at, 3),
        "environment": state.config.server.environment,
        "version": APP_VERSION,
    }


@router.get("")
@router.get("/")
async def health(request: Request) -> dict:
    """Basic health check."""
    return _base(request)


@router.get("/detailed")
async def health_detailed(request: Request) -> dict:
    """Health check with process memory and CPU usage."""
    usage = resource.getrusage(resource.RUSAGE_SELF)
    # ru_maxrss is KiB on Linux, bytes on macOS
    divisor = 1024 * 1024 if platform.system() == "Darwin" else 1024
    return {
        **_base(request),
        "memory": {"max_rss_mb": round(usage.ru_maxrss / divisor, 2)},
        "cpu": {
            "user": round(usage.ru_utime * 1000, 2),
            "system": round(usage.ru_stime * 1000, 2),
        },
        "inFlightWorkflows": request.app.state.dispatcher.in_flight,
        "platform": platform.system().lower(),
        "pythonVersion": platform.python_version(),
        "pid": os.getpid(),
    }


@router.get("/ready")
async def ready() -> dict:
    return {"status": "ready", "timestamp": _now_iso()}


@router.get("/live")
async def live() -> dict:
    return {"status": "alive", "timestamp": _now_iso()}
