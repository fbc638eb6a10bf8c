"""
Gateway Flow - Health Check Router
"""
import time
from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from config import settings
from runtime import Runtime, get_runtime

router = APIRouter()

_start_time = time.time()


@router.get("/health")
async def health_check(runtime: Runtime = Depends(get_runtime)):
    """Health check endpoint for monitoring."""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": "1.0.0",
        "uptime_s": round(time.time() - _start_time, 1),
        "gateway": settings.GATEWAY_URL,
        "polling": runtime.poller.running,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/status")
async def status(runtime: Runtime = Depends(get_runtime)):
    view = runtime.view
    return {
        "service": settings.APP_NAME,
        "version": "1.0.0",
        "generation": view.generation,
        "events": len(view.logs),
        "entries": len(view.timeline),
        "fetched_at": view.fetched_at.isoformat() if view.fetched_at else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
