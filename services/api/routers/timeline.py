"""
Gateway Flow - Timeline Router
Message-flow timeline: SESSION markers followed by M1-M4 in protocol order
"""
from log import get_logger
from typing import Any, Optional
from fastapi import APIRouter, Body, Depends

from labels import decode_sensor_label
from metrics import reconstructions
from models import EntryKind, TimelineEntry, TimelineResponse
from reconstruction import DEFAULT_SESSION, reconstruct, session_ids
from runtime import Runtime, get_runtime

logger = get_logger()
router = APIRouter()


def _for_display(
    entries: list[TimelineEntry],
    details: bool,
    decode_labels: bool,
) -> list[TimelineEntry]:
    out = []
    for e in entries:
        if e.kind == EntryKind.MESSAGE:
            update: dict[str, Any] = {}
            if not details:
                update["details"] = None
            if decode_labels:
                update["src"] = decode_sensor_label(e.src)
                update["dst"] = decode_sensor_label(e.dst)
            if update:
                e = e.model_copy(update=update)
        out.append(e)
    return out


def _response(entries: list[TimelineEntry], **extra) -> TimelineResponse:
    stamps = [e.ts for e in entries if e.kind == EntryKind.MESSAGE and e.ts is not None]
    return TimelineResponse(
        entries=entries,
        total=len(entries),
        sessions=session_ids(entries),
        start_ts=min(stamps) if stamps else None,
        end_ts=max(stamps) if stamps else None,
        **extra,
    )


@router.get("/", response_model=TimelineResponse)
async def get_timeline(
    session: Optional[str] = None,
    details: bool = True,
    decode_labels: bool = True,
    runtime: Runtime = Depends(get_runtime),
):
    """
    Current timeline, as of the last applied log snapshot.
    Filter to one session with ?session=; hide detail maps with ?details=false.
    """
    entries = runtime.view.timeline
    if session:
        entries = [e for e in entries if (e.session_id or DEFAULT_SESSION) == session]

    return _response(
        _for_display(entries, details, decode_labels),
        generation=runtime.view.generation,
        fetched_at=runtime.view.fetched_at,
    )


@router.post("/reconstruct", response_model=TimelineResponse)
async def reconstruct_snapshot(
    logs: list[Any] = Body(...),
    details: bool = True,
    decode_labels: bool = False,
):
    """Reconstruct a posted snapshot without touching the live view."""
    reconstructions.labels(trigger="request").inc()
    entries = reconstruct(logs)
    logger.info("timeline.reconstruct_requested", events=len(logs), entries=len(entries))
    return _response(_for_display(entries, details, decode_labels))


@router.post("/refresh")
async def refresh_timeline(runtime: Runtime = Depends(get_runtime)):
    """Fetch one snapshot from the gateway now."""
    applied = await runtime.poller.refresh_once()
    return {
        "applied": applied,
        "generation": runtime.view.generation,
        "total": len(runtime.view.timeline),
    }
