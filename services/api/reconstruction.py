"""
Gateway Flow - Timeline Reconstruction Engine

Turns an unordered snapshot of gateway log events into a flat, render-ready
timeline:

  coerce   - every record becomes a LogEvent; bad fields fall back to safe
             defaults and the entry is flagged, never dropped
  group    - stable partition by sessionId, sessions in discovery order
  sequence - phase rank, then seq, then ts (stable sort)
  assemble - SESSION marker per keyed session, then its ordered events

Pure functions only. The same snapshot always yields the same timeline, and
identities come from seq or the pre-sort bucket index so that rows do not
jump between polls.
"""
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from models import EntryKind, LogEvent, TimelineEntry

DEFAULT_SESSION = "default"
SESSION_TYPE = "SESSION"

# Fields a row cannot be drawn without; missing ones are flagged
_DISPLAY_FIELDS = ("type", "src", "dst")


# ═══════════════════════════════════════════════════════════
# COERCION
# ═══════════════════════════════════════════════════════════

def coerce_event(raw: Any) -> LogEvent:
    """Build a LogEvent from one gateway record without ever raising.

    Fields that fail validation are dropped so their defaults apply (empty
    label, unclassified phase, unset timestamp). Every substitution is
    recorded in ``LogEvent.issues``.
    """
    if isinstance(raw, LogEvent):
        return raw
    if not isinstance(raw, Mapping):
        return LogEvent(issues=[f"record is not an object ({type(raw).__name__})"])

    data = {k: v for k, v in raw.items() if k != "issues"}
    issues = [f"{name}: missing" for name in _DISPLAY_FIELDS if name not in data]

    try:
        event = LogEvent.model_validate(data)
    except ValidationError as e:
        for err in e.errors():
            field = err["loc"][0] if err["loc"] else None
            if field in data:
                data.pop(field)
                issues.append(f"{field}: {err['msg']}")
        event = LogEvent.model_validate(data)

    if issues:
        event = event.model_copy(update={"issues": issues})
    return event


# ═══════════════════════════════════════════════════════════
# GROUPING
# ═══════════════════════════════════════════════════════════

def session_key(event: LogEvent) -> str:
    return event.session_id or DEFAULT_SESSION


def group_sessions(events: Iterable[LogEvent]) -> dict[str, list[LogEvent]]:
    """Partition events by session, keeping input order inside each bucket.

    dict preserves insertion order, so keys come back in the order each
    session was first seen.
    """
    groups: dict[str, list[LogEvent]] = {}
    for event in events:
        groups.setdefault(session_key(event), []).append(event)
    return groups


# ═══════════════════════════════════════════════════════════
# SEQUENCING
# ═══════════════════════════════════════════════════════════

def order_key(event: LogEvent) -> tuple[int, int, float]:
    return (event.phase.rank, event.seq or 0, event.ts or 0.0)


def sequence_session(bucket: Sequence[LogEvent]) -> list[tuple[int, LogEvent]]:
    """Order one session's events; returns (bucket_index, event) pairs.

    The bucket index travels with the event so identity can be taken from
    the pre-sort position. sorted() is stable, so equal keys keep input order.
    """
    return sorted(enumerate(bucket), key=lambda pair: order_key(pair[1]))


# ═══════════════════════════════════════════════════════════
# ASSEMBLY
# ═══════════════════════════════════════════════════════════

def _message_entry(sid: str, index: int, event: LogEvent) -> TimelineEntry:
    if event.seq is not None:
        ident, key = event.seq, f"{sid}/seq-{event.seq}"
    else:
        ident, key = index, f"{sid}/idx-{index}"
    return TimelineEntry(
        id=ident,
        key=key,
        kind=EntryKind.MESSAGE,
        type=event.type,
        phase=event.phase,
        session_id=event.session_id,
        seq=event.seq,
        src=event.src,
        dst=event.dst,
        ts=event.ts,
        details=event.details,
        malformed=bool(event.issues),
        issues=list(event.issues),
    )


def _session_marker(sid: str, ordered: Sequence[tuple[int, LogEvent]]) -> TimelineEntry:
    label = f"Session {sid}"
    return TimelineEntry(
        id=f"sess-{sid}",
        key=f"sess-{sid}",
        kind=EntryKind.SESSION,
        type=SESSION_TYPE,
        session_id=sid,
        src=label,
        label=label,
        ts=ordered[0][1].ts if ordered else None,
    )


def assemble_timeline(groups: Mapping[str, Sequence[LogEvent]]) -> list[TimelineEntry]:
    out: list[TimelineEntry] = []
    for sid, bucket in groups.items():
        ordered = sequence_session(bucket)
        if sid != DEFAULT_SESSION:
            out.append(_session_marker(sid, ordered))
        out.extend(_message_entry(sid, index, event) for index, event in ordered)
    return out


def reconstruct(logs: Iterable[Any]) -> list[TimelineEntry]:
    """Rebuild the full timeline from one snapshot. Total and idempotent."""
    events = [coerce_event(raw) for raw in logs]
    return assemble_timeline(group_sessions(events))


def session_ids(timeline: Iterable[TimelineEntry]) -> list[str]:
    """Session keys of the markers, in timeline order."""
    return [e.session_id for e in timeline if e.kind == EntryKind.SESSION]
