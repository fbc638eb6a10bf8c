"""
Gateway Flow - Live View

Holds the last applied log snapshot and its reconstructed timeline.
Snapshots carry the generation they were requested under; one that is not
newer than what is already shown is dropped (last snapshot wins).
"""
import time
from datetime import datetime, timezone
from typing import Any, Optional

from log import get_logger
from metrics import (
    malformed_events, reconstruction_latency, reconstructions,
    snapshots, timeline_entries,
)
from models import EntryKind, TimelineEntry
from reconstruction import reconstruct

logger = get_logger()


class LiveView:
    def __init__(self):
        self.generation = 0
        self.fetched_at: Optional[datetime] = None
        self.logs: list[Any] = []
        self.timeline: list[TimelineEntry] = []

    def apply_snapshot(self, logs: list[Any], generation: int) -> bool:
        """Replace the displayed snapshot. Returns False for a stale one."""
        if generation <= self.generation:
            snapshots.labels(outcome="stale").inc()
            logger.debug("snapshot.stale", generation=generation, current=self.generation)
            return False

        start = time.perf_counter()
        timeline = reconstruct(logs)
        reconstruction_latency.observe(time.perf_counter() - start)
        reconstructions.labels(trigger="poll").inc()

        self.generation = generation
        self.fetched_at = datetime.now(timezone.utc)
        self.logs = list(logs)
        self.timeline = timeline
        snapshots.labels(outcome="applied").inc()
        self._record(timeline)

        logger.debug(
            "timeline.reconstructed",
            generation=generation,
            events=len(self.logs),
            entries=len(timeline),
        )
        return True

    def clear(self, generation: int = 0) -> None:
        """Show an empty timeline until a snapshot newer than ``generation``
        arrives. Fetches issued up to ``generation`` predate the clear.
        """
        self.generation = max(self.generation, generation)
        self.logs = []
        self.timeline = []
        self._record(self.timeline)

    @staticmethod
    def _record(timeline: list[TimelineEntry]) -> None:
        markers = sum(1 for e in timeline if e.kind == EntryKind.SESSION)
        timeline_entries.labels(kind=EntryKind.SESSION.value).set(markers)
        timeline_entries.labels(kind=EntryKind.MESSAGE.value).set(len(timeline) - markers)
        flagged = sum(1 for e in timeline if e.malformed)
        if flagged:
            malformed_events.inc(flagged)
