"""
Page View Deduplication Cache

Time-windowed, in-process record of recently counted (visitor, target)
pairs. A repeat visit inside the window is not counted again.

The cache lives in one process only. Running several API workers gives each
its own cache, so a visitor balanced across workers can be counted once per
worker; sharing dedup state would need a store with atomic check-and-set.
"""

import logging
import time
from collections.abc import Callable, Hashable

from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_SWEEP_INTERVAL_SECONDS = 300.0
SWEEP_JOB_ID = "page_view_dedup_sweep"


def build_dedup_key(visitor_signature: str, target_id: int | None, path: str) -> tuple[Hashable, ...]:
    """Key on the target when one is known, otherwise on the request path."""
    if target_id is not None:
        return (visitor_signature, "target", target_id)
    return (visitor_signature, "path", path)


class DedupCache:
    """
    Check-and-set cache of recently accepted page views.

    `should_record` is synchronous and never awaits, so within one event loop
    the read and the write for a key cannot interleave with another request.
    """

    def __init__(
        self,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be positive")

        self.window_seconds = float(window_seconds)
        self.sweep_interval_seconds = float(sweep_interval_seconds)
        self._clock = clock
        self._entries: dict[tuple[Hashable, ...], float] = {}
        self._scheduler: BaseScheduler | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def _is_fresh(self, seen_at: float, now: float) -> bool:
        return now - seen_at < self.window_seconds

    def should_record(
        self,
        visitor_signature: str,
        target_id: int | None,
        path: str,
        now: float | None = None,
    ) -> bool:
        """
        Decide whether a visit should be counted, marking it as seen if so.

        Returns False for a repeat inside the window. A suppressed repeat does
        not refresh the stored timestamp, so the window always runs from the
        last counted visit.
        """
        if now is None:
            now = self._clock()

        key = build_dedup_key(visitor_signature, target_id, path)
        seen_at = self._entries.get(key)
        if seen_at is not None and self._is_fresh(seen_at, now):
            return False

        self._entries[key] = now
        return True

    def sweep(self, now: float | None = None) -> int:
        """Drop expired entries and return how many were removed."""
        if now is None:
            now = self._clock()

        removed = 0
        for key in [key for key, seen_at in list(self._entries.items()) if not self._is_fresh(seen_at, now)]:
            # A visit may have re-marked the key after it was listed
            seen_at = self._entries.get(key)
            if seen_at is not None and not self._is_fresh(seen_at, now):
                del self._entries[key]
                removed += 1

        if removed:
            logger.debug(f"Dedup sweep removed {removed} expired entries, {len(self._entries)} remain")
        return removed

    async def run_sweep(self) -> None:
        """Scheduled entry point; a coroutine so the executor runs it on the event loop."""
        self.sweep()

    def start(self, scheduler: BaseScheduler) -> None:
        """Register the periodic sweep on a scheduler."""
        if self._scheduler is not None:
            return

        scheduler.add_job(
            self.run_sweep,
            trigger=IntervalTrigger(seconds=self.sweep_interval_seconds),
            id=SWEEP_JOB_ID,
            replace_existing=True,
        )
        self._scheduler = scheduler
        logger.info(
            f"Dedup sweep scheduled every {self.sweep_interval_seconds:.0f}s "
            f"(window {self.window_seconds:.0f}s)"
        )

    def stop(self) -> None:
        """Remove the periodic sweep job, if started."""
        if self._scheduler is None:
            return

        if self._scheduler.get_job(SWEEP_JOB_ID) is not None:
            self._scheduler.remove_job(SWEEP_JOB_ID)
        self._scheduler = None
        logger.info("Dedup sweep stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None
