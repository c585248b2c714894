"""
Stale track eviction.

The janitor is the only time-driven actor: it wakes up on a fixed period,
independent of frame arrival, and drops every track that has not been
matched for longer than the staleness window. Partial crossing progress of
an evicted track is lost.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, List, Optional

from .store import TrackStore


def wall_clock_ms() -> float:
    """Current wall-clock time in milliseconds."""
    return time.time() * 1000.0


class Janitor:
    """Periodic sweeper that evicts stale tracks from a TrackStore."""

    def __init__(
        self,
        store: TrackStore,
        staleness_ms: float = 3000.0,
        interval_ms: float = 2000.0,
        clock: Optional[Callable[[], float]] = None,
        on_evict: Optional[Callable[[List[int]], None]] = None,
    ):
        """
        Initialize the janitor.

        Args:
            store: Store to sweep.
            staleness_ms: Tracks idle for longer than this are removed.
            interval_ms: Sweep period of the background thread.
            clock: Returns "now" in milliseconds. Defaults to wall clock.
            on_evict: Called with the evicted ids after a non-empty sweep.
        """
        self.store = store
        self.staleness_ms = staleness_ms
        self.interval_ms = interval_ms
        self._clock = clock or wall_clock_ms
        self._on_evict = on_evict
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def sweep(self, now: Optional[float] = None) -> List[int]:
        """
        Remove every track unseen for more than ``staleness_ms``.

        Returns:
            Ids of the evicted tracks.
        """
        with self.store.transaction():
            if now is None:
                now = self._clock()
            stale = [
                t.track_id for t in self.store.iterate()
                if now - t.last_seen > self.staleness_ms
            ]
            for track_id in stale:
                self.store.remove(track_id)

        if stale:
            logging.info(f"Janitor evicted {len(stale)} stale track(s): {stale}")
            if self._on_evict:
                self._on_evict(stale)
        return stale

    def start(self) -> bool:
        """Start the background sweep thread. Returns False if already running."""
        if self.is_running:
            return False
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="track-janitor", daemon=True)
        self._thread.start()
        logging.info(f"Janitor started (interval={self.interval_ms}ms, staleness={self.staleness_ms}ms)")
        return True

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the background sweep thread."""
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=timeout)
            logging.info("Janitor stopped")
        self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_ms / 1000.0):
            try:
                self.sweep()
            except Exception as e:
                logging.error(f"Janitor sweep failed: {e}")

    def __enter__(self) -> "Janitor":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
