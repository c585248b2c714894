"""
Count aggregator.

Holds the running left-to-right / right-to-left counters and pushes
snapshots to registered listeners.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from people_counter.models.count_state import CountState
from people_counter.models.track import Direction

CountListener = Callable[[CountState], None]


class CountAggregator:
    """
    Thread-safe holder of the CountState.

    Every mutation swaps in a new frozen CountState under a lock, so readers
    always get a consistent triple.
    """

    def __init__(self):
        self._state = CountState()
        self._lock = threading.Lock()
        self._listeners: List[CountListener] = []

    def add_listener(self, listener: CountListener) -> None:
        """Register a callback receiving a CountState on every notification."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: CountListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def snapshot(self) -> CountState:
        """Return the current (immutable) counts."""
        with self._lock:
            return self._state

    def apply_crossing(self, direction: Direction) -> CountState:
        """
        Count one crossing.

        Listeners are not called here; the caller delivers the returned
        state once it no longer holds its own locks.

        Returns:
            The new CountState.
        """
        with self._lock:
            self._state = self._state.with_crossing(direction)
            return self._state

    def reset(self) -> CountState:
        """Zero all counters. Listeners are not notified here."""
        with self._lock:
            self._state = CountState()
            return self._state

    def notify(self, state: Optional[CountState] = None) -> None:
        """Send ``state`` (or the current snapshot) to every listener."""
        if state is None:
            state = self.snapshot()
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception as e:
                logging.warning(f"Count listener error: {e}")
