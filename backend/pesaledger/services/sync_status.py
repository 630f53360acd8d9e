"""
Sync status state machine.

IDLE -> SYNCING -> COMPLETED | ERROR, with COMPLETED and ERROR falling back
to IDLE once their display time has passed. The fallback is evaluated
lazily against an injectable clock, so no timer task is needed.
"""

import enum
import logging
import threading
import time
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class SyncState(str, enum.Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    ERROR = "error"
    OFFLINE = "offline"  # Display overlay only, never stored


class SyncStatusTracker:
    def __init__(
        self,
        completed_display_seconds: float = 2.0,
        error_display_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._completed_display = completed_display_seconds
        self._error_display = error_display_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._state = SyncState.IDLE
        self._entered_at = clock()
        self._listeners: List[Callable[[SyncState], None]] = []
        self.connected = True
        self.last_error: Optional[str] = None
        self.last_completed_at: Optional[float] = None

    def add_listener(self, listener: Callable[[SyncState], None]) -> None:
        self._listeners.append(listener)

    def _transition(self, state: SyncState) -> None:
        with self._lock:
            self._state = state
            self._entered_at = self._clock()
        for listener in list(self._listeners):
            listener(self.display_state)

    @property
    def state(self) -> SyncState:
        """Stored state after applying any expired display timeout."""
        with self._lock:
            elapsed = self._clock() - self._entered_at
            expired = (
                (self._state == SyncState.COMPLETED and elapsed >= self._completed_display)
                or (self._state == SyncState.ERROR and elapsed >= self._error_display)
            )
            if expired:
                self._state = SyncState.IDLE
                self._entered_at = self._clock()
            return self._state

    @property
    def display_state(self) -> SyncState:
        """What the indicator shows; offline overrides everything."""
        if not self.connected:
            return SyncState.OFFLINE
        return self.state

    @property
    def is_syncing(self) -> bool:
        return self.state == SyncState.SYNCING

    def start(self) -> None:
        self._transition(SyncState.SYNCING)

    def complete(self) -> None:
        self.last_error = None
        self.last_completed_at = self._clock()
        self._transition(SyncState.COMPLETED)

    def fail(self, error: str) -> None:
        self.last_error = error
        self._transition(SyncState.ERROR)

    def set_connectivity(self, connected: bool) -> None:
        if connected == self.connected:
            return
        self.connected = connected
        for listener in list(self._listeners):
            listener(self.display_state)

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "display_state": self.display_state.value,
            "connected": self.connected,
            "last_error": self.last_error,
        }
