"""
Decides when a sync pass runs and which protocol it uses.
"""

import asyncio
import enum
import logging
import threading
from typing import Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from pesaledger.config import Settings
from pesaledger.errors import PesaLedgerError
from pesaledger.services.remote_store import RemoteStore
from pesaledger.services.sync_service import CloudMergeEngine, SyncReport
from pesaledger.services.sync_status import SyncStatusTracker

logger = logging.getLogger(__name__)


class SyncTrigger(str, enum.Enum):
    SIGN_IN = "sign_in"            # destructive pull
    PERIODIC = "periodic"          # push then merge
    CONNECTIVITY = "connectivity"  # push then merge
    MANUAL = "manual"              # push only


class SyncCoordinator:
    def __init__(
        self,
        settings: Settings,
        session_factory: sessionmaker,
        remote: RemoteStore,
        tracker: SyncStatusTracker,
        after_restore: Optional[Callable[[Session], None]] = None,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.remote = remote
        self.tracker = tracker
        self.after_restore = after_restore
        self._run_lock = threading.Lock()
        self.last_report: Optional[SyncReport] = None

    @property
    def user_id(self) -> Optional[str]:
        return self.settings.user_id

    def can_sync(self) -> bool:
        return bool(self.settings.sync_enabled and self.user_id and self.tracker.connected)

    def sign_in(self, user_id: str) -> Optional[SyncReport]:
        self.settings.user_id = user_id
        return self.run(SyncTrigger.SIGN_IN)

    def sign_out(self) -> None:
        self.settings.user_id = None

    def run(self, trigger: SyncTrigger) -> Optional[SyncReport]:
        """
        Run one sync pass. Returns None when the pass was skipped.

        Failures of the pass as a whole surface as the ERROR state and are
        not raised to the caller.
        """
        if not self.can_sync():
            logger.debug("Sync %s skipped: disabled, signed out or offline", trigger.value)
            return None
        if not self._run_lock.acquire(blocking=False):
            logger.debug("Sync %s skipped: another pass is running", trigger.value)
            return None

        self.tracker.start()
        db = self.session_factory()
        try:
            engine = CloudMergeEngine(self.remote, self.user_id)
            if trigger == SyncTrigger.SIGN_IN:
                report = engine.sign_in_sync(db, after_restore=self.after_restore)
            elif trigger == SyncTrigger.MANUAL:
                report = engine.force_push(db)
            else:
                report = engine.push_then_merge(db)
        except PesaLedgerError as exc:
            db.rollback()
            logger.error("Sync %s failed: %s", trigger.value, exc)
            self.tracker.fail(str(exc))
            return None
        except Exception as exc:
            db.rollback()
            logger.exception("Sync %s failed unexpectedly", trigger.value)
            self.tracker.fail(str(exc))
            return None
        finally:
            db.close()
            self._run_lock.release()

        self.last_report = report
        self.tracker.complete()
        return report

    def on_connectivity_changed(self, connected: bool) -> Optional[SyncReport]:
        """Connectivity restored retries whatever failed before."""
        was_connected = self.tracker.connected
        self.tracker.set_connectivity(connected)
        if connected and not was_connected:
            return self.run(SyncTrigger.CONNECTIVITY)
        return None

    async def run_periodic(self, stop: asyncio.Event) -> None:
        """Tick until stop is set; each pass runs in a worker thread."""
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.settings.sync_interval_seconds)
            except asyncio.TimeoutError:
                await asyncio.to_thread(self.run, SyncTrigger.PERIODIC)
