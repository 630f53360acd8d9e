"""
Application container.

Everything with process lifetime is built here once and handed to the
components that need it; tests build their own container around an
in-memory engine.
"""

import logging
from decimal import Decimal
from typing import AsyncIterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from pesaledger.config import Settings
from pesaledger.database import create_db_engine, create_session_factory, init_db, session_scope
from pesaledger.parsers.mpesa_parser import MpesaParser
from pesaledger.seed import ensure_default_accounts, ensure_week_limit, seed_defaults
from pesaledger.services.classifier_service import TransactionClassifier
from pesaledger.services.catchup_service import CatchupReport, run_catchup
from pesaledger.services.ingestion import MessageInbox, MessageSource, SmsListener
from pesaledger.services.remote_store import InMemoryRemoteStore, RemoteStore, SQLRemoteStore
from pesaledger.services.sync_coordinator import SyncCoordinator
from pesaledger.services.sync_status import SyncStatusTracker

logger = logging.getLogger(__name__)


class AppContainer:
    """Holds the long-lived collaborators of one running service."""

    def __init__(
        self,
        settings: Settings,
        engine: Optional[Engine] = None,
        session_factory: Optional[sessionmaker] = None,
        remote_store: Optional[RemoteStore] = None,
        tracker: Optional[SyncStatusTracker] = None,
        inbox: Optional[MessageInbox] = None,
        message_stream: Optional[AsyncIterator] = None,
    ):
        self.settings = settings
        self.inbox = inbox
        self.message_stream = message_stream
        self.listener: Optional[SmsListener] = None
        self.last_catchup: Optional[CatchupReport] = None
        self._owns_engine = engine is None
        self.engine = engine or create_db_engine(settings.database_url)
        self.session_factory = session_factory or create_session_factory(self.engine)

        if remote_store is None:
            if settings.remote_database_url:
                remote_store = SQLRemoteStore(settings.remote_database_url)
            else:
                remote_store = InMemoryRemoteStore()
        self.remote_store = remote_store

        self.parser = MpesaParser(settings.provider_sender_pattern)
        self.classifier = TransactionClassifier(self.parser, settings)
        self.tracker = tracker or SyncStatusTracker(
            completed_display_seconds=settings.sync_completed_display_seconds,
            error_display_seconds=settings.sync_error_display_seconds,
        )
        self.sync = SyncCoordinator(
            settings,
            self.session_factory,
            self.remote_store,
            self.tracker,
            after_restore=self._ensure_defaults,
        )

    def _ensure_defaults(self, db: Session) -> None:
        ensure_default_accounts(db)
        ensure_week_limit(db, Decimal(str(self.settings.default_weekly_limit)))

    def startup(self) -> None:
        """
        Open the ledger, then replay inbox history the ledger has not seen.

        A schema newer than this code is fatal.
        """
        init_db(self.engine)
        if self.settings.seed_defaults:
            with session_scope(self.session_factory) as db:
                seed_defaults(db, Decimal(str(self.settings.default_weekly_limit)))
        if self.inbox is not None:
            self.catch_up()

    def catch_up(self) -> CatchupReport:
        with session_scope(self.session_factory) as db:
            report = run_catchup(db, self.classifier, self.inbox, self.settings)
        self.last_catchup = report
        logger.info(
            "Startup catch-up since %s: scanned %d, created %d, failed %d",
            report.watermark.isoformat(), report.scanned, report.created, report.failed
        )
        return report

    def create_listener(self, source: MessageSource = MessageSource.FOREGROUND) -> SmsListener:
        return SmsListener(self.classifier.process_message, self.session_factory, source=source)

    async def start_listener(self) -> Optional[SmsListener]:
        """Subscribe to the configured live stream, if there is one."""
        if self.message_stream is None:
            return None
        self.listener = self.create_listener()
        self.listener.start(self.message_stream)
        logger.info("Listening for live messages")
        return self.listener

    async def stop_listener(self) -> None:
        if self.listener is not None:
            await self.listener.stop()
            logger.info("Live listener stopped: %s", dict(self.listener.outcomes))

    def shutdown(self) -> None:
        if self._owns_engine:
            self.engine.dispose()
