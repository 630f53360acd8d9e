"""
Catch-up scanner.

Replays provider history newer than the watermark through the classifier so
messages that arrived while nothing was listening still reach the ledger.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from pesaledger.config import Settings
from pesaledger.services.classifier_service import ProcessOutcome, TransactionClassifier
from pesaledger.services.ingestion import MessageInbox, to_local_datetime
from pesaledger.services.transaction_service import latest_fingerprinted_date

logger = logging.getLogger(__name__)


@dataclass
class CatchupReport:
    watermark: datetime
    scanned: int = 0
    outcomes: Dict[str, int] = field(default_factory=dict)
    failed: int = 0

    @property
    def created(self) -> int:
        return self.outcomes.get(ProcessOutcome.CREATED.value, 0)

    def record(self, outcome: ProcessOutcome) -> None:
        self.outcomes[outcome.value] = self.outcomes.get(outcome.value, 0) + 1


def compute_watermark(db: Session, settings: Settings, now: Optional[datetime] = None) -> datetime:
    """
    Effective date of the newest fingerprinted transaction, or the lookback
    window start when the ledger has none.
    """
    latest = latest_fingerprinted_date(db)
    if latest is not None:
        return latest
    if now is None:
        tz = timezone(timedelta(hours=settings.message_utc_offset_hours))
        now = datetime.now(tz).replace(tzinfo=None)
    return now - timedelta(days=settings.catchup_lookback_days)


def run_catchup(
    db: Session,
    classifier: TransactionClassifier,
    inbox: MessageInbox,
    settings: Settings,
    now: Optional[datetime] = None,
    on_progress: Optional[Callable[[int, int], None]] = None,
) -> CatchupReport:
    """Process every inbox message strictly newer than the watermark, oldest first."""
    watermark = compute_watermark(db, settings, now=now)
    offset = settings.message_utc_offset_hours

    pending = [
        message for message in inbox.query(settings.provider_sender_pattern)
        if to_local_datetime(message.timestamp, offset) > watermark
    ]
    pending.sort(key=lambda message: message.timestamp)

    report = CatchupReport(watermark=watermark)
    for index, message in enumerate(pending, start=1):
        report.scanned += 1
        try:
            result = classifier.process_message(db, message)
        except Exception:
            db.rollback()
            logger.exception("Catch-up skipped message at %s", message.timestamp)
            report.failed += 1
            continue
        report.record(result.outcome)
        if on_progress:
            on_progress(index, len(pending))

    logger.info(
        "Catch-up from %s scanned %d messages, created %d",
        watermark.isoformat(), report.scanned, report.created
    )
    return report
