"""
Transaction classifier: message -> at most one ledger transaction.

Failures never leave this module as exceptions; every call returns a
ProcessResult so live listeners and the catch-up scan keep going.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from pesaledger.config import Settings
from pesaledger.errors import ExtractionError
from pesaledger.parsers.base import BaseMessageParser, ParsedTransaction
from pesaledger.services import transaction_service
from pesaledger.services.deduplication_service import find_transaction_by_fingerprint, generate_sms_fingerprint
from pesaledger.services.ingestion import InboundMessage

logger = logging.getLogger(__name__)


class ProcessOutcome(str, enum.Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"
    IGNORED_SENDER = "ignored_sender"
    UNRECOGNIZED = "unrecognized"
    EXTRACTION_FAILED = "extraction_failed"
    PERSISTENCE_FAILED = "persistence_failed"


@dataclass
class ProcessResult:
    outcome: ProcessOutcome
    fingerprint: Optional[str] = None
    transaction_id: Optional[int] = None
    rule: Optional[str] = None


class TransactionClassifier:
    """Runs the dedup gate, the rule parser and the atomic ledger write."""

    def __init__(self, parser: BaseMessageParser, settings: Settings):
        self.parser = parser
        self.settings = settings

    def preview(self, message: InboundMessage) -> Optional[ParsedTransaction]:
        """Classify without touching the ledger. Raises ExtractionError."""
        if not self.parser.can_parse(message.sender):
            return None
        return self.parser.parse(message.body)

    def process_message(self, db: Session, message: InboundMessage) -> ProcessResult:
        if not self.parser.can_parse(message.sender):
            return ProcessResult(ProcessOutcome.IGNORED_SENDER)

        fingerprint = generate_sms_fingerprint(message.sender, message.body, message.timestamp)
        if find_transaction_by_fingerprint(db, fingerprint):
            logger.debug("Duplicate message %s from %s suppressed", fingerprint[:12], message.source.value)
            return ProcessResult(ProcessOutcome.DUPLICATE, fingerprint=fingerprint)

        try:
            parsed = self.parser.parse(message.body)
        except ExtractionError as exc:
            logger.warning("Dropped message %s: %s", fingerprint[:12], exc)
            return ProcessResult(ProcessOutcome.EXTRACTION_FAILED, fingerprint=fingerprint, rule=exc.rule)

        if parsed is None:
            logger.info("Message %s from %s matched no known shape", fingerprint[:12], message.sender)
            return ProcessResult(ProcessOutcome.UNRECOGNIZED, fingerprint=fingerprint)

        try:
            txn = transaction_service.record_classified_transaction(
                db, parsed, fingerprint, auto_categorize=self.settings.auto_categorize_enabled
            )
        except IntegrityError:
            # Lost a race with another entry point delivering the same message
            if find_transaction_by_fingerprint(db, fingerprint):
                logger.debug("Duplicate message %s rejected by unique constraint", fingerprint[:12])
                return ProcessResult(ProcessOutcome.DUPLICATE, fingerprint=fingerprint, rule=parsed.rule)
            logger.exception("Ledger rejected message %s", fingerprint[:12])
            return ProcessResult(ProcessOutcome.PERSISTENCE_FAILED, fingerprint=fingerprint, rule=parsed.rule)
        except SQLAlchemyError:
            logger.exception("Ledger write failed for message %s", fingerprint[:12])
            return ProcessResult(ProcessOutcome.PERSISTENCE_FAILED, fingerprint=fingerprint, rule=parsed.rule)

        logger.info("Recorded %s %s via rule %s", txn.kind.value, txn.amount, parsed.rule)
        return ProcessResult(
            ProcessOutcome.CREATED, fingerprint=fingerprint, transaction_id=txn.id, rule=parsed.rule
        )
