"""
Message ingestion adapters.

The foreground stream, the background stream and the historical inbox query
all hand over loosely shaped payloads; normalize_message turns each into one
InboundMessage so the classifier never cares where a message came from.
"""

import asyncio
import enum
import logging
from abc import ABC, abstractmethod
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Callable, List, Mapping, Optional, Union

from sqlalchemy.orm import sessionmaker

logger = logging.getLogger(__name__)

# Epoch values below this are seconds, not milliseconds.
_SECONDS_CUTOFF = 100_000_000_000


class MessageSource(str, enum.Enum):
    FOREGROUND = "foreground"
    BACKGROUND = "background"
    HISTORY = "history"


@dataclass(frozen=True)
class InboundMessage:
    sender: str
    body: str
    timestamp: int  # Provider timestamp, epoch milliseconds
    source: MessageSource = MessageSource.FOREGROUND


def _timestamp_ms(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("Boolean is not a timestamp")
    if isinstance(value, (int, float)):
        value = int(value)
        return value * 1000 if value < _SECONDS_CUTOFF else value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return _timestamp_ms(int(stripped))
        value = datetime.fromisoformat(stripped.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    raise ValueError(f"Unsupported timestamp: {value!r}")


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def normalize_message(
    raw: Union[InboundMessage, Mapping[str, Any]],
    source: MessageSource = MessageSource.FOREGROUND,
) -> InboundMessage:
    """
    Build an InboundMessage from any entry point's payload.

    Accepts address/sender/originatingAddress, body/message and
    date/timestamp/dateSent keys; timestamps may be epoch seconds or
    milliseconds, a datetime or an ISO-8601 string.
    """
    if isinstance(raw, InboundMessage):
        return raw

    sender = _first(raw, "address", "sender", "originatingAddress")
    body = _first(raw, "body", "message")
    timestamp = _first(raw, "date", "timestamp", "dateSent")
    if sender is None or body is None or timestamp is None:
        raise ValueError("Message needs a sender, a body and a timestamp")

    return InboundMessage(sender=str(sender), body=str(body), timestamp=_timestamp_ms(timestamp), source=source)


def to_local_datetime(timestamp_ms: int, utc_offset_hours: int) -> datetime:
    """Provider wall-clock time for an epoch timestamp, as a naive datetime."""
    tz = timezone(timedelta(hours=utc_offset_hours))
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).replace(tzinfo=None)


class MessageInbox(ABC):
    """Historical message query supplied by the host device."""

    @abstractmethod
    def query(self, sender_pattern: str) -> List[InboundMessage]:
        """Messages whose sender contains the pattern, newest first."""
        pass


class InMemoryInbox(MessageInbox):
    """Inbox backed by a list; used for uploads of exported history and tests."""

    def __init__(self, messages: Optional[List[Any]] = None):
        self._messages = [normalize_message(m, MessageSource.HISTORY) for m in (messages or [])]

    def add(self, message: Any) -> None:
        self._messages.append(normalize_message(message, MessageSource.HISTORY))

    def query(self, sender_pattern: str) -> List[InboundMessage]:
        pattern = sender_pattern.upper()
        matching = [m for m in self._messages if pattern in m.sender.upper()]
        return sorted(matching, key=lambda m: m.timestamp, reverse=True)


class SmsListener:
    """
    Consumes a live message stream and feeds each message to the classifier.

    Each message is classified in a worker thread so the event loop keeps
    serving while the ledger is written. A stop request cancels the
    subscription; a message that is already being written always finishes.
    """

    def __init__(
        self,
        process: Callable,
        session_factory: sessionmaker,
        source: MessageSource = MessageSource.FOREGROUND,
    ):
        self._process = process
        self._session_factory = session_factory
        self._source = source
        self._task: Optional[asyncio.Task] = None
        self._stream: Optional[AsyncIterator] = None
        self._in_flight: Optional[asyncio.Future] = None
        self.outcomes: Counter = Counter()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, stream: AsyncIterator) -> asyncio.Task:
        if self.running:
            raise RuntimeError("Listener is already running")
        self._stream = stream
        self._task = asyncio.get_running_loop().create_task(self._consume(stream))
        return self._task

    async def _consume(self, stream: AsyncIterator) -> None:
        async for raw in stream:
            self._in_flight = asyncio.ensure_future(asyncio.to_thread(self.handle, raw))
            # Cancellation stops the subscription, never the write in progress
            await asyncio.shield(self._in_flight)
            self._in_flight = None

    def handle(self, raw: Any) -> Optional[Any]:
        """Process one payload; failures stay inside this message."""
        try:
            message = normalize_message(raw, self._source)
        except ValueError as exc:
            logger.warning("Dropping malformed %s payload: %s", self._source.value, exc)
            self.outcomes["malformed"] += 1
            return None

        db = self._session_factory()
        try:
            result = self._process(db, message)
        except Exception:
            logger.exception("Unexpected failure processing %s message", self._source.value)
            self.outcomes["failed"] += 1
            return None
        finally:
            db.close()

        self.outcomes[result.outcome.value] += 1
        return result

    async def stop(self) -> None:
        """Cancel the subscription, let the current message finish and release the stream."""
        in_flight = self._in_flight
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if in_flight is not None:
            await in_flight
            self._in_flight = None

        aclose = getattr(self._stream, "aclose", None)
        if aclose is not None:
            await aclose()
        self._stream = None

    async def join(self) -> None:
        """Wait until the stream is exhausted."""
        if self._task is not None:
            await self._task
