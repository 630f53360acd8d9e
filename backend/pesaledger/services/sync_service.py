"""
Cloud merge engine.

Two protocols share the per-collection adapters below:

* push_then_merge (periodic, connectivity, manual pull): upload every local
  entity, then download every remote document and resolve each pair by
  last-writer-wins on the modification timestamp. Equal or missing
  timestamps keep the local copy.
* sign_in_sync: upload records the remote side has never seen, then replace
  the local ledger with the remote snapshot, keeping remote ids.

Entities are matched by natural key, never by local id alone, because every
device assigns its own ids. Timestamps are compared as naive UTC, so devices
are assumed to have reasonably synchronized clocks.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pesaledger.errors import RemoteStoreError, RemoteUnavailableError, SyncError
from pesaledger.models.account import Account
from pesaledger.models.category import Category, CategoryItem
from pesaledger.models.multi_categorization import MultiCategorizationItem, MultiCategorizationList
from pesaledger.models.transaction import Transaction, TransactionKind, TransactionStatus
from pesaledger.models.weekly_limit import WeeklySpendingLimit
from pesaledger.services import account_service, category_service
from pesaledger.services.transaction_service import new_remote_id
from pesaledger.services.remote_store import (
    ACCOUNTS, CATEGORIES, CATEGORY_ITEMS, TRANSACTIONS, WEEKLY_LIMITS, Document, RemoteStore
)

logger = logging.getLogger(__name__)

# Fields that carry one device's local ids; never part of content comparison.
LOCAL_ID_FIELDS = frozenset({"id", "accountId", "categoryId", "categoryItemId"})

# Entity conversion problems that only affect one document.
ENTITY_ERRORS = (RemoteStoreError, ValueError, KeyError, TypeError, InvalidOperation)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Read a remote timestamp (ISO string, epoch ms or datetime) as naive UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    raise ValueError(f"Unsupported timestamp: {value!r}")


def _money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(Decimal("0.01"))


def _money_str(value: Any) -> str:
    return str(_money(value))


def _lower(value: Optional[str]) -> Optional[str]:
    return value.strip().lower() if isinstance(value, str) else None


def comparable(doc: Document) -> Document:
    """Document content without device-local id fields; null and absent fields are equal."""
    return {key: value for key, value in doc.items() if key not in LOCAL_ID_FIELDS and value is not None}


@dataclass
class SyncReport:
    protocol: str
    pushed: int = 0
    skipped: int = 0
    created: int = 0
    updated: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)

    def fail(self, collection: str, key: Any, exc: Exception) -> None:
        self.failed += 1
        self.errors.append(f"{collection}:{key}: {exc}")
        logger.warning("Sync skipped %s %s: %s", collection, key, exc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "protocol": self.protocol,
            "pushed": self.pushed,
            "skipped": self.skipped,
            "created": self.created,
            "updated": self.updated,
            "failed": self.failed,
            "errors": list(self.errors),
        }


class EntitySync:
    """How one local table maps onto one remote collection."""

    collection: str = ""
    model: Any = None

    def local_entities(self, db: Session) -> List[Any]:
        return db.query(self.model).order_by(self.model.id).all()

    def local_key(self, obj: Any) -> Hashable:
        raise NotImplementedError

    def remote_key(self, doc: Document) -> Optional[Hashable]:
        raise NotImplementedError

    def to_document(self, obj: Any) -> Document:
        raise NotImplementedError

    def new_document_id(self, obj: Any, remote: RemoteStore) -> str:
        return remote.new_document_id()

    def prepare(self, doc_id: str, doc: Document) -> Document:
        """Fill in fields a remote document may lack before it is keyed."""
        return doc

    def find_remote(
        self, db: Session, obj: Any, index: Dict[Hashable, Tuple[str, Document]], snapshot: Dict[str, Document]
    ) -> Optional[Tuple[str, Document]]:
        return index.get(self.local_key(obj))

    def find_local(self, db: Session, doc: Document, snapshot: Dict[str, Document]) -> Optional[Any]:
        raise NotImplementedError

    def create_local(self, db: Session, doc: Document, entity_id: Optional[int] = None) -> Any:
        raise NotImplementedError

    def apply_remote(self, db: Session, obj: Any, doc: Document) -> None:
        raise NotImplementedError

    def stamp(self, obj: Any, doc: Document) -> None:
        """Carry the remote timestamps so the next pass sees both sides equal."""
        created = parse_timestamp(doc.get("createdAt"))
        updated = parse_timestamp(doc.get("updatedAt"))
        if created:
            obj.created_at = created
        if updated:
            obj.updated_at = updated


class AccountSync(EntitySync):
    collection = ACCOUNTS
    model = Account

    def local_key(self, obj: Account) -> Hashable:
        return _lower(obj.name)

    def remote_key(self, doc: Document) -> Optional[Hashable]:
        return _lower(doc.get("name"))

    def to_document(self, obj: Account) -> Document:
        return {
            "id": obj.id,
            "name": obj.name,
            "senderPattern": obj.sender_pattern,
            "balance": _money_str(obj.balance),
            "createdAt": format_timestamp(obj.created_at),
            "updatedAt": format_timestamp(obj.updated_at),
        }

    def find_remote(self, db, obj, index, snapshot):
        found = index.get(self.local_key(obj))
        if found:
            return found
        # Fall back to the sender pattern only when it identifies one account on both sides
        candidates = [(doc_id, doc) for doc_id, doc in snapshot.items() if doc.get("senderPattern") == obj.sender_pattern]
        local_count = db.query(Account).filter(Account.sender_pattern == obj.sender_pattern).count()
        if len(candidates) == 1 and local_count == 1:
            return candidates[0]
        return None

    def find_local(self, db, doc, snapshot):
        account = account_service.get_account_by_name(db, doc["name"])
        if account:
            return account
        sender = doc.get("senderPattern")
        local = db.query(Account).filter(Account.sender_pattern == sender).all()
        remote_count = sum(1 for other in snapshot.values() if other.get("senderPattern") == sender)
        if len(local) == 1 and remote_count == 1:
            return local[0]
        return None

    def create_local(self, db, doc, entity_id=None):
        account = Account(
            id=entity_id,
            name=doc["name"],
            sender_pattern=doc.get("senderPattern") or "MPESA",
            balance=_money(doc.get("balance")),
        )
        self.stamp(account, doc)
        db.add(account)
        return account

    def apply_remote(self, db, obj, doc):
        obj.name = doc["name"]
        obj.sender_pattern = doc.get("senderPattern") or obj.sender_pattern
        obj.balance = _money(doc.get("balance"))


class CategorySync(EntitySync):
    collection = CATEGORIES
    model = Category

    def local_key(self, obj):
        return _lower(obj.name)

    def remote_key(self, doc):
        return _lower(doc.get("name"))

    def to_document(self, obj):
        return {
            "id": obj.id,
            "name": obj.name,
            "createdAt": format_timestamp(obj.created_at),
            "updatedAt": format_timestamp(obj.updated_at),
        }

    def find_local(self, db, doc, snapshot):
        return category_service.get_category_by_name(db, doc["name"])

    def create_local(self, db, doc, entity_id=None):
        category = Category(id=entity_id, name=doc["name"])
        self.stamp(category, doc)
        db.add(category)
        return category

    def apply_remote(self, db, obj, doc):
        obj.name = doc["name"]


class CategoryItemSync(EntitySync):
    collection = CATEGORY_ITEMS
    model = CategoryItem

    def local_key(self, obj):
        return (_lower(obj.category.name), _lower(obj.name))

    def remote_key(self, doc):
        return (_lower(doc.get("categoryName")), _lower(doc.get("name")))

    def to_document(self, obj):
        return {
            "id": obj.id,
            "name": obj.name,
            "categoryId": obj.category_id,
            "categoryName": obj.category.name,
            "createdAt": format_timestamp(obj.created_at),
            "updatedAt": format_timestamp(obj.updated_at),
        }

    def find_local(self, db, doc, snapshot):
        return category_service.find_category_item(db, doc["categoryName"], doc["name"])

    def _category(self, db, doc) -> Category:
        category = category_service.get_category_by_name(db, doc["categoryName"])
        if category is None:
            raise ValueError(f"Unknown category '{doc['categoryName']}'")
        return category

    def create_local(self, db, doc, entity_id=None):
        item = CategoryItem(id=entity_id, name=doc["name"], category_id=self._category(db, doc).id)
        self.stamp(item, doc)
        db.add(item)
        return item

    def apply_remote(self, db, obj, doc):
        obj.name = doc["name"]
        obj.category_id = self._category(db, doc).id


class WeeklyLimitSync(EntitySync):
    collection = WEEKLY_LIMITS
    model = WeeklySpendingLimit

    def local_key(self, obj):
        return obj.week_start.isoformat()

    def remote_key(self, doc):
        return doc.get("weekStart")

    def to_document(self, obj):
        return {
            "id": obj.id,
            "weekStart": obj.week_start.isoformat(),
            "weekEnd": obj.week_end.isoformat(),
            "targetAmount": _money_str(obj.target_amount),
            "createdAt": format_timestamp(obj.created_at),
            "updatedAt": format_timestamp(obj.updated_at),
        }

    def find_local(self, db, doc, snapshot):
        week_start = date.fromisoformat(doc["weekStart"])
        return db.query(WeeklySpendingLimit).filter(WeeklySpendingLimit.week_start == week_start).first()

    def create_local(self, db, doc, entity_id=None):
        limit = WeeklySpendingLimit(
            id=entity_id,
            week_start=date.fromisoformat(doc["weekStart"]),
            week_end=date.fromisoformat(doc["weekEnd"]),
            target_amount=_money(doc.get("targetAmount")),
        )
        self.stamp(limit, doc)
        db.add(limit)
        return limit

    def apply_remote(self, db, obj, doc):
        obj.week_end = date.fromisoformat(doc["weekEnd"])
        obj.target_amount = _money(doc.get("targetAmount"))


class TransactionSync(EntitySync):
    """
    Transactions are keyed by fingerprint, or by remote_id for manual entries.

    Either key doubles as the document id, so every device that sees the same
    transaction writes the same document. Rows created from remote documents
    never touch balances; balances travel with the account documents.
    """

    collection = TRANSACTIONS
    model = Transaction

    def local_entities(self, db: Session) -> List[Any]:
        missing = db.query(Transaction.id).filter(
            Transaction.fingerprint.is_(None),
            Transaction.remote_id.is_(None)
        ).all()
        if missing:
            # Rows from before remote ids existed; keep their modification time
            for (txn_id,) in missing:
                db.query(Transaction).filter(Transaction.id == txn_id).update(
                    {Transaction.remote_id: new_remote_id(), Transaction.updated_at: Transaction.updated_at},
                    synchronize_session=False,
                )
            db.commit()
        return super().local_entities(db)

    def local_key(self, obj):
        return obj.fingerprint or ("remote", obj.remote_id)

    def remote_key(self, doc):
        return doc.get("fingerprint") or ("remote", doc.get("remoteId"))

    def new_document_id(self, obj, remote):
        return obj.fingerprint or obj.remote_id

    def prepare(self, doc_id, doc):
        if doc.get("fingerprint") or doc.get("remoteId"):
            return doc
        return {**doc, "remoteId": doc_id}

    def to_document(self, obj: Transaction) -> Document:
        destination = obj.destination_account
        return {
            "id": obj.id,
            "fingerprint": obj.fingerprint,
            "remoteId": obj.remote_id,
            "accountId": obj.account_id,
            "accountName": obj.account.name,
            "accountSenderPattern": obj.account.sender_pattern,
            "destinationAccountName": destination.name if destination else None,
            "destinationSenderPattern": destination.sender_pattern if destination else None,
            "categoryItemId": obj.category_item_id,
            "categoryItemName": obj.category_item.name if obj.category_item else None,
            "categoryId": obj.category_id,
            "categoryName": obj.category.name if obj.category else None,
            "amount": _money_str(obj.amount),
            "fee": _money_str(obj.fee),
            "kind": obj.kind.value,
            "description": obj.description,
            "date": format_timestamp(obj.date),
            "status": obj.status.value,
            "excludeFromWeekly": bool(obj.exclude_from_weekly),
            "createdAt": format_timestamp(obj.created_at),
            "updatedAt": format_timestamp(obj.updated_at),
        }

    def find_local(self, db, doc, snapshot):
        if doc.get("fingerprint"):
            return db.query(Transaction).filter(Transaction.fingerprint == doc["fingerprint"]).first()
        if not doc.get("remoteId"):
            return None
        return db.query(Transaction).filter(Transaction.remote_id == doc["remoteId"]).first()

    def _references(self, db: Session, doc: Document) -> Dict[str, Any]:
        account = account_service.get_or_create_account(
            db, doc["accountName"], doc.get("accountSenderPattern") or "MPESA"
        )
        destination = None
        if doc.get("destinationAccountName"):
            destination = account_service.get_or_create_account(
                db, doc["destinationAccountName"], doc.get("destinationSenderPattern") or "MPESA"
            )
        category = None
        if doc.get("categoryName"):
            category = category_service.get_category_by_name(db, doc["categoryName"])
        item = None
        if doc.get("categoryName") and doc.get("categoryItemName"):
            item = category_service.find_category_item(db, doc["categoryName"], doc["categoryItemName"])

        status = TransactionStatus(doc.get("status") or TransactionStatus.UNCATEGORIZED.value)
        if item is None and category is None and doc.get("categoryItemName"):
            # The item no longer exists on this device
            status = TransactionStatus.UNCATEGORIZED

        return {
            "account_id": account.id,
            "destination_account_id": destination.id if destination else None,
            "category_id": category.id if category else None,
            "category_item_id": item.id if item else None,
            "status": status,
        }

    def _fields(self, doc: Document) -> Dict[str, Any]:
        txn_date = parse_timestamp(doc.get("date"))
        if txn_date is None:
            raise ValueError("Transaction document has no date")
        amount = _money(doc["amount"])
        if amount < 0:
            raise ValueError("Negative transaction amount")
        return {
            "amount": amount,
            "fee": _money(doc.get("fee")),
            "kind": TransactionKind(doc["kind"]),
            "description": doc.get("description") or "",
            "date": txn_date,
            "exclude_from_weekly": bool(doc.get("excludeFromWeekly", False)),
        }

    def create_local(self, db, doc, entity_id=None):
        fields = self._fields(doc)
        fields.update(self._references(db, doc))
        fingerprint = doc.get("fingerprint") or None
        txn = Transaction(
            id=entity_id,
            fingerprint=fingerprint,
            remote_id=None if fingerprint else doc.get("remoteId"),
            **fields
        )
        self.stamp(txn, doc)
        db.add(txn)
        return txn

    def apply_remote(self, db, obj, doc):
        fields = self._fields(doc)
        fields.update(self._references(db, doc))
        for name, value in fields.items():
            setattr(obj, name, value)


# Parents before children so references resolve by name on the way down.
PUSH_ORDER = (AccountSync(), CategorySync(), CategoryItemSync(), WeeklyLimitSync(), TransactionSync())
PULL_ORDER = (CategorySync(), CategoryItemSync(), AccountSync(), WeeklyLimitSync(), TransactionSync())


class CloudMergeEngine:
    """Pushes and pulls the ledger against one user's remote namespace."""

    def __init__(self, remote: RemoteStore, user_id: str):
        if not user_id:
            raise ValueError("Sync requires an authenticated user id")
        self.remote = remote
        self.user_id = user_id

    def _snapshot(self, adapter: EntitySync) -> Dict[str, Document]:
        documents = self.remote.list_documents(self.user_id, adapter.collection)
        return {doc_id: adapter.prepare(doc_id, doc) for doc_id, doc in documents.items()}

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------
    def push_collection(
        self, db: Session, adapter: EntitySync, report: SyncReport, only_missing: bool = False
    ) -> None:
        """
        Upsert every local entity into its remote document.

        A matching document found by natural key is written in place. Remote
        copies that are strictly newer are left for the download phase, and
        identical copies are not rewritten.
        """
        snapshot = self._snapshot(adapter)
        index = {adapter.remote_key(doc): (doc_id, doc) for doc_id, doc in snapshot.items()}

        for obj in adapter.local_entities(db):
            key = adapter.local_key(obj)
            try:
                payload = adapter.to_document(obj)
                found = adapter.find_remote(db, obj, index, snapshot)
                if found is None:
                    doc_id = adapter.new_document_id(obj, self.remote)
                else:
                    doc_id, existing = found
                    if only_missing or not self._local_wins(obj, existing, payload):
                        report.skipped += 1
                        continue

                self.remote.set_document(self.user_id, adapter.collection, doc_id, payload, merge=True)
                snapshot[doc_id] = payload
                index[key] = (doc_id, payload)
                report.pushed += 1
            except RemoteUnavailableError:
                raise
            except ENTITY_ERRORS as exc:
                report.fail(adapter.collection, key, exc)

    def _local_wins(self, obj: Any, existing: Document, payload: Document) -> bool:
        remote_updated = parse_timestamp(existing.get("updatedAt"))
        if remote_updated and obj.updated_at and remote_updated > obj.updated_at:
            return False
        return comparable(existing) != comparable(payload)

    def push_all(self, db: Session, report: Optional[SyncReport] = None, only_missing: bool = False) -> SyncReport:
        report = report or SyncReport(protocol="push")
        for adapter in PUSH_ORDER:
            self.push_collection(db, adapter, report, only_missing=only_missing)
        return report

    # ------------------------------------------------------------------
    # Download and merge
    # ------------------------------------------------------------------
    def pull_collection(self, db: Session, adapter: EntitySync, report: SyncReport) -> None:
        """Merge remote documents into the ledger, committing per entity."""
        snapshot = self._snapshot(adapter)

        for doc_id, doc in snapshot.items():
            try:
                obj = adapter.find_local(db, doc, snapshot)
                if obj is None:
                    adapter.create_local(db, doc)
                    db.commit()
                    report.created += 1
                    continue

                remote_updated = parse_timestamp(doc.get("updatedAt"))
                if remote_updated and (obj.updated_at is None or remote_updated > obj.updated_at):
                    adapter.apply_remote(db, obj, doc)
                    obj.updated_at = remote_updated
                    db.commit()
                    report.updated += 1
                else:
                    report.skipped += 1
            except SQLAlchemyError as exc:
                db.rollback()
                report.fail(adapter.collection, doc_id, exc)
            except ENTITY_ERRORS as exc:
                db.rollback()
                report.fail(adapter.collection, doc_id, exc)

    def push_then_merge(self, db: Session) -> SyncReport:
        """Ongoing sync: finish the upload before starting the download."""
        report = SyncReport(protocol="push_then_merge")
        self.push_all(db, report)
        for adapter in PULL_ORDER:
            self.pull_collection(db, adapter, report)
        logger.info(
            "Sync merged: pushed %d, created %d, updated %d, failed %d",
            report.pushed, report.created, report.updated, report.failed
        )
        return report

    def force_push(self, db: Session) -> SyncReport:
        report = self.push_all(db, SyncReport(protocol="push_only"))
        logger.info("Force sync pushed %d documents", report.pushed)
        return report

    # ------------------------------------------------------------------
    # Sign-in
    # ------------------------------------------------------------------
    def sign_in_sync(self, db: Session, after_restore: Optional[Callable[[Session], None]] = None) -> SyncReport:
        """
        Replace the local ledger with the remote snapshot.

        Local records whose natural key the remote side lacks are uploaded
        first so nothing created while signed out or offline is lost. The
        replacement commits once; any failure there leaves the ledger as it was.
        """
        report = SyncReport(protocol="sign_in")
        self.push_all(db, report, only_missing=True)

        snapshots = {adapter.collection: self._snapshot(adapter) for adapter in PULL_ORDER}

        try:
            self._clear_local(db)
            for adapter in PULL_ORDER:
                self._restore_collection(db, adapter, snapshots[adapter.collection], report)
            if after_restore:
                after_restore(db)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise SyncError(f"Sign-in restore failed: {exc}") from exc

        logger.info("Sign-in sync restored %d records", report.created)
        return report

    def _clear_local(self, db: Session) -> None:
        for model in (
            MultiCategorizationItem, MultiCategorizationList, Transaction,
            CategoryItem, Category, Account, WeeklySpendingLimit,
        ):
            db.query(model).delete(synchronize_session=False)
        db.flush()
        db.expunge_all()

    def _restore_collection(
        self, db: Session, adapter: EntitySync, snapshot: Dict[str, Document], report: SyncReport
    ) -> None:
        seen_keys = set()
        used_ids = set()
        for doc_id, doc in snapshot.items():
            try:
                key = adapter.remote_key(doc)
                if key in seen_keys:
                    report.skipped += 1
                    continue

                remote_id = doc.get("id")
                entity_id = remote_id if isinstance(remote_id, int) and remote_id not in used_ids else None
                obj = adapter.create_local(db, doc, entity_id=entity_id)
            except ENTITY_ERRORS as exc:
                report.fail(adapter.collection, doc_id, exc)
                continue

            db.flush()
            seen_keys.add(key)
            used_ids.add(obj.id)
            report.created += 1
