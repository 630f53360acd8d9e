"""
Cloud document store.

Documents live under users/{user_id}/{collection}/{doc_id}. Two backends:
an in-process store (tests, offline development) and a SQLAlchemy-backed
store that keeps each document as a JSON row in any server database.
"""

import copy
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from sqlalchemy import Column, DateTime, JSON, PrimaryKeyConstraint, String
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from pesaledger.database import create_db_engine, utcnow
from pesaledger.errors import RemoteStoreError, RemoteUnavailableError

ACCOUNTS = "accounts"
TRANSACTIONS = "transactions"
CATEGORIES = "categories"
CATEGORY_ITEMS = "categoryItems"
WEEKLY_LIMITS = "weeklyLimits"

COLLECTIONS = (ACCOUNTS, TRANSACTIONS, CATEGORIES, CATEGORY_ITEMS, WEEKLY_LIMITS)

Document = Dict[str, Any]


class RemoteStore(ABC):
    """Per-user document collections with merge-on-write semantics."""

    @abstractmethod
    def list_documents(self, user_id: str, collection: str) -> Dict[str, Document]:
        """All documents of a collection keyed by document id."""
        pass

    @abstractmethod
    def get_document(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        pass

    @abstractmethod
    def set_document(self, user_id: str, collection: str, doc_id: str, data: Document, merge: bool = True) -> None:
        pass

    @abstractmethod
    def delete_document(self, user_id: str, collection: str, doc_id: str) -> None:
        pass

    @abstractmethod
    def clear_user(self, user_id: str) -> None:
        pass

    def find_documents(self, user_id: str, collection: str, field: str, value: Any) -> Dict[str, Document]:
        return {
            doc_id: doc for doc_id, doc in self.list_documents(user_id, collection).items()
            if doc.get(field) == value
        }

    def new_document_id(self) -> str:
        return uuid.uuid4().hex


class InMemoryRemoteStore(RemoteStore):
    """Dictionary-backed store that counts writes and can simulate an outage."""

    def __init__(self):
        self._docs: Dict[tuple, Dict[str, Document]] = {}
        self.write_count = 0
        self.online = True

    def _check_online(self) -> None:
        if not self.online:
            raise RemoteUnavailableError("Remote store is unreachable")

    def _collection(self, user_id: str, collection: str) -> Dict[str, Document]:
        return self._docs.setdefault((user_id, collection), {})

    def list_documents(self, user_id: str, collection: str) -> Dict[str, Document]:
        self._check_online()
        return copy.deepcopy(self._collection(user_id, collection))

    def get_document(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        self._check_online()
        doc = self._collection(user_id, collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def set_document(self, user_id: str, collection: str, doc_id: str, data: Document, merge: bool = True) -> None:
        self._check_online()
        docs = self._collection(user_id, collection)
        if merge and doc_id in docs:
            docs[doc_id].update(copy.deepcopy(data))
        else:
            docs[doc_id] = copy.deepcopy(data)
        self.write_count += 1

    def delete_document(self, user_id: str, collection: str, doc_id: str) -> None:
        self._check_online()
        self._collection(user_id, collection).pop(doc_id, None)
        self.write_count += 1

    def clear_user(self, user_id: str) -> None:
        self._check_online()
        for key in [key for key in self._docs if key[0] == user_id]:
            del self._docs[key]


RemoteBase = declarative_base()


class RemoteDocument(RemoteBase):
    __tablename__ = "remote_documents"

    user_id = Column(String(128), nullable=False)
    collection = Column(String(64), nullable=False)
    doc_id = Column(String(128), nullable=False)
    data = Column(JSON, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        PrimaryKeyConstraint("user_id", "collection", "doc_id"),
    )


class SQLRemoteStore(RemoteStore):
    """Document store on a relational database reachable by URL."""

    def __init__(self, database_url: Optional[str] = None, engine: Optional[Engine] = None):
        if engine is None:
            if not database_url:
                raise ValueError("SQLRemoteStore needs a database URL or an engine")
            engine = create_db_engine(database_url)
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        RemoteBase.metadata.create_all(bind=engine)

    def _wrap(self, exc: SQLAlchemyError) -> RemoteStoreError:
        if isinstance(exc, OperationalError):
            return RemoteUnavailableError(str(exc))
        return RemoteStoreError(str(exc))

    def list_documents(self, user_id: str, collection: str) -> Dict[str, Document]:
        try:
            with self._sessions() as session:
                rows = session.query(RemoteDocument).filter(
                    RemoteDocument.user_id == user_id,
                    RemoteDocument.collection == collection
                ).all()
                return {row.doc_id: dict(row.data) for row in rows}
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc

    def get_document(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        try:
            with self._sessions() as session:
                row = session.get(RemoteDocument, (user_id, collection, doc_id))
                return dict(row.data) if row else None
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc

    def set_document(self, user_id: str, collection: str, doc_id: str, data: Document, merge: bool = True) -> None:
        try:
            with self._sessions() as session:
                row = session.get(RemoteDocument, (user_id, collection, doc_id))
                if row is None:
                    session.add(RemoteDocument(user_id=user_id, collection=collection, doc_id=doc_id, data=data))
                else:
                    # Reassign so the JSON column is flagged dirty
                    row.data = {**row.data, **data} if merge else dict(data)
                session.commit()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc

    def delete_document(self, user_id: str, collection: str, doc_id: str) -> None:
        try:
            with self._sessions() as session:
                session.query(RemoteDocument).filter(
                    RemoteDocument.user_id == user_id,
                    RemoteDocument.collection == collection,
                    RemoteDocument.doc_id == doc_id,
                ).delete(synchronize_session=False)
                session.commit()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc

    def clear_user(self, user_id: str) -> None:
        try:
            with self._sessions() as session:
                session.query(RemoteDocument).filter(RemoteDocument.user_id == user_id).delete(
                    synchronize_session=False
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise self._wrap(exc) from exc
