"""
Database engine, session factory and schema bootstrap.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from pesaledger.errors import SchemaVersionError

logger = logging.getLogger(__name__)

Base = declarative_base()

# Bump together with a new Alembic revision.
SCHEMA_VERSION = 2


def utcnow() -> datetime:
    """Naive UTC timestamp used for created_at/updated_at columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str) -> Engine:
    """Create an engine; SQLite gets foreign keys and a shared in-memory pool."""
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
        kwargs["poolclass"] = StaticPool
    else:
        db_path = database_url.split("///", 1)[-1]
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url, **kwargs)
    event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine) -> int:
    """
    Create missing tables and stamp the schema version.

    Raises SchemaVersionError when the database was written by a newer
    release; this is the only startup failure that is allowed to be fatal.
    """
    # Import models so every table is registered on Base.metadata
    from pesaledger import models
    from pesaledger.models.schema_version import SchemaVersion

    stored_version = None
    if inspect(engine).has_table(SchemaVersion.__tablename__):
        with Session(engine) as session:
            marker = session.query(SchemaVersion).order_by(SchemaVersion.version.desc()).first()
            stored_version = marker.version if marker else None

    if stored_version is not None and stored_version > SCHEMA_VERSION:
        raise SchemaVersionError(
            f"Database schema version {stored_version} is newer than supported version {SCHEMA_VERSION}"
        )

    Base.metadata.create_all(bind=engine)

    if stored_version is None or stored_version < SCHEMA_VERSION:
        with Session(engine) as session:
            session.add(SchemaVersion(version=SCHEMA_VERSION, applied_at=utcnow()))
            session.commit()
        logger.info("Local schema stamped at version %s (was %s)", SCHEMA_VERSION, stored_version)

    return SCHEMA_VERSION
