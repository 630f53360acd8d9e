"""Tests for ledger startup, settings and logging setup."""

import io
import logging

import pytest

from pesaledger import logging_setup
from pesaledger.config import Settings
from pesaledger.database import SCHEMA_VERSION, create_db_engine, create_session_factory, init_db, utcnow
from pesaledger.errors import SchemaVersionError
from pesaledger.models.schema_version import SchemaVersion


@pytest.fixture
def bare_engine():
    engine = create_db_engine("sqlite:///:memory:")
    yield engine
    engine.dispose()


class TestInitDb:

    def test_stamps_schema_version_once(self, bare_engine):
        assert init_db(bare_engine) == SCHEMA_VERSION
        init_db(bare_engine)

        db = create_session_factory(bare_engine)()
        try:
            assert db.query(SchemaVersion).count() == 1
        finally:
            db.close()

    def test_newer_schema_is_fatal(self, bare_engine):
        init_db(bare_engine)
        db = create_session_factory(bare_engine)()
        try:
            db.add(SchemaVersion(version=SCHEMA_VERSION + 1, applied_at=utcnow()))
            db.commit()
        finally:
            db.close()

        with pytest.raises(SchemaVersionError):
            init_db(bare_engine)

    def test_foreign_keys_enforced(self, bare_engine):
        with bare_engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1


class TestSettings:

    def test_environment_prefix(self, monkeypatch):
        monkeypatch.setenv("PESALEDGER_PROVIDER_SENDER_PATTERN", "MPESA-KE")
        monkeypatch.setenv("PESALEDGER_SYNC_ENABLED", "true")
        settings = Settings()
        assert settings.provider_sender_pattern == "MPESA-KE"
        assert settings.sync_enabled is True

    def test_defaults(self):
        settings = Settings()
        assert settings.message_utc_offset_hours == 3
        assert settings.catchup_lookback_days == 7
        assert settings.sync_interval_seconds == 300


class TestConfigureLogging:

    def test_single_handler(self, monkeypatch):
        monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
        logger = logging.getLogger("pesaledger")
        before = list(logger.handlers)
        level = logger.level
        stream = io.StringIO()
        try:
            logging_setup.configure_logging("debug", stream=stream)
            logging_setup.configure_logging("debug", stream=stream)
            added = [h for h in logger.handlers if h not in before]
            assert len(added) == 1

            logging.getLogger("pesaledger.services.test").debug("hello")
            assert "hello" in stream.getvalue()
        finally:
            for handler in logger.handlers[:]:
                if handler not in before:
                    logger.removeHandler(handler)
            logger.setLevel(level)
