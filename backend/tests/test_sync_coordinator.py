"""Tests for sync triggers and status reporting."""

import asyncio
import pytest

from pesaledger.config import Settings
from pesaledger.container import AppContainer
from pesaledger.models.account import Account
from pesaledger.models.category import Category
from pesaledger.models.weekly_limit import WeeklySpendingLimit
from pesaledger.services.remote_store import ACCOUNTS, CATEGORIES
from pesaledger.services.sync_coordinator import SyncTrigger
from pesaledger.services.sync_status import SyncState, SyncStatusTracker

USER = "user-1"


@pytest.fixture
def sync_settings():
    return Settings(seed_defaults=True, sync_enabled=True, user_id=USER, sync_interval_seconds=3600)


@pytest.fixture
def tracker(clock):
    return SyncStatusTracker(clock=clock)


@pytest.fixture
def sync_container(sync_settings, engine, session_factory, remote_store, tracker):
    container = AppContainer(
        sync_settings,
        engine=engine,
        session_factory=session_factory,
        remote_store=remote_store,
        tracker=tracker,
    )
    container.startup()
    return container


class TestCanSync:

    def test_disabled(self, sync_container):
        sync_container.settings.sync_enabled = False
        assert sync_container.sync.can_sync() is False
        assert sync_container.sync.run(SyncTrigger.MANUAL) is None

    def test_signed_out(self, sync_container):
        sync_container.sync.sign_out()
        assert sync_container.sync.can_sync() is False

    def test_offline(self, sync_container):
        sync_container.tracker.set_connectivity(False)
        assert sync_container.sync.can_sync() is False


class TestRun:

    def test_periodic_pass_completes(self, sync_container, remote_store, clock):
        report = sync_container.sync.run(SyncTrigger.PERIODIC)

        assert report.protocol == "push_then_merge"
        assert sync_container.tracker.state == SyncState.COMPLETED
        assert len(remote_store.list_documents(USER, ACCOUNTS)) == 4
        clock.advance(2)
        assert sync_container.tracker.state == SyncState.IDLE

    def test_manual_pass_is_push_only(self, sync_container):
        assert sync_container.sync.run(SyncTrigger.MANUAL).protocol == "push_only"

    def test_unreachable_remote_reports_error(self, sync_container, remote_store):
        remote_store.online = False

        assert sync_container.sync.run(SyncTrigger.PERIODIC) is None
        assert sync_container.tracker.state == SyncState.ERROR
        assert "unreachable" in sync_container.tracker.last_error

    def test_overlapping_pass_skipped(self, sync_container):
        sync_container.sync._run_lock.acquire()
        try:
            assert sync_container.sync.run(SyncTrigger.PERIODIC) is None
        finally:
            sync_container.sync._run_lock.release()
        assert sync_container.tracker.state == SyncState.IDLE


class TestConnectivity:

    def test_reconnect_retries_sync(self, sync_container, remote_store):
        remote_store.online = False
        sync_container.sync.on_connectivity_changed(False)
        assert sync_container.tracker.display_state == SyncState.OFFLINE

        remote_store.online = True
        report = sync_container.sync.on_connectivity_changed(True)

        assert report.protocol == "push_then_merge"
        assert sync_container.tracker.display_state == SyncState.COMPLETED

    def test_staying_online_does_not_sync(self, sync_container):
        assert sync_container.sync.on_connectivity_changed(True) is None


class TestSignIn:

    def test_sign_in_restores_and_reseeds_defaults(self, sync_container, remote_store, session_factory):
        remote_store.set_document("user-2", CATEGORIES, "c1", {
            "id": 50, "name": "Health",
            "createdAt": "2024-03-01T08:00:00", "updatedAt": "2024-03-01T08:00:00",
        })

        report = sync_container.sync.sign_in("user-2")

        assert report.protocol == "sign_in"
        assert sync_container.settings.user_id == "user-2"
        db = session_factory()
        try:
            names = {a.name for a in db.query(Account).all()}
            assert names == {"M-Pesa", "Pochi La Biashara", "M-Shwari", "Cash"}
            assert db.query(WeeklySpendingLimit).count() == 1
            assert {"Health", "Food"} <= {c.name for c in db.query(Category).all()}
        finally:
            db.close()
        remote_names = {d["name"] for d in remote_store.list_documents("user-2", CATEGORIES).values()}
        assert "Food" in remote_names


class TestPeriodic:

    def test_periodic_loop_stops_on_event(self, sync_container):
        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(sync_container.sync.run_periodic(stop))
            await asyncio.sleep(0)
            stop.set()
            await asyncio.wait_for(task, timeout=1)

        asyncio.run(scenario())

    def test_periodic_loop_runs_pass(self, sync_container, remote_store):
        sync_container.settings.sync_interval_seconds = 0

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(sync_container.sync.run_periodic(stop))
            for _ in range(100):
                await asyncio.sleep(0.01)
                if sync_container.sync.last_report is not None:
                    break
            stop.set()
            await asyncio.wait_for(task, timeout=5)

        asyncio.run(scenario())
        assert sync_container.sync.last_report.protocol == "push_then_merge"
