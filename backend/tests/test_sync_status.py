"""Tests for the sync status state machine."""

import pytest

from pesaledger.services.sync_status import SyncState, SyncStatusTracker


@pytest.fixture
def tracker(clock):
    return SyncStatusTracker(completed_display_seconds=2.0, error_display_seconds=5.0, clock=clock)


class TestSyncStatusTracker:

    def test_starts_idle(self, tracker):
        assert tracker.state == SyncState.IDLE
        assert tracker.display_state == SyncState.IDLE

    def test_completed_reverts_after_display_time(self, tracker, clock):
        tracker.start()
        assert tracker.state == SyncState.SYNCING
        tracker.complete()
        clock.advance(1.5)
        assert tracker.state == SyncState.COMPLETED
        clock.advance(0.5)
        assert tracker.state == SyncState.IDLE

    def test_error_reverts_after_longer_display_time(self, tracker, clock):
        tracker.start()
        tracker.fail("remote unreachable")
        clock.advance(4.0)
        assert tracker.state == SyncState.ERROR
        assert tracker.last_error == "remote unreachable"
        clock.advance(1.0)
        assert tracker.state == SyncState.IDLE

    def test_syncing_never_times_out(self, tracker, clock):
        tracker.start()
        clock.advance(3600)
        assert tracker.is_syncing

    def test_new_pass_resets_revert_timer(self, tracker, clock):
        tracker.start()
        tracker.complete()
        clock.advance(1.5)
        tracker.start()
        tracker.complete()
        clock.advance(1.5)
        assert tracker.state == SyncState.COMPLETED

    def test_offline_overrides_display(self, tracker):
        tracker.start()
        tracker.set_connectivity(False)
        assert tracker.display_state == SyncState.OFFLINE
        assert tracker.state == SyncState.SYNCING
        tracker.set_connectivity(True)
        assert tracker.display_state == SyncState.SYNCING

    def test_completion_clears_last_error(self, tracker):
        tracker.fail("boom")
        tracker.start()
        tracker.complete()
        assert tracker.last_error is None

    def test_listeners_see_display_state(self, tracker):
        seen = []
        tracker.add_listener(seen.append)
        tracker.start()
        tracker.complete()
        tracker.set_connectivity(False)
        tracker.set_connectivity(False)
        assert seen == [SyncState.SYNCING, SyncState.COMPLETED, SyncState.OFFLINE]

    def test_snapshot(self, tracker):
        tracker.set_connectivity(False)
        assert tracker.snapshot() == {
            "state": "idle",
            "display_state": "offline",
            "connected": False,
            "last_error": None,
        }
