"""Tests for sync module."""

import time
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from org_mcp.org.workspace import Workspace
from org_mcp.sync import SyncManager


def wait_for(condition, timeout: float = 3.0, interval: float = 0.05) -> bool:
    """Poll condition until it returns True or the timeout passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(interval)
    return False


@pytest.fixture
def workspace():
    mock = MagicMock(spec=Workspace)
    mock.sync.return_value = (0, 0, 0)
    return mock


class TestSyncManager:
    @pytest.mark.parametrize("interval", [0, -1])
    def test_interval_must_be_positive(self, workspace, interval):
        with pytest.raises(ValueError, match="Sync interval must be positive"):
            SyncManager(workspace, interval)

    def test_start_runs_named_daemon_thread(self, workspace):
        manager = SyncManager(workspace, 1)
        manager.start()
        try:
            assert manager.running
            assert manager._thread.daemon is True
            assert manager._thread.name == "org-sync"
        finally:
            manager.stop()

    def test_start_twice_keeps_one_thread(self, workspace):
        manager = SyncManager(workspace, 1)
        manager.start()
        first = manager._thread
        manager.start()
        try:
            assert manager._thread is first
        finally:
            manager.stop()

    def test_stop(self, workspace):
        manager = SyncManager(workspace, 1)
        manager.start()
        manager.stop()
        assert not manager.running
        assert manager._thread is None

    def test_stop_when_not_running(self, workspace):
        SyncManager(workspace, 1).stop()

    def test_syncs_after_interval(self, workspace):
        workspace.sync.return_value = (1, 0, 0)
        manager = SyncManager(workspace, 1)
        manager.start()
        try:
            assert wait_for(lambda: workspace.sync.call_count >= 1), "sync() was not called"
        finally:
            manager.stop()

    def test_errors_do_not_stop_the_loop(self, workspace):
        workspace.sync.side_effect = [RuntimeError("disk gone"), (0, 0, 0), (0, 0, 0), (0, 0, 0)]
        manager = SyncManager(workspace, 1)
        manager.start()
        try:
            assert wait_for(lambda: workspace.sync.call_count >= 2, timeout=5.0)
            assert manager.running
        finally:
            manager.stop()

    def test_picks_up_new_files(self, tmp_path: Path):
        real = Workspace(tmp_path)
        real.reload()
        manager = SyncManager(real, 1)
        manager.start()
        try:
            (tmp_path / "new.org").write_text("* TODO Fresh\n", encoding="utf-8")
            assert wait_for(lambda: real.get("new.org") is not None, timeout=5.0)
        finally:
            manager.stop()
