"""Background sync manager for the parsed-document workspace.

Runs a daemon thread that periodically calls workspace.sync() so edits made
to org files outside the server show up in tool results.
"""

import logging
import threading

from org_mcp.org.workspace import Workspace

logger = logging.getLogger(__name__)


class SyncManager:
    """Manages periodic background sync of the workspace with the filesystem.

    The sync thread is a daemon, so it terminates when the main process exits.
    """

    def __init__(self, workspace: Workspace, interval: int):
        """Initialize the sync manager.

        Args:
            workspace: The workspace to keep in sync.
            interval: Sync interval in seconds. Must be > 0.
        """
        if interval <= 0:
            raise ValueError(f"Sync interval must be positive, got {interval}")

        self._workspace = workspace
        self._interval = interval
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the background sync thread."""
        if self.running:
            logger.warning("Sync thread already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._sync_loop,
            name="org-sync",
            daemon=True,
        )
        self._thread.start()
        logger.info("Sync manager started (interval: %ds)", self._interval)

    def stop(self) -> None:
        """Stop the background sync thread, waiting up to one interval."""
        if not self.running:
            return

        self._stop_event.set()
        self._thread.join(timeout=self._interval + 1)
        if self._thread.is_alive():
            logger.warning("Sync thread did not stop cleanly")
        else:
            logger.info("Sync manager stopped")
        self._thread = None

    def _sync_loop(self) -> None:
        logger.debug("Sync loop started")

        while not self._stop_event.is_set():
            # Sleep first, then sync (allows immediate shutdown on start)
            if self._stop_event.wait(timeout=self._interval):
                break

            try:
                added, updated, deleted = self._workspace.sync()
                if added or updated or deleted:
                    logger.info(
                        "Auto-sync: %d added, %d updated, %d deleted",
                        added,
                        updated,
                        deleted,
                    )
                else:
                    logger.debug("Auto-sync: no changes detected")
            except Exception:
                # Keep the thread alive; the next interval retries
                logger.exception("Error during auto-sync")

        logger.debug("Sync loop stopped")
