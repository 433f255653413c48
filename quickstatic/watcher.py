"""File watching for quickstatic's serve mode.

A WatchSession subscribes to recursive change notifications for the project
root and turns them into full rebuilds. Events are debounced: after the first
event of a burst the session keeps collecting until the queue has been quiet
for the debounce window, then triggers exactly one rebuild for the batch.
Events inside the output directory are dropped before they are queued, so a
rebuild never re-triggers itself.

Key classes:
- WatchSession: Owns the observer, the event queue and the rebuild loop.
- _ChangeHandler: watchdog handler feeding events into a session.
"""

from __future__ import annotations

import logging
import queue
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .errors import BuildError
from .scanner import is_inside

logger = logging.getLogger(__name__)

DEBOUNCE_SECONDS = 0.05

# Reads (opened, closed_no_write) are not changes; the build itself opens every source.
CHANGE_EVENT_TYPES = frozenset({"created", "modified", "deleted", "moved"})


class WatchSession:
    """Debounced watch-and-rebuild loop with an explicit lifecycle.

    Rebuilds run on the thread calling ``run`` (or ``run_once``) and are
    never cancelled; events arriving meanwhile wait in the queue and form the
    next batch.

    Attributes:
        project_root: Directory watched recursively.
        output_dir: Directory whose events are ignored.
        debounce: Quiet period, in seconds, that closes a batch.
        rebuilds: Number of rebuilds triggered so far.
        failures: Number of those rebuilds that failed.
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        rebuild: Callable[[], Any],
        debounce: float = DEBOUNCE_SECONDS,
    ):
        self.project_root = project_root
        self.output_dir = output_dir
        self.debounce = debounce
        self.rebuilds = 0
        self.failures = 0
        self._rebuild = rebuild
        self._events: queue.Queue[str] = queue.Queue()
        self._stopped = threading.Event()
        self._observer: Observer | None = None

    def start(self) -> None:
        """Start receiving file-system events."""
        observer = Observer()
        observer.schedule(_ChangeHandler(self), str(self.project_root), recursive=True)
        observer.start()
        self._observer = observer
        self._stopped.clear()
        logger.info("Watching %s for changes", self.project_root)

    def stop(self) -> None:
        """Stop the observer and make ``run`` return."""
        self._stopped.set()
        if self._observer:
            self._observer.stop()
            self._observer.join()
            self._observer = None

    @property
    def running(self) -> bool:
        return not self._stopped.is_set()

    def notify(self, path: str) -> bool:
        """Queue a changed path unless it lies inside the output directory.

        Returns:
            True if the event was queued.
        """
        if is_inside(Path(path), self.output_dir):
            return False
        self._events.put(path)
        return True

    def next_batch(self, timeout: float | None = None) -> list[str] | None:
        """Block for the next debounced batch of changed paths.

        Args:
            timeout: How long to wait for the first event; None waits forever.

        Returns:
            The batch, or None if no event arrived within ``timeout``.
        """
        try:
            batch = [self._events.get(timeout=timeout)]
        except queue.Empty:
            return None
        while True:
            try:
                batch.append(self._events.get(timeout=self.debounce))
            except queue.Empty:
                return batch

    def run_once(self, timeout: float | None = None) -> bool:
        """Wait for one batch and rebuild for it.

        Returns:
            True if a rebuild was triggered.
        """
        batch = self.next_batch(timeout)
        if batch is None:
            return False
        logger.info("Change detected (%d events); rebuilding...", len(batch))
        logger.debug("Changed paths: %s", sorted(set(batch)))
        self.rebuild_now()
        return True

    def rebuild_now(self) -> bool:
        """Run a full rebuild, reporting rather than raising failures.

        Returns:
            True if the rebuild succeeded.
        """
        self.rebuilds += 1
        try:
            self._rebuild()
        except BuildError as exc:
            self.failures += 1
            logger.error("Build failed: %s", exc)
            if getattr(exc, "snippet", ""):
                logger.error("%s", exc.snippet)
            return False
        except Exception:
            self.failures += 1
            logger.exception("Build crashed")
            return False
        return True

    def run(self, poll: float = 0.5) -> None:
        """Rebuild for every batch until ``stop`` is called."""
        while self.running:
            self.run_once(timeout=poll)


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, session: WatchSession):
        super().__init__()
        self.session = session

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in CHANGE_EVENT_TYPES:
            return
        self.session.notify(event.src_path)
        dest = getattr(event, "dest_path", "")
        if dest:
            self.session.notify(dest)
