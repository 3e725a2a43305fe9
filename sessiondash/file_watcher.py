"""File watcher service using watchfiles.

Monitors the sessions root for new and appended session logs and pushes
live events to connected dashboard clients.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, Optional

from watchfiles import Change, awatch

from sessiondash.date_utils import utc_now_iso
from sessiondash.models import LiveEvent, RefreshEvent, SessionUpdateEvent
from sessiondash.parsers.jsonl import read_session_file
from sessiondash.parsers.sessions import summarize_records
from sessiondash.scanner import SessionScanner

logger = logging.getLogger("sessiondash.watcher")

EventSink = Callable[[LiveEvent], Awaitable[object]]


class FileWatcher:
    """Background watcher that turns file changes into live events.

    Uses `watchfiles` (Rust-accelerated) for efficient watching. Only changes
    that happen after ``start()`` are reported.
    """

    def __init__(
        self,
        scanner: SessionScanner,
        emit: EventSink,
        depth: int = 2,
        debounce_ms: int = 300,
    ):
        self.scanner = scanner
        self.emit = emit
        self.depth = depth
        self.debounce_ms = debounce_ms
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._running = False

    @property
    def root(self) -> Path:
        return self.scanner.root

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start watching the sessions root in a background task."""
        if self._running:
            logger.warning("File watcher already running")
            return

        if not self.root.exists():
            logger.warning(f"Sessions root not found, creating it: {self.root}")
            try:
                self.root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error(f"Could not create sessions root {self.root}: {e}")
                return

        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop())
        logger.info(f"File watcher started for {self.root}")

    async def stop(self) -> None:
        """Stop the file watcher."""
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("File watcher stopped")

    def _relative_parts(self, path: Path) -> Optional[tuple[str, ...]]:
        try:
            return path.relative_to(self.root).parts
        except ValueError:
            pass
        # watchfiles reports resolved paths when the root is a symlink.
        try:
            return path.resolve(strict=False).relative_to(self.root.resolve(strict=False)).parts
        except ValueError:
            return None

    def _within_depth(self, change: Change, path_str: str) -> bool:
        parts = self._relative_parts(Path(path_str))
        return parts is not None and len(parts) <= self.depth

    def _session_path(self, path: Path) -> bool:
        """True for ``<root>/<project>/<session><suffix>`` paths."""
        parts = self._relative_parts(path)
        return parts is not None and len(parts) == 2 and self.scanner.is_session_file(path)

    async def _watch_loop(self) -> None:
        """Main watching loop."""
        logger.info(f"Watching {self.root} (depth {self.depth})")
        try:
            async for changes in awatch(
                self.root,
                watch_filter=self._within_depth,
                debounce=self.debounce_ms,
                stop_event=self._stop_event,
                recursive=True,
            ):
                if not self._running:
                    break
                try:
                    await self.process_changes(changes)
                except Exception as e:
                    logger.error(f"Error handling file changes: {e}")
        except asyncio.CancelledError:
            logger.info("File watcher task cancelled")
        except Exception as e:
            logger.error(f"File watcher error: {e}")
        finally:
            self._running = False

    def build_update_event(self, path: Path) -> SessionUpdateEvent:
        """Summarize one modified session file into a live update event."""
        records = read_session_file(path)
        summary = summarize_records(records, path.parent.name, path.name, self.scanner.suffix)
        summary = summary.model_copy(
            update={"filePath": str(path), "lastModified": utc_now_iso()}
        )
        return SessionUpdateEvent(
            session=summary,
            latestEntry=records[-1] if records else None,
        )

    async def process_changes(self, changes: set[tuple[Change, str]]) -> int:
        """Emit events for one batch of raw watchfiles changes.

        New session files produce a single refresh event for the batch;
        modified ones produce one update event each. Returns the number of
        events emitted.
        """
        added: set[Path] = set()
        modified: set[Path] = set()
        for change_type, path_str in changes:
            path = Path(path_str)
            if not self._session_path(path):
                continue
            if change_type == Change.added:
                added.add(path)
            elif change_type == Change.modified:
                modified.add(path)

        emitted = 0
        if added:
            logger.info(f"New session file(s): {[str(p) for p in sorted(added)]}")
            await self.emit(RefreshEvent())
            emitted += 1

        for path in sorted(modified - added):
            logger.info(f"Session file changed: {path}")
            try:
                event = self.build_update_event(path)
            except Exception as e:
                logger.error(f"Failed to summarize changed session file {path}: {e}")
                continue
            await self.emit(event)
            emitted += 1
        return emitted
