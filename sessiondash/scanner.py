"""Discover session log files under the projects root and summarize them."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

from sessiondash.date_utils import epoch_to_iso
from sessiondash.models import SessionDetail, SessionEntry, SessionSummary
from sessiondash.observability import record_ingestion, start_span
from sessiondash.parsers.formatting import format_entry_content
from sessiondash.parsers.jsonl import read_session_file
from sessiondash.parsers.sessions import decode_project_name, summarize_records

logger = logging.getLogger("sessiondash.scanner")


def _is_under(path: Path, root: Path) -> bool:
    try:
        path.resolve(strict=False).relative_to(root.resolve(strict=False))
        return True
    except ValueError:
        return False


class SessionScanner:
    """Builds SessionSummary and SessionDetail views straight from disk.

    Nothing is cached: every call re-reads the files it needs, so views built
    for a watcher event and for a request can never disagree.
    """

    def __init__(self, root: Path, suffix: str = ".jsonl"):
        self.root = Path(root)
        self.suffix = suffix

    def is_session_file(self, path: Path) -> bool:
        return path.name.endswith(self.suffix) and len(path.name) > len(self.suffix)

    def summarize_file(self, path: Path) -> SessionSummary:
        """Decode and aggregate one session file, stamped with its stat data.

        Raises OSError if the file cannot be stat'ed.
        """
        started = time.perf_counter()
        project_raw = path.parent.name
        stat = path.stat()
        with start_span("session.summarize", {"project": project_raw, "file": path.name}):
            records = read_session_file(path)
            summary = summarize_records(records, project_raw, path.name, self.suffix)
        record_ingestion(
            "session",
            "success",
            (time.perf_counter() - started) * 1000,
            project=project_raw,
        )
        return summary.model_copy(
            update={
                "filePath": str(path),
                "lastModified": epoch_to_iso(stat.st_mtime),
                "fileSize": stat.st_size,
            }
        )

    def list_all(self) -> list[SessionSummary]:
        """Summarize every session file of every project, newest first."""
        if not self.root.is_dir():
            logger.info(f"Sessions root not found: {self.root}")
            return []

        summaries: list[SessionSummary] = []
        try:
            project_dirs = sorted(p for p in self.root.iterdir() if p.is_dir())
        except OSError as e:
            logger.error(f"Failed to list sessions root {self.root}: {e}")
            return []

        for project_dir in project_dirs:
            try:
                files = sorted(p for p in project_dir.iterdir() if self.is_session_file(p))
            except OSError as e:
                logger.warning(f"Skipping unreadable project directory {project_dir}: {e}")
                continue

            for path in files:
                try:
                    summary = self.summarize_file(path)
                except OSError as e:
                    # Removed between listing and stat.
                    logger.warning(f"Skipping session file {path}: {e}")
                    continue
                summaries.append(summary)

        # lastModified is fixed-width ISO-8601 UTC, so it sorts chronologically.
        summaries.sort(key=lambda s: s.lastModified, reverse=True)
        return summaries

    def session_path(self, project_raw: str, session_id: str) -> Optional[Path]:
        path = self.root / project_raw / f"{session_id}{self.suffix}"
        if not _is_under(path, self.root):
            return None
        return path

    def get_detail(self, project_raw: str, session_id: str) -> Optional[SessionDetail]:
        """Return the full transcript for one session, or None if absent."""
        path = self.session_path(project_raw, session_id)
        if path is None or not path.is_file():
            return None

        records = read_session_file(path)
        messages = [
            SessionEntry(
                index=index,
                type=str(record.get("type") or "unknown"),
                timestamp=record.get("timestamp") or record.get("ts"),
                content=format_entry_content(record),
                raw=record,
            )
            for index, record in enumerate(records)
        ]
        stats = summarize_records(records, project_raw, path.name, self.suffix)
        try:
            stat = path.stat()
        except OSError:
            stats = stats.model_copy(update={"filePath": str(path)})
        else:
            stats = stats.model_copy(
                update={
                    "filePath": str(path),
                    "lastModified": epoch_to_iso(stat.st_mtime),
                    "fileSize": stat.st_size,
                }
            )

        return SessionDetail(
            sessionId=session_id,
            project=decode_project_name(project_raw),
            projectRaw=project_raw,
            messages=messages,
            stats=stats,
        )
