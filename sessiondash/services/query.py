"""Read-side operations over session logs: list, detail, and stats."""
from __future__ import annotations

from collections import Counter
from typing import Optional

from sessiondash.models import SessionDetail, SessionStats, SessionSummary
from sessiondash.scanner import SessionScanner


class SessionQueryService:
    def __init__(self, scanner: SessionScanner):
        self.scanner = scanner

    def list_sessions(self) -> list[SessionSummary]:
        return self.scanner.list_all()

    def get_session(self, project_raw: str, session_id: str) -> Optional[SessionDetail]:
        return self.scanner.get_detail(project_raw, session_id)

    def get_stats(self) -> SessionStats:
        """Totals across every session plus per-tool and per-model session counts."""
        sessions = self.scanner.list_all()
        tool_usage: Counter[str] = Counter()
        model_usage: Counter[str] = Counter()
        for session in sessions:
            tool_usage.update(session.toolUses)
            if session.model:
                model_usage[session.model] += 1

        return SessionStats(
            totalSessions=len(sessions),
            totalTokens=sum(s.totalTokens for s in sessions),
            totalInputTokens=sum(s.totalInputTokens for s in sessions),
            totalOutputTokens=sum(s.totalOutputTokens for s in sessions),
            totalMessages=sum(s.messageCount for s in sessions),
            toolUsage=dict(tool_usage),
            modelUsage=dict(model_usage),
        )
