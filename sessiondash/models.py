"""Pydantic models matching the dashboard frontend wire format."""
from __future__ import annotations
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Literal, Optional, Union

# ── Session-related models ──────────────────────────────────────────

class SessionSummary(BaseModel):
    """Aggregated statistics for one session log file.

    Always rebuilt from the file; use ``model_copy(update=...)`` to attach
    file metadata rather than mutating an instance.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    project: str = ""
    projectRaw: str = ""
    summary: str = ""
    messageCount: int = 0
    totalInputTokens: int = 0
    totalOutputTokens: int = 0
    totalTokens: int = 0
    toolUses: list[str] = Field(default_factory=list)
    model: str = ""
    entryCount: int = 0
    filePath: str = ""
    lastModified: str = ""
    fileSize: Optional[int] = None


class ToolResultItem(BaseModel):
    tool_use_id: Optional[str] = None
    content: str = ""


class ToolResultsContent(BaseModel):
    type: Literal["tool_results"] = "tool_results"
    results: list[ToolResultItem] = Field(default_factory=list)


EntryContent = Union[str, ToolResultsContent]


class SessionEntry(BaseModel):
    index: int
    type: str  # raw record type, "unknown" when absent
    timestamp: Optional[Any] = None
    content: EntryContent = ""
    raw: dict[str, Any] = Field(default_factory=dict)


class SessionDetail(BaseModel):
    sessionId: str
    project: str = ""
    projectRaw: str = ""
    messages: list[SessionEntry] = Field(default_factory=list)
    stats: SessionSummary


# ── Analytics models ───────────────────────────────────────────────

class SessionStats(BaseModel):
    totalSessions: int = 0
    totalTokens: int = 0
    totalInputTokens: int = 0
    totalOutputTokens: int = 0
    totalMessages: int = 0
    toolUsage: dict[str, int] = Field(default_factory=dict)
    modelUsage: dict[str, int] = Field(default_factory=dict)


# ── Live channel events ────────────────────────────────────────────

class InitEvent(BaseModel):
    type: Literal["init"] = "init"
    sessions: list[SessionSummary] = Field(default_factory=list)
    claudeDir: str = ""


class SessionUpdateEvent(BaseModel):
    type: Literal["sessionUpdate"] = "sessionUpdate"
    session: SessionSummary
    latestEntry: Optional[dict[str, Any]] = None


class RefreshEvent(BaseModel):
    type: Literal["refresh"] = "refresh"


class SessionDetailsEvent(BaseModel):
    type: Literal["sessionDetails"] = "sessionDetails"
    data: Optional[SessionDetail] = None


LiveEvent = Union[InitEvent, SessionUpdateEvent, RefreshEvent, SessionDetailsEvent]
