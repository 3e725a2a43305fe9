"""API routers for sessions, session details, and aggregate stats."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from sessiondash.models import SessionDetail, SessionStats, SessionSummary
from sessiondash.services.query import SessionQueryService

api_router = APIRouter(prefix="/api", tags=["sessions"])


def _get_query_service(request: Request) -> SessionQueryService:
    service = getattr(request.app.state, "query_service", None)
    if not service:
        raise HTTPException(status_code=503, detail="Session service not initialized")
    return service


# Handlers are async on purpose: the scanner runs inline on the event loop
# instead of in the threadpool used for sync endpoints.

@api_router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(request: Request):
    """List every session, most recently modified first."""
    return _get_query_service(request).list_sessions()


@api_router.get("/session/{project_raw}/{session_id}", response_model=SessionDetail)
async def get_session(request: Request, project_raw: str, session_id: str):
    """Full transcript and stats for one session."""
    detail = _get_query_service(request).get_session(project_raw, session_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return detail


@api_router.get("/stats", response_model=SessionStats)
async def get_stats(request: Request):
    return _get_query_service(request).get_stats()


@api_router.get("/health")
async def health(request: Request):
    """Health check endpoint."""
    watcher = getattr(request.app.state, "file_watcher", None)
    hub = getattr(request.app.state, "notification_hub", None)
    service = getattr(request.app.state, "query_service", None)
    return {
        "status": "ok",
        "watcher": "running" if watcher and watcher.is_running else "stopped",
        "observers": hub.observer_count if hub else 0,
        "claudeDir": str(service.scanner.root) if service else "",
    }
