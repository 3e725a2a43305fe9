"""Session dashboard FastAPI backend: main application entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from sessiondash import config
from sessiondash.file_watcher import FileWatcher
from sessiondash.notifications import NotificationHub
from sessiondash.observability import initialize as initialize_observability, shutdown as shutdown_observability
from sessiondash.routers.api import api_router
from sessiondash.routers.live import live_router
from sessiondash.scanner import SessionScanner
from sessiondash.services.query import SessionQueryService

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL, logging.INFO))
logger = logging.getLogger("sessiondash")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("Session dashboard backend starting up")
    initialize_observability(app)

    scanner = SessionScanner(config.CLAUDE_DIR, config.SESSION_SUFFIX)
    query_service = SessionQueryService(scanner)
    hub = NotificationHub(query_service.list_sessions, scanner.root)
    watcher = FileWatcher(
        scanner,
        hub.broadcast,
        depth=config.WATCH_DEPTH,
        debounce_ms=config.WATCH_DEBOUNCE_MS,
    )

    app.state.query_service = query_service
    app.state.notification_hub = hub
    app.state.file_watcher = watcher

    # Creates the sessions root when it does not exist yet.
    await watcher.start()
    logger.info(f"Serving sessions from {scanner.root}")

    yield

    logger.info("Session dashboard backend shutting down")
    await watcher.stop()
    shutdown_observability(app)


app = FastAPI(
    title="Session Dashboard API",
    description="Live analytics for AI coding assistant session logs",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(api_router)
app.include_router(live_router)

# Serve the prebuilt dashboard; registered last so API and WebSocket routes win.
if config.FRONTEND_DIR.is_dir():
    app.mount("/", StaticFiles(directory=str(config.FRONTEND_DIR), html=True), name="frontend")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)
