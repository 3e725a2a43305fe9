"""Session dashboard backend configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


# Project root (one level up from sessiondash/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Session data. CLAUDE_DIR is the variable the assistant's own tooling uses.
CLAUDE_DIR = Path(
    os.getenv("CLAUDE_DIR", str(Path.home() / ".claude" / "projects"))
).expanduser()
SESSION_SUFFIX = os.getenv("SESSIONDASH_SESSION_SUFFIX", ".jsonl")

# Watcher tuning
WATCH_DEPTH = _env_int("SESSIONDASH_WATCH_DEPTH", 2)
WATCH_DEBOUNCE_MS = _env_int("SESSIONDASH_WATCH_DEBOUNCE_MS", 300)

# Frontend bundle served at / when present
FRONTEND_DIR = Path(os.getenv("SESSIONDASH_FRONTEND_DIR", str(PROJECT_ROOT / "frontend")))

# Logging
LOG_LEVEL = os.getenv("SESSIONDASH_LOG_LEVEL", "INFO").upper()

# Observability
OTEL_ENABLED = _env_bool("SESSIONDASH_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("SESSIONDASH_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("SESSIONDASH_OTEL_SERVICE_NAME", "sessiondash-backend")
PROM_PORT = _env_int("SESSIONDASH_PROM_PORT", 9464)

# Server settings
HOST = os.getenv("SESSIONDASH_HOST", "0.0.0.0")
PORT = _env_int("SESSIONDASH_PORT", _env_int("PORT", 3456))
