"""Registry of live dashboard observers and event fan-out."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable

from fastapi.websockets import WebSocketState

from sessiondash.models import InitEvent, LiveEvent, SessionSummary
from sessiondash.observability import record_broadcast

logger = logging.getLogger("sessiondash.notifications")


def _is_open(observer: Any) -> bool:
    return (
        getattr(observer, "client_state", None) == WebSocketState.CONNECTED
        and getattr(observer, "application_state", None) == WebSocketState.CONNECTED
    )


class NotificationHub:
    """Tracks connected observers and pushes serialized events to them.

    Delivery is fire-and-forget: an observer whose socket is not open is
    skipped and nothing is queued for it. A client that missed events
    recovers by asking for a refresh.
    """

    def __init__(self, snapshot: Callable[[], list[SessionSummary]], root: Path):
        self._snapshot = snapshot
        self.root = root
        self._observers: set[Any] = set()

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def connect(self, observer: Any) -> None:
        """Register an accepted observer and send it the current sessions."""
        self._observers.add(observer)
        logger.info(f"Observer connected ({self.observer_count} total)")
        await self.send_init(observer)

    def disconnect(self, observer: Any) -> None:
        if observer in self._observers:
            self._observers.discard(observer)
            logger.info(f"Observer disconnected ({self.observer_count} total)")

    def init_event(self) -> InitEvent:
        return InitEvent(sessions=self._snapshot(), claudeDir=str(self.root))

    async def send_init(self, observer: Any) -> bool:
        return await self.send(observer, self.init_event())

    async def send(self, observer: Any, event: LiveEvent) -> bool:
        return await self._deliver(observer, event.model_dump_json())

    async def _deliver(self, observer: Any, message: str) -> bool:
        if not _is_open(observer):
            return False
        try:
            await observer.send_text(message)
        except Exception as e:
            logger.debug(f"Dropping event for observer: {e}")
            return False
        return True

    async def broadcast(self, event: LiveEvent) -> int:
        """Send one event to every open observer; returns deliveries made."""
        message = event.model_dump_json()
        observers = list(self._observers)
        if not observers:
            return 0
        results = await asyncio.gather(*(self._deliver(observer, message) for observer in observers))
        delivered = sum(1 for ok in results if ok)
        record_broadcast(event.type, delivered=delivered, skipped=len(observers) - delivered)
        return delivered
