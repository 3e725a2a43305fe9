import json
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.websockets import WebSocketState

from sessiondash import notifications
from sessiondash.models import RefreshEvent, SessionSummary, SessionUpdateEvent
from sessiondash.notifications import NotificationHub


class _FakeObserver:
    def __init__(self, open_: bool = True, fail: bool = False) -> None:
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state
        self.fail = fail
        self.sent: list[str] = []

    async def send_text(self, message: str) -> None:
        if self.fail:
            raise RuntimeError("socket went away")
        self.sent.append(message)


def _summary(session_id: str) -> SessionSummary:
    return SessionSummary(id=session_id, project="/p", projectRaw="-p", totalTokens=0)


class NotificationHubTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.snapshot_calls = 0

        def snapshot() -> list[SessionSummary]:
            self.snapshot_calls += 1
            return [_summary("s1"), _summary("s2")]

        self.hub = NotificationHub(snapshot, Path("/data/projects"))

    async def test_connect_registers_and_pushes_init(self) -> None:
        observer = _FakeObserver()

        await self.hub.connect(observer)

        self.assertEqual(self.hub.observer_count, 1)
        [message] = observer.sent
        payload = json.loads(message)
        self.assertEqual(payload["type"], "init")
        self.assertEqual(payload["claudeDir"], "/data/projects")
        self.assertEqual([s["id"] for s in payload["sessions"]], ["s1", "s2"])
        self.assertEqual(self.snapshot_calls, 1)

    async def test_disconnect_is_idempotent(self) -> None:
        observer = _FakeObserver()
        await self.hub.connect(observer)

        self.hub.disconnect(observer)
        self.hub.disconnect(observer)

        self.assertEqual(self.hub.observer_count, 0)

    async def test_broadcast_skips_closed_and_failing_observers(self) -> None:
        healthy = _FakeObserver()
        closed = _FakeObserver(open_=False)
        failing = _FakeObserver(fail=True)
        for observer in (healthy, closed, failing):
            await self.hub.connect(observer)
        healthy.sent.clear()

        with patch.object(notifications, "record_broadcast") as record:
            delivered = await self.hub.broadcast(SessionUpdateEvent(session=_summary("s1")))

        self.assertEqual(delivered, 1)
        [message] = healthy.sent
        payload = json.loads(message)
        self.assertEqual(payload["type"], "sessionUpdate")
        self.assertEqual(payload["session"]["id"], "s1")
        self.assertIsNone(payload["latestEntry"])
        self.assertEqual(closed.sent, [])
        record.assert_called_once_with("sessionUpdate", delivered=1, skipped=2)
        # Skipped observers stay registered until they disconnect.
        self.assertEqual(self.hub.observer_count, 3)

    async def test_broadcast_with_no_observers_is_a_no_op(self) -> None:
        self.assertEqual(await self.hub.broadcast(RefreshEvent()), 0)

    async def test_broadcast_serializes_once_for_all_observers(self) -> None:
        first, second = _FakeObserver(), _FakeObserver()
        await self.hub.connect(first)
        await self.hub.connect(second)
        first.sent.clear()
        second.sent.clear()

        await self.hub.broadcast(RefreshEvent())

        self.assertEqual(first.sent, ['{"type":"refresh"}'])
        self.assertIs(first.sent[0], second.sent[0])


if __name__ == "__main__":
    unittest.main()
