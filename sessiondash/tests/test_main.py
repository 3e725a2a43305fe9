import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

from sessiondash import config
from sessiondash import main


class AppLifespanTests(unittest.TestCase):
    def test_startup_creates_missing_root_and_starts_watcher(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        root = Path(tmpdir.name) / "projects"

        with patch.object(config, "CLAUDE_DIR", root):
            with TestClient(main.app) as client:
                self.assertTrue(root.is_dir())
                health = client.get("/api/health").json()
                sessions = client.get("/api/sessions").json()
                with client.websocket_connect("/ws") as ws:
                    init = ws.receive_json()

        self.assertEqual(health["status"], "ok")
        self.assertEqual(health["watcher"], "running")
        self.assertEqual(health["claudeDir"], str(root))
        self.assertEqual(sessions, [])
        self.assertEqual(init, {"type": "init", "sessions": [], "claudeDir": str(root)})
        self.assertFalse(main.app.state.file_watcher.is_running)


if __name__ == "__main__":
    unittest.main()
