import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from sessiondash.parsers import jsonl
from sessiondash.parsers.jsonl import decode_records, read_session_file


class DecodeRecordsTests(unittest.TestCase):
    def test_malformed_lines_are_dropped_and_order_is_kept(self) -> None:
        text = "\n".join(
            [
                json.dumps({"type": "user", "n": 1}),
                "{not json",
                json.dumps({"type": "assistant", "n": 2}),
                "",
                "   ",
                '{"type": "user", "n": 3',
                json.dumps({"type": "summary", "n": 4}),
            ]
        )

        records, dropped = decode_records(text)

        self.assertEqual([r["n"] for r in records], [1, 2, 4])
        self.assertEqual(dropped, 2)

    def test_non_object_values_are_not_records(self) -> None:
        records, dropped = decode_records('42\n["a"]\nnull\n{"type": "user"}\n')
        self.assertEqual(records, [{"type": "user"}])
        self.assertEqual(dropped, 3)

    def test_crlf_and_partial_trailing_line(self) -> None:
        text = '{"type": "user"}\r\n{"type": "assistant"}\r\n{"type": "assis'
        records, dropped = decode_records(text)
        self.assertEqual([r["type"] for r in records], ["user", "assistant"])
        self.assertEqual(dropped, 1)


class ReadSessionFileTests(unittest.TestCase):
    def setUp(self) -> None:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        self.root = Path(tmpdir.name)

    def test_missing_file_yields_empty_list(self) -> None:
        self.assertEqual(read_session_file(self.root / "nope.jsonl"), [])

    def test_reads_records_from_disk(self) -> None:
        path = self.root / "proj" / "s1.jsonl"
        path.parent.mkdir()
        path.write_text('{"type": "user"}\ngarbage\n{"type": "assistant"}\n', encoding="utf-8")

        records = read_session_file(path)

        self.assertEqual([r["type"] for r in records], ["user", "assistant"])

    def test_invalid_utf8_does_not_abort_the_file(self) -> None:
        path = self.root / "s1.jsonl"
        path.write_bytes(b'{"type": "user"}\n\xff\xfe\n{"type": "assistant"}\n')
        self.assertEqual(len(read_session_file(path)), 2)

    def test_read_failure_yields_empty_list(self) -> None:
        path = self.root / "s1.jsonl"
        path.write_text('{"type": "user"}\n', encoding="utf-8")

        with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
            self.assertEqual(read_session_file(path), [])

    def test_dropped_lines_are_counted(self) -> None:
        path = self.root / "proj" / "s1.jsonl"
        path.parent.mkdir()
        path.write_text('bad\n{"type": "user"}\nworse\n', encoding="utf-8")

        with patch.object(jsonl, "record_parser_failure") as failure:
            read_session_file(path)

        failure.assert_called_once_with("jsonl_line", project="proj", count=2)


if __name__ == "__main__":
    unittest.main()
