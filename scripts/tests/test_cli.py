"""Tests for the command-line entry point."""

import io
import json
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from scripts.onset_analyzer.__main__ import main

SAMPLE = str(Path(__file__).parent / "fixtures" / "sample_piece.json")


class TestCli(unittest.TestCase):
    def _run(self, argv):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(argv)
        return code, out.getvalue()

    def test_report_json(self):
        code, output = self._run(["report", SAMPLE, "--json"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(output)["slices"]["count"], 2)

    def test_slices_text(self):
        code, output = self._run(["slices", SAMPLE])
        self.assertEqual(code, 0)
        self.assertEqual(len(output.strip().splitlines()), 2)

    def test_slices_json_to_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            target = Path(tmp) / "slices.json"
            code, _ = self._run(["slices", SAMPLE, "--json", "-o", str(target)])
            rows = json.loads(target.read_text())
        self.assertEqual(code, 0)
        self.assertEqual(rows[0]["pitches"], [52, 55, 60])

    def test_missing_file(self):
        err = io.StringIO()
        with redirect_stderr(err):
            code, _ = self._run(["report", "/nonexistent/piece.json"])
        self.assertEqual(code, 1)
        self.assertIn("Error", err.getvalue())

    def test_no_command(self):
        code, output = self._run([])
        self.assertEqual(code, 0)
        self.assertIn("usage", output)


if __name__ == "__main__":
    unittest.main()
