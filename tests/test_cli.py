"""
Tests for CLI entry points.

These tests focus on:
- argument validation (a sub-command is required)
- configuration errors exit with 1 before any network access
- the read-only snapshot listing, using a temporary data directory
  (to avoid touching real snapshots during tests)
"""

import contextlib
import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lmswatch.cli import main
from lmswatch.model import Meeting, Subject
from lmswatch.storage import snapshot_store


def clean_env(**values: str) -> dict:
    env = {k: v for k, v in os.environ.items() if not k.startswith("LMSWATCH_")}
    env.update(values)
    return env


class TestCLI(unittest.TestCase):
    def run_cli(self, argv: list, env: dict) -> tuple:
        out = io.StringIO()
        with mock.patch.dict(os.environ, env, clear=True), contextlib.redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                main(argv)
        return ctx.exception.code, out.getvalue()

    def test_command_is_required(self) -> None:
        with contextlib.redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main([])
        self.assertNotEqual(ctx.exception.code, 0)

    def test_run_without_credentials_is_a_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            env = clean_env(LMSWATCH_DATA_DIR=d, LMSWATCH_LMS_URL="https://lms.example.ac.id")
            code, out = self.run_cli(["--env-file", str(Path(d) / "missing.env"), "run"], env)
        self.assertEqual(code, 1)
        self.assertIn("username", out)

    def test_unknown_log_level_exits_with_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            env = clean_env(LMSWATCH_DATA_DIR=d, LMSWATCH_LOG_LEVEL="VERBOSE")
            code, out = self.run_cli(["--env-file", str(Path(d) / "missing.env"), "subjects"], env)
        self.assertEqual(code, 1)
        self.assertIn("Configuration error", out)
        self.assertIn("LMSWATCH_LOG_LEVEL", out)

    def test_subjects_empty(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            code, out = self.run_cli(["--env-file", str(Path(d) / "missing.env"), "subjects"], clean_env(LMSWATCH_DATA_DIR=d))
        self.assertEqual(code, 0)
        self.assertIn("No subjects stored yet.", out)

    def test_subjects_lists_snapshots(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            store = snapshot_store(d)
            s = Subject(course_id="CS101", name="Algorithms", meetings=[Meeting(subject="Algorithms", title="Meeting 1")])
            store.put(s.key, s.to_json())
            store.put("subject_BROKEN", "{oops")

            code, out = self.run_cli(["--env-file", str(Path(d) / "missing.env"), "subjects"], clean_env(LMSWATCH_DATA_DIR=d))

        self.assertEqual(code, 0)
        self.assertIn("CS101 | Algorithms | 1 meetings, 0 lectures", out)
        self.assertIn("subject_BROKEN | (unreadable snapshot)", out)


if __name__ == "__main__":
    unittest.main()
