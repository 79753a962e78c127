"""
Unit tests for settings loading from the environment and .env files.
"""

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lmswatch.config import load_settings
from lmswatch.errors import ValidationError


def clean_env(**values: str) -> dict:
    env = {k: v for k, v in os.environ.items() if not k.startswith("LMSWATCH_")}
    env.update(values)
    return env


class TestSettings(unittest.TestCase):
    def test_defaults_derived_from_lms_url(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            env = clean_env(LMSWATCH_LMS_URL="https://lms.example.ac.id/")
            with mock.patch.dict(os.environ, env, clear=True):
                s = load_settings(Path(d) / "missing.env")

        self.assertEqual(s.lms_url, "https://lms.example.ac.id")
        self.assertEqual(s.login_url, "https://lms.example.ac.id/login/index.php")
        self.assertEqual(s.subjects_url, "https://lms.example.ac.id/my/courses.php")
        self.assertIsNone(s.discord_webhook_url)
        self.assertTrue(s.headless)
        self.assertEqual(s.log_level, "INFO")

    def test_env_file_is_loaded(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            env_file = Path(d) / ".env"
            env_file.write_text(
                "LMSWATCH_USERNAME=2015051001\nLMSWATCH_HEADLESS=false\nLMSWATCH_DATA_DIR=/tmp/lmswatch-test\n",
                encoding="utf-8",
            )
            with mock.patch.dict(os.environ, clean_env(), clear=True):
                s = load_settings(env_file)

        self.assertEqual(s.username, "2015051001")
        self.assertFalse(s.headless)
        self.assertEqual(s.data_dir, Path("/tmp/lmswatch-test"))

    def test_environment_wins_over_env_file(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            env_file = Path(d) / ".env"
            env_file.write_text("LMSWATCH_USERNAME=from-file\n", encoding="utf-8")
            with mock.patch.dict(os.environ, clean_env(LMSWATCH_USERNAME="from-env"), clear=True):
                s = load_settings(env_file)

        self.assertEqual(s.username, "from-env")

    def test_unknown_log_level_is_a_config_error(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with mock.patch.dict(os.environ, clean_env(LMSWATCH_LOG_LEVEL="verbose"), clear=True):
                with self.assertRaises(ValidationError) as ctx:
                    load_settings(Path(d) / "missing.env")
        self.assertEqual(ctx.exception.option, "LMSWATCH_LOG_LEVEL")
        self.assertIn("VERBOSE", str(ctx.exception))

    def test_log_level_is_normalized(self) -> None:
        with tempfile.TemporaryDirectory() as d:
            with mock.patch.dict(os.environ, clean_env(LMSWATCH_LOG_LEVEL="debug"), clear=True):
                s = load_settings(Path(d) / "missing.env")
        self.assertEqual(s.log_level, "DEBUG")


if __name__ == "__main__":
    unittest.main()
