"""
Runtime configuration.

Values come from the process environment; an optional .env file is
loaded first (python-dotenv) without overriding variables that are
already set. Only the options a command actually needs are validated,
by the constructors of the session and the HTTP client.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from lmswatch.errors import ValidationError
from lmswatch.storage import default_data_dir

ENV_PREFIX = "LMSWATCH_"


def _env(name: str, default: str = "") -> str:
    return os.getenv(ENV_PREFIX + name, default).strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name)
    if not raw:
        return default
    return raw.lower() in ("1", "true", "yes", "on")


def _log_level() -> str:
    level = _env("LOG_LEVEL", "INFO").upper() or "INFO"
    if not isinstance(logging.getLevelName(level), int):
        raise ValidationError(ENV_PREFIX + "LOG_LEVEL", f"has unknown log level {level!r}")
    return level


@dataclass(frozen=True)
class Settings:
    portal_url: str
    lms_url: str
    username: str
    password: str
    login_url: str
    subjects_url: str
    discord_webhook_url: Optional[str]
    discord_user_id: Optional[str]
    data_dir: Path
    log_level: str
    headless: bool


def load_settings(env_file: str | Path | None = None) -> Settings:
    load_dotenv(dotenv_path=env_file, override=False)

    lms_url = _env("LMS_URL").rstrip("/")
    data_dir = _env("DATA_DIR")

    return Settings(
        portal_url=_env("PORTAL_URL"),
        lms_url=lms_url,
        username=_env("USERNAME"),
        password=_env("PASSWORD"),
        login_url=_env("LOGIN_URL") or (f"{lms_url}/login/index.php" if lms_url else ""),
        subjects_url=_env("SUBJECTS_URL") or (f"{lms_url}/my/courses.php" if lms_url else ""),
        discord_webhook_url=_env("DISCORD_WEBHOOK_URL") or None,
        discord_user_id=_env("DISCORD_USER_ID") or None,
        data_dir=Path(data_dir) if data_dir else default_data_dir(),
        log_level=_log_level(),
        headless=_env_bool("HEADLESS", True),
    )
