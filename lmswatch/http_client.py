"""
Direct HTTP access to the LMS (no browser).

Protocol:
1. collect_cookies()        -> log in, session cookies kept on the requests.Session
2. fetch_subjects_content() -> HTML of the course listing

Calling 2 before 1 raises NotInitializedError. HTTP failures are raised
as requests exceptions; nothing is retried here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from lmswatch.errors import NotInitializedError, ValidationError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/124.0 Safari/537.36"


@dataclass(frozen=True)
class ClientOptions:
    login_url: str
    subjects_url: str
    username: str
    password: str
    timeout: float = 30

    def __post_init__(self) -> None:
        for name in ("login_url", "subjects_url", "username", "password"):
            if not getattr(self, name):
                raise ValidationError(name)


class PortalClient:
    def __init__(self, options: ClientOptions, session: Optional[requests.Session] = None) -> None:
        self.options = options
        self.session = session if session is not None else requests.Session()
        self.session.headers.setdefault("User-Agent", USER_AGENT)
        self._has_cookies = False

    def collect_cookies(self) -> None:
        """
        Establish (or refresh) the session cookies.

        The login page is loaded first so the server can set its
        pre-login cookies, then the credentials are posted.
        """
        logger.info("Collecting cookies from %s", self.options.login_url)

        resp = self.session.get(self.options.login_url, timeout=self.options.timeout)
        resp.raise_for_status()

        payload = {"username": self.options.username, "password": self.options.password}
        resp = self.session.post(self.options.login_url, data=payload, timeout=self.options.timeout)
        resp.raise_for_status()

        self._has_cookies = True

    def fetch_subjects_content(self) -> str:
        if not self._has_cookies:
            raise NotInitializedError("cookies")

        resp = self.session.get(self.options.subjects_url, timeout=self.options.timeout)
        resp.raise_for_status()
        return resp.text
