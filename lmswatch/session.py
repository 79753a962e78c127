"""
Scripted browser session against the academic portal.

The session walks through a fixed sequence of states:

    UNINITIALIZED -> READY -> AUTHENTICATED -> BRIDGED
                  -> ENUMERATED -> COLLECTED -> CLOSED

Every step checks that the previous one has been reached and raises
NotInitializedError otherwise. There are no retries: the first failing
step ends the run and its exception reaches the caller unchanged.

All mutable state (current state, page handle, URLs) lives in a
SessionContext that is passed to each step, so several sessions can
run side by side without sharing anything.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from lmswatch.browser import Browser, Page
from lmswatch.collect import collect_meetings
from lmswatch.errors import NotInitializedError, ValidationError
from lmswatch.model import Meeting
from lmswatch.storage import KeyValueStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Selectors
# ---------------------------------------------------------------------------

USERNAME_INPUT = 'input[name="username"]'
PASSWORD_INPUT = 'input[name="password"]'
LOGIN_BUTTON = 'button[type="submit"]'
LMS_CONNECTOR_BUTTON = 'a[alt="Siakad-LMS Connector"]'
GOTO_LMS_BUTTON = 'a[class="btn btn-sm green"]'
LECTURE_URL = ".gallery_grid_item.md-card-content a"


class SessionState(enum.IntEnum):
    UNINITIALIZED = 0
    READY = 1
    AUTHENTICATED = 2
    BRIDGED = 3
    ENUMERATED = 4
    COLLECTED = 5
    CLOSED = 6


@dataclass
class SessionContext:
    state: SessionState = SessionState.UNINITIALIZED
    page: Optional[Page] = None
    urls: List[str] = field(default_factory=list)
    meetings: Dict[str, List[Meeting]] = field(default_factory=dict)
    timestamp: Optional[int] = None


@dataclass(frozen=True)
class SessionOptions:
    portal_url: str
    lms_url: str
    username: str
    password: str

    def __post_init__(self) -> None:
        for name in ("portal_url", "lms_url", "username", "password"):
            if not getattr(self, name):
                raise ValidationError(name)


def page_key(timestamp: int, url: str) -> str:
    """Audit-trail key: run timestamp plus the last 4 characters of the URL."""
    return f"{timestamp}_{url[-4:]}"


class PortalSession:
    def __init__(
        self,
        options: SessionOptions,
        browser: Browser,
        pages: KeyValueStore,
        collect: Callable[[str], List[Meeting]] = collect_meetings,
        logger: logging.Logger = logger,
    ) -> None:
        self.options = options
        self.browser = browser
        self.pages = pages
        self.collect = collect
        self.logger = logger

    # -----------------------------------------------------------------------
    # Guards
    # -----------------------------------------------------------------------

    @staticmethod
    def _require(ctx: SessionContext, state: SessionState) -> Page:
        if ctx.page is None:
            raise NotInitializedError("page")
        if ctx.state != state:
            raise NotInitializedError(f"session state {state.name} (currently {ctx.state.name})")
        return ctx.page

    # -----------------------------------------------------------------------
    # Steps
    # -----------------------------------------------------------------------

    async def init(self, ctx: SessionContext) -> None:
        """
        Acquire the first page of the browser. No-op if a page is already held.
        """
        if ctx.page is not None:
            return
        ctx.page = await self.browser.get_first_page()
        ctx.state = SessionState.READY

    async def login(self, ctx: SessionContext) -> None:
        # No success check here: a failed login shows up as a later navigation error.
        page = self._require(ctx, SessionState.READY)

        await page.visit(self.options.portal_url)
        await page.insert(USERNAME_INPUT, self.options.username)
        await page.insert(PASSWORD_INPUT, self.options.password)
        await page.click_button(LOGIN_BUTTON)
        ctx.state = SessionState.AUTHENTICATED

    async def go_to_lms(self, ctx: SessionContext) -> None:
        """
        Cross from the portal into the LMS.

        The 'open LMS' button needs a native click, and it opens the LMS in
        a context the old page cannot follow, so that page is replaced.
        """
        page = self._require(ctx, SessionState.AUTHENTICATED)

        await page.wait_for_network_idle()
        await page.click_button(LMS_CONNECTOR_BUTTON)
        await page.click_button(GOTO_LMS_BUTTON, use_native_click=True)
        await page.close()
        ctx.page = None

        ctx.page = await self.browser.new_page()
        await ctx.page.visit(self.options.lms_url)
        ctx.state = SessionState.BRIDGED

    async def enumerate_lectures(self, ctx: SessionContext) -> List[str]:
        page = self._require(ctx, SessionState.BRIDGED)

        ctx.urls = await page.get_attributes_from_elements(LECTURE_URL, "href")
        ctx.state = SessionState.ENUMERATED
        self.logger.info("Found %d lecture pages", len(ctx.urls))
        return ctx.urls

    async def _save_one(self, ctx: SessionContext, url: str) -> None:
        page = await self.browser.new_page()
        try:
            await page.visit(self.options.lms_url + url)
            html = await page.get_content()
            ctx.meetings[url] = self.collect(html)
            await asyncio.to_thread(self.pages.put, page_key(ctx.timestamp or 0, url), html)
        finally:
            await page.close()

    async def save_page_snapshots(self, ctx: SessionContext) -> Dict[str, List[Meeting]]:
        """
        Open every enumerated URL in its own page, all at once.

        Completes when every task has settled; the first failure is
        re-raised after that.
        """
        self._require(ctx, SessionState.ENUMERATED)

        ctx.timestamp = int(time.time() * 1000)
        results = await asyncio.gather(
            *(self._save_one(ctx, url) for url in ctx.urls),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

        ctx.state = SessionState.COLLECTED
        return ctx.meetings

    async def clean_up(self, ctx: SessionContext) -> None:
        """
        Release the browser and forget the page. Safe to call repeatedly.
        """
        await self.browser.close()
        ctx.page = None
        ctx.state = SessionState.CLOSED

    # -----------------------------------------------------------------------
    # Whole run
    # -----------------------------------------------------------------------

    async def scrape(self) -> SessionContext:
        """
        Run every step once with a fresh context.

        The browser is released even when a step fails; the step's
        exception is what the caller sees.
        """
        ctx = SessionContext()

        try:
            self.logger.info("Initialising...")
            await self.init(ctx)
            self.logger.info("Logging in...")
            await self.login(ctx)
            self.logger.info("Visiting LMS...")
            await self.go_to_lms(ctx)
            await self.enumerate_lectures(ctx)
            self.logger.info("Saving snapshots...")
            await self.save_page_snapshots(ctx)
        finally:
            self.logger.info("Cleaning up...")
            await self.clean_up(ctx)

        return ctx
