"""
Browser driver used by the scripted portal session.

The session only talks to the small Browser / Page protocols below.
PlaywrightBrowser is the concrete implementation (Chromium via
playwright.async_api); tests use plain fakes instead.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from playwright.async_api import Browser as _PwBrowser
from playwright.async_api import BrowserContext, Playwright, async_playwright
from playwright.async_api import Page as _PwPage

logger = logging.getLogger(__name__)


class Page(Protocol):
    async def visit(self, url: str) -> None: ...

    async def insert(self, selector: str, value: str) -> None: ...

    async def click_button(self, selector: str, use_native_click: bool = False) -> None: ...

    async def wait_for_network_idle(self) -> None: ...

    async def get_attributes_from_elements(self, selector: str, attribute: str) -> List[str]: ...

    async def get_content(self) -> str: ...

    async def close(self) -> None: ...


class Browser(Protocol):
    async def get_first_page(self) -> Page: ...

    async def new_page(self) -> Page: ...

    async def close(self) -> None: ...


# ---------------------------------------------------------------------------
# Playwright implementation
# ---------------------------------------------------------------------------


class PlaywrightPage:
    def __init__(self, page: _PwPage, timeout_ms: int) -> None:
        self._page = page
        self._timeout_ms = timeout_ms

    async def visit(self, url: str) -> None:
        await self._page.goto(url, timeout=self._timeout_ms)

    async def insert(self, selector: str, value: str) -> None:
        await self._page.fill(selector, value, timeout=self._timeout_ms)

    async def click_button(self, selector: str, use_native_click: bool = False) -> None:
        if use_native_click:
            # real mouse event; some portal widgets ignore scripted clicks
            await self._page.locator(selector).first.click(timeout=self._timeout_ms)
            return
        await self._page.eval_on_selector(selector, "el => el.click()")

    async def wait_for_network_idle(self) -> None:
        await self._page.wait_for_load_state("networkidle", timeout=self._timeout_ms)

    async def get_attributes_from_elements(self, selector: str, attribute: str) -> List[str]:
        values = await self._page.eval_on_selector_all(
            selector,
            "(els, attr) => els.map(el => el.getAttribute(attr))",
            attribute,
        )
        return [v for v in values if v]

    async def get_content(self) -> str:
        return await self._page.content()

    async def close(self) -> None:
        await self._page.close()


class PlaywrightBrowser:
    """
    Lazily launches Chromium on first use and tears everything down on close().

    close() leaves the object reusable: the next get_first_page() starts
    a fresh browser.
    """

    def __init__(self, headless: bool = True, timeout_ms: int = 30_000) -> None:
        self.headless = headless
        self.timeout_ms = timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[_PwBrowser] = None
        self._context: Optional[BrowserContext] = None

    async def _ensure_context(self) -> BrowserContext:
        if self._context is None:
            logger.info("Launching Chromium (headless=%s)", self.headless)
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context()
        return self._context

    async def get_first_page(self) -> PlaywrightPage:
        context = await self._ensure_context()
        pages = context.pages
        page = pages[0] if pages else await context.new_page()
        return PlaywrightPage(page, self.timeout_ms)

    async def new_page(self) -> PlaywrightPage:
        context = await self._ensure_context()
        return PlaywrightPage(await context.new_page(), self.timeout_ms)

    async def close(self) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._playwright = None
        self._browser = None
        self._context = None
