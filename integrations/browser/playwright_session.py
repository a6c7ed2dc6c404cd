from __future__ import annotations

import logging
from typing import Optional, Sequence

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import ElementHandle as PlaywrightElement

from app.config import Settings, get_settings

from .session import ElementHandle, RendererSession, SessionFactory

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}


class PlaywrightElementHandle(ElementHandle):
    def __init__(self, element: PlaywrightElement) -> None:
        self._element = element

    async def click(self) -> None:
        await self._element.click()


class PlaywrightSession(RendererSession):
    def __init__(self, context: BrowserContext, page: Page) -> None:
        self._context = context
        self._page = page

    async def navigate(self, url: str, timeout_ms: int = 30000) -> None:
        await self._page.goto(url, wait_until="networkidle", timeout=timeout_ms)

    async def content(self) -> str:
        return await self._page.content()

    async def query_selector_first(self, patterns: Sequence[str]) -> Optional[ElementHandle]:
        for pattern in patterns:
            try:
                element = await self._page.query_selector(pattern)
            except PlaywrightError as exc:
                logger.debug(f"Selector {pattern!r} failed: {exc}")
                continue
            if element is not None:
                return PlaywrightElementHandle(element)
        return None

    async def wait_for_any(self, patterns: Sequence[str], timeout_ms: int) -> bool:
        if not patterns:
            return False
        try:
            await self._page.wait_for_selector(", ".join(patterns), timeout=timeout_ms)
            return True
        except PlaywrightError:
            return False

    async def close(self) -> None:
        try:
            await self._page.close()
        finally:
            await self._context.close()


class PlaywrightSessionFactory(SessionFactory):
    """
    Owns one lazily launched Chromium instance.
    Every acquire() opens a fresh context and page; close() tears the browser down.
    """

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    async def _get_browser(self) -> Browser:
        if self._browser is not None and self._browser.is_connected():
            return self._browser

        if self._playwright is None:
            self._playwright = await async_playwright().start()

        logger.info("Launching headless Chromium")
        self._browser = await self._playwright.chromium.launch(
            headless=self.settings.browser_headless,
            executable_path=self.settings.browser_executable_path,
        )
        return self._browser

    async def acquire(self) -> RendererSession:
        browser = await self._get_browser()
        context = await browser.new_context(
            user_agent=self.settings.browser_user_agent,
            viewport=VIEWPORT,
            extra_http_headers={"Accept-Language": self.settings.browser_accept_language},
        )
        page = await context.new_page()
        return PlaywrightSession(context, page)

    async def close(self) -> None:
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        try:
            if browser is not None:
                await browser.close()
        finally:
            if playwright is not None:
                await playwright.stop()
