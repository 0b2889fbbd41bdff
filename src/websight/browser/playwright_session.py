"""Playwright-powered browser session implementation."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Route,
    async_playwright,
)
from playwright.async_api import Error as PlaywrightError

from ..config import BrowserConfig
from ..models import PageSnapshot, Viewport
from .base import BrowserSession, BrowserUnavailable, PageInfo
from .waits import goto, try_wait_for_state

LOGGER = logging.getLogger(__name__)

INTERNAL_URL_PREFIXES = ("about:", "chrome://", "edge://", "devtools://")


def is_internal_url(url: str) -> bool:
    return not url or url.startswith(INTERNAL_URL_PREFIXES)


def pick_page(pages: list[Page], desired_url: Optional[str]) -> tuple[Page, bool]:
    """Choose a page among attached tabs.

    Returns the page and whether it still has to be navigated to
    ``desired_url``. Exact URL matches win over same-host matches; without a
    match the first page is reused.
    """

    if not desired_url:
        return pages[0], False
    for page in pages:
        if page.url == desired_url:
            return page, False
    desired_host = urlsplit(desired_url).netloc
    if desired_host:
        for page in pages:
            if urlsplit(page.url).netloc == desired_host:
                return page, False
    return pages[0], True


class PlaywrightBrowserSession(BrowserSession):
    """Browser session backed by Playwright."""

    def __init__(self, config: Optional[BrowserConfig] = None) -> None:
        self._config = config or BrowserConfig()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._routed_page: Optional[Page] = None
        self._current_url: Optional[str] = None
        self._last_snapshot: Optional[PageSnapshot] = None
        self._is_remote = False

    async def __aenter__(self) -> "PlaywrightBrowserSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_open(self) -> bool:
        return self._page is not None

    @property
    def is_remote(self) -> bool:
        return self._is_remote

    @property
    def current_url(self) -> Optional[str]:
        return self._current_url

    @property
    def viewport(self) -> Viewport:
        return Viewport(width=self._config.viewport_width, height=self._config.viewport_height)

    @property
    def last_snapshot(self) -> Optional[PageSnapshot]:
        return self._last_snapshot

    def remember_snapshot(self, snapshot: PageSnapshot) -> None:
        self._last_snapshot = snapshot

    async def open(self, url: Optional[str] = None) -> None:
        if self._page is not None:
            return
        if self._playwright is None:
            LOGGER.debug("Starting Playwright driver")
            self._playwright = await async_playwright().start()
        if self._browser is None and self._config.prefer_cdp:
            if await self._connect_over_cdp(url):
                return
            LOGGER.warning("No browser with remote debugging found, launching a new one")
        if self._browser is None:
            await self._launch()
        if self._context is None:
            assert self._browser is not None
            self._context = await self._browser.new_context(
                viewport={
                    "width": self._config.viewport_width,
                    "height": self._config.viewport_height,
                }
            )
        if self._page is None:
            self._page = await self._context.new_page()
            await self._install_request_filter(self._page)

    async def _launch(self) -> None:
        assert self._playwright is not None
        headless = self._config.headless
        LOGGER.info("Launching %s browser", "headless" if headless else "visible")
        self._browser = await self._playwright.chromium.launch(
            headless=headless,
            slow_mo=0 if headless else self._config.slow_mo_ms,
        )
        self._is_remote = False

    async def _connect_over_cdp(self, desired_url: Optional[str]) -> bool:
        assert self._playwright is not None
        for port in self._config.cdp_ports:
            endpoint = f"http://{self._config.cdp_host}:{port}"
            try:
                browser = await self._playwright.chromium.connect_over_cdp(
                    endpoint,
                    timeout=self._config.cdp_connect_timeout * 1000,
                )
            except PlaywrightError as exc:
                LOGGER.debug("No debuggable browser on %s: %s", endpoint, exc)
                continue
            try:
                page = await self._pick_attached_page(browser, port, desired_url)
            except BaseException:
                # Drop the connection before the failure propagates.
                await browser.close()
                raise
            if page is None:
                LOGGER.debug("Browser on %s has no usable pages", endpoint)
                await browser.close()
                continue
            self._browser = browser
            self._context = page.context
            self._page = page
            self._current_url = page.url
            self._is_remote = True
            return True
        return False

    async def _pick_attached_page(
        self, browser: Browser, port: int, desired_url: Optional[str]
    ) -> Optional[Page]:
        pages = [
            page
            for context in browser.contexts
            for page in context.pages
            if not is_internal_url(page.url)
        ]
        if not pages:
            return None
        page, needs_navigation = pick_page(pages, desired_url)
        if needs_navigation and desired_url:
            LOGGER.info("Attached to browser on port %s, navigating to %s", port, desired_url)
            await goto(page, desired_url, timeout=self._config.navigation_timeout)
            await try_wait_for_state(
                page, "networkidle", timeout=self._config.network_idle_timeout
            )
        else:
            LOGGER.info("Attached to browser on port %s (%s)", port, page.url)
        return page

    async def _install_request_filter(self, page: Page) -> None:
        if self._routed_page is page:
            return
        await page.route("**/*", self._filter_request)
        self._routed_page = page

    async def _filter_request(self, route: Route) -> None:
        request = route.request
        if self.should_block(request.url, request.resource_type):
            await route.abort()
        else:
            await route.continue_()

    def should_block(self, url: str, resource_type: str) -> bool:
        """Whether a request never contributes to structural or pixel analysis."""

        if resource_type in self._config.blocked_resource_types:
            return True
        return any(host in url for host in self._config.blocked_hosts)

    async def ensure_page(self, url: Optional[str] = None) -> Page:
        if self._page is None:
            await self.open(url)
        page = self._page
        if page is None:
            raise BrowserUnavailable("Browser session has no page")
        if self._is_remote:
            # Attached tabs belong to the user; only track where they are.
            self._current_url = page.url
        elif url and url != self._current_url:
            await self._navigate(page, url)
        return page

    async def _navigate(self, page: Page, url: str) -> None:
        LOGGER.info("Navigating to %s", url)
        await goto(page, url, timeout=self._config.navigation_timeout)
        await try_wait_for_state(page, "networkidle", timeout=self._config.network_idle_timeout)
        self._current_url = url

    async def page_info(self) -> PageInfo:
        if self._page is None:
            return PageInfo()
        return PageInfo(url=self._page.url, title=await self._page.title(), has_page=True)

    async def close(self) -> None:
        LOGGER.debug("Closing browser session (remote=%s)", self._is_remote)
        try:
            if self._is_remote:
                # Closing a CDP-attached browser only drops the connection.
                if self._browser:
                    await self._browser.close()
            else:
                try:
                    if self._context:
                        await self._context.close()
                finally:
                    if self._browser:
                        await self._browser.close()
        finally:
            if self._playwright:
                await self._playwright.stop()
            self._playwright = None
            self._browser = None
            self._context = None
            self._page = None
            self._routed_page = None
            self._current_url = None
            self._last_snapshot = None
            self._is_remote = False
