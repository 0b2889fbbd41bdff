"""Interaction executor: one bounded operation, one structured result."""

from __future__ import annotations

import base64
import enum
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser.base import (
    BrowserSession,
    BrowserUnavailable,
    NavigationTimeout,
    ParameterError,
    TargetNotFound,
    WebsightError,
)
from .browser.waits import to_ms, try_wait_for_state
from .config import InteractionConfig
from .models import ActionKind, InteractionResult, ScrollDirection
from .resolver import TargetResolver

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

LOGGER = logging.getLogger(__name__)


class ScreenshotStrategy(str, enum.Enum):
    """How a screenshot is captured."""

    STANDARD = "standard"
    FAST = "fast"


def select_screenshot_strategy(session: BrowserSession, fast: bool) -> ScreenshotStrategy:
    """Pick the capture path a session supports for the requested mode."""

    if fast and session.supports_fast_screenshot:
        return ScreenshotStrategy.FAST
    return ScreenshotStrategy.STANDARD


@dataclass
class _Outcome:
    message: str
    value: Optional[str] = None
    visible: Optional[bool] = None
    enabled: Optional[bool] = None


Operation = Callable[["Page", str], Awaitable[_Outcome]]


class InteractionExecutor:
    """Runs interactions against the session page.

    Every public method returns an :class:`InteractionResult`; browser and
    navigation faults are reported in the result instead of being raised.
    """

    def __init__(
        self,
        session: BrowserSession,
        config: Optional[InteractionConfig] = None,
        resolver: Optional[TargetResolver] = None,
    ) -> None:
        self._session = session
        self._config = config or InteractionConfig()
        self._resolver = resolver or TargetResolver()

    async def click(self, target: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            await self._locate(page, selector).click(timeout=self._timeout())
            await try_wait_for_state(
                page, "domcontentloaded", timeout=self._config.settle_timeout
            )
            return _Outcome(f'Clicked "{target}"')

        return await self._perform(
            ActionKind.CLICK, target, url, operation, failure='Failed to click "{target}": {error}'
        )

    async def type(self, target: str, text: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            await self._locate(page, selector).fill(text, timeout=self._timeout())
            return _Outcome(f'Typed "{text}" into "{target}"')

        return await self._perform(
            ActionKind.TYPE, target, url, operation, failure='Failed to type into "{target}": {error}'
        )

    async def select(self, target: str, value: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            await self._locate(page, selector).select_option(value=value, timeout=self._timeout())
            await try_wait_for_state(
                page, "domcontentloaded", timeout=self._config.settle_timeout
            )
            return _Outcome(f'Selected "{value}" in "{target}"')

        return await self._perform(
            ActionKind.SELECT, target, url, operation, failure='Failed to select in "{target}": {error}'
        )

    async def hover(self, target: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            await self._locate(page, selector).hover(timeout=self._timeout())
            return _Outcome(f'Hovered over "{target}"')

        return await self._perform(
            ActionKind.HOVER, target, url, operation, failure='Failed to hover "{target}": {error}'
        )

    async def press(self, key: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, _: str) -> _Outcome:
            await page.keyboard.press(key)
            return _Outcome(f'Pressed "{key}"')

        return await self._perform(
            ActionKind.PRESS,
            key,
            url,
            operation,
            failure='Failed to press "{target}": {error}',
            resolve=False,
        )

    async def scroll(
        self, direction: Union[ScrollDirection, str], url: Optional[str] = None
    ) -> InteractionResult:
        try:
            direction = ScrollDirection(direction)
        except ValueError:
            return InteractionResult(
                success=False,
                action=ActionKind.SCROLL,
                target=str(direction),
                message=f"Unknown scroll direction \"{direction}\", use up, down, top or bottom",
                duration_ms=0,
                error=ParameterError.__name__,
            )

        async def operation(page: Page, _: str) -> _Outcome:
            if direction is ScrollDirection.UP:
                await page.keyboard.press("PageUp")
            elif direction is ScrollDirection.DOWN:
                await page.keyboard.press("PageDown")
            elif direction is ScrollDirection.TOP:
                await page.evaluate("() => window.scrollTo(0, 0)")
            else:
                await page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            return _Outcome(f"Scrolled {direction.value}")

        return await self._perform(
            ActionKind.SCROLL,
            direction.value,
            url,
            operation,
            failure="Failed to scroll {target}: {error}",
            resolve=False,
        )

    async def wait_for(
        self, target: str, url: Optional[str] = None, timeout: Optional[float] = None
    ) -> InteractionResult:
        seconds = self._config.wait_for_timeout if timeout is None else timeout

        async def operation(page: Page, selector: str) -> _Outcome:
            await self._locate(page, selector).wait_for(state="visible", timeout=to_ms(seconds))
            return _Outcome(f'Element "{target}" appeared')

        return await self._perform(
            ActionKind.WAIT_FOR,
            target,
            url,
            operation,
            failure=f'Element "{{target}}" did not appear within {int(seconds * 1000)}ms',
        )

    async def get_value(self, target: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            locator = self._locate(page, selector)
            try:
                value = await locator.input_value(timeout=self._timeout())
            except PlaywrightError:
                # Not a form control, read its text instead.
                text = await locator.text_content(
                    timeout=to_ms(self._config.text_fallback_timeout)
                )
                return _Outcome(f'Got text "{text}" from "{target}"', value=text or "")
            return _Outcome(f'Got value "{value}" from "{target}"', value=value)

        return await self._perform(
            ActionKind.GET_VALUE,
            target,
            url,
            operation,
            failure='Failed to get value from "{target}": {error}',
        )

    async def is_visible(self, target: str, url: Optional[str] = None) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            locator = self._locate(page, selector)
            try:
                visible = await locator.is_visible(timeout=to_ms(self._config.visibility_timeout))
            except PlaywrightTimeoutError:
                visible = False
            enabled = True
            if visible:
                try:
                    enabled = await locator.is_enabled(
                        timeout=to_ms(self._config.enabled_timeout)
                    )
                except PlaywrightError:
                    enabled = True
            if not visible:
                message = f'"{target}" is not visible'
            elif enabled:
                message = f'"{target}" is visible'
            else:
                message = f'"{target}" is visible (disabled)'
            return _Outcome(message, visible=visible, enabled=enabled)

        result = await self._perform(
            ActionKind.IS_VISIBLE,
            target,
            url,
            operation,
            failure='Failed to check visibility of "{target}": {error}',
        )
        if not result.success:
            result.visible = False
            result.enabled = False
        return result

    async def get_attribute(
        self, target: str, attribute: str, url: Optional[str] = None
    ) -> InteractionResult:
        async def operation(page: Page, selector: str) -> _Outcome:
            value = await self._locate(page, selector).get_attribute(
                attribute, timeout=self._timeout()
            )
            if value is None:
                return _Outcome(f'"{target}" has no "{attribute}" attribute')
            return _Outcome(f'Got {attribute}="{value}" from "{target}"', value=value)

        return await self._perform(
            ActionKind.GET_ATTRIBUTE,
            target,
            url,
            operation,
            failure='Failed to get attribute from "{target}": {error}',
        )

    async def screenshot(
        self,
        path: Union[Path, str],
        url: Optional[str] = None,
        strategy: ScreenshotStrategy = ScreenshotStrategy.STANDARD,
    ) -> InteractionResult:
        output = Path(path)

        async def operation(page: Page, _: str) -> _Outcome:
            output.parent.mkdir(parents=True, exist_ok=True)
            if strategy is ScreenshotStrategy.FAST:
                await self._capture_fast(page, output)
            else:
                await page.screenshot(
                    path=str(output),
                    timeout=to_ms(self._config.screenshot_timeout),
                    animations="disabled",
                )
            return _Outcome(f'Screenshot saved to "{output}"')

        return await self._perform(
            ActionKind.SCREENSHOT,
            str(output),
            url,
            operation,
            failure="Failed to take screenshot: {error}",
            resolve=False,
        )

    async def _capture_fast(self, page: Page, output: Path) -> None:
        if not self._session.supports_fast_screenshot:
            raise BrowserUnavailable("Fast capture is only available for launched browsers")
        client = await page.context.new_cdp_session(page)
        try:
            data = await client.send(
                "Page.captureScreenshot",
                {"format": "png", "captureBeyondViewport": False},
            )
        finally:
            await client.detach()
        output.write_bytes(base64.b64decode(data["data"]))

    def _locate(self, page: Page, selector: str) -> Locator:
        # Ambiguous queries act on the first match.
        return page.locator(selector).first

    def _timeout(self) -> Optional[float]:
        return to_ms(self._config.action_timeout)

    async def _perform(
        self,
        kind: ActionKind,
        target: str,
        url: Optional[str],
        operation: Operation,
        *,
        failure: str,
        resolve: bool = True,
    ) -> InteractionResult:
        started = time.perf_counter()
        resolved = target
        try:
            page = await self._session.ensure_page(url)
            if resolve:
                resolved = self._resolver.resolve(target, self._session.last_snapshot)
            outcome = await operation(page, resolved)
        except (PlaywrightError, WebsightError, OSError) as exc:
            category = _categorize(exc)
            LOGGER.info("%s on %s failed (%s): %s", kind.value, resolved, category, exc)
            return InteractionResult(
                success=False,
                action=kind,
                target=resolved,
                message=failure.format(target=target, error=_first_line(exc)),
                duration_ms=_elapsed_ms(started),
                error=category,
            )
        return InteractionResult(
            success=True,
            action=kind,
            target=resolved,
            message=outcome.message,
            duration_ms=_elapsed_ms(started),
            value=outcome.value,
            visible=outcome.visible,
            enabled=outcome.enabled,
        )


def _categorize(exc: BaseException) -> str:
    if isinstance(exc, NavigationTimeout):
        return NavigationTimeout.__name__
    if isinstance(exc, PlaywrightTimeoutError):
        return TargetNotFound.__name__
    return "ExecutionError"


def _first_line(exc: BaseException) -> str:
    text = str(exc).strip()
    return text.splitlines()[0] if text else type(exc).__name__


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
