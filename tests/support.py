"""Stub browser objects and snapshot builders shared by the tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from websight.browser.base import BrowserSession, PageInfo
from websight.models import (
    Bounds,
    InteractiveAction,
    PageSnapshot,
    Section,
    Theme,
    Viewport,
)
from websight.snapshot.extractors import compute_locator

VIEWPORT = Viewport(width=1280, height=720)


def make_action(
    name: str,
    *,
    role: str = "button",
    test_id: Optional[str] = None,
    element_id: Optional[str] = None,
    y: int = 10,
) -> InteractiveAction:
    return InteractiveAction(
        role=role,
        name=name,
        tag="button",
        bounds=Bounds(x=0, y=y, w=100, h=30),
        locator=compute_locator(role, name, test_id, element_id),
    )


def make_section(name: str, *, test_id: Optional[str] = None, y: int = 100) -> Section:
    return Section(
        name=name,
        tag="section",
        test_id=test_id,
        bounds=Bounds(x=0, y=y, w=1280, h=200),
        in_viewport=y < VIEWPORT.height,
        below_fold=y >= VIEWPORT.height,
    )


def make_snapshot(**fields: Any) -> PageSnapshot:
    fields.setdefault("url", "http://localhost:5173/")
    fields.setdefault("title", "Demo")
    fields.setdefault("viewport", VIEWPORT)
    fields.setdefault(
        "theme",
        Theme(
            body_background="rgb(255, 255, 255)",
            body_text_color="rgb(17, 24, 39)",
            body_font_family="Inter",
            body_font_size="16px",
            line_height="24px",
        ),
    )
    return PageSnapshot(**fields)


class FakeKeyboard:
    def __init__(self) -> None:
        self.pressed: list[str] = []

    async def press(self, key: str) -> None:
        self.pressed.append(key)


class FakeLocator:
    """Element stub; ``present=False`` behaves like a query that never matches."""

    def __init__(
        self,
        *,
        present: bool = True,
        value: Optional[str] = None,
        text: str = "",
        visible: bool = True,
        enabled: bool = True,
        attributes: Optional[dict[str, str]] = None,
    ) -> None:
        self.present = present
        self.value = value
        self.text = text
        self.visible = visible
        self.enabled = enabled
        self.attributes = attributes or {}
        self.calls: list[tuple[str, Any]] = []

    @property
    def first(self) -> "FakeLocator":
        return self

    def _touch(self, name: str, argument: Any = None, timeout: Optional[float] = None) -> None:
        self.calls.append((name, argument))
        if not self.present:
            raise PlaywrightTimeoutError(f"Timeout {int(timeout or 0)}ms exceeded.")

    async def click(self, timeout: Optional[float] = None) -> None:
        self._touch("click", timeout=timeout)

    async def fill(self, text: str, timeout: Optional[float] = None) -> None:
        self._touch("fill", text, timeout)

    async def select_option(self, value: str, timeout: Optional[float] = None) -> None:
        self._touch("select_option", value, timeout)

    async def hover(self, timeout: Optional[float] = None) -> None:
        self._touch("hover", timeout=timeout)

    async def wait_for(self, state: str, timeout: Optional[float] = None) -> None:
        self._touch("wait_for", state, timeout)

    async def input_value(self, timeout: Optional[float] = None) -> str:
        self._touch("input_value", timeout=timeout)
        if self.value is None:
            raise PlaywrightError("Error: Node is not an <input>, <textarea> or <select> element")
        return self.value

    async def text_content(self, timeout: Optional[float] = None) -> str:
        self._touch("text_content", timeout=timeout)
        return self.text

    async def is_visible(self, timeout: Optional[float] = None) -> bool:
        self.calls.append(("is_visible", None))
        return self.present and self.visible

    async def is_enabled(self, timeout: Optional[float] = None) -> bool:
        self.calls.append(("is_enabled", None))
        return self.enabled

    async def get_attribute(self, name: str, timeout: Optional[float] = None) -> Optional[str]:
        self._touch("get_attribute", name, timeout)
        return self.attributes.get(name)


class FakePage:
    def __init__(
        self,
        url: str = "http://localhost:5173/",
        *,
        locators: Optional[dict[str, FakeLocator]] = None,
        scripts: Optional[dict[str, Any]] = None,
        title: str = "Demo",
        screenshot_bytes: bytes = b"png",
    ) -> None:
        self.url = url
        self.locators = locators or {}
        self.scripts = scripts or {}
        self.title_text = title
        self.screenshot_bytes = screenshot_bytes
        self.screenshot_error: Optional[Exception] = None
        self.settle_times_out = False
        self.keyboard = FakeKeyboard()
        self.requested: list[str] = []
        self.evaluated: list[Any] = []
        self.load_states: list[str] = []
        self.screenshots: list[dict[str, Any]] = []
        self.missing = FakeLocator(present=False)

    def locator(self, selector: str) -> FakeLocator:
        self.requested.append(selector)
        return self.locators.get(selector, self.missing)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.evaluated.append((script, arg))
        return self.scripts.get(script)

    async def wait_for_load_state(self, state: str, timeout: Optional[float] = None) -> None:
        self.load_states.append(state)
        if self.settle_times_out:
            raise PlaywrightTimeoutError(f"Timeout {int(timeout or 0)}ms exceeded.")

    async def screenshot(self, path: Optional[str] = None, **kwargs: Any) -> bytes:
        self.screenshots.append({"path": path, **kwargs})
        if self.screenshot_error is not None:
            raise self.screenshot_error
        if path:
            Path(path).write_bytes(self.screenshot_bytes)
        return self.screenshot_bytes

    async def title(self) -> str:
        return self.title_text


class FakeSession(BrowserSession):
    """In-memory session that records lifecycle calls."""

    def __init__(self, page: Optional[FakePage] = None, *, remote: bool = False) -> None:
        self.page = page or FakePage()
        self._open = False
        self._remote = remote
        self._current_url: Optional[str] = None
        self._snapshot: Optional[PageSnapshot] = None
        self.opened_with: list[Optional[str]] = []
        self.navigations: list[str] = []
        self.close_calls = 0

    async def open(self, url: Optional[str] = None) -> None:
        if self._open:
            return
        self.opened_with.append(url)
        self._open = True

    async def close(self) -> None:
        self.close_calls += 1
        self._open = False
        self._current_url = None
        self._snapshot = None

    async def ensure_page(self, url: Optional[str] = None) -> FakePage:
        if not self._open:
            await self.open(url)
        if self._remote:
            self._current_url = self.page.url
        elif url and url != self._current_url:
            self.navigations.append(url)
            self.page.url = url
            self._current_url = url
        return self.page

    async def page_info(self) -> PageInfo:
        if not self._open:
            return PageInfo()
        return PageInfo(url=self.page.url, title=self.page.title_text, has_page=True)

    @property
    def is_open(self) -> bool:
        return self._open

    @property
    def is_remote(self) -> bool:
        return self._remote

    @property
    def current_url(self) -> Optional[str]:
        return self._current_url

    @property
    def viewport(self) -> Viewport:
        return VIEWPORT

    @property
    def last_snapshot(self) -> Optional[PageSnapshot]:
        return self._snapshot

    def remember_snapshot(self, snapshot: PageSnapshot) -> None:
        self._snapshot = snapshot
