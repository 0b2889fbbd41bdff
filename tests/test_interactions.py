from __future__ import annotations

import base64
from pathlib import Path

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from support import FakeLocator, FakePage, FakeSession, make_action, make_snapshot
from websight.config import InteractionConfig
from websight.interactions import (
    InteractionExecutor,
    ScreenshotStrategy,
    select_screenshot_strategy,
)
from websight.models import ActionKind


def _executor(page: FakePage, *, remote: bool = False) -> tuple[InteractionExecutor, FakeSession]:
    session = FakeSession(page, remote=remote)
    return InteractionExecutor(session, InteractionConfig()), session


@pytest.mark.asyncio
async def test_click_on_missing_element_reports_failure_without_raising() -> None:
    page = FakePage()
    executor, _ = _executor(page)

    result = await executor.click("checkout-button")

    assert result.success is False
    assert result.action is ActionKind.CLICK
    assert "checkout-button" in result.message
    assert result.target == '[data-testid="checkout-button"]'
    assert result.error == "TargetNotFound"
    assert result.duration_ms >= 0


@pytest.mark.asyncio
async def test_two_sequential_clicks_on_same_element_succeed() -> None:
    button = FakeLocator()
    page = FakePage(locators={'[data-testid="save"]': button})
    executor, _ = _executor(page)

    first = await executor.click("save")
    second = await executor.click("save")

    assert first.success and second.success
    assert [name for name, _ in button.calls] == ["click", "click"]


@pytest.mark.asyncio
async def test_click_ignores_settle_timeout() -> None:
    page = FakePage(locators={"#go": FakeLocator()})
    page.settle_times_out = True
    executor, _ = _executor(page)

    result = await executor.click("#go")

    assert result.success is True
    assert page.load_states == ["domcontentloaded"]


@pytest.mark.asyncio
async def test_click_uses_locator_from_last_snapshot() -> None:
    button = FakeLocator()
    page = FakePage(locators={"#submit-order": button})
    executor, session = _executor(page)
    session.remember_snapshot(
        make_snapshot(actions=[make_action("Submit order", element_id="submit-order")])
    )

    result = await executor.click("submit")

    assert result.success is True
    assert result.target == "#submit-order"


@pytest.mark.asyncio
async def test_type_fills_resolved_field() -> None:
    field = FakeLocator()
    page = FakePage(locators={"#email": field})
    executor, _ = _executor(page)

    result = await executor.type("#email", "user@example.com")

    assert result.success is True
    assert field.calls == [("fill", "user@example.com")]
    assert result.message == 'Typed "user@example.com" into "#email"'


@pytest.mark.asyncio
async def test_select_chooses_option_by_value() -> None:
    dropdown = FakeLocator()
    page = FakePage(locators={"#plan": dropdown})
    executor, _ = _executor(page)

    result = await executor.select("#plan", "pro")

    assert result.success is True
    assert dropdown.calls == [("select_option", "pro")]


@pytest.mark.asyncio
async def test_press_uses_keyboard_without_resolution() -> None:
    page = FakePage()
    executor, _ = _executor(page)

    result = await executor.press("Enter")

    assert result.success is True
    assert result.target == "Enter"
    assert page.keyboard.pressed == ["Enter"]
    assert page.requested == []


@pytest.mark.asyncio
async def test_scroll_directions() -> None:
    page = FakePage()
    executor, _ = _executor(page)

    down = await executor.scroll("down")
    bottom = await executor.scroll("bottom")

    assert down.success and bottom.success
    assert page.keyboard.pressed == ["PageDown"]
    assert "scrollHeight" in page.evaluated[0][0]


@pytest.mark.asyncio
async def test_scroll_rejects_unknown_direction() -> None:
    page = FakePage()
    executor, _ = _executor(page)

    result = await executor.scroll("sideways")

    assert result.success is False
    assert result.error == "ParameterError"
    assert page.keyboard.pressed == []


@pytest.mark.asyncio
async def test_wait_for_uses_caller_timeout_in_message() -> None:
    page = FakePage()
    executor, _ = _executor(page)

    result = await executor.wait_for("toast", timeout=1.5)

    assert result.success is False
    assert result.message == 'Element "toast" did not appear within 1500ms'


@pytest.mark.asyncio
async def test_get_value_falls_back_to_text_content() -> None:
    heading = FakeLocator(text="Welcome back")
    page = FakePage(locators={"#title": heading})
    executor, _ = _executor(page)

    result = await executor.get_value("#title")

    assert result.success is True
    assert result.value == "Welcome back"
    assert [name for name, _ in heading.calls] == ["input_value", "text_content"]


@pytest.mark.asyncio
async def test_get_value_reads_form_control() -> None:
    page = FakePage(locators={"#name": FakeLocator(value="Ada")})
    executor, _ = _executor(page)

    result = await executor.get_value("#name")

    assert result.value == "Ada"
    assert result.message == 'Got value "Ada" from "#name"'


@pytest.mark.asyncio
async def test_is_visible_checks_enabled_only_when_visible() -> None:
    hidden = FakeLocator(visible=False)
    disabled = FakeLocator(enabled=False)
    page = FakePage(locators={"#hidden": hidden, "#disabled": disabled})
    executor, _ = _executor(page)

    not_visible = await executor.is_visible("#hidden")
    visible = await executor.is_visible("#disabled")

    assert not_visible.success is True
    assert not_visible.visible is False
    assert ("is_enabled", None) not in hidden.calls
    assert visible.visible is True
    assert visible.enabled is False
    assert visible.message == '"#disabled" is visible (disabled)'


class SlowVisibilityLocator(FakeLocator):
    async def is_visible(self, timeout=None):  # type: ignore[no-untyped-def]
        self.calls.append(("is_visible", None))
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")


@pytest.mark.asyncio
async def test_visibility_timeout_counts_as_not_visible() -> None:
    locator = SlowVisibilityLocator()
    executor, _ = _executor(FakePage(locators={"#banner": locator}))

    result = await executor.is_visible("#banner")

    assert result.success is True
    assert result.visible is False
    assert result.message == '"#banner" is not visible'
    assert ("is_enabled", None) not in locator.calls


@pytest.mark.asyncio
async def test_get_attribute_absent_is_success() -> None:
    page = FakePage(locators={"#link": FakeLocator(attributes={"href": "/docs"})})
    executor, _ = _executor(page)

    present = await executor.get_attribute("#link", "href")
    absent = await executor.get_attribute("#link", "target")

    assert present.value == "/docs"
    assert absent.success is True
    assert absent.value is None
    assert "no \"target\" attribute" in absent.message


@pytest.mark.asyncio
async def test_interactions_navigate_only_when_url_changes() -> None:
    page = FakePage(locators={"#go": FakeLocator()})
    executor, session = _executor(page)

    await executor.click("#go", url="http://localhost:3000/")
    await executor.click("#go", url="http://localhost:3000/")

    assert session.navigations == ["http://localhost:3000/"]


@pytest.mark.asyncio
async def test_standard_screenshot_disables_animations(tmp_path: Path) -> None:
    page = FakePage()
    executor, _ = _executor(page)
    output = tmp_path / "shots" / "page.png"

    result = await executor.screenshot(output)

    assert result.success is True
    assert output.read_bytes() == b"png"
    assert page.screenshots[0]["animations"] == "disabled"


@pytest.mark.asyncio
async def test_fast_screenshot_uses_cdp_capture(tmp_path: Path) -> None:
    sent: list[str] = []

    class FakeCdpSession:
        async def send(self, method: str, params: dict) -> dict:
            sent.append(method)
            return {"data": base64.b64encode(b"fast-png").decode()}

        async def detach(self) -> None:
            sent.append("detach")

    class FakeContext:
        async def new_cdp_session(self, page: FakePage) -> FakeCdpSession:
            return FakeCdpSession()

    page = FakePage()
    page.context = FakeContext()  # type: ignore[attr-defined]
    executor, session = _executor(page)
    await session.open()
    output = tmp_path / "fast.png"

    result = await executor.screenshot(output, strategy=select_screenshot_strategy(session, True))

    assert result.success is True
    assert output.read_bytes() == b"fast-png"
    assert sent == ["Page.captureScreenshot", "detach"]
    assert page.screenshots == []


@pytest.mark.asyncio
async def test_fast_screenshot_not_selected_for_attached_browser() -> None:
    session = FakeSession(remote=True)
    await session.open()

    assert select_screenshot_strategy(session, True) is ScreenshotStrategy.STANDARD
    assert select_screenshot_strategy(FakeSession(), True) is ScreenshotStrategy.STANDARD


@pytest.mark.asyncio
async def test_fast_screenshot_refused_on_attached_browser(tmp_path: Path) -> None:
    page = FakePage()
    executor, _ = _executor(page, remote=True)

    result = await executor.screenshot(tmp_path / "x.png", strategy=ScreenshotStrategy.FAST)

    assert result.success is False
    assert result.error == "ExecutionError"
