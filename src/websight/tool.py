"""Tool-invocation dispatcher: action name plus parameters in, text out."""

from __future__ import annotations

import enum
import logging
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from .browser.base import BrowserSession, ParameterError
from .browser.discovery import PageDetector
from .browser.playwright_session import PlaywrightBrowserSession
from .config import WebsightConfig
from .diff.engine import diff_against_baseline
from .diff.report import format_compare_report
from .interactions import InteractionExecutor, select_screenshot_strategy
from .models import InteractionResult
from .snapshot.producer import SnapshotProducer
from .snapshot.store import SnapshotStore

LOGGER = logging.getLogger(__name__)

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")
DEFAULT_SCREENSHOT_FILE = "screenshot.png"
NO_BASELINE_MESSAGE = 'No baseline found. Call websight(action="baseline") first.'


class ToolAction(str, enum.Enum):
    LOOK = "look"
    BASELINE = "baseline"
    DIFF = "diff"
    CLICK = "click"
    TYPE = "type"
    SELECT = "select"
    HOVER = "hover"
    PRESS = "press"
    SCROLL = "scroll"
    WAIT_FOR = "wait_for"
    GET_VALUE = "get_value"
    IS_VISIBLE = "is_visible"
    GET_ATTRIBUTE = "get_attribute"
    SCREENSHOT = "screenshot"
    PAGE_INFO = "page_info"
    CLOSE = "close"


ANALYSIS_ACTIONS = frozenset({ToolAction.LOOK, ToolAction.BASELINE, ToolAction.DIFF})

REQUIRED_PARAMETERS: dict[ToolAction, tuple[str, ...]] = {
    ToolAction.CLICK: ("target",),
    ToolAction.TYPE: ("target", "text"),
    ToolAction.SELECT: ("target", "value"),
    ToolAction.HOVER: ("target",),
    ToolAction.PRESS: ("key",),
    ToolAction.SCROLL: ("direction",),
    ToolAction.WAIT_FOR: ("target",),
    ToolAction.GET_VALUE: ("target",),
    ToolAction.IS_VISIBLE: ("target",),
    ToolAction.GET_ATTRIBUTE: ("target", "attribute"),
}


EMPTY_ALLOWED = frozenset({"text", "value"})

def parse_action(name: str) -> Optional[ToolAction]:
    """Map ``waitFor``/``wait_for`` style names to an action, ``None`` if unknown."""

    normalized = _CAMEL_BOUNDARY_RE.sub("_", (name or "").strip()).lower()
    try:
        return ToolAction(normalized)
    except ValueError:
        return None


class ToolRequest(BaseModel):
    """Parameters accepted by :meth:`WebsightTool.dispatch`."""

    action: str
    target: Optional[str] = None
    text: Optional[str] = None
    value: Optional[str] = None
    direction: Optional[str] = None
    key: Optional[str] = None
    url: Optional[str] = None
    attribute: Optional[str] = None
    timeout: Optional[float] = Field(
        default=None, description="Seconds to wait for wait_for, defaults to the configured value."
    )
    path: Optional[str] = Field(default=None, description="Screenshot destination.")
    fast: bool = Field(default=False, description="Use the low-level capture path when possible.")

    def missing(self, action: ToolAction) -> list[str]:
        missing: list[str] = []
        for name in REQUIRED_PARAMETERS.get(action, ()):
            given = getattr(self, name)
            # An empty text or option value is a real input (clearing a field).
            if given is None or (given == "" and name not in EMPTY_ALLOWED):
                missing.append(name)
        return missing


def render_result(result: InteractionResult) -> str:
    status = "OK" if result.success else "FAILED"
    return f"{status}: {result.message} ({result.duration_ms}ms)"


class WebsightTool:
    """Owns one browser session and answers tool requests against it.

    Requests must be issued one at a time; :mod:`websight.service` serializes
    them for concurrent HTTP callers.
    """

    def __init__(
        self,
        config: Optional[WebsightConfig] = None,
        session: Optional[BrowserSession] = None,
        detector: Optional[PageDetector] = None,
    ) -> None:
        self._config = config or WebsightConfig()
        self._session = session or PlaywrightBrowserSession(self._config.browser)
        self._detector = detector or PageDetector(
            self._config.discovery, cdp_ports=self._config.browser.cdp_ports
        )
        self._store = SnapshotStore(self._config.output_dir)
        self._producer = SnapshotProducer(
            self._session,
            self._store,
            screenshot_timeout=self._config.analysis_screenshot_timeout,
        )
        self._executor = InteractionExecutor(self._session, self._config.interaction)

    @property
    def session(self) -> BrowserSession:
        return self._session

    @property
    def store(self) -> SnapshotStore:
        return self._store

    async def dispatch(self, request: ToolRequest) -> str:
        action = parse_action(request.action)
        if action is None:
            return (
                f"Unknown action: {request.action}. "
                f"Use one of: {', '.join(item.value for item in ToolAction)}."
            )
        missing = request.missing(action)
        if missing:
            return str(ParameterError(action.value, missing))

        try:
            if action in ANALYSIS_ACTIONS:
                return await self._analyze(action, request.url)
            if action is ToolAction.PAGE_INFO:
                return await self._page_info()
            if action is ToolAction.CLOSE:
                await self.close()
                return "Browser session closed"
            url = await self._interaction_url(request.url)
            return render_result(await self._interact(action, request, url))
        except Exception as exc:  # returned as text to the caller
            LOGGER.exception("Action %s failed", action.value)
            return f"Error: {exc}"

    async def close(self) -> None:
        await self._session.close()

    async def _analyze(self, action: ToolAction, url: Optional[str]) -> str:
        if action is ToolAction.DIFF and not self._store.has_baseline():
            return NO_BASELINE_MESSAGE
        url, note = await self._analysis_url(url)
        prefix = f"{note}\n" if note else ""

        if action is ToolAction.LOOK:
            analysis = await self._producer.analyze(url)
            return prefix + analysis.report

        if action is ToolAction.BASELINE:
            analysis = await self._producer.analyze(url)
            saved = self._store.save_baseline()
            files = "\n".join(f"  - {path}" for path in saved)
            return (
                f"{prefix}Baseline saved for {analysis.snapshot.url}\n\n"
                f"Files:\n{files}\n\n"
                'Now make your changes, then call websight(action="diff") to verify.'
            )

        analysis = await self._producer.analyze(url)
        result = diff_against_baseline(self._store, analysis.snapshot, self._config.diff)
        return prefix + format_compare_report(result)

    async def _analysis_url(self, url: Optional[str]) -> tuple[Optional[str], Optional[str]]:
        if url:
            return url, None
        if self._session.is_open:
            # Keep analyzing whatever the session is showing.
            return None, None
        detected = await self._detector.detect()
        return detected.url, f"Auto-detected: {detected.url} ({detected.describe()})"

    async def _interaction_url(self, url: Optional[str]) -> Optional[str]:
        if url or self._session.is_open:
            return url
        detected = await self._detector.detect()
        return detected.url

    async def _page_info(self) -> str:
        info = await self._session.page_info()
        if not info.has_page:
            return "No page is open"
        return f"URL: {info.url}\nTitle: {info.title}"

    async def _interact(
        self, action: ToolAction, request: ToolRequest, url: Optional[str]
    ) -> InteractionResult:
        executor = self._executor
        if action is ToolAction.CLICK:
            return await executor.click(request.target, url)
        if action is ToolAction.TYPE:
            return await executor.type(request.target, request.text, url)
        if action is ToolAction.SELECT:
            return await executor.select(request.target, request.value, url)
        if action is ToolAction.HOVER:
            return await executor.hover(request.target, url)
        if action is ToolAction.PRESS:
            return await executor.press(request.key, url)
        if action is ToolAction.SCROLL:
            return await executor.scroll(request.direction, url)
        if action is ToolAction.WAIT_FOR:
            return await executor.wait_for(request.target, url, timeout=request.timeout)
        if action is ToolAction.GET_VALUE:
            return await executor.get_value(request.target, url)
        if action is ToolAction.IS_VISIBLE:
            return await executor.is_visible(request.target, url)
        if action is ToolAction.GET_ATTRIBUTE:
            return await executor.get_attribute(request.target, request.attribute, url)

        path = Path(request.path) if request.path else self._store.output_dir / DEFAULT_SCREENSHOT_FILE
        if request.fast:
            # The capability flag is only meaningful once a browser is attached.
            await self._session.open(url)
        strategy = select_screenshot_strategy(self._session, request.fast)
        return await executor.screenshot(path, url, strategy)
