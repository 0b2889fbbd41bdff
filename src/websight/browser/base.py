"""Browser session abstractions and the error taxonomy."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..models import PageSnapshot, Viewport

if TYPE_CHECKING:
    from playwright.async_api import Page


class WebsightError(RuntimeError):
    """Base class for errors raised by websight."""


class ParameterError(WebsightError):
    """Raised when a request is missing required parameters."""

    def __init__(self, action: str, missing: list[str]) -> None:
        self.action = action
        self.missing = list(missing)
        super().__init__(
            f"Missing required parameter(s) for {action}: {', '.join(self.missing)}"
        )


class TargetNotFound(WebsightError):
    """Raised when a resolved query matches no live element in time."""


class NavigationTimeout(WebsightError):
    """Raised when the primary page load exceeds its timeout."""


class DimensionMismatch(WebsightError):
    """Raised when two screenshots cannot be aligned pixel by pixel."""


class BrowserUnavailable(WebsightError):
    """Raised when the session cannot provide a page or a requested capability."""


@dataclass
class PageInfo:
    """Current page details without a full analysis."""

    url: str = ""
    title: str = ""
    has_page: bool = False


class BrowserSession(ABC):
    """Interface for the long-lived browser session.

    Implementations own exactly one page at a time. Access is not serialized
    internally, callers must not issue concurrent operations on one session.
    """

    @abstractmethod
    async def open(self, url: Optional[str] = None) -> None:
        """Connect to or launch a browser and acquire a page."""

    @abstractmethod
    async def close(self) -> None:
        """Release the session (disconnect only for attached browsers)."""

    @abstractmethod
    async def ensure_page(self, url: Optional[str] = None) -> "Page":
        """Return a ready page, navigating to ``url`` when it changed."""

    @abstractmethod
    async def page_info(self) -> PageInfo:
        """Return the current URL and title of the session page."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the session currently holds a page."""

    @property
    @abstractmethod
    def is_remote(self) -> bool:
        """Whether the session is attached to a browser it does not own."""

    @property
    def supports_fast_screenshot(self) -> bool:
        """Whether the low-level capture path may be used on this session."""

        return self.is_open and not self.is_remote

    @property
    @abstractmethod
    def current_url(self) -> Optional[str]:
        """URL the session last navigated to (or observed for attached tabs)."""

    @property
    @abstractmethod
    def viewport(self) -> Viewport:
        """Viewport used for fold calculations."""

    @property
    @abstractmethod
    def last_snapshot(self) -> Optional[PageSnapshot]:
        """Most recent analysis result, used only to assist target resolution."""

    @abstractmethod
    def remember_snapshot(self, snapshot: PageSnapshot) -> None:
        """Cache ``snapshot`` as the most recent analysis result."""
