"""Bounded wait primitives.

``wait_for_state`` propagates a timeout as :class:`NavigationTimeout`.
``try_wait_for_state`` runs the same wait and discards the outcome, for
settle waits that only help stabilize the page.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .base import NavigationTimeout

if TYPE_CHECKING:
    from playwright.async_api import Page

LOGGER = logging.getLogger(__name__)

LoadState = Literal["domcontentloaded", "load", "networkidle"]


def to_ms(seconds: Optional[float]) -> Optional[float]:
    if seconds is None:
        return None
    return seconds * 1000


async def wait_for_state(page: "Page", state: LoadState, *, timeout: float) -> None:
    try:
        await page.wait_for_load_state(state, timeout=to_ms(timeout))
    except PlaywrightTimeoutError as exc:
        raise NavigationTimeout(
            f"Page did not reach '{state}' within {int(timeout * 1000)}ms"
        ) from exc


async def try_wait_for_state(page: "Page", state: LoadState, *, timeout: float) -> bool:
    """Wait for ``state`` and report whether it was reached, never raising."""

    try:
        await wait_for_state(page, state, timeout=timeout)
    except (NavigationTimeout, PlaywrightError) as exc:
        LOGGER.debug("Ignoring settle wait for %s: %s", state, exc)
        return False
    return True


async def goto(page: "Page", url: str, *, timeout: float) -> None:
    """Navigate and wait for DOM readiness, raising :class:`NavigationTimeout`."""

    try:
        await page.goto(url, wait_until="domcontentloaded", timeout=to_ms(timeout))
    except PlaywrightTimeoutError as exc:
        raise NavigationTimeout(
            f"Navigation to {url} timed out after {int(timeout * 1000)}ms"
        ) from exc
