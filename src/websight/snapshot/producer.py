"""Analysis pass that turns the session page into a stored snapshot."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from ..browser.base import BrowserSession
from ..browser.waits import to_ms
from ..models import PageSnapshot
from ..report import generate_report
from .extractors import (
    extract_actions,
    extract_classes,
    extract_landmarks,
    extract_overlays,
    extract_sections,
    extract_text_sample,
    extract_theme,
)
from .store import SCREENSHOT_FILE, SnapshotStore

LOGGER = logging.getLogger(__name__)


@dataclass
class Analysis:
    snapshot: PageSnapshot
    report: str


class SnapshotProducer:
    """Runs all extractors against the session page and persists the result."""

    def __init__(
        self,
        session: BrowserSession,
        store: SnapshotStore,
        *,
        screenshot_timeout: float = 10.0,
    ) -> None:
        self._session = session
        self._store = store
        self._screenshot_timeout = screenshot_timeout

    async def analyze(self, url: Optional[str] = None) -> Analysis:
        page = await self._session.ensure_page(url)
        viewport = self._session.viewport
        landmarks, sections, overlays, actions, theme, classes, title = await asyncio.gather(
            extract_landmarks(page, viewport),
            extract_sections(page, viewport),
            extract_overlays(page, viewport),
            extract_actions(page, viewport),
            extract_theme(page),
            extract_classes(page),
            page.title(),
        )
        text_sample = await extract_text_sample(page)

        self._store.ensure_dir()
        screenshot_name: Optional[str] = SCREENSHOT_FILE
        try:
            await page.screenshot(
                path=str(self._store.screenshot_path),
                timeout=to_ms(self._screenshot_timeout),
                animations="disabled",
            )
        except PlaywrightError as exc:
            # Attached browsers sometimes refuse captures; the analysis is still useful.
            LOGGER.warning("Screenshot skipped: %s", exc)
            self._store.screenshot_path.unlink(missing_ok=True)
            screenshot_name = None

        snapshot = PageSnapshot(
            url=url or page.url,
            title=title,
            viewport=viewport,
            theme=theme,
            landmarks=landmarks,
            sections=sections,
            overlays=overlays,
            actions=actions,
            classes=classes,
            text_sample=text_sample,
            screenshot_path=screenshot_name,
        )
        self._session.remember_snapshot(snapshot)
        report = generate_report(snapshot)
        self._store.write_snapshot(snapshot, report)
        LOGGER.info(
            "Analyzed %s: %d actions, %d sections", snapshot.url, len(actions), len(sections)
        )
        return Analysis(snapshot=snapshot, report=report)

    async def save_baseline(self, url: Optional[str] = None) -> Analysis:
        analysis = await self.analyze(url)
        self._store.save_baseline()
        return analysis
