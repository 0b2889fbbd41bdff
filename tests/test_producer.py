from __future__ import annotations

from pathlib import Path

import pytest
from playwright.async_api import Error as PlaywrightError

from support import FakePage, FakeSession
from websight.snapshot.extractors import (
    ACTIONS_JS,
    CLASSES_JS,
    LANDMARKS_JS,
    OVERLAYS_JS,
    SECTIONS_JS,
    TEXT_SAMPLE_JS,
    THEME_JS,
)
from websight.snapshot.producer import SnapshotProducer
from websight.snapshot.store import SnapshotStore


@pytest.fixture
def page() -> FakePage:
    return FakePage(
        url="http://localhost:5173/",
        scripts={
            LANDMARKS_JS: [],
            SECTIONS_JS: [],
            OVERLAYS_JS: [],
            ACTIONS_JS: [],
            THEME_JS: {"body_background": "rgb(255, 255, 255)"},
            CLASSES_JS: {"classes": ["flex"], "inline_styles": []},
            TEXT_SAMPLE_JS: "Hello world",
        },
        title="Landing",
    )


def _producer(page: FakePage, tmp_path: Path) -> tuple[SnapshotProducer, FakeSession, SnapshotStore]:
    session = FakeSession(page)
    store = SnapshotStore(tmp_path)
    return SnapshotProducer(session, store), session, store


@pytest.mark.asyncio
async def test_analyze_writes_files_and_caches_snapshot(page: FakePage, tmp_path: Path) -> None:
    producer, session, store = _producer(page, tmp_path)

    analysis = await producer.analyze("http://localhost:5173/")

    snapshot = analysis.snapshot
    assert snapshot.title == "Landing"
    assert snapshot.text_sample == "Hello world"
    assert snapshot.screenshot_path == "page.png"
    assert session.last_snapshot is snapshot
    assert store.load_snapshot() == snapshot
    assert store.screenshot_path.read_bytes() == b"png"
    assert store.report_path.read_text(encoding="utf-8") == analysis.report
    assert page.screenshots[0]["animations"] == "disabled"


@pytest.mark.asyncio
async def test_analyze_survives_screenshot_failure(page: FakePage, tmp_path: Path) -> None:
    producer, _, store = _producer(page, tmp_path)
    store.ensure_dir()
    store.screenshot_path.write_bytes(b"stale")
    page.screenshot_error = PlaywrightError("Target closed")

    analysis = await producer.analyze()

    assert analysis.snapshot.screenshot_path is None
    assert analysis.snapshot.url == "http://localhost:5173/"
    assert not store.screenshot_path.exists()


@pytest.mark.asyncio
async def test_save_baseline_copies_current_files(page: FakePage, tmp_path: Path) -> None:
    producer, _, store = _producer(page, tmp_path)

    await producer.save_baseline("http://localhost:5173/")

    assert store.has_baseline()
    assert store.baseline_screenshot_path.read_bytes() == b"png"
