"""On-disk layout for snapshots, screenshots and the baseline copy."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..models import PageSnapshot

LOGGER = logging.getLogger(__name__)

SNAPSHOT_FILE = "snapshot.json"
SCREENSHOT_FILE = "page.png"
REPORT_FILE = "report.txt"
DIFF_IMAGE_FILE = "diff.png"
BASELINE_SUFFIX = "-before"


def baseline_name(file_name: str) -> str:
    """``snapshot.json`` -> ``snapshot-before.json``."""

    path = Path(file_name)
    return f"{path.stem}{BASELINE_SUFFIX}{path.suffix}"


class SnapshotStore:
    """Files of the current analysis and of the saved baseline."""

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    @property
    def snapshot_path(self) -> Path:
        return self._output_dir / SNAPSHOT_FILE

    @property
    def screenshot_path(self) -> Path:
        return self._output_dir / SCREENSHOT_FILE

    @property
    def report_path(self) -> Path:
        return self._output_dir / REPORT_FILE

    @property
    def diff_image_path(self) -> Path:
        return self._output_dir / DIFF_IMAGE_FILE

    @property
    def baseline_snapshot_path(self) -> Path:
        return self._output_dir / baseline_name(SNAPSHOT_FILE)

    @property
    def baseline_screenshot_path(self) -> Path:
        return self._output_dir / baseline_name(SCREENSHOT_FILE)

    def ensure_dir(self) -> Path:
        self._output_dir.mkdir(parents=True, exist_ok=True)
        return self._output_dir

    def write_snapshot(self, snapshot: PageSnapshot, report: Optional[str] = None) -> Path:
        self.ensure_dir()
        self.snapshot_path.write_text(snapshot.model_dump_json(indent=2), encoding="utf-8")
        if report is not None:
            self.report_path.write_text(report, encoding="utf-8")
        return self.snapshot_path

    def load_snapshot(self) -> PageSnapshot:
        return self._load(self.snapshot_path)

    def has_baseline(self) -> bool:
        return self.baseline_snapshot_path.is_file()

    def load_baseline(self) -> PageSnapshot:
        return self._load(self.baseline_snapshot_path)

    def save_baseline(self) -> list[Path]:
        """Copy the current snapshot and screenshot over the baseline files."""

        saved: list[Path] = []
        for source, destination in (
            (self.snapshot_path, self.baseline_snapshot_path),
            (self.screenshot_path, self.baseline_screenshot_path),
        ):
            if source.is_file():
                shutil.copyfile(source, destination)
                saved.append(destination)
            else:
                destination.unlink(missing_ok=True)
        LOGGER.info("Saved baseline files: %s", ", ".join(path.name for path in saved) or "none")
        return saved

    def baseline_image(self, baseline: PageSnapshot) -> Optional[Path]:
        """Baseline screenshot copy, or ``None`` when the baseline was saved without one."""

        if baseline.screenshot_path is None or not self.baseline_screenshot_path.is_file():
            return None
        return self.baseline_screenshot_path

    def current_image(self, current: PageSnapshot) -> Optional[Path]:
        if current.screenshot_path is None:
            return None
        return self._output_dir / current.screenshot_path

    @staticmethod
    def _load(path: Path) -> PageSnapshot:
        return PageSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
