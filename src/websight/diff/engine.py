"""Structural comparison of two snapshots and summary composition."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from ..config import DiffConfig
from ..models import DiffResult, ImageDiff, PageSnapshot, PropertyChange
from ..snapshot.store import SnapshotStore
from .pixel import compare_images

LOGGER = logging.getLogger(__name__)

THEME_FIELDS = (
    "body_background",
    "body_text_color",
    "body_font_family",
    "body_font_size",
    "line_height",
)
NOT_SET = "(not set)"
REMOVED = "(removed)"


def _ordered(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


def set_difference(before: Iterable[str], after: Iterable[str]) -> tuple[list[str], list[str]]:
    """Return ``(added, removed)`` preserving first-seen order."""

    before_items = _ordered(before)
    after_items = _ordered(after)
    before_set = set(before_items)
    after_set = set(after_items)
    added = [item for item in after_items if item not in before_set]
    removed = [item for item in before_items if item not in after_set]
    return added, removed


def theme_changes(before: PageSnapshot, after: PageSnapshot) -> list[PropertyChange]:
    changes = []
    for field in THEME_FIELDS:
        old = str(getattr(before.theme, field))
        new = str(getattr(after.theme, field))
        if old != new:
            changes.append(PropertyChange(property=field, before=old, after=new))
    return changes


def css_variable_changes(before: PageSnapshot, after: PageSnapshot) -> list[PropertyChange]:
    old_vars = before.theme.css_variables
    new_vars = after.theme.css_variables
    changes = []
    for name in _ordered([*old_vars, *new_vars]):
        old = old_vars.get(name) or NOT_SET
        new = new_vars.get(name) or REMOVED
        if old != new:
            changes.append(PropertyChange(property=name, before=old, after=new))
    return changes


def border_radius_changes(before: PageSnapshot, after: PageSnapshot) -> list[str]:
    added, removed = set_difference(before.theme.border_radii, after.theme.border_radii)
    if not added and not removed:
        return []
    parts = []
    if removed:
        parts.append(f"removed {', '.join(removed)}")
    if added:
        parts.append(f"added {', '.join(added)}")
    return [f"Border radii: {'; '.join(parts)}"]


def summarize(result: DiffResult) -> str:
    changes: list[str] = []
    image = result.image_diff
    if image and image.has_significant_change:
        changes.append(f"{image.diff_percent}% visual difference")
    if result.theme_changes:
        changes.append(f"{len(result.theme_changes)} theme changes")
    if result.css_variable_changes:
        changes.append(f"{len(result.css_variable_changes)} CSS variable changes")
    if result.sections_added or result.sections_removed:
        changes.append(f"sections: +{len(result.sections_added)} -{len(result.sections_removed)}")
    if result.layout_changes:
        changes.append(f"{len(result.layout_changes)} layout changes")
    if not changes and image and image.diff_percent > 0:
        changes.append(f"{image.diff_percent}% pixel difference")
    if not changes:
        return "No visual changes detected"
    return f"Changes: {', '.join(changes)}"


def compare_snapshots(
    before: PageSnapshot,
    after: PageSnapshot,
    *,
    image_diff: Optional[ImageDiff] = None,
) -> DiffResult:
    """Categorize the differences between two snapshots."""

    sections_added, sections_removed = set_difference(
        (section.identifier for section in before.sections),
        (section.identifier for section in after.sections),
    )
    actions_added, actions_removed = set_difference(
        (action.name for action in before.actions),
        (action.name for action in after.actions),
    )
    result = DiffResult(
        url=after.url,
        theme_changes=theme_changes(before, after),
        css_variable_changes=css_variable_changes(before, after),
        sections_added=sections_added,
        sections_removed=sections_removed,
        actions_added=actions_added,
        actions_removed=actions_removed,
        layout_changes=border_radius_changes(before, after),
        image_diff=image_diff,
    )
    result.summary = summarize(result)
    return result


def compare_files(
    before: PageSnapshot,
    after: PageSnapshot,
    *,
    before_image: Optional[Path],
    after_image: Optional[Path],
    diff_image: Path,
    config: Optional[DiffConfig] = None,
) -> DiffResult:
    image_diff = None
    if before_image is not None and after_image is not None:
        image_diff = compare_images(before_image, after_image, diff_image, config)
    return compare_snapshots(before, after, image_diff=image_diff)


def diff_against_baseline(
    store: SnapshotStore,
    current: PageSnapshot,
    config: Optional[DiffConfig] = None,
) -> DiffResult:
    """Compare ``current`` with the stored baseline (which must exist)."""

    baseline = store.load_baseline()
    result = compare_files(
        baseline,
        current,
        before_image=store.baseline_image(baseline),
        after_image=store.current_image(current),
        diff_image=store.diff_image_path,
        config=config,
    )
    LOGGER.info("Diff for %s: %s", result.url, result.summary)
    return result
