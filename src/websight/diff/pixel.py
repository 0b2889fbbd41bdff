"""Pixel-level screenshot comparison."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PIL import Image
from pixelmatch.contrib.PIL import pixelmatch

from ..browser.base import DimensionMismatch
from ..config import DiffConfig
from ..models import ImageDiff

LOGGER = logging.getLogger(__name__)


def _load_pair(before: Path, after: Path) -> tuple[Image.Image, Image.Image]:
    with Image.open(before) as first, Image.open(after) as second:
        img1 = first.convert("RGBA")
        img2 = second.convert("RGBA")
    if img1.size != img2.size:
        raise DimensionMismatch(f"Screenshot sizes differ: {img1.size} vs {img2.size}")
    return img1, img2


def compare_images(
    before: Path,
    after: Path,
    diff_path: Path,
    config: Optional[DiffConfig] = None,
) -> Optional[ImageDiff]:
    """Count differing pixels between two screenshots.

    Returns ``None`` when either file is missing or unreadable. Screenshots of
    different sizes cannot be aligned and are reported as a 100% difference
    without a visualization.
    """

    config = config or DiffConfig()
    if not before.is_file() or not after.is_file():
        return None
    try:
        img1, img2 = _load_pair(before, after)
    except DimensionMismatch as exc:
        LOGGER.info("%s", exc)
        with Image.open(before) as first:
            width, height = first.size
        return ImageDiff(
            diff_percent=100.0,
            diff_pixels=-1,
            total_pixels=width * height,
            diff_image_path=None,
            has_significant_change=True,
        )
    except OSError as exc:
        LOGGER.warning("Image comparison failed: %s", exc)
        return None

    diff = Image.new("RGBA", img1.size)
    diff_pixels = pixelmatch(
        img1,
        img2,
        diff,
        threshold=config.pixel_threshold,
        includeAA=config.include_anti_aliased,
    )
    diff_path.parent.mkdir(parents=True, exist_ok=True)
    diff.save(diff_path)

    width, height = img1.size
    total_pixels = width * height
    percent = diff_pixels / total_pixels * 100 if total_pixels else 0.0
    return ImageDiff(
        diff_percent=round(percent, 2),
        diff_pixels=diff_pixels,
        total_pixels=total_pixels,
        diff_image_path=diff_path,
        has_significant_change=percent > config.significant_percent,
    )
