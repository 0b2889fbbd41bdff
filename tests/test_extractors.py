from __future__ import annotations

import pytest

from support import VIEWPORT, FakePage
from websight.models import Bounds, FrameworkConfidence, LocatorType
from websight.snapshot.extractors import (
    ACTIONS_JS,
    SECTIONS_JS,
    build_theme,
    classify_classes,
    compute_locator,
    extract_actions,
    extract_sections,
    fold_awareness,
    section_name,
)


def test_fold_awareness() -> None:
    assert fold_awareness(Bounds(x=0, y=100, w=10, h=10), VIEWPORT) == {
        "in_viewport": True,
        "below_fold": False,
        "above_fold": False,
    }
    assert fold_awareness(Bounds(x=0, y=720, w=10, h=10), VIEWPORT)["below_fold"] is True
    assert fold_awareness(Bounds(x=0, y=-50, w=10, h=50), VIEWPORT)["above_fold"] is True


def test_compute_locator_preference_order() -> None:
    by_test_id = compute_locator("button", "Save", "save-btn", "save")
    by_id = compute_locator("button", "Save", None, "save")
    by_role = compute_locator("button", "Save", None, None)

    assert (by_test_id.type, by_test_id.value) == (LocatorType.TEST_ID, '[data-testid="save-btn"]')
    assert (by_id.type, by_id.value) == (LocatorType.ID, "#save")
    assert by_role.type is LocatorType.ROLE
    assert by_role.value == 'role=button[name="Save"]'
    assert by_role.role_and_name is not None and by_role.role_and_name.name == "Save"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ({"aria_label": "Pricing plans", "heading_text": "Pricing"}, "Pricing plans"),
        ({"heading_text": "Features"}, "Features"),
        ({"test_id": "hero-section"}, "Hero Section"),
        ({}, "Unnamed Section"),
    ],
)
def test_section_name(raw: dict, expected: str) -> None:
    assert section_name(raw) == expected


def test_build_theme_filters_and_ranks_values() -> None:
    theme = build_theme(
        {
            "body_background": "rgb(255, 255, 255)",
            "fonts": ["Inter", "inherit", "Inter", "Mono"],
            "font_sizes": ["16px", "14px", "16px", "0px"],
            "text_colors": ["rgb(0, 0, 0)", "transparent", "rgb(0, 0, 0)", "rgb(1, 1, 1)"],
            "background_colors": ["rgba(0, 0, 0, 0)", "rgb(250, 250, 250)"],
            "border_radii": ["0px", "4px", "4px", "9999px"],
            "css_variables": {"--primary": "#3b82f6"},
        }
    )

    assert theme.fonts == ["Inter", "Mono"]
    assert theme.font_sizes == ["16px", "14px"]
    assert theme.text_colors == ["rgb(0, 0, 0)", "rgb(1, 1, 1)"]
    assert [c.color for c in theme.background_colors] == ["rgb(250, 250, 250)"]
    assert theme.border_radii == ["4px", "9999px"]
    assert theme.css_variables == {"--primary": "#3b82f6"}


def test_classify_classes_detects_tailwind() -> None:
    classes = [
        "flex", "grid", "items-center", "justify-between", "p-4", "mx-2", "bg-white",
        "text-gray-900", "font-bold", "md:flex", "hover:bg-blue-500", "dark:bg-black",
        "rounded-lg", "shadow", "card-header",
    ]

    usage = classify_classes(classes, [{"tag": "div", "selector": "div.box", "styles": ["color"]}])

    assert usage.tailwind.detected is True
    assert "flex" in usage.tailwind.layout
    assert "p-4" in usage.tailwind.spacing
    assert "bg-white" in usage.tailwind.colors
    assert "md:" in usage.tailwind.responsive_prefixes
    assert "hover:" in usage.tailwind.state_variants
    assert usage.tailwind.dark_mode == ["dark:bg-black"]
    assert usage.custom_classes == ["card-header"]
    assert usage.framework.name == "Tailwind CSS"
    assert usage.framework.confidence is FrameworkConfidence.MEDIUM
    assert usage.inline_styles[0].selector == "div.box"


def test_classify_classes_detects_bootstrap() -> None:
    usage = classify_classes(["btn", "btn-primary", "row", "col-md-6"], [])

    assert usage.framework.name == "Bootstrap"
    assert usage.tailwind.detected is False


@pytest.mark.asyncio
async def test_extract_actions_orders_by_reading_position() -> None:
    page = FakePage(
        scripts={
            ACTIONS_JS: [
                {"role": "link", "name": "Footer", "tag": "a", "bounds": {"x": 0, "y": 900, "w": 50, "h": 20}},
                {"role": "button", "name": "Right", "tag": "button", "test_id": "right",
                 "bounds": {"x": 300, "y": 12, "w": 50, "h": 20}},
                {"role": "button", "name": "Left", "tag": "button", "id": "left",
                 "bounds": {"x": 10, "y": 5, "w": 50, "h": 20}},
            ]
        }
    )

    actions = await extract_actions(page, VIEWPORT)

    assert [a.name for a in actions] == ["Left", "Right", "Footer"]
    assert actions[0].locator.value == "#left"
    assert actions[1].locator.type is LocatorType.TEST_ID
    assert actions[2].below_fold is True


@pytest.mark.asyncio
async def test_extract_sections_skips_unidentified_and_sorts() -> None:
    page = FakePage(
        scripts={
            SECTIONS_JS: [
                {"tag": "section", "heading_text": "FAQ", "bounds": {"x": 0, "y": 800, "w": 100, "h": 100}},
                {"tag": "div", "bounds": {"x": 0, "y": 0, "w": 100, "h": 100}},
                {"tag": "section", "test_id": "hero", "bounds": {"x": 0, "y": 0, "w": 100, "h": 100}},
            ]
        }
    )

    sections = await extract_sections(page, VIEWPORT)

    assert [s.name for s in sections] == ["Hero", "FAQ"]
    assert sections[0].identifier == "hero"
    assert sections[1].identifier == "FAQ"
