"""Shared models used across websight."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Bounds(BaseModel):
    """Rounded bounding box of an element in CSS pixels."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    w: int
    h: int


class Viewport(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int


class FoldAware(BaseModel):
    """Position of an element relative to the initial viewport."""

    model_config = ConfigDict(frozen=True)

    bounds: Bounds
    in_viewport: bool = True
    below_fold: bool = False
    above_fold: bool = False


class LandmarkType(str, enum.Enum):
    HEADER = "header"
    NAV = "nav"
    MAIN = "main"
    ASIDE = "aside"
    FOOTER = "footer"


class Landmark(FoldAware):
    type: LandmarkType
    selector: str
    label: Optional[str] = None


class Section(FoldAware):
    name: str
    tag: str
    heading_level: Optional[int] = None
    heading_text: Optional[str] = None
    test_id: Optional[str] = None
    aria_label: Optional[str] = None

    @property
    def identifier(self) -> str:
        """Stable identifier used when comparing sections between snapshots."""

        return self.test_id or self.name


class OverlayType(str, enum.Enum):
    MODAL = "modal"
    TOAST = "toast"


class Overlay(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: OverlayType
    visible: bool
    bounds: Bounds
    label: Optional[str] = None
    test_id: Optional[str] = None
    covers_page: bool = False


class LocatorType(str, enum.Enum):
    """Kinds of precomputed element queries, in order of preference."""

    TEST_ID = "test_id"
    ID = "id"
    ROLE = "role"
    CSS = "css"


class RoleAndName(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    name: str


class LocatorHint(BaseModel):
    """A complete, typed element query attached to an interactive element."""

    model_config = ConfigDict(frozen=True)

    type: LocatorType
    value: str
    role_and_name: Optional[RoleAndName] = None


class InteractiveAction(FoldAware):
    """Interactive element discovered during analysis."""

    role: str
    name: str
    tag: str
    disabled: bool = False
    locator: LocatorHint


class ColorWeight(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str
    weight: int


class Theme(BaseModel):
    model_config = ConfigDict(frozen=True)

    body_background: str = ""
    body_text_color: str = ""
    body_font_family: str = ""
    body_font_size: str = ""
    line_height: str = ""
    fonts: list[str] = Field(default_factory=list)
    font_sizes: list[str] = Field(default_factory=list)
    text_colors: list[str] = Field(default_factory=list)
    background_colors: list[ColorWeight] = Field(default_factory=list)
    border_colors: list[str] = Field(default_factory=list)
    border_radii: list[str] = Field(default_factory=list)
    css_variables: dict[str, str] = Field(default_factory=dict)


class TailwindUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    detected: bool = False
    layout: list[str] = Field(default_factory=list)
    spacing: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)
    typography: list[str] = Field(default_factory=list)
    responsive_prefixes: list[str] = Field(default_factory=list)
    state_variants: list[str] = Field(default_factory=list)
    dark_mode: list[str] = Field(default_factory=list)
    all: list[str] = Field(default_factory=list)


class InlineStyleElement(BaseModel):
    model_config = ConfigDict(frozen=True)

    tag: str
    selector: str
    styles: list[str] = Field(default_factory=list)


class FrameworkConfidence(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class FrameworkHint(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    confidence: FrameworkConfidence = FrameworkConfidence.NONE
    indicators: list[str] = Field(default_factory=list)


class ClassUsage(BaseModel):
    model_config = ConfigDict(frozen=True)

    tailwind: TailwindUsage = Field(default_factory=TailwindUsage)
    custom_classes: list[str] = Field(default_factory=list)
    inline_styles: list[InlineStyleElement] = Field(default_factory=list)
    framework: FrameworkHint = Field(default_factory=FrameworkHint)


class PageSnapshot(BaseModel):
    """Immutable, point-in-time description of a loaded page."""

    model_config = ConfigDict(frozen=True)

    url: str
    title: str = ""
    viewport: Viewport
    theme: Theme = Field(default_factory=Theme)
    landmarks: list[Landmark] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    overlays: list[Overlay] = Field(default_factory=list)
    actions: list[InteractiveAction] = Field(default_factory=list)
    classes: Optional[ClassUsage] = None
    text_sample: str = ""
    screenshot_path: Optional[str] = Field(
        default=None,
        description="Screenshot file name relative to the snapshot document.",
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ActionKind(str, enum.Enum):
    """Interactions the executor can perform."""

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


class ScrollDirection(str, enum.Enum):
    UP = "up"
    DOWN = "down"
    TOP = "top"
    BOTTOM = "bottom"


class InteractionResult(BaseModel):
    """Structured outcome of a single interaction."""

    success: bool
    action: ActionKind
    target: str = Field(description="Resolved element query, key, direction or file path.")
    message: str
    duration_ms: int
    error: Optional[str] = Field(default=None, description="Failure category when unsuccessful.")
    value: Optional[str] = None
    visible: Optional[bool] = None
    enabled: Optional[bool] = None


class PropertyChange(BaseModel):
    property: str
    before: str
    after: str


class ImageDiff(BaseModel):
    diff_percent: float
    diff_pixels: int
    total_pixels: int
    diff_image_path: Optional[Path] = None
    has_significant_change: bool = False


class DiffResult(BaseModel):
    """Categorized change report between two snapshots."""

    url: str
    summary: str = ""
    theme_changes: list[PropertyChange] = Field(default_factory=list)
    css_variable_changes: list[PropertyChange] = Field(default_factory=list)
    sections_added: list[str] = Field(default_factory=list)
    sections_removed: list[str] = Field(default_factory=list)
    actions_added: list[str] = Field(default_factory=list)
    actions_removed: list[str] = Field(default_factory=list)
    layout_changes: list[str] = Field(default_factory=list)
    image_diff: Optional[ImageDiff] = None
