"""Human-readable page description generated from a snapshot."""

from __future__ import annotations

import re

from .models import InteractiveAction, LandmarkType, LocatorType, OverlayType, PageSnapshot

RULE = "=" * 70
SUBRULE = "-" * 40
_RGB_RE = re.compile(r"rgba?\((\d+),\s*(\d+),\s*(\d+)")
_TEST_ID_RE = re.compile(r'\[data-testid="(.+)"\]')


def generate_report(snapshot: PageSnapshot) -> str:
    lines = [
        RULE,
        "WEBSIGHT - PAGE LAYOUT & THEME REPORT",
        RULE,
        f"URL:      {snapshot.url}",
        f"Title:    {snapshot.title}",
        f"Viewport: {snapshot.viewport.width}x{snapshot.viewport.height}",
        f"Generated: {snapshot.timestamp.isoformat()}",
        "",
    ]

    overlays = [overlay for overlay in snapshot.overlays if overlay.visible]
    if overlays:
        lines += ["OVERLAYS DETECTED", SUBRULE]
        for overlay in overlays:
            label = overlay.label or overlay.test_id or "Unnamed"
            if overlay.type is OverlayType.MODAL and overlay.covers_page:
                lines.append(f'- MODAL: "{label}" is covering the page, interact inside it')
            elif overlay.type is OverlayType.MODAL:
                lines.append(f'- Modal: "{label}" visible')
            else:
                lines.append(f'- Toast: "{label}"')
        lines.append("")

    lines += ["WHAT IT LOOKS LIKE", SUBRULE, describe_page(snapshot), ""]

    lines += ["LANDMARKS", SUBRULE]
    if not snapshot.landmarks:
        lines.append("- No semantic landmarks detected")
    in_view = [lm for lm in snapshot.landmarks if lm.in_viewport]
    below = [lm for lm in snapshot.landmarks if lm.below_fold]
    if in_view:
        lines.append("Above the fold:")
        for lm in in_view:
            label = f" ({lm.label})" if lm.label else ""
            lines.append(
                f"  - {lm.type.value.upper()}{label} at y={lm.bounds.y}, {lm.bounds.w}x{lm.bounds.h}px"
            )
    if below:
        lines.append("Below the fold:")
        for lm in below:
            label = f" ({lm.label})" if lm.label else ""
            lines.append(f"  - {lm.type.value.upper()}{label} at y={lm.bounds.y}")
    lines.append("")

    lines += ["SECTIONS", SUBRULE]
    sections_in_view = [s for s in snapshot.sections if s.in_viewport]
    sections_below = [s for s in snapshot.sections if s.below_fold]
    if sections_in_view:
        lines.append("Above the fold:")
        for section in sections_in_view:
            heading = f' - "{section.heading_text}"' if section.heading_text else ""
            test_id = f" [{section.test_id}]" if section.test_id else ""
            lines.append(f"  - {section.name}{heading}{test_id}")
    if sections_below:
        lines.append("Scroll down to see:")
        for section in sections_below:
            test_id = f" [{section.test_id}]" if section.test_id else ""
            lines.append(f"  - {section.name}{test_id} (y={section.bounds.y})")
    if not snapshot.sections:
        lines.append("- No distinct sections detected")
    lines.append("")

    theme = snapshot.theme
    lines += [
        "THEME",
        SUBRULE,
        f"Background: {theme.body_background}",
        f"Text Color: {theme.body_text_color}",
        f"Font: {theme.body_font_family} ({theme.body_font_size})",
        f"Line Height: {theme.line_height}",
        "",
        f"Fonts: {', '.join(theme.fonts)}",
        f"Font Sizes: {', '.join(theme.font_sizes)}",
        f"Border Radii: {', '.join(theme.border_radii) or 'none'}",
    ]
    if theme.css_variables:
        lines += ["", "CSS VARIABLES (:root)", SUBRULE]
        lines += [f"  {name}: {value}" for name, value in theme.css_variables.items()]
    lines.append("")

    lines += ["TOP ACTIONS", SUBRULE]
    for action in prioritize_actions(snapshot.actions)[:15]:
        lines.append(f"  - {_describe_action(action)}")
    lines.append("")

    lines.append(RULE)
    if snapshot.screenshot_path:
        lines.append(f"Screenshot: {snapshot.screenshot_path}")
    lines.append("JSON: snapshot.json")
    lines.append(RULE)
    return "\n".join(lines)


def describe_page(snapshot: PageSnapshot) -> str:
    """One paragraph summary of layout, fold, theme and visible controls."""

    parts: list[str] = []
    if any(o.type is OverlayType.MODAL and o.visible and o.covers_page for o in snapshot.overlays):
        parts.append("A modal dialog is currently displayed over the page.")

    def landmark(kind: LandmarkType, in_view_only: bool = False):
        return next(
            (
                lm
                for lm in snapshot.landmarks
                if lm.type is kind and (lm.in_viewport or not in_view_only)
            ),
            None,
        )

    header = landmark(LandmarkType.HEADER, in_view_only=True)
    nav = landmark(LandmarkType.NAV, in_view_only=True)
    main = landmark(LandmarkType.MAIN)
    aside = landmark(LandmarkType.ASIDE, in_view_only=True)
    footer = landmark(LandmarkType.FOOTER)

    if header:
        parts.append(f"The page has a header{' with navigation' if nav else ''} at the top.")
    if main and aside:
        parts.append("The layout is two-column with main content and a sidebar.")
    elif main:
        parts.append("The main content area spans the page width.")

    above = [s.name for s in snapshot.sections if s.in_viewport][:3]
    if above:
        parts.append(f"Above the fold: {', '.join(above)}.")
    below = [s.name for s in snapshot.sections if s.below_fold][:3]
    if below:
        parts.append(f"Scroll down for: {', '.join(below)}.")
    if footer and footer.below_fold:
        parts.append("Footer is at the bottom of the page.")

    shade = "dark" if is_dark_color(snapshot.theme.body_background) else "light"
    parts.append(f"Theme: {shade} background with {snapshot.theme.body_font_family} font.")

    visible = [a for a in snapshot.actions if a.in_viewport]
    counts = [
        (sum(1 for a in visible if a.role == "button"), "buttons"),
        (sum(1 for a in visible if a.role == "link"), "links"),
        (sum(1 for a in visible if a.role.startswith("input")), "inputs"),
    ]
    summary = [f"{count} {label}" for count, label in counts if count]
    if summary:
        parts.append(f"Interactive elements visible: {', '.join(summary)}.")
    return " ".join(parts)


def is_dark_color(color: str) -> bool:
    match = _RGB_RE.match(color or "")
    if not match:
        return False
    red, green, blue = (int(channel) for channel in match.groups())
    luminance = (0.299 * red + 0.587 * green + 0.114 * blue) / 255
    return luminance < 0.5


def prioritize_actions(actions: list[InteractiveAction]) -> list[InteractiveAction]:
    """Test ids first, then visible, then enabled, then top to bottom."""

    return sorted(
        actions,
        key=lambda a: (
            a.locator.type is not LocatorType.TEST_ID,
            not a.in_viewport,
            a.disabled,
            a.bounds.y,
        ),
    )


def _describe_action(action: InteractiveAction) -> str:
    locator = ""
    if action.locator.type is LocatorType.TEST_ID:
        test_id = _TEST_ID_RE.sub(r"\1", action.locator.value)
        locator = f"[{test_id}]"
    elif action.locator.type is LocatorType.ID:
        locator = action.locator.value
    disabled = " (disabled)" if action.disabled else ""
    fold = " (below fold)" if action.below_fold else ""
    return f'{action.role}: "{action.name}"{locator}{disabled}{fold}'
