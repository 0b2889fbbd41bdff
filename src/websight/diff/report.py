"""Text rendering of a diff result."""

from __future__ import annotations

from ..models import DiffResult
from ..report import RULE, SUBRULE


def format_compare_report(result: DiffResult) -> str:
    lines = [
        RULE,
        "WEBSIGHT - VISUAL DIFF REPORT",
        RULE,
        f"URL: {result.url}",
        "",
        f"SUMMARY: {result.summary}",
        "",
    ]

    image = result.image_diff
    if image:
        lines += [
            "IMAGE COMPARISON",
            SUBRULE,
            f"  Pixels changed: {image.diff_pixels:,} / {image.total_pixels:,}",
            f"  Difference: {image.diff_percent}%",
        ]
        if image.has_significant_change:
            lines.append("  SIGNIFICANT VISUAL CHANGE")
        elif image.diff_percent > 0:
            lines.append("  Minor visual change")
        else:
            lines.append("  No visual difference")
        if image.diff_image_path:
            lines.append(f"  Diff image: {image.diff_image_path}")
        lines.append("")

    for title, changes in (
        ("CSS VARIABLE CHANGES", result.css_variable_changes),
        ("THEME CHANGES", result.theme_changes),
    ):
        if changes:
            lines += [title, SUBRULE]
            lines += [f"  {c.property}: {c.before} -> {c.after}" for c in changes]
            lines.append("")

    if result.layout_changes:
        lines += ["LAYOUT CHANGES", SUBRULE]
        lines += [f"  - {change}" for change in result.layout_changes]
        lines.append("")

    if result.sections_added or result.sections_removed:
        lines += ["SECTION CHANGES", SUBRULE]
        lines += [f"  + {name}" for name in result.sections_added]
        lines += [f"  - {name}" for name in result.sections_removed]
        lines.append("")

    if result.actions_added or result.actions_removed:
        lines += ["ACTION CHANGES", SUBRULE]
        lines += [f"  + {name}" for name in result.actions_added]
        lines += [f"  - {name}" for name in result.actions_removed]
        lines.append("")

    lines.append(RULE)
    return "\n".join(lines)
