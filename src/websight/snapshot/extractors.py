"""Read-only page extractors that produce the facts of a snapshot.

Each extractor evaluates one script in the page and turns the raw result
into models. They only read page state and can run concurrently on a page
that has finished loading.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Iterable

from ..models import (
    Bounds,
    ClassUsage,
    ColorWeight,
    FrameworkConfidence,
    FrameworkHint,
    InlineStyleElement,
    InteractiveAction,
    Landmark,
    LocatorHint,
    LocatorType,
    Overlay,
    RoleAndName,
    Section,
    TailwindUsage,
    Theme,
    Viewport,
)

if TYPE_CHECKING:
    from playwright.async_api import Page

MAX_ACTIONS = 60
MAX_SECTIONS = 20

# Shared by the in-page scripts below.
_RECT_JS = """
const toBounds = (rect) => ({
  x: Math.round(rect.x), y: Math.round(rect.y),
  w: Math.round(rect.width), h: Math.round(rect.height)
});
"""

LANDMARKS_JS = (
    "() => {"
    + _RECT_JS
    + """
  const groups = [
    ['header', ['header', '[role="banner"]']],
    ['nav', ['nav', '[role="navigation"]']],
    ['main', ['main', '[role="main"]']],
    ['aside', ['aside', '[role="complementary"]']],
    ['footer', ['footer', '[role="contentinfo"]']],
  ];
  const seen = new Set();
  const found = [];
  for (const [type, selectors] of groups) {
    for (const selector of selectors) {
      for (const el of document.querySelectorAll(selector)) {
        if (seen.has(el)) continue;
        seen.add(el);
        const rect = el.getBoundingClientRect();
        const style = getComputedStyle(el);
        if (style.display === 'none' || style.visibility === 'hidden' ||
            rect.width === 0 || rect.height === 0) continue;
        found.push({
          type, selector, bounds: toBounds(rect),
          label: el.getAttribute('aria-label') || el.getAttribute('aria-labelledby') ||
                 el.id || null
        });
      }
    }
  }
  return found;
}"""
)

SECTIONS_JS = (
    "() => {"
    + _RECT_JS
    + """
  const candidates = document.querySelectorAll(
    'section, article, [data-testid*="section"], [data-testid*="hero"], ' +
    '[data-testid*="form"], [data-testid*="table"], [data-testid*="card"], [role="region"]'
  );
  const found = [];
  for (const el of candidates) {
    const rect = el.getBoundingClientRect();
    const style = getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden' ||
        rect.width < 100 || rect.height < 50) continue;
    const heading = el.querySelector('h1, h2, h3, h4, h5, h6');
    const headingText = heading ? (heading.textContent || '').trim().slice(0, 100) : null;
    found.push({
      tag: el.tagName.toLowerCase(),
      bounds: toBounds(rect),
      heading_level: heading ? parseInt(heading.tagName[1], 10) : null,
      heading_text: headingText || null,
      test_id: el.getAttribute('data-testid'),
      aria_label: el.getAttribute('aria-label')
    });
  }
  return found;
}"""
)

OVERLAYS_JS = (
    "(vp) => {"
    + _RECT_JS
    + """
  const modalSelectors = [
    '[role="dialog"][aria-modal="true"]', '[role="dialog"]', '[data-testid*="modal"]',
    '.modal:not([style*="display: none"])', '[class*="modal"][class*="open"]',
    '[class*="modal"][class*="visible"]', '[class*="modal"][class*="show"]'
  ];
  const toastSelectors = [
    '[role="status"]', '[role="alert"]', '[data-testid*="toast"]',
    '[class*="toast"]:not([style*="display: none"])',
    '[class*="snackbar"]:not([style*="display: none"])',
    '[class*="notification"]:not([style*="display: none"])'
  ];
  const visible = (el, rect) => {
    const style = getComputedStyle(el);
    return style.display !== 'none' && style.visibility !== 'hidden' &&
      style.opacity !== '0' && rect.width > 0 && rect.height > 0;
  };
  const found = [];
  const collect = (type, selectors) => {
    for (const selector of selectors) {
      let elements = [];
      try { elements = document.querySelectorAll(selector); } catch (e) { continue; }
      for (const el of elements) {
        const rect = el.getBoundingClientRect();
        if (!visible(el, rect)) continue;
        const bounds = toBounds(rect);
        if (found.some(o => o.bounds.x === bounds.x && o.bounds.y === bounds.y)) continue;
        const label = type === 'modal'
          ? el.getAttribute('aria-label') || el.getAttribute('aria-labelledby')
          : el.getAttribute('aria-label') || (el.textContent || '').trim().slice(0, 50);
        found.push({
          type, visible: true, bounds, label: label || null,
          test_id: el.getAttribute('data-testid'),
          covers_page: type === 'modal' &&
            (rect.width > vp.width * 0.5 || rect.height > vp.height * 0.5)
        });
      }
    }
  };
  collect('modal', modalSelectors);
  collect('toast', toastSelectors);
  return found;
}"""
)

ACTIONS_JS = (
    "(limit) => {"
    + _RECT_JS
    + """
  const selectors = [
    'button', 'a[href]', 'input', 'select', 'textarea', '[role="button"]', '[role="link"]',
    '[role="checkbox"]', '[role="radio"]', '[role="switch"]', '[role="tab"]',
    '[role="menuitem"]', '[role="option"]', '[tabindex="0"]', '[onclick]'
  ];
  const accessibleName = (el) => {
    let name = el.getAttribute('aria-label') || '';
    const labelledBy = el.getAttribute('aria-labelledby');
    if (!name && labelledBy) {
      const labelEl = document.getElementById(labelledBy);
      name = labelEl ? (labelEl.textContent || '').trim() : '';
    }
    if (!name && el.id) {
      const label = document.querySelector(`label[for="${CSS.escape(el.id)}"]`);
      name = label ? (label.textContent || '').trim() : '';
    }
    if (!name && 'placeholder' in el) name = el.placeholder || '';
    if (!name) name = (el.textContent || '').trim().slice(0, 50);
    if (!name) name = el.getAttribute('title') || '';
    if (!name && el.tagName === 'INPUT') name = el.value || '';
    return name;
  };
  const found = [];
  for (const el of document.querySelectorAll(selectors.join(', '))) {
    if (found.length >= limit) break;
    const rect = el.getBoundingClientRect();
    const style = getComputedStyle(el);
    if (style.display === 'none' || style.visibility === 'hidden' || style.opacity === '0' ||
        rect.width === 0 || rect.height === 0) continue;
    if (rect.width < 10 && rect.height < 10) continue;
    let role = el.getAttribute('role') || el.tagName.toLowerCase();
    if (el.tagName === 'A') role = 'link';
    if (el.tagName === 'INPUT') {
      const type = el.type || 'text';
      role = type === 'submit' || type === 'button' ? 'button' : `input:${type}`;
    }
    const name = accessibleName(el);
    if (!name) continue;
    found.push({
      role, name: name.slice(0, 80), tag: el.tagName.toLowerCase(),
      disabled: el.disabled === true || el.getAttribute('aria-disabled') === 'true' ||
                el.hasAttribute('disabled'),
      bounds: toBounds(rect),
      test_id: el.getAttribute('data-testid'),
      id: el.id || null
    });
  }
  return found;
}"""
)

THEME_JS = """() => {
  const firstFamily = (value) => value.split(',')[0].trim().replace(/['"]/g, '');
  const bodyStyle = getComputedStyle(document.body);
  const cssVariables = {};
  for (const sheet of document.styleSheets) {
    let rules;
    try { rules = sheet.cssRules; } catch (e) { continue; }
    for (const rule of rules) {
      if (rule instanceof CSSStyleRule && rule.selectorText === ':root') {
        for (let i = 0; i < rule.style.length; i++) {
          const prop = rule.style[i];
          if (prop.startsWith('--')) {
            cssVariables[prop] = rule.style.getPropertyValue(prop).trim();
          }
        }
      }
    }
  }
  const fonts = [], fontSizes = [], textColors = [], backgrounds = [];
  const borderColors = [], borderRadii = [];
  const elements = document.querySelectorAll('*');
  const sample = Math.min(elements.length, 500);
  for (let i = 0; i < sample; i++) {
    const cs = getComputedStyle(elements[i]);
    fonts.push(firstFamily(cs.fontFamily));
    fontSizes.push(cs.fontSize);
    textColors.push(cs.color);
    backgrounds.push(cs.backgroundColor.replace(/\\s+/g, ''));
    if (cs.borderTopWidth !== '0px') borderColors.push(cs.borderTopColor);
    borderRadii.push(cs.borderRadius);
  }
  return {
    body_background: bodyStyle.backgroundColor,
    body_text_color: bodyStyle.color,
    body_font_family: firstFamily(bodyStyle.fontFamily),
    body_font_size: bodyStyle.fontSize,
    line_height: bodyStyle.lineHeight,
    fonts, font_sizes: fontSizes, text_colors: textColors, background_colors: backgrounds,
    border_colors: borderColors, border_radii: borderRadii, css_variables: cssVariables
  };
}"""

CLASSES_JS = """() => {
  const classes = [];
  const inline = [];
  const elements = document.querySelectorAll('*');
  const sample = Math.min(elements.length, 1000);
  for (let i = 0; i < sample; i++) {
    const el = elements[i];
    if (el.classList) el.classList.forEach(cls => classes.push(cls));
    if (el.style && el.style.length > 0 && inline.length < 20) {
      const styles = [];
      for (let j = 0; j < el.style.length; j++) styles.push(el.style[j]);
      let selector = el.tagName.toLowerCase();
      if (el.id) selector += `#${el.id}`;
      else if (el.classList && el.classList.length > 0) selector += `.${el.classList[0]}`;
      inline.push({ tag: el.tagName.toLowerCase(), selector, styles });
    }
  }
  return { classes, inline_styles: inline };
}"""

TEXT_SAMPLE_JS = """() => {
  const main = document.querySelector('main') || document.body;
  return ((main && main.textContent) || '').slice(0, 500).replace(/\\s+/g, ' ').trim();
}"""


def fold_awareness(bounds: Bounds, viewport: Viewport) -> dict[str, bool]:
    below_fold = bounds.y >= viewport.height
    above_fold = bounds.y + bounds.h <= 0
    return {
        "in_viewport": not below_fold and not above_fold,
        "below_fold": below_fold,
        "above_fold": above_fold,
    }


def compute_locator(role: str, name: str, test_id: str | None, element_id: str | None) -> LocatorHint:
    """Prefer test ids, then element ids, then role plus accessible name."""

    if test_id:
        return LocatorHint(type=LocatorType.TEST_ID, value=f'[data-testid="{test_id}"]')
    if element_id:
        return LocatorHint(type=LocatorType.ID, value=f"#{element_id}")
    return LocatorHint(
        type=LocatorType.ROLE,
        value=f'role={role}[name="{name}"]',
        role_and_name=RoleAndName(role=role, name=name),
    )


def section_name(raw: dict[str, Any]) -> str:
    aria_label = raw.get("aria_label")
    heading_text = raw.get("heading_text")
    test_id = raw.get("test_id")
    if aria_label or heading_text:
        return aria_label or heading_text
    if test_id:
        # "hero-section" -> "Hero Section"
        return re.sub(r"[-_]", " ", test_id).title()
    return "Unnamed Section"


def top_by_frequency(values: Iterable[str], limit: int) -> list[tuple[str, int]]:
    counts: dict[str, int] = {}
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def unique(values: Iterable[str], limit: int | None = None) -> list[str]:
    seen: dict[str, None] = {}
    for value in values:
        if value:
            seen.setdefault(value, None)
    items = list(seen)
    return items if limit is None else items[:limit]


def build_theme(raw: dict[str, Any]) -> Theme:
    transparent = {"rgba(0, 0, 0, 0)", "rgba(0,0,0,0)", "transparent"}
    return Theme(
        body_background=raw.get("body_background", ""),
        body_text_color=raw.get("body_text_color", ""),
        body_font_family=raw.get("body_font_family", ""),
        body_font_size=raw.get("body_font_size", ""),
        line_height=raw.get("line_height", ""),
        fonts=unique((f for f in raw.get("fonts", []) if f != "inherit"), 6),
        font_sizes=[
            size for size, _ in top_by_frequency(
                (s for s in raw.get("font_sizes", []) if s and s != "0px"), 8
            )
        ],
        text_colors=[
            color for color, _ in top_by_frequency(
                (c for c in raw.get("text_colors", []) if c and c not in transparent), 6
            )
        ],
        background_colors=[
            ColorWeight(color=color, weight=weight)
            for color, weight in top_by_frequency(
                (c for c in raw.get("background_colors", []) if c and c not in transparent), 8
            )
        ],
        border_colors=unique(
            (c for c in raw.get("border_colors", []) if c not in transparent), 6
        ),
        border_radii=unique((r for r in raw.get("border_radii", []) if r != "0px"), 8),
        css_variables=dict(raw.get("css_variables", {})),
    )


_RESPONSIVE_RE = re.compile(r"^(sm:|md:|lg:|xl:|2xl:)")
_STATE_RE = re.compile(r"^(hover:|focus:|active:|group-|peer-)")
_VARIANT_PREFIX_RE = re.compile(r"^(sm:|md:|lg:|xl:|2xl:|hover:|focus:|active:|dark:|group-|peer-)+")
_LAYOUT_RE = re.compile(r"^(flex|grid|block|inline|hidden|container|justify-|items-|content-|self-|gap-)")
_SPACING_RE = re.compile(r"^[pm][xytblr]?-\d|^(space-[xy]-|gap-)")
_COLOR_RE = re.compile(r"^(bg-|text-|border-|ring-)")
_TYPOGRAPHY_RE = re.compile(r"^(font-|text-[xsmlg]|leading-|tracking-)")
_OTHER_UTILITY_RE = re.compile(r"^(w-|h-|min-|max-|rounded|shadow|opacity-|transition|duration-)")
_BOOTSTRAP_HINT_RE = re.compile(r"^(btn-|col-(sm|md|lg)-|navbar-|d-flex)")
_BOOTSTRAP_CLASS_RE = re.compile(r"^(btn|col|row|container|navbar|d-|justify-content|align-items)")


def classify_classes(classes: Iterable[str], inline_styles: Iterable[dict[str, Any]]) -> ClassUsage:
    """Categorize class names into utility groups and guess the CSS framework."""

    all_classes = unique(classes)
    tailwind: list[str] = []
    custom: list[str] = []
    groups: dict[str, list[str]] = {
        "layout": [], "spacing": [], "colors": [], "typography": [],
        "responsive_prefixes": [], "state_variants": [], "dark_mode": [],
    }
    for cls in all_classes:
        utility = False
        if _RESPONSIVE_RE.match(cls):
            groups["responsive_prefixes"].append(cls.split(":")[0] + ":")
            utility = True
        if _STATE_RE.match(cls):
            groups["state_variants"].append(cls.split(":")[0] + ":")
            utility = True
        if cls.startswith("dark:"):
            groups["dark_mode"].append(cls)
            utility = True
        base = _VARIANT_PREFIX_RE.sub("", cls)
        for group, pattern in (
            ("layout", _LAYOUT_RE),
            ("spacing", _SPACING_RE),
            ("colors", _COLOR_RE),
            ("typography", _TYPOGRAPHY_RE),
        ):
            if pattern.search(base):
                groups[group].append(cls)
                utility = True
        if _OTHER_UTILITY_RE.match(base):
            utility = True
        if utility:
            tailwind.append(cls)
        elif not cls.startswith("_") and len(cls) > 1:
            custom.append(cls)

    framework = FrameworkHint()
    if len(tailwind) > 10:
        framework = FrameworkHint(
            name="Tailwind CSS",
            confidence=FrameworkConfidence.HIGH if len(tailwind) > 50 else FrameworkConfidence.MEDIUM,
            indicators=tailwind[:10],
        )
    elif any(_BOOTSTRAP_HINT_RE.match(cls) for cls in all_classes):
        bootstrap = [cls for cls in all_classes if _BOOTSTRAP_CLASS_RE.match(cls)]
        framework = FrameworkHint(
            name="Bootstrap",
            confidence=FrameworkConfidence.HIGH if len(bootstrap) > 10 else FrameworkConfidence.MEDIUM,
            indicators=bootstrap[:10],
        )
    elif any(cls.startswith(("Mui", "css-")) for cls in all_classes):
        framework = FrameworkHint(
            name="Material UI",
            confidence=FrameworkConfidence.MEDIUM,
            indicators=[cls for cls in all_classes if cls.startswith("Mui")][:10],
        )

    return ClassUsage(
        tailwind=TailwindUsage(
            detected=len(tailwind) > 5,
            layout=unique(groups["layout"], 30),
            spacing=unique(groups["spacing"], 30),
            colors=unique(groups["colors"], 30),
            typography=unique(groups["typography"], 20),
            responsive_prefixes=unique(groups["responsive_prefixes"]),
            state_variants=unique(groups["state_variants"]),
            dark_mode=unique(groups["dark_mode"], 20),
            all=tailwind[:100],
        ),
        custom_classes=custom[:50],
        inline_styles=[InlineStyleElement.model_validate(item) for item in inline_styles][:20],
        framework=framework,
    )


def _reading_order(bounds: Bounds) -> tuple[int, int]:
    # Rows are 20px tall; elements within one row read left to right.
    return bounds.y // 20, bounds.x


async def extract_landmarks(page: "Page", viewport: Viewport) -> list[Landmark]:
    raw_items = await page.evaluate(LANDMARKS_JS)
    landmarks = []
    for raw in raw_items:
        bounds = Bounds.model_validate(raw["bounds"])
        landmarks.append(
            Landmark(
                type=raw["type"],
                selector=raw["selector"],
                label=raw.get("label"),
                bounds=bounds,
                **fold_awareness(bounds, viewport),
            )
        )
    return landmarks


async def extract_sections(page: "Page", viewport: Viewport) -> list[Section]:
    raw_items = await page.evaluate(SECTIONS_JS)
    sections = []
    for raw in raw_items:
        if not (raw.get("test_id") or raw.get("aria_label") or raw.get("heading_text")):
            continue
        bounds = Bounds.model_validate(raw["bounds"])
        sections.append(
            Section(
                name=section_name(raw),
                tag=raw["tag"],
                heading_level=raw.get("heading_level"),
                heading_text=raw.get("heading_text"),
                test_id=raw.get("test_id"),
                aria_label=raw.get("aria_label"),
                bounds=bounds,
                **fold_awareness(bounds, viewport),
            )
        )
    sections.sort(key=lambda section: section.bounds.y)
    return sections[:MAX_SECTIONS]


async def extract_overlays(page: "Page", viewport: Viewport) -> list[Overlay]:
    raw_items = await page.evaluate(OVERLAYS_JS, viewport.model_dump())
    return [Overlay.model_validate(raw) for raw in raw_items]


async def extract_actions(page: "Page", viewport: Viewport) -> list[InteractiveAction]:
    raw_items = await page.evaluate(ACTIONS_JS, MAX_ACTIONS)
    actions = []
    for raw in raw_items:
        bounds = Bounds.model_validate(raw["bounds"])
        actions.append(
            InteractiveAction(
                role=raw["role"],
                name=raw["name"],
                tag=raw["tag"],
                disabled=bool(raw.get("disabled")),
                bounds=bounds,
                locator=compute_locator(raw["role"], raw["name"], raw.get("test_id"), raw.get("id")),
                **fold_awareness(bounds, viewport),
            )
        )
    actions.sort(key=lambda action: _reading_order(action.bounds))
    return actions


async def extract_theme(page: "Page") -> Theme:
    return build_theme(await page.evaluate(THEME_JS))


async def extract_classes(page: "Page") -> ClassUsage:
    raw = await page.evaluate(CLASSES_JS)
    return classify_classes(raw.get("classes", []), raw.get("inline_styles", []))


async def extract_text_sample(page: "Page") -> str:
    return await page.evaluate(TEXT_SAMPLE_JS)
