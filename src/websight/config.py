"""Configuration models for websight."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BLOCKED_HOSTS = [
    "google-analytics.com",
    "googletagmanager.com",
    "doubleclick.net",
    "facebook.net",
    "hotjar.com",
    "segment.com",
    "mixpanel.com",
]


class BrowserConfig(BaseModel):
    """Settings for the browser session."""

    headless: bool = True
    slow_mo_ms: int = Field(
        default=50,
        description="Delay between actions when the browser window is visible.",
    )
    prefer_cdp: bool = Field(
        default=False,
        description="Attach to an already running browser with remote debugging enabled.",
    )
    cdp_ports: list[int] = Field(default_factory=lambda: [9222, 9229])
    cdp_host: str = "localhost"
    cdp_connect_timeout: float = 2.0
    viewport_width: int = 1280
    viewport_height: int = 720
    navigation_timeout: float = 30.0
    network_idle_timeout: float = 3.0
    blocked_hosts: list[str] = Field(default_factory=lambda: list(DEFAULT_BLOCKED_HOSTS))
    blocked_resource_types: list[str] = Field(default_factory=lambda: ["font", "media"])


class InteractionConfig(BaseModel):
    """Timeouts (seconds) applied by the interaction executor."""

    action_timeout: float = 5.0
    wait_for_timeout: float = 5.0
    settle_timeout: float = 2.0
    visibility_timeout: float = 2.0
    enabled_timeout: float = 1.0
    text_fallback_timeout: float = 2.0
    screenshot_timeout: float = 5.0


class DiffConfig(BaseModel):
    """Pixel comparison settings."""

    pixel_threshold: float = Field(
        default=0.1,
        description="Per-channel sensitivity of the anti-aliasing aware comparison (0..1).",
    )
    include_anti_aliased: bool = False
    significant_percent: float = Field(
        default=0.5,
        description="Differing pixel percentage above which a change counts as significant.",
    )


class DiscoveryConfig(BaseModel):
    """Settings for locating the page to analyze when no URL is given."""

    host: str = "localhost"
    dev_ports: list[int] = Field(
        default_factory=lambda: [5173, 3000, 3001, 8080, 8000, 4200, 4000, 5000, 5500]
    )
    default_url: str = "http://localhost:5173/"
    port_timeout: float = 0.3
    probe_timeout: float = 1.0


class ServiceConfig(BaseModel):
    """Settings for the HTTP tool service."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8765)


class WebsightConfig(BaseSettings):
    """Top-level configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WEBSIGHT_",
        env_file=(".env",),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    output_dir: Path = Field(default=Path("out"))
    analysis_screenshot_timeout: float = Field(
        default=10.0,
        description="Timeout (in seconds) for the screenshot taken during page analysis.",
    )
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    interaction: InteractionConfig = Field(default_factory=InteractionConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    service: ServiceConfig = Field(default_factory=ServiceConfig)


def load_config(
    path: Path | None = None,
    *,
    env_file: Path | None = None,
    **overrides: object,
) -> WebsightConfig:
    """Layer settings: environment first, then the YAML file, then ``overrides``.

    Nested sections merge key by key, so a file that only sets
    ``browser.viewport_width`` keeps every other ``browser`` value from the
    environment.
    """

    layers: dict[str, Any] = _read_yaml(path) if path else {}
    if overrides:
        layers = _merged(layers, overrides)
    settings_kwargs: dict[str, object] = {}
    if env_file is not None:
        settings_kwargs["_env_file"] = env_file
    from_env = WebsightConfig(**settings_kwargs)
    if not layers:
        return from_env
    return WebsightConfig.model_validate(_merged(from_env.model_dump(mode="python"), layers))


def _read_yaml(path: Path) -> dict[str, Any]:
    import yaml

    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a mapping of settings, got {type(data).__name__}")
    return dict(data)


def _merged(base: Mapping[str, Any], updates: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``updates`` applied, merging nested mappings."""

    result = dict(base)
    for key, value in updates.items():
        current = result.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            result[key] = _merged(current, value)
        else:
            result[key] = value
    return result
