from pathlib import Path

import pytest

from websight.config import WebsightConfig, load_config


def test_defaults() -> None:
    config = WebsightConfig()

    assert config.browser.cdp_ports == [9222, 9229]
    assert config.browser.blocked_resource_types == ["font", "media"]
    assert "google-analytics.com" in config.browser.blocked_hosts
    assert config.diff.significant_percent == 0.5
    assert config.diff.pixel_threshold == 0.1
    assert config.discovery.dev_ports[0] == 5173
    assert config.discovery.default_url == "http://localhost:5173/"


def test_load_config_reads_env_file(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "WEBSIGHT_BROWSER__HEADLESS=false",
                "WEBSIGHT_BROWSER__PREFER_CDP=true",
                "WEBSIGHT_DIFF__SIGNIFICANT_PERCENT=1.5",
                "WEBSIGHT_OUTPUT_DIR=artifacts",
            ]
        )
    )

    config = load_config(env_file=env_path)

    assert config.browser.headless is False
    assert config.browser.prefer_cdp is True
    assert config.diff.significant_percent == 1.5
    assert config.output_dir == Path("artifacts")


def test_load_config_prioritises_overrides(tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_path.write_text(
        "\n".join(
            [
                "WEBSIGHT_INTERACTION__ACTION_TIMEOUT=9",
                "WEBSIGHT_INTERACTION__WAIT_FOR_TIMEOUT=7",
                "WEBSIGHT_SERVICE__PORT=9000",
            ]
        )
    )

    config_path = tmp_path / "websight.yaml"
    config_path.write_text(
        "\n".join(
            [
                "interaction:",
                "  action_timeout: 3",
                "browser:",
                "  viewport_width: 1440",
            ]
        )
    )

    config = load_config(config_path, env_file=env_path, browser={"viewport_height": 900})

    assert config.interaction.action_timeout == 3
    assert config.interaction.wait_for_timeout == 7
    assert config.service.port == 9000
    assert config.browser.viewport_width == 1440
    assert config.browser.viewport_height == 900


def test_load_config_rejects_non_mapping_file(tmp_path: Path) -> None:
    config_path = tmp_path / "websight.yaml"
    config_path.write_text("- headless\n- prefer_cdp\n")

    with pytest.raises(ValueError, match="expected a mapping"):
        load_config(config_path)


def test_load_config_empty_file_uses_defaults(tmp_path: Path) -> None:
    config_path = tmp_path / "websight.yaml"
    config_path.write_text("")

    assert load_config(config_path, output_dir="shots").output_dir == Path("shots")
