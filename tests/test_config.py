"""Tests for livecursor.config and livecursor.config_loader."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from livecursor._errors import ConfigError
from livecursor.config import LiveCursorConfig
from livecursor.config_loader import load_config


class TestLiveCursorConfig:
    def test_defaults(self) -> None:
        config = LiveCursorConfig()
        assert config.debounce_ms == 50.0
        assert config.flush_window_ms == 0.0
        assert config.eager is False
        assert config.max_events == 10_000
        assert config.verbose is False

    def test_frozen(self) -> None:
        config = LiveCursorConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.debounce_ms = 1  # type: ignore[misc]

    def test_zero_debounce_allowed(self) -> None:
        assert LiveCursorConfig(debounce_ms=0).debounce_ms == 0

    @pytest.mark.parametrize(
        "kwargs",
        [{"debounce_ms": -1}, {"flush_window_ms": -0.5}, {"max_events": 0}],
    )
    def test_invalid_values(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            LiveCursorConfig(**kwargs)


class TestLoadConfig:
    def test_no_file_gives_defaults(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == LiveCursorConfig()

    def test_yaml_top_level_and_section(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yaml").write_text(
            "debounce_ms: 10\nunrelated: true\nlivecursor:\n  eager: true\n"
        )
        config = load_config(tmp_path)
        assert config.debounce_ms == 10
        assert config.eager is True

    def test_yml_extension(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yml").write_text("max_events: 50\n")
        assert load_config(tmp_path).max_events == 50

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.toml").write_text("[livecursor]\nflush_window_ms = 5.0\n")
        assert load_config(tmp_path).flush_window_ms == 5.0

    def test_yaml_preferred_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yaml").write_text("debounce_ms: 1\n")
        (tmp_path / "livecursor.toml").write_text("debounce_ms = 2\n")
        assert load_config(tmp_path).debounce_ms == 1

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yaml").write_text("debounce_ms: 10\n")
        assert load_config(tmp_path, debounce_ms=99).debounce_ms == 99

    def test_invalid_yaml_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yaml").write_text("debounce_ms: [unclosed\n")
        assert load_config(tmp_path) == LiveCursorConfig()

    def test_non_mapping_yaml_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yaml").write_text("- a\n- b\n")
        assert load_config(tmp_path) == LiveCursorConfig()

    def test_invalid_toml_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.toml").write_text("not = [valid\n")
        assert load_config(tmp_path) == LiveCursorConfig()

    def test_invalid_value_raises(self, tmp_path: Path) -> None:
        (tmp_path / "livecursor.yaml").write_text("debounce_ms: -5\n")
        with pytest.raises(ConfigError):
            load_config(tmp_path)
