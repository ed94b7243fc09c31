"""Load LiveCursorConfig from livecursor.yaml if present.

Merges file config with keyword overrides. Overrides take precedence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from livecursor.config import LiveCursorConfig

if TYPE_CHECKING:
    from pathlib import Path

_CONFIG_KEYS = frozenset({"debounce_ms", "flush_window_ms", "eager", "max_events", "verbose"})


def load_config(root: Path, **overrides: object) -> LiveCursorConfig:
    """Load LiveCursorConfig from root, optionally merging livecursor.yaml.

    Looks for livecursor.yaml, livecursor.yml, or livecursor.toml in root.
    If found, loads and merges with overrides. Overrides take precedence.
    """
    file_config = _read_config_file(root)
    merged = {**file_config, **overrides}
    return LiveCursorConfig(**merged)  # type: ignore[arg-type]


def _read_config_file(root: Path) -> dict[str, object]:
    """Read config from yaml/toml if present. Returns empty dict otherwise."""
    for name in ("livecursor.yaml", "livecursor.yml"):
        path = root / name
        if path.is_file():
            return _parse_yaml(path)
    toml_path = root / "livecursor.toml"
    if toml_path.is_file():
        return _parse_toml(toml_path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    """Parse YAML config. Returns empty dict on error."""
    import yaml

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError):
        return {}
    if not isinstance(data, dict):
        return {}
    return _flatten_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    """Parse TOML config. Returns empty dict on error."""
    import tomllib

    try:
        data = tomllib.loads(path.read_text())
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return _flatten_section(data)


def _flatten_section(data: dict[str, object]) -> dict[str, object]:
    """Extract livecursor.* keys and known top-level keys into one dict."""
    result: dict[str, object] = {}
    for k, v in data.items():
        if k in _CONFIG_KEYS:
            result[k] = v
    section = data.get("livecursor")
    if isinstance(section, dict):
        for k, v in section.items():
            if k in _CONFIG_KEYS:
                result[k] = v
    return result
