"""Configuration loading for dotdox (.dotdox.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".dotdox.yml"


@dataclass
class DotdoxConfig:
    """Represents the settings defined in .dotdox.yml."""

    root: Path
    verbose: bool = False
    include_private: bool = False
    sources: List[Path] = field(default_factory=list)
    readme: Optional[Path] = None
    output: Optional[Path] = None
    templates_dir: Optional[Path] = None


def load_config(config_path: Path) -> DotdoxConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DotdoxConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    return DotdoxConfig(
        root=root,
        verbose=_as_bool(data.get("verbose")) or False,
        include_private=_as_bool(data.get("include_private")) or False,
        sources=[root / item for item in _as_str_list(data.get("sources"))],
        readme=_as_path(root, data.get("readme")),
        output=_as_path(root, data.get("output")),
        templates_dir=_as_path(root, data.get("templates_dir")),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {path.name}: {exc}") from exc
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_path(root: Path, value: Any) -> Optional[Path]:
    if isinstance(value, str) and value.strip():
        return root / value.strip()
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float))]
    return []


__all__ = ["CONFIG_FILENAME", "ConfigError", "DotdoxConfig", "load_config"]
