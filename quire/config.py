"""Site configuration loading.

The configuration lives in ``_config.yml`` at the root of the source
directory. The file is optional; every key has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_FILENAME = "_config.yml"

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "description": "",
    "author": "",
    "url": "",
    "baseurl": "",
    "permalink": "date",
    "markdown_ext": "markdown,mkdown,mkdn,mkd,md",
    "excerpt_separator": "\n\n",
    "destination": "_site",
    "exclude": [],
    "include": [],
    "future": False,
    "show_drafts": False,
    "strict_variables": False,
    "host": "127.0.0.1",
    "port": 4000,
}


def load_config(
    source: Path, overrides: dict[str, Any] | None = None
) -> dict[str, Any]:
    """Load site configuration from ``_config.yml``.

    Args:
        source: Source directory of the site.
        overrides: Values that win over both defaults and the file.

    Returns:
        Dictionary containing configuration values, with defaults applied.

    Raises:
        ConfigError: If the file is not valid YAML or not a mapping.
    """
    config = dict(DEFAULT_CONFIG)
    config_path = source / CONFIG_FILENAME
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            try:
                loaded = yaml.safe_load(f)
            except yaml.YAMLError as exc:
                raise ConfigError(f"{config_path}: invalid YAML: {exc}") from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"{config_path}: configuration must be a mapping")
        config.update(loaded)
    if overrides:
        config.update({k: v for k, v in overrides.items() if v is not None})
    return config


def markdown_extensions(config: dict[str, Any]) -> list[str]:
    """Return the configured markdown extensions as a list."""
    raw = config.get("markdown_ext") or ""
    if isinstance(raw, str):
        return [ext.strip() for ext in raw.split(",") if ext.strip()]
    return [str(ext) for ext in raw]


def destination_dir(source: Path, config: dict[str, Any]) -> Path:
    """Resolve the destination directory, relative to the source directory."""
    destination = Path(str(config.get("destination") or "_site"))
    if not destination.is_absolute():
        destination = source / destination
    return destination
