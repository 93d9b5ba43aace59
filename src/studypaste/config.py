"""Configuration loader for studypaste.

Settings are read from YAML files with priority resolution:
1. An explicit path passed by the caller (highest priority)
2. User config: ~/.config/studypaste/config.yaml
3. Project config: .studypaste/config.yaml in the current directory
4. Package defaults: shipped with studypaste (fallback)

Files are merged section by section over the package defaults, so a user
file only needs the keys it changes.
"""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from .sanitize import SanitizePolicy

logger = logging.getLogger(__name__)

# Lazy import yaml to avoid startup cost
_yaml = None


def _get_yaml():
    """Lazy-load PyYAML."""
    global _yaml
    if _yaml is None:
        import yaml
        _yaml = yaml
    return _yaml


def _get_package_defaults_path():
    """Get path to the packaged defaults using importlib.resources."""
    from importlib.resources import files
    return files("studypaste") / "data" / "defaults.yaml"


def _merge(base: dict, data: dict) -> None:
    for section, values in data.items():
        if isinstance(values, dict) and isinstance(base.get(section), dict):
            base[section].update(values)
        else:
            base[section] = values


class PasteConfig:
    """Paste settings resolved from config files and overrides.

    Config locations are checked in priority order; the first file found is
    merged over the package defaults:
    1. ~/.config/studypaste/config.yaml - User overrides
    2. .studypaste/config.yaml - Project-specific settings

    An explicit ``path`` replaces the search and must exist. ``overrides``
    (same shape as the YAML, e.g. ``{"paste": {"mode": "plain"}}``) are
    merged last.
    """

    CONFIG_LOCATIONS = [
        Path.home() / ".config" / "studypaste" / "config.yaml",  # User overrides
        Path.cwd() / ".studypaste" / "config.yaml",               # Project config
    ]

    def __init__(self, path: Optional[Union[str, Path]] = None,
                 overrides: Optional[dict] = None):
        self._data: dict[str, Any] = {}
        self.source: Optional[Path] = None

        _merge(self._data, self._load(_get_package_defaults_path()))

        if path is not None:
            path = Path(path)
            if not path.is_file():
                raise FileNotFoundError(f"Config file not found: {path}")
            self.source = path
        else:
            self.source = self._find_config_file()

        if self.source is not None:
            _merge(self._data, self._load(self.source))

        if overrides:
            _merge(self._data, overrides)

    def _find_config_file(self) -> Optional[Path]:
        for config_file in self.CONFIG_LOCATIONS:
            if config_file.is_file():
                return config_file
        return None

    def _load(self, config_file) -> dict:
        yaml = _get_yaml()
        content = config_file.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            logger.warning("Ignoring unreadable config file %s: %s", config_file, e)
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def section(self, name: str) -> dict:
        value = self._data.get(name)
        return dict(value) if isinstance(value, dict) else {}

    @property
    def mode(self) -> str:
        return str(self.section("paste").get("mode", "smart")).lower()

    @property
    def guard_timeout(self) -> float:
        return float(self.section("paste").get("guard_timeout", 0.5))

    @property
    def parser(self) -> str:
        return self.section("paste").get("parser") or "html.parser"

    @property
    def auto_detect_structure(self) -> bool:
        return bool(self.section("paste").get("auto_detect_structure", True))

    @property
    def policy(self) -> SanitizePolicy:
        return SanitizePolicy.from_mapping(self.section("sanitize"))

    def as_dict(self) -> dict:
        return {name: self.section(name) for name in self._data}
