"""Compiler configuration for cachediff."""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from .models import LogLevel, ValueStyle
from .exceptions import ConfigFileError


@dataclass
class CompilerConfig:
    """Global configuration for the diff compiler."""
    namespace: str = "cache_diff"
    macro_name: str = "CacheDiff"
    value_style: ValueStyle = ValueStyle.PLAIN
    log_level: LogLevel = LogLevel.INFO

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "<dict>") -> CompilerConfig:
        """
        Build a config from plain data, validating keys and enum values.

        Args:
            data: Mapping of config keys to values
            source: Name used in error messages

        Returns:
            CompilerConfig with defaults for missing keys
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigFileError(source, f"unknown keys: {', '.join(unknown)}")

        config = cls()
        if 'namespace' in data:
            config.namespace = str(data['namespace'])
        if 'macro_name' in data:
            config.macro_name = str(data['macro_name'])

        style = data.get('value_style', config.value_style.value)
        if style not in [s.value for s in ValueStyle]:
            raise ConfigFileError(source, f"invalid value_style: {style}")
        config.value_style = ValueStyle(style)

        level = str(data.get('log_level', config.log_level.value)).upper()
        if level not in [l.value for l in LogLevel]:
            raise ConfigFileError(source, f"invalid log_level: {level}")
        config.log_level = LogLevel(level)

        return config

    @classmethod
    def from_file(cls, path: str | Path) -> CompilerConfig:
        """Load config from a YAML or JSON file."""
        path = Path(path)
        if not path.exists():
            raise ConfigFileError(str(path), "file not found")

        with open(path, 'r') as f:
            content = f.read()

        # JSON is valid YAML
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigFileError(str(path), f"failed to parse: {e}")

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigFileError(str(path), "top level must be a mapping")

        # Allow the settings to live under a `cachediff` section
        if 'cachediff' in data and isinstance(data['cachediff'], dict):
            data = data['cachediff']

        return cls.from_dict(data, source=str(path))

    def to_dict(self) -> dict:
        return {
            "namespace": self.namespace,
            "macro_name": self.macro_name,
            "value_style": self.value_style.value,
            "log_level": self.log_level.value,
        }


DEFAULT_CONFIG = CompilerConfig()

CONFIG_ENV_VAR = "CACHEDIFF_CONFIG"


@lru_cache(maxsize=1)
def default_config() -> CompilerConfig:
    """
    Config used when a decorator is not given one.

    Read once from the file named by CACHEDIFF_CONFIG, if set.
    """
    path = os.environ.get(CONFIG_ENV_VAR)
    if not path:
        return DEFAULT_CONFIG
    return CompilerConfig.from_file(path)
