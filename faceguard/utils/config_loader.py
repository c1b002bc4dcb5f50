"""
Configuration Loader
Loads config.yaml and exposes its values by dotted path or attribute access.
"""
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_ENV_VAR = "FACEGUARD_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


class Config:
    """
    Configuration manager.

    Usage:
        config = Config()
        ratio = config.get('mask.blend_ratio')
        # or
        ratio = config.mask.blend_ratio
    """

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)

        self.config_path = Path(config_path)
        self._config: Dict[str, Any] = {}
        self._load_config()

    def _load_config(self):
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {self.config_path}\n"
                f"Pass a path or set the {CONFIG_ENV_VAR} environment variable."
            )

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML format in {self.config_path}: {e}") from e

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Nested lookup with a dotted key.

        Example:
            >>> config.get('placement.width_factor')
            2.2
        """
        value = self._config
        try:
            for key in key_path.split("."):
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(f"'{self.__class__.__name__}' has no attribute '{name}'")

        if name in self._config:
            value = self._config[name]
            if isinstance(value, dict):
                return ConfigSection(value)
            return value

        raise AttributeError(f"Config has no key '{name}'")

    def reload(self):
        self._load_config()

    def to_dict(self) -> Dict[str, Any]:
        return self._config.copy()

    def __repr__(self):
        return f"Config(path={self.config_path})"


class ConfigSection:
    """Attribute access over a nested mapping of the config."""

    def __init__(self, data: Dict[str, Any]):
        self._data = data

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(f"'{self.__class__.__name__}' has no attribute '{name}'")

        if name in self._data:
            value = self._data[name]
            if isinstance(value, dict):
                return ConfigSection(value)
            return value

        raise AttributeError(f"ConfigSection has no key '{name}'")

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def __repr__(self):
        return f"ConfigSection({list(self._data.keys())})"


_global_config: Optional[Config] = None


def get_config() -> Config:
    """Process-wide Config, loaded on first use."""
    global _global_config

    if _global_config is None:
        _global_config = Config()

    return _global_config


def load_config(config_path=None) -> Config:
    """Replace the process-wide Config with one loaded from `config_path`."""
    global _global_config
    _global_config = Config(config_path)
    return _global_config


def reload_config():
    global _global_config
    if _global_config is not None:
        _global_config.reload()
