"""
Configuration Module for the Document Extraction Pipeline.

Thresholds, bounds and engine settings live in ``settings.yaml`` next to
this file. A custom YAML file (``--config`` on the command line, or the
``DOCEXTRACT_CONFIG`` environment variable) is merged over the bundled
settings, so it only needs the keys it changes.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "settings.yaml"
CONFIG_ENV_VAR = "DOCEXTRACT_CONFIG"


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    """
    Raises:
        FileNotFoundError: If the file doesn't exist.
        ValueError: If the file does not hold a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


class ConfigurationManager:
    """
    Process-wide access to the pipeline settings.

    The first instantiation loads the settings; later calls return the
    same instance until ``reset()`` is called.

    Attributes:
        config_path (Optional[Path]): Custom file merged over the defaults.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("acquisition.low_text_page_chars")
        50
        >>> config.get("ocr.language")
        'eng'
    """

    _instance: Optional['ConfigurationManager'] = None

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Args:
            config_path: Custom settings file. Falls back to the
                DOCEXTRACT_CONFIG environment variable, then to the
                bundled settings alone.
        """
        if self._initialized:
            return

        config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
        self.config_path = Path(config_path) if config_path else None
        self._config: Dict[str, Any] = {}

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load the bundled settings and merge the custom file over them.

        Raises:
            FileNotFoundError: If a settings file doesn't exist.
            ValueError: If a settings file is not a YAML mapping.
            yaml.YAMLError: If a settings file is not valid YAML.
        """
        config = _read_yaml(DEFAULT_CONFIG_PATH)
        if self.config_path is not None:
            config = _merge(config, _read_yaml(self.config_path))

        self._config = config
        self._resolve_log_path()

    def _resolve_log_path(self) -> None:
        """Make a relative log file path absolute against the project root."""
        project_root = Path(__file__).parent.parent
        file_settings = self._config.get('logging', {}).get('file') or {}
        log_path = file_settings.get('path')

        if log_path and not Path(log_path).is_absolute():
            file_settings['path'] = str(project_root / log_path)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Example:
            >>> config.get("input.max_file_size_mb")
            25
            >>> config.get("nonexistent.key", "fallback")
            'fallback'
        """
        value: Any = self._config
        for part in key.split('.'):
            if not isinstance(value, dict) or part not in value:
                return default
            value = value[part]
        return value

    def get_all(self) -> Dict[str, Any]:
        """Return a deep copy of the merged settings."""
        return copy.deepcopy(self._config)

    def reload(self) -> None:
        """Re-read the settings files."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Discard the instance; the next access loads the settings again."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """Shortcut for ``ConfigurationManager().get(key, default)``."""
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'DEFAULT_CONFIG_PATH', 'CONFIG_ENV_VAR']
