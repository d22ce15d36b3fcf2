"""
Configuration Module for the Statement Converter.

Centralized configuration management backed by a YAML file. Pipeline
thresholds, backend choices, timeouts and output options are read from
configuration rather than hard-coded in the components.

Lookup order for the settings file:
    1. Explicit ``config_path`` argument
    2. ``STATEMENT_CONVERTER_CONFIG`` environment variable
    3. ``config/settings.yaml`` shipped with the package
"""

import os
import yaml
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Optional


CONFIG_ENV_VAR = "STATEMENT_CONVERTER_CONFIG"


class ConfigurationManager:
    """
    Singleton holding the loaded settings for the whole process.

    Attributes:
        config_path (Path): Path to the configuration file.

    Example:
        >>> config = ConfigurationManager()
        >>> config.get("pipeline.text_native_threshold")
        100
        >>> config.get("ocr.backend")
        'tesseract'
    """

    _instance: Optional['ConfigurationManager'] = None
    _config: Dict[str, Any] = {}

    def __new__(cls, config_path: Optional[str] = None) -> 'ConfigurationManager':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional path to a YAML settings file. Ignored
                        once the singleton has been initialized; call
                        ``reset()`` first to load a different file.
        """
        if self._initialized:
            return

        if config_path is None:
            config_path = os.getenv(CONFIG_ENV_VAR)

        if config_path is None:
            self.config_path = Path(__file__).parent / "settings.yaml"
        else:
            self.config_path = Path(config_path)

        self._load_config()
        self._initialized = True

    def _load_config(self) -> None:
        """
        Load configuration from the YAML file.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            yaml.YAMLError: If configuration file is invalid.
        """
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path}"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            self._config = yaml.safe_load(f) or {}

        self._resolve_paths()

    def _resolve_paths(self) -> None:
        """Resolve relative entries under ``paths`` against the project root."""
        project_root = Path(__file__).parent.parent

        for key, value in (self._config.get('paths') or {}).items():
            if value and not Path(value).is_absolute():
                self._config['paths'][key] = str(project_root / value)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Args:
            key: Configuration key in dot notation (e.g., "ocr.backend").
            default: Default value if key doesn't exist or is null.

        Returns:
            Configuration value or default.
        """
        value = self._config

        try:
            for k in key.split('.'):
                value = value[k]
        except (KeyError, TypeError):
            return default

        return default if value is None else value

    def override(self, key: str, value: Any) -> None:
        """
        Set a value in the loaded configuration (dot notation).

        Used by the CLI to apply command-line flags on top of the file.
        Intermediate sections are created as needed.
        """
        keys = key.split('.')
        section = self._config
        for k in keys[:-1]:
            if not isinstance(section.get(k), dict):
                section[k] = {}
            section = section[k]
        section[keys[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Return a deep copy of the complete configuration dictionary."""
        return deepcopy(self._config)

    def reload(self) -> None:
        """Reload configuration from file, discarding overrides."""
        self._load_config()

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next access reloads from disk."""
        cls._instance = None


def get_config(key: str, default: Any = None) -> Any:
    """
    Convenience accessor for configuration values.

    Args:
        key: Configuration key in dot notation.
        default: Default value if key doesn't exist.

    Returns:
        Configuration value or default.
    """
    return ConfigurationManager().get(key, default)


__all__ = ['ConfigurationManager', 'get_config', 'CONFIG_ENV_VAR']
