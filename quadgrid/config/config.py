"""Configuration manager with YAML override support."""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from . import defaults

logger = logging.getLogger(__name__)


class Config:
    """Configuration manager with YAML override support."""

    def __init__(self, config_file: Optional[Path] = None):
        self.settings = self.load_defaults()
        self.source: Optional[Path] = None

        # Auto-discovery is skipped in test mode; explicit files are always honoured
        if config_file is None and not self._is_test_mode():
            config_file = self._find_config_file()

        if config_file is not None:
            config_file = Path(config_file)
            if config_file.exists():
                self._load_yaml_config(config_file)
            else:
                logger.warning(f"Config file not found: {config_file} - using defaults")

    def _find_config_file(self) -> Optional[Path]:
        """Find config.yml with multiple fallback locations."""
        potential_locations = [
            defaults.PROJECT_ROOT / 'config.yml',
            Path.cwd() / 'config.yml',
            Path.home() / '.quadgrid' / 'config.yml',
        ]

        for location in potential_locations:
            if location.exists() and location.is_file():
                return location

        return None

    def _is_test_mode(self) -> bool:
        """Detect if we're running under pytest or explicitly isolated."""
        return (
            os.environ.get('QUADGRID_IGNORE_CONFIG', 'false').lower() == 'true' or
            os.environ.get('PYTEST_CURRENT_TEST') is not None
        )

    def load_defaults(self) -> Dict[str, Any]:
        """Load default configuration settings."""
        return {
            'grids': copy.deepcopy(defaults.GRIDS),
            'refinement': copy.deepcopy(defaults.REFINEMENT),
            'export': copy.deepcopy(defaults.EXPORT),
            'logging': copy.deepcopy(defaults.LOGGING),
            'paths': copy.deepcopy(defaults.PATHS),
        }

    def _load_yaml_config(self, config_file: Path):
        """Load and merge configuration from a YAML file."""
        try:
            with open(config_file, 'r') as file:
                yaml_config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            logger.error(f"Config file loading failed: {config_file}: {e} - using defaults")
            return

        if yaml_config:
            if not isinstance(yaml_config, dict):
                logger.error(f"Config file {config_file} must contain a mapping - using defaults")
                return
            self._deep_merge(self.settings, yaml_config)

        self.source = config_file
        logger.debug(f"Loaded configuration from {config_file}")

    def load_file(self, config_file: Path):
        """Merge an explicit YAML file over the current settings."""
        config_file = Path(config_file)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        self._load_yaml_config(config_file)

    def _deep_merge(self, base: dict, override: dict):
        """Deep merge override into base dictionary."""
        for key, value in override.items():
            if isinstance(value, dict) and key in base and isinstance(base[key], dict):
                self._deep_merge(base[key], value)
            else:
                base[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        keys = key.split(".")
        value = self.settings

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value


# Global configuration instance
config = Config()
