# svtk/config.py
"""
Configuration management for readers.
Supports a YAML configuration file with global settings and named reader profiles.
"""

import copy
import logging
from pathlib import Path
from typing import Dict, Any, Optional, List

import yaml

from .defaults import settings as default_settings

logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Manage SVTK configuration from a YAML file.

    Configuration File Structure
    ----------------------------
    ::

        # svtk.yml
        settings:
          buffer_block_size: 4096
          separator_candidates: ",;\\t"
          logging:
            level: DEBUG

        readers:
          employees:
            separator: ","
            columns:
              employee_id:
                names: [id, emp id]
                transform: int
              hired:
                transform: date
              department: ~

    Configuration Locations
    -----------------------
    ConfigManager searches for configuration files in this order:

    1. File specified in config_file parameter
    2. ``./svtk.yml`` (current directory)
    3. ``./svtk.yaml`` (current directory)
    4. ``~/.config/svtk.yml`` (user config directory)
    5. ``~/.config/svtk.yaml`` (user config directory)

    With no file found the built-in defaults from ``svtk.defaults`` apply.

    Parameters
    ----------
    config_file : str or Path, optional
        Path to YAML config file. If None, searches standard locations.

    Attributes
    ----------
    config_file : Path or None
        Path to the loaded configuration file
    config : dict
        Parsed configuration dictionary

    Example
    -------
    ::

        from svtk.config import ConfigManager

        config_mgr = ConfigManager('/etc/svtk/loads.yml')
        config_mgr.get_setting('buffer_block_size')    # 4096
        config_mgr.get_profile('employees')['columns']
    """

    def __init__(self, config_file: Optional[str] = None):
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config() if self.config_file else {}

    def _find_config_file(self, config_file: Optional[str]) -> Optional[Path]:
        """Find the configuration file."""
        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise FileNotFoundError(f"Config file not found: {config_file}")
            return path

        candidates = [
            Path("svtk.yml"),
            Path("svtk.yaml"),
            Path.home() / ".config" / "svtk.yml",
            Path.home() / ".config" / "svtk.yaml"
        ]
        for candidate in candidates:
            if candidate.exists():
                return candidate

        logger.debug("No config file found, using built-in defaults")
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load and validate configuration file."""
        try:
            with open(self.config_file, 'r') as f:
                config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ValueError(f"Failed to load config file {self.config_file}: {e}")

        if not isinstance(config, dict):
            raise ValueError(f"Invalid config file {self.config_file}.")
        if not isinstance(config.get('settings', {}), dict):
            raise ValueError(f"Invalid config file {self.config_file}: 'settings' must be a dictionary")
        readers = config.get('readers', {})
        if not isinstance(readers, dict):
            raise ValueError(f"Invalid config file {self.config_file}: 'readers' must be a dictionary")
        for name, profile in readers.items():
            if not isinstance(profile, dict):
                raise ValueError(f"Invalid reader profile '{name}' in {self.config_file}: must be a dictionary")
            if not isinstance(profile.get('columns') or {}, dict):
                raise ValueError(f"Invalid reader profile '{name}' in {self.config_file}: 'columns' must be a dictionary")

        logger.info(f"Loaded config from {self.config_file}")
        return config

    def get_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a setting value from the config, falling back to the built-in defaults.

        Args:
            key: Setting key (supports dot notation like 'logging.level')
            default: Default value if key not found in either place

        Example:
            size = config.get_setting('buffer_block_size', 1024)
            level = config.get_setting('logging.level', 'INFO')
        """
        for source in (self.config.get('settings', {}), default_settings):
            value = source
            for k in key.split('.'):
                if isinstance(value, dict) and k in value:
                    value = value[k]
                else:
                    break
            else:
                # nested dicts are merged so a partial 'logging' section keeps the other defaults
                if isinstance(value, dict) and source is not default_settings:
                    merged = copy.deepcopy(self._default(key) or {})
                    merged.update(value)
                    return merged
                return copy.deepcopy(value)
        return default

    @staticmethod
    def _default(key: str) -> Any:
        value = default_settings
        for k in key.split('.'):
            if not isinstance(value, dict) or k not in value:
                return None
            value = value[k]
        return value

    def get_profile(self, name: str) -> Dict[str, Any]:
        """Return a copy of the named reader profile."""
        profiles = self.config.get('readers', {})
        if name not in profiles:
            raise ValueError(
                f"Reader profile '{name}' not found in {self.config_file or 'configuration'}. "
                f"Available: {', '.join(self.list_profiles()) or 'none'}"
            )
        return copy.deepcopy(profiles[name])

    def list_profiles(self) -> List[str]:
        return list(self.config.get('readers', {}).keys())


_config_manager: Optional[ConfigManager] = None


def _get_manager(config_file: Optional[str] = None) -> ConfigManager:
    global _config_manager

    # Use provided config file or global instance
    if config_file:
        return ConfigManager(config_file)
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager


def set_config_file(config_file: Optional[str]) -> None:
    """Set the configuration file to use globally. None goes back to searching the default locations."""
    global _config_manager
    _config_manager = ConfigManager(config_file) if config_file else None


def get_setting(key: str, default: Any = None, config_file: Optional[str] = None) -> Any:
    """
    Get a setting value from configuration.

    Example:
        size = get_setting('buffer_block_size')
        log_dir = get_setting('logging.directory', './logs')
    """
    return _get_manager(config_file).get_setting(key, default)


def get_profile(name: str, config_file: Optional[str] = None) -> Dict[str, Any]:
    """Get a named reader profile from configuration."""
    return _get_manager(config_file).get_profile(name)
