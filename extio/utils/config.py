"""
Configuration Management

Centralized config loading for backend wiring and logging.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, Optional

CONFIG_DIR_ENV = "EXTIO_CONFIG_DIR"


class ConfigManager:
    """Manages all configuration files"""

    def __init__(self, config_root: Optional[str] = None):
        self.config_root = Path(config_root or os.environ.get(CONFIG_DIR_ENV, "config"))
        self.global_config: Dict[str, Any] = {}
        self.backend_configs: Dict[str, Dict] = {}
        self._loaded = False

    def load_global_config(self) -> dict:
        """Load global settings"""
        settings_path = self.config_root / "settings.yaml"

        if settings_path.exists():
            with open(settings_path, 'r', encoding='utf-8') as f:
                self.global_config = yaml.safe_load(f) or {}
        else:
            self.global_config = self._default_global_config()

        self._loaded = True
        return self.global_config

    def load_backend_config(self, backend_name: str) -> dict:
        """
        Load options for a specific backend.

        Returns an empty dict when config/backends/<name>.yaml is missing.
        """
        config_path = self.config_root / "backends" / f"{backend_name}.yaml"

        if not config_path.exists():
            return {}

        with open(config_path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Backend config must be a mapping: {config_path}")

        self.backend_configs[backend_name] = config
        return config

    def get(self, path: str, default: Any = None) -> Any:
        """
        Get config value using dot notation.

        Examples:
            config.get('logging.level')
            config.get('extio.backends')
        """
        if not self._loaded:
            self.load_global_config()

        keys = path.split('.')
        value = self.global_config

        try:
            for key in keys:
                value = value[key]
            return value
        except (KeyError, TypeError):
            return default

    def _default_global_config(self) -> dict:
        """Default global configuration"""
        return {
            'app': {
                'name': 'extio',
                'version': '0.1.0'
            },
            'extio': {
                'backends': ['local']
            },
            'logging': {
                'level': 'INFO',
                'dir': 'logs'
            }
        }

# Global instance
_config_manager = None

def get_config_manager() -> ConfigManager:
    """Get global config manager"""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager

def load_global_config() -> dict:
    """Convenience function to load global config"""
    return get_config_manager().load_global_config()
