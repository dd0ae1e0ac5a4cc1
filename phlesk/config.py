#!/usr/bin/env python3
"""
Phlesk Configuration Management
Handles .phlesk.yml configuration files
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Optional, Any
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_RELEASE_URL = "https://mirror.kolabenterprise.com/pub/releases/"


@dataclass
class PhleskConfig:
    """Phlesk configuration structure"""

    # Extension the library acts on behalf of
    module_id: str = "phlesk"

    # Privileged helper that runs commands for the extension, e.g. "/usr/local/psa/admin/sbin/modules/kolab/kolab-execute".
    # None = run commands directly.
    execute_wrapper: Optional[str] = None

    # Extension var directory (downloads, imported package keys)
    var_dir: str = "/usr/local/psa/var/modules/phlesk"

    log_level: str = "INFO"

    # Release mirror used by `phlesk download`
    download_base_url: str = DEFAULT_RELEASE_URL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PhleskConfig':
        """Create config from dictionary"""
        config = cls()

        config.module_id = str(data.get('module_id', config.module_id)).lower()
        config.execute_wrapper = data.get('execute_wrapper', config.execute_wrapper)
        config.var_dir = data.get('var_dir', f"/usr/local/psa/var/modules/{config.module_id}")

        logging_settings = data.get('logging', {}) or {}
        config.log_level = str(logging_settings.get('level', config.log_level)).upper()

        downloads = data.get('downloads', {}) or {}
        config.download_base_url = downloads.get('base_url', config.download_base_url)

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary for YAML export"""
        return {
            'module_id': self.module_id,
            'execute_wrapper': self.execute_wrapper,
            'var_dir': self.var_dir,
            'logging': {
                'level': self.log_level,
            },
            'downloads': {
                'base_url': self.download_base_url,
            },
        }


class ConfigManager:
    """Manage Phlesk configuration files"""

    DEFAULT_CONFIG_NAME = ".phlesk.yml"

    @staticmethod
    def find_config(start_path: Path = None) -> Optional[Path]:
        """
        Find .phlesk.yml by walking up directory tree

        Args:
            start_path: Starting directory (default: current directory)

        Returns:
            Path to .phlesk.yml or None if not found
        """
        current = start_path or Path.cwd()

        while current != current.parent:
            config_file = current / ConfigManager.DEFAULT_CONFIG_NAME
            if config_file.exists():
                return config_file
            current = current.parent

        return None

    @staticmethod
    def load_config(config_path: Path = None) -> PhleskConfig:
        """
        Load configuration from .phlesk.yml

        Args:
            config_path: Path to config file (default: search from current dir)

        Returns:
            PhleskConfig object
        """
        if config_path is None:
            config_path = ConfigManager.find_config()

        if config_path is None or not config_path.exists():
            return PhleskConfig()

        try:
            with open(config_path, 'r') as f:
                data = yaml.safe_load(f)

            if data is None:
                return PhleskConfig()

            return PhleskConfig.from_dict(data)

        except (OSError, yaml.YAMLError, AttributeError) as e:
            logger.warning("Failed to load config from %s: %s", config_path, e)
            return PhleskConfig()

    @staticmethod
    def save_config(config: PhleskConfig, config_path: Path) -> bool:
        """
        Save configuration to .phlesk.yml

        Args:
            config: PhleskConfig object
            config_path: Path where to save

        Returns:
            True if successful
        """
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)

            with open(config_path, 'w') as f:
                yaml.dump(
                    config.to_dict(),
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    indent=2
                )

            return True

        except OSError as e:
            logger.error("Failed to save config to %s: %s", config_path, e)
            return False
