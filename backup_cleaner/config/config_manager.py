"""Configuration management for the backup cleaner."""

import copy
import logging
import os
import yaml
from datetime import datetime
from typing import Dict, Any, Optional

from .config_validator import ConfigValidator
from ..core.models import ConfigLoadResult, LoadError, LoadErrorKind


DEFAULTS: Dict[str, Any] = {
    'backup_folder_path': None,
    'default_backups_to_keep': 5,
    'minimum_age_months': 1,
    'ignore_file': os.path.join('~', '.backup-cleaner', 'ignore.txt'),
    'auto_cleanup': {
        'enabled': False,
        'run_hour': 2,
        'last_run': None
    },
    'scan': {
        'workers': 1
    },
    'logging': {
        'level': 'WARNING',
        'file': None
    },
    'customers': {}
}


class ConfigManager:
    """Manages loading, defaults and saving of the cleaner configuration."""

    DEFAULT_CONFIG_LOCATIONS = [
        "config.yaml",
        "config.yml",
        os.path.expanduser("~/.backup-cleaner/config.yaml"),
        os.path.expanduser("~/.backup-cleaner/config.yml"),
    ]

    USER_CONFIG_PATH = os.path.expanduser("~/.backup-cleaner/config.yaml")

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.loaded_path: Optional[str] = None
        self.config_data: Dict[str, Any] = copy.deepcopy(DEFAULTS)
        self.validator = ConfigValidator()
        self.logger = logging.getLogger(__name__)

    def load_config(self) -> ConfigLoadResult:
        """Load configuration from file.

        A missing, unreadable or invalid file never aborts loading: the
        built-in defaults are used and the problem is reported in the result.

        Returns:
            ConfigLoadResult with the effective configuration.
        """
        config_file = self._find_config_file()
        if config_file is None:
            source = self.config_path or ", ".join(self.DEFAULT_CONFIG_LOCATIONS)
            return self._use_defaults(LoadError(
                LoadErrorKind.MISSING, source, "Configuration file not found, using defaults"
            ))

        self.loaded_path = config_file

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            return self._use_defaults(LoadError(
                LoadErrorKind.MALFORMED, config_file, f"Invalid YAML: {e}"
            ))
        except (OSError, UnicodeDecodeError) as e:
            return self._use_defaults(LoadError(LoadErrorKind.UNREADABLE, config_file, str(e)))

        try:
            self.validator.validate(data)
        except ValueError as e:
            return self._use_defaults(LoadError(LoadErrorKind.MALFORMED, config_file, str(e)))

        self.config_data = data
        self._set_defaults()
        self.logger.debug(f"Loaded configuration from {config_file}")

        return ConfigLoadResult(config=self.config_data, path=config_file)

    def _use_defaults(self, error: LoadError) -> ConfigLoadResult:
        self.config_data = copy.deepcopy(DEFAULTS)
        return ConfigLoadResult(config=self.config_data, path=self.loaded_path, error=error)

    def _find_config_file(self) -> Optional[str]:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file, or None if there is none.
        """
        if self.config_path:
            return self.config_path if os.path.exists(self.config_path) else None

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        return None

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        for key, value in DEFAULTS.items():
            if isinstance(value, dict) and value:
                section = self.config_data.get(key)
                if not isinstance(section, dict):
                    section = self.config_data[key] = {}
                for sub_key, sub_value in value.items():
                    section.setdefault(sub_key, sub_value)
            elif self.config_data.get(key) is None:
                self.config_data[key] = copy.deepcopy(value)

    def save(self) -> str:
        """Write the configuration as YAML.

        Returns:
            Path the configuration was written to.

        Raises:
            OSError: If the file cannot be written.
        """
        path = self.config_path or self.loaded_path or self.USER_CONFIG_PATH

        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.config_data, f, default_flow_style=False, sort_keys=False)

        self.loaded_path = path
        self.logger.debug(f"Saved configuration to {path}")
        return path

    def get_backup_folder_path(self) -> Optional[str]:
        """Get the backup root folder containing the customer folders."""
        path = self.config_data.get('backup_folder_path')
        return os.path.expanduser(path) if path else None

    def get_default_keep_count(self) -> int:
        return self.config_data.get('default_backups_to_keep', DEFAULTS['default_backups_to_keep'])

    def get_minimum_age_months(self) -> int:
        return self.config_data.get('minimum_age_months', DEFAULTS['minimum_age_months'])

    def get_ignore_file(self) -> str:
        return os.path.expanduser(self.config_data.get('ignore_file') or DEFAULTS['ignore_file'])

    def get_auto_cleanup_config(self) -> Dict[str, Any]:
        """Get automatic cleanup configuration.

        Returns:
            Automatic cleanup configuration dictionary.
        """
        return self.config_data.get('auto_cleanup', {})

    def get_last_auto_cleanup(self) -> Optional[datetime]:
        last_run = self.get_auto_cleanup_config().get('last_run')
        if isinstance(last_run, str):
            return datetime.fromisoformat(last_run)
        return last_run

    def get_scan_config(self) -> Dict[str, Any]:
        return self.config_data.get('scan', {})

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration.

        Returns:
            Logging configuration dictionary.
        """
        return self.config_data.get('logging', {})

    def get_customers(self) -> Dict[str, Dict[str, Any]]:
        """Get saved per-customer settings keyed by folder name."""
        return self.config_data.get('customers') or {}

    def get_customer(self, folder_name: str) -> Optional[Dict[str, Any]]:
        return self.get_customers().get(folder_name)

    def set_customer(self, folder_name: str, keep_count: Optional[int] = None,
                     enabled: Optional[bool] = None) -> Dict[str, Any]:
        """Create or update the saved settings of a customer folder.

        Args:
            folder_name: Customer folder name.
            keep_count: New keep count, or None to keep the current value.
            enabled: New enabled flag, or None to keep the current value.

        Returns:
            The customer's settings after the update.
        """
        if keep_count is not None and keep_count < 0:
            raise ValueError(f"keep_count must be non-negative, got {keep_count}")

        customers = self.config_data.get('customers')
        if not isinstance(customers, dict):
            customers = self.config_data['customers'] = {}

        settings = customers.setdefault(folder_name, {
            'enabled': True,
            'keep_count': self.get_default_keep_count()
        })
        if keep_count is not None:
            settings['keep_count'] = keep_count
        if enabled is not None:
            settings['enabled'] = enabled
        return settings

    def set_last_auto_cleanup(self, timestamp: datetime) -> None:
        self.config_data.setdefault('auto_cleanup', {})['last_run'] = timestamp.replace(microsecond=0)

    def update_settings(self, backup_folder_path: Optional[str] = None,
                        default_keep_count: Optional[int] = None,
                        minimum_age_months: Optional[int] = None,
                        auto_cleanup_enabled: Optional[bool] = None) -> None:
        """Update global settings; None leaves a setting unchanged."""
        if default_keep_count is not None and default_keep_count < 0:
            raise ValueError(f"default keep count must be non-negative, got {default_keep_count}")
        if minimum_age_months is not None and minimum_age_months < 0:
            raise ValueError(f"minimum age must be non-negative, got {minimum_age_months}")

        if backup_folder_path is not None:
            self.config_data['backup_folder_path'] = backup_folder_path
        if default_keep_count is not None:
            self.config_data['default_backups_to_keep'] = default_keep_count
        if minimum_age_months is not None:
            self.config_data['minimum_age_months'] = minimum_age_months
        if auto_cleanup_enabled is not None:
            self.config_data.setdefault('auto_cleanup', {})['enabled'] = auto_cleanup_enabled
