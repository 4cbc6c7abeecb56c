"""Configuration validation for backup cleaner."""

from datetime import datetime
from typing import Dict, Any


class ConfigValidator:
    """Validates backup cleaner configuration."""

    INTEGER_SETTINGS = ['default_backups_to_keep', 'minimum_age_months']
    LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping")

        self._validate_settings(config)

        if 'auto_cleanup' in config:
            self._validate_auto_cleanup(config['auto_cleanup'])

        if 'scan' in config:
            self._validate_scan(config['scan'])

        if 'logging' in config:
            self._validate_logging(config['logging'])

        if 'customers' in config:
            self._validate_customers(config['customers'])

    def _validate_settings(self, config: Dict[str, Any]) -> None:
        """Validate top-level settings.

        Args:
            config: Configuration dictionary.

        Raises:
            ValueError: If a setting has the wrong type or range.
        """
        for key in self.INTEGER_SETTINGS:
            if key in config:
                self._require_non_negative_int(config[key], key)

        path = config.get('backup_folder_path')
        if path is not None and not isinstance(path, str):
            raise ValueError(f"backup_folder_path must be a string, got {path!r}")

        ignore_file = config.get('ignore_file')
        if ignore_file is not None and (not isinstance(ignore_file, str) or not ignore_file):
            raise ValueError("ignore_file must be a non-empty string")

    def _validate_auto_cleanup(self, auto_cleanup: Any) -> None:
        """Validate automatic cleanup settings.

        Args:
            auto_cleanup: auto_cleanup section.

        Raises:
            ValueError: If the section is invalid.
        """
        if not isinstance(auto_cleanup, dict):
            raise ValueError("auto_cleanup must be a dictionary")

        if 'enabled' in auto_cleanup and not isinstance(auto_cleanup['enabled'], bool):
            raise ValueError("auto_cleanup.enabled must be true or false")

        if 'run_hour' in auto_cleanup:
            run_hour = auto_cleanup['run_hour']
            if not isinstance(run_hour, int) or isinstance(run_hour, bool) or not (0 <= run_hour <= 23):
                raise ValueError(f"auto_cleanup.run_hour must be an hour between 0 and 23, got {run_hour!r}")

        last_run = auto_cleanup.get('last_run')
        if isinstance(last_run, str):
            try:
                datetime.fromisoformat(last_run)
            except ValueError:
                raise ValueError(f"auto_cleanup.last_run is not an ISO timestamp: {last_run!r}")
        elif last_run is not None and not isinstance(last_run, datetime):
            raise ValueError(f"auto_cleanup.last_run must be a timestamp, got {last_run!r}")

    def _validate_scan(self, scan: Any) -> None:
        if not isinstance(scan, dict):
            raise ValueError("scan must be a dictionary")

        if 'workers' in scan:
            workers = scan['workers']
            if not isinstance(workers, int) or isinstance(workers, bool) or workers < 1:
                raise ValueError(f"scan.workers must be a positive integer, got {workers!r}")

    def _validate_logging(self, logging_config: Any) -> None:
        if not isinstance(logging_config, dict):
            raise ValueError("logging must be a dictionary")

        level = logging_config.get('level')
        if level is not None and str(level).upper() not in self.LOG_LEVELS:
            raise ValueError(f"logging.level must be one of {self.LOG_LEVELS}, got {level!r}")

    def _validate_customers(self, customers: Any) -> None:
        """Validate per-customer settings.

        Args:
            customers: Mapping of folder name to settings.

        Raises:
            ValueError: If a customer entry is invalid.
        """
        if customers is None:
            return
        if not isinstance(customers, dict):
            raise ValueError("customers must be a dictionary keyed by folder name")

        for name, settings in customers.items():
            if not isinstance(settings, dict):
                raise ValueError(f"Customer {name} settings must be a dictionary")

            if 'enabled' in settings and not isinstance(settings['enabled'], bool):
                raise ValueError(f"Customer {name} enabled must be true or false")

            if 'keep_count' in settings:
                self._require_non_negative_int(settings['keep_count'], f"Customer {name} keep_count")

    @staticmethod
    def _require_non_negative_int(value: Any, label: str) -> None:
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise ValueError(f"{label} must be a non-negative integer, got {value!r}")
