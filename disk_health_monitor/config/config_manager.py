"""Configuration management for the disk health monitor."""

import os
import shlex
import yaml
from typing import Dict, Any, Optional
from .config_validator import ConfigValidator
from .settings import MonitorSettings, DEFAULT_EXCLUDE_PATTERNS, DEFAULT_EXCLUDED_FS_TYPES


# Keys understood in legacy key=value (shell-sourced) configuration files
LEGACY_KEYS = {
    'TELEGRAM_BOT_TOKEN': ('telegram', 'bot_token'),
    'TELEGRAM_CHAT_ID': ('telegram', 'chat_id'),
    'HDD_TEMP_WARN': ('thresholds', 'hdd_temp_warn'),
    'HDD_TEMP_CRIT': ('thresholds', 'hdd_temp_crit'),
    'SSD_TEMP_WARN': ('thresholds', 'ssd_temp_warn'),
    'SSD_TEMP_CRIT': ('thresholds', 'ssd_temp_crit'),
    'USAGE_WARN': ('thresholds', 'usage_warn'),
    'USAGE_CRIT': ('thresholds', 'usage_crit'),
    'HASH_FILE': ('state', 'path'),
}


class ConfigManager:
    """Manages configuration loading and validation for disk health monitoring."""

    DEFAULT_CONFIG_LOCATIONS = [
        "config.yaml",
        "config.yml",
        os.path.expanduser("~/.disk-health-monitor/config.yaml"),
        os.path.expanduser("~/.disk-health-monitor/config.yml"),
        "/etc/disk-health-monitor/config.yaml",
        "/etc/disk-health-monitor/config.yml",
        "/etc/disk-alert.conf"
    ]

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional path to config file. If not provided,
                        will search in default locations.
        """
        self.config_path = config_path
        self.config_data: Dict[str, Any] = {}
        self.validator = ConfigValidator()

    def load_config(self) -> Dict[str, Any]:
        """Load configuration from file.

        Returns:
            Dictionary containing configuration data.

        Raises:
            FileNotFoundError: If config file cannot be found.
            ValueError: If config file is invalid.
        """
        config_file = self._find_config_file()

        try:
            if config_file.endswith('.conf'):
                self.config_data = self._read_legacy_config(config_file)
            else:
                with open(config_file, 'r', encoding='utf-8') as f:
                    self.config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in config file {config_file}: {e}")
        except Exception as e:
            raise ValueError(f"Error reading config file {config_file}: {e}")

        self._apply_environment()

        # Validate configuration
        self.validator.validate(self.config_data)

        # Set defaults
        self._set_defaults()

        # A default can clash with a single configured threshold
        self.validator.validate(self.config_data)

        return self.config_data

    def _find_config_file(self) -> str:
        """Find configuration file in default locations.

        Returns:
            Path to configuration file.

        Raises:
            FileNotFoundError: If no config file is found.
        """
        if self.config_path:
            if os.path.exists(self.config_path):
                return self.config_path
            else:
                raise FileNotFoundError(f"Config file not found: {self.config_path}")

        for location in self.DEFAULT_CONFIG_LOCATIONS:
            if os.path.exists(location):
                return location

        raise FileNotFoundError(
            f"Configuration file not found in any of these locations:\n" +
            "\n".join(f"  - {loc}" for loc in self.DEFAULT_CONFIG_LOCATIONS) +
            "\n\nPlease copy config.example.yaml to config.yaml and customize it."
        )

    def _read_legacy_config(self, config_file: str) -> Dict[str, Any]:
        """Read a key=value file of the kind shell scripts source.

        Args:
            config_file: Path to the file.

        Returns:
            Configuration dictionary in the YAML layout.
        """
        config: Dict[str, Any] = {}
        with open(config_file, 'r', encoding='utf-8') as f:
            for line_number, raw_line in enumerate(f, 1):
                line = raw_line.strip()
                if not line or line.startswith('#'):
                    continue
                if line.startswith('export '):
                    line = line[len('export '):].strip()
                if '=' not in line:
                    raise ValueError(f"Line {line_number}: expected KEY=value, got {line!r}")

                key, value = line.split('=', 1)
                key = key.strip()
                parts = shlex.split(value, comments=True)
                value = ' '.join(parts)

                if key in LEGACY_KEYS:
                    section, option = LEGACY_KEYS[key]
                    config.setdefault(section, {})[option] = value
                elif key == 'DISKS':
                    config.setdefault('devices', {})['include'] = value.split()
                elif key == 'MAP_DEVICE_OPTS':
                    # "sdb=-d,sat sdc=-d,usbjmicron": commas stand in for spaces
                    options = {}
                    for pair in value.split():
                        name, _, opts = pair.partition('=')
                        options[name] = opts.replace(',', ' ')
                    config.setdefault('devices', {})['options'] = options

        for option in ('hdd_temp_warn', 'hdd_temp_crit', 'ssd_temp_warn', 'ssd_temp_crit'):
            if option in config.get('thresholds', {}):
                config['thresholds'][option] = int(config['thresholds'][option])
        for option in ('usage_warn', 'usage_crit'):
            if option in config.get('thresholds', {}):
                config['thresholds'][option] = float(config['thresholds'][option])

        # A bare HASH_FILE holds only the digest
        if 'path' in config.get('state', {}):
            config['state'].setdefault('format', 'hash')

        return config

    def _apply_environment(self):
        """Let TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID override the file."""
        if not isinstance(self.config_data, dict):
            return
        for variable, option in (('TELEGRAM_BOT_TOKEN', 'bot_token'), ('TELEGRAM_CHAT_ID', 'chat_id')):
            value = os.environ.get(variable)
            if value:
                if not isinstance(self.config_data.get('telegram'), dict):
                    self.config_data['telegram'] = {}
                self.config_data['telegram'][option] = value

    def _set_defaults(self):
        """Set default values for optional configuration parameters."""
        defaults = {
            'telegram': {
                'parse_mode': 'Markdown',
                'timeout_seconds': 10,
                'api_url': 'https://api.telegram.org'
            },
            'devices': {
                'include': [],
                'exclude_patterns': list(DEFAULT_EXCLUDE_PATTERNS),
                'options': {}
            },
            'thresholds': {
                'hdd_temp_warn': 45,
                'hdd_temp_crit': 55,
                'ssd_temp_warn': 60,
                'ssd_temp_crit': 70,
                'usage_warn': 70,
                'usage_crit': 85
            },
            'filesystems': {
                'exclude_types': list(DEFAULT_EXCLUDED_FS_TYPES)
            },
            'raid': {
                'mdstat_path': '/proc/mdstat',
                'use_mdadm': True
            },
            'state': {
                'path': '/var/lib/disk-health-monitor/state.json',
                'format': 'json'
            },
            'monitoring': {
                'command_timeout_seconds': 30,
                'hostname': None
            }
        }

        # Merge defaults with existing config
        for section, section_defaults in defaults.items():
            if not isinstance(self.config_data.get(section), dict):
                self.config_data[section] = {}
            for key, value in section_defaults.items():
                if key not in self.config_data[section]:
                    self.config_data[section][key] = value

    def get_settings(self) -> MonitorSettings:
        """Get the typed settings object for a monitoring run.

        Returns:
            MonitorSettings built from the loaded configuration.
        """
        return MonitorSettings.from_config(self.config_data)

