"""Configuration validation for disk health monitor."""

from typing import Dict, List, Any


class ConfigValidator:
    """Validates disk health monitor configuration."""

    KNOWN_SECTIONS = ['telegram', 'devices', 'thresholds', 'filesystems', 'raid',
                      'state', 'monitoring']
    TEMPERATURE_PAIRS = [('hdd_temp_warn', 'hdd_temp_crit'), ('ssd_temp_warn', 'ssd_temp_crit')]
    STATE_FORMATS = ['hash', 'json']

    def validate(self, config: Dict[str, Any]) -> None:
        """Validate configuration data.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ValueError: If configuration is invalid.
        """
        self._validate_structure(config)

        if 'devices' in config:
            self._validate_devices(config['devices'])

        if 'thresholds' in config:
            self._validate_thresholds(config['thresholds'])

        if 'state' in config:
            self._validate_state(config['state'])

        if 'telegram' in config:
            self._validate_telegram(config['telegram'])

    def _validate_structure(self, config: Dict[str, Any]) -> None:
        """Validate basic configuration structure.

        Args:
            config: Configuration dictionary.

        Raises:
            ValueError: If the configuration is not a mapping or has unknown sections.
        """
        if not isinstance(config, dict):
            raise ValueError("Configuration must be a mapping of sections")

        unknown_sections = [section for section in config if section not in self.KNOWN_SECTIONS]
        if unknown_sections:
            raise ValueError(f"Unknown configuration sections: {unknown_sections}")

        for section, value in config.items():
            if value is not None and not isinstance(value, dict):
                raise ValueError(f"Configuration section '{section}' must be a dictionary")

    def _validate_devices(self, devices: Dict[str, Any]) -> None:
        """Validate device selection.

        Args:
            devices: Device configuration.

        Raises:
            ValueError: If device configuration is invalid.
        """
        if not devices:
            return

        include = devices.get('include')
        if include is not None and not isinstance(include, list):
            raise ValueError("devices.include must be a list of device names or paths")

        patterns = devices.get('exclude_patterns')
        if patterns is not None and not isinstance(patterns, list):
            raise ValueError("devices.exclude_patterns must be a list")

        options = devices.get('options')
        if options is not None:
            if not isinstance(options, dict):
                raise ValueError("devices.options must map device names to smartctl options")
            for name, value in options.items():
                if not isinstance(value, (str, list)):
                    raise ValueError(f"devices.options for {name} must be a string or list")

    def _validate_thresholds(self, thresholds: Dict[str, Any]) -> None:
        """Validate temperature and usage thresholds.

        Args:
            thresholds: Threshold configuration.

        Raises:
            ValueError: If thresholds are invalid.
        """
        if not thresholds:
            return

        for key, value in thresholds.items():
            try:
                float(value)
            except (ValueError, TypeError):
                raise ValueError(f"Threshold {key} must be a number, got {value!r}")

        for warn_key, crit_key in self.TEMPERATURE_PAIRS:
            if warn_key in thresholds and crit_key in thresholds:
                if float(thresholds[warn_key]) >= float(thresholds[crit_key]):
                    raise ValueError(f"{warn_key} must be lower than {crit_key}")

        for key in ('usage_warn', 'usage_crit'):
            if key in thresholds and not (0 <= float(thresholds[key]) <= 100):
                raise ValueError(f"{key} must be between 0 and 100")

        if 'usage_warn' in thresholds and 'usage_crit' in thresholds:
            if float(thresholds['usage_warn']) >= float(thresholds['usage_crit']):
                raise ValueError("usage_warn must be lower than usage_crit")

    def _validate_state(self, state: Dict[str, Any]) -> None:
        """Validate alert state storage.

        Args:
            state: State configuration.

        Raises:
            ValueError: If state configuration is invalid.
        """
        if not state:
            return

        state_format = state.get('format', 'json')
        if state_format not in self.STATE_FORMATS:
            raise ValueError(f"state.format must be one of {self.STATE_FORMATS}, got {state_format!r}")

        if 'path' in state and not state['path']:
            raise ValueError("state.path cannot be empty")

    def _validate_telegram(self, telegram: Dict[str, Any]) -> None:
        """Validate Telegram configuration.

        Credentials are optional here: without them the send is skipped.

        Args:
            telegram: Telegram configuration.

        Raises:
            ValueError: If Telegram configuration is invalid.
        """
        if not telegram:
            return

        if 'timeout_seconds' in telegram:
            try:
                timeout = int(telegram['timeout_seconds'])
                if timeout <= 0:
                    raise ValueError()
            except (ValueError, TypeError):
                raise ValueError(f"Telegram timeout_seconds must be a positive integer: {telegram['timeout_seconds']}")

        parse_mode = telegram.get('parse_mode', 'Markdown')
        if parse_mode not in ('Markdown', 'MarkdownV2', 'HTML'):
            raise ValueError(f"Telegram parse_mode not supported: {parse_mode}")
