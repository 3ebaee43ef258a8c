"""Typed settings built once from the loaded configuration."""

import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


DEFAULT_EXCLUDE_PATTERNS = ["loop", "zram", "ram", "sr", "fd", "nbd", "dm-"]

DEFAULT_EXCLUDED_FS_TYPES = [
    "tmpfs", "devtmpfs", "squashfs", "overlay", "proc", "sysfs",
    "cgroup", "cgroup2", "devpts", "autofs", "efivarfs", "ramfs",
]


@dataclass(frozen=True)
class Thresholds:
    """Warn/critical thresholds for temperature (per media) and usage."""
    hdd_temp_warn: int = 45
    hdd_temp_crit: int = 55
    ssd_temp_warn: int = 60
    ssd_temp_crit: int = 70
    usage_warn: float = 70
    usage_crit: float = 85


@dataclass(frozen=True)
class TelegramSettings:
    """Telegram Bot API settings."""
    bot_token: Optional[str] = None
    chat_id: Optional[str] = None
    parse_mode: str = "Markdown"
    timeout_seconds: int = 10
    api_url: str = "https://api.telegram.org"


@dataclass(frozen=True)
class MonitorSettings:
    """All settings a monitoring run needs."""
    telegram: TelegramSettings = field(default_factory=TelegramSettings)
    thresholds: Thresholds = field(default_factory=Thresholds)
    include_devices: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = tuple(DEFAULT_EXCLUDE_PATTERNS)
    device_options: Dict[str, List[str]] = field(default_factory=dict)
    excluded_fs_types: Tuple[str, ...] = tuple(DEFAULT_EXCLUDED_FS_TYPES)
    mdstat_path: str = "/proc/mdstat"
    use_mdadm: bool = True
    state_path: str = "/var/lib/disk-health-monitor/state.json"
    state_format: str = "json"
    command_timeout_seconds: int = 30
    hostname: Optional[str] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MonitorSettings":
        """Build settings from a validated, defaulted configuration dict.

        Args:
            config: Configuration dictionary as returned by ConfigManager.

        Returns:
            MonitorSettings instance.
        """
        telegram = config.get('telegram', {})
        thresholds = config.get('thresholds', {})
        devices = config.get('devices', {})
        filesystems = config.get('filesystems', {})
        raid = config.get('raid', {})
        state = config.get('state', {})
        monitoring = config.get('monitoring', {})

        options = {}
        for name, value in (devices.get('options') or {}).items():
            # Accept both "sdb" and "/dev/sdb" as keys
            key = str(name).rsplit('/', 1)[-1]
            options[key] = shlex.split(value) if isinstance(value, str) else [str(v) for v in value]

        return cls(
            telegram=TelegramSettings(
                bot_token=_optional_str(telegram.get('bot_token')),
                chat_id=_optional_str(telegram.get('chat_id')),
                parse_mode=telegram.get('parse_mode', 'Markdown'),
                timeout_seconds=int(telegram.get('timeout_seconds', 10)),
                api_url=str(telegram.get('api_url', 'https://api.telegram.org')).rstrip('/'),
            ),
            thresholds=Thresholds(
                hdd_temp_warn=int(thresholds['hdd_temp_warn']),
                hdd_temp_crit=int(thresholds['hdd_temp_crit']),
                ssd_temp_warn=int(thresholds['ssd_temp_warn']),
                ssd_temp_crit=int(thresholds['ssd_temp_crit']),
                usage_warn=float(thresholds['usage_warn']),
                usage_crit=float(thresholds['usage_crit']),
            ),
            include_devices=tuple(devices.get('include') or ()),
            exclude_patterns=tuple(devices.get('exclude_patterns', DEFAULT_EXCLUDE_PATTERNS)),
            device_options=options,
            excluded_fs_types=tuple(filesystems.get('exclude_types', DEFAULT_EXCLUDED_FS_TYPES)),
            mdstat_path=raid.get('mdstat_path', '/proc/mdstat'),
            use_mdadm=bool(raid.get('use_mdadm', True)),
            state_path=state['path'],
            state_format=state.get('format', 'json'),
            command_timeout_seconds=int(monitoring.get('command_timeout_seconds', 30)),
            hostname=monitoring.get('hostname'),
        )


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == '':
        return None
    return str(value)
