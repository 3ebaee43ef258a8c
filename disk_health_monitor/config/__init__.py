"""Configuration management for disk health monitor."""

from .config_manager import ConfigManager
from .config_validator import ConfigValidator
from .settings import MonitorSettings, Thresholds, TelegramSettings

__all__ = ["ConfigManager", "ConfigValidator", "MonitorSettings", "Thresholds", "TelegramSettings"]
