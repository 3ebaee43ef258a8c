"""
Disk Health Monitor - SMART, filesystem usage and RAID monitoring for Linux hosts.

This package checks local disks, classifies their health and sends a Telegram
report whenever the set of problems changes.
"""

__version__ = "1.0.0"

from .core.monitor import DiskHealthMonitor
from .core.state import StateStore
from .reporters.telegram_reporter import TelegramReporter

__all__ = ["DiskHealthMonitor", "StateStore", "TelegramReporter"]
