"""Core monitoring functionality."""

from .monitor import DiskHealthMonitor
from .devices import DeviceDiscovery
from .smart import SmartReader
from .usage import UsageChecker
from .raid import RaidChecker
from .state import StateStore
from .models import Severity, MediaType, BlockDevice, DiskObservation, UsageObservation, RaidArray, HealthReport

__all__ = ["DiskHealthMonitor", "DeviceDiscovery", "SmartReader", "UsageChecker", "RaidChecker",
           "StateStore", "Severity", "MediaType", "BlockDevice", "DiskObservation",
           "UsageObservation", "RaidArray", "HealthReport"]
