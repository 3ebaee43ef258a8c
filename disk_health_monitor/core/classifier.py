"""Severity classification of disk, usage and RAID observations."""

from typing import List, Tuple

from .models import DiskObservation, MediaType, RaidArray, Severity
from ..config.settings import Thresholds


def temperature_limits(media_type: MediaType, thresholds: Thresholds) -> Tuple[int, int]:
    """Return (warn, critical) temperature for the media type."""
    if media_type == MediaType.SSD:
        return thresholds.ssd_temp_warn, thresholds.ssd_temp_crit
    return thresholds.hdd_temp_warn, thresholds.hdd_temp_crit


def classify_disk(observation: DiskObservation, thresholds: Thresholds) -> Tuple[Severity, List[str]]:
    """Classify one device.

    CRITICAL conditions (health fail, pending or uncorrectable sectors,
    critical temperature) always win over WARN conditions (reallocated
    sectors, warm temperature). An unreadable device is WARN.

    Args:
        observation: Raw SMART readings.
        thresholds: Configured thresholds.

    Returns:
        Tuple of (severity, reasons).
    """
    if not observation.readable:
        return Severity.WARN, [f"unreadable: {observation.error_message or 'no data'}"]

    critical: List[str] = []
    warnings: List[str] = []
    warn_temp, crit_temp = temperature_limits(observation.device.media_type, thresholds)
    temperature = observation.temperature

    if observation.health_passed is False:
        critical.append("SMART health FAILED")
    if observation.pending_sectors > 0:
        critical.append(f"pending sectors: {observation.pending_sectors}")
    if observation.uncorrectable_sectors > 0:
        critical.append(f"uncorrectable sectors: {observation.uncorrectable_sectors}")
    if temperature is not None and temperature >= crit_temp:
        critical.append(f"temperature {temperature}°C >= {crit_temp}°C")

    if observation.reallocated_sectors > 0:
        warnings.append(f"reallocated sectors: {observation.reallocated_sectors}")
    if temperature is not None and warn_temp <= temperature < crit_temp:
        warnings.append(f"temperature {temperature}°C >= {warn_temp}°C")

    if critical:
        return Severity.CRITICAL, critical + warnings
    if warnings:
        return Severity.WARN, warnings
    return Severity.OK, []


def classify_usage(percent: float, thresholds: Thresholds) -> Severity:
    """Classify a filesystem usage percentage (boundaries are inclusive)."""
    if percent >= thresholds.usage_crit:
        return Severity.CRITICAL
    if percent >= thresholds.usage_warn:
        return Severity.WARN
    return Severity.OK


def classify_raid(array: RaidArray) -> Severity:
    """A degraded array is CRITICAL, anything else OK."""
    return Severity.CRITICAL if array.degraded else Severity.OK
