"""Data models for disk health monitoring."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional


class Severity(IntEnum):
    """Health severity, ordered so that max() gives the worst one."""
    OK = 0
    WARN = 1
    CRITICAL = 2

    @property
    def emoji(self) -> str:
        return {0: "✅", 1: "⚠️", 2: "🔴"}[self.value]


class MediaType(Enum):
    """Storage media type, used to pick temperature thresholds."""
    HDD = "hdd"
    SSD = "ssd"


@dataclass
class BlockDevice:
    """A block device selected for SMART monitoring."""
    name: str
    path: str
    media_type: MediaType = MediaType.HDD
    transport: Optional[str] = None
    smart_options: List[str] = field(default_factory=list)


@dataclass
class DiskObservation:
    """SMART readings for one device, built fresh on every run."""
    device: BlockDevice
    readable: bool = True
    health_passed: Optional[bool] = None
    temperature: Optional[int] = None
    reallocated_sectors: int = 0
    pending_sectors: int = 0
    uncorrectable_sectors: int = 0
    error_message: Optional[str] = None
    severity: Severity = Severity.OK
    reasons: List[str] = field(default_factory=list)


@dataclass
class UsageObservation:
    """Usage of one mounted filesystem."""
    source: str
    mountpoint: str
    fstype: str
    percent: float
    severity: Severity = Severity.OK


@dataclass
class RaidArray:
    """Status of one software RAID array."""
    name: str
    state: str
    bitmap: Optional[str] = None
    detail: Optional[str] = None
    degraded: bool = False
    severity: Severity = Severity.OK


@dataclass
class HealthReport:
    """Everything gathered during one monitoring run."""
    hostname: str
    timestamp: datetime
    disks: Dict[str, DiskObservation] = field(default_factory=dict)
    usage: List[UsageObservation] = field(default_factory=list)
    raid_arrays: List[RaidArray] = field(default_factory=list)
    raid_dump: str = ""

    @property
    def critical_usage(self) -> List[UsageObservation]:
        return [u for u in self.usage if u.severity == Severity.CRITICAL]

    @property
    def warning_usage(self) -> List[UsageObservation]:
        return [u for u in self.usage if u.severity == Severity.WARN]

    @property
    def overall_severity(self) -> Severity:
        severities = [Severity.OK]
        severities.extend(d.severity for d in self.disks.values())
        severities.extend(u.severity for u in self.usage)
        severities.extend(a.severity for a in self.raid_arrays)
        return max(severities)

    @property
    def has_issues(self) -> bool:
        return self.overall_severity > Severity.OK
