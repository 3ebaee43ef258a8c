"""Filesystem usage collection."""

import logging
from typing import List, Sequence

import psutil

from .models import UsageObservation


class UsageChecker:
    """Reads percent-used for every mounted, non-virtual filesystem."""

    def __init__(self, excluded_fs_types: Sequence[str] = ()):
        self.excluded_fs_types = set(excluded_fs_types)
        self.logger = logging.getLogger(__name__)

    def collect(self) -> List[UsageObservation]:
        """Return one (unclassified) observation per mountpoint."""
        observations = []
        seen = set()

        for partition in psutil.disk_partitions(all=False):
            if partition.fstype in self.excluded_fs_types or partition.mountpoint in seen:
                continue
            seen.add(partition.mountpoint)

            try:
                usage = psutil.disk_usage(partition.mountpoint)
            except OSError as e:
                self.logger.warning(f"Could not read usage of {partition.mountpoint}: {e}")
                continue

            observations.append(UsageObservation(
                source=partition.device,
                mountpoint=partition.mountpoint,
                fstype=partition.fstype,
                percent=usage.percent,
            ))

        self.logger.debug(f"Collected usage for {len(observations)} filesystems")
        return observations
