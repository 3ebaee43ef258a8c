"""Software RAID (md) status collection."""

import logging
import os
import re
import subprocess
from typing import List, Tuple

from .models import RaidArray
from ..utils.commands import run_command, command_available


ARRAY_LINE = re.compile(r'^(md\S*)\s*:\s*(.*)$')
MEMBER_BITMAP = re.compile(r'\[([U_]+)\]')
DEGRADED_DETAIL = re.compile(r'\bdegraded\b', re.IGNORECASE)


def parse_mdstat(text: str) -> List[RaidArray]:
    """Parse the kernel's md status summary into arrays.

    Args:
        text: Contents of /proc/mdstat.

    Returns:
        One RaidArray per array, degraded when a member slot shows '_'.
    """
    arrays: List[RaidArray] = []
    current = None

    for line in text.splitlines():
        match = ARRAY_LINE.match(line)
        if match:
            current = RaidArray(name=match.group(1), state=match.group(2).strip())
            arrays.append(current)
            continue

        if current is None:
            continue
        if not line.strip():
            current = None
            continue

        bitmap = MEMBER_BITMAP.search(line)
        if bitmap and current.bitmap is None:
            current.bitmap = bitmap.group(1)
            current.degraded = '_' in current.bitmap

    return arrays


class RaidChecker:
    """Reads md array status and, when available, mdadm details."""

    def __init__(self, mdstat_path: str = '/proc/mdstat', use_mdadm: bool = True,
                 timeout_seconds: int = 30):
        """Initialize RAID checker.

        Args:
            mdstat_path: Path of the kernel status summary.
            use_mdadm: Whether to capture `mdadm --detail` per array.
            timeout_seconds: Timeout for each mdadm call.
        """
        self.mdstat_path = mdstat_path
        self.use_mdadm = use_mdadm
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def collect(self) -> Tuple[List[RaidArray], str]:
        """Return (unclassified) arrays and the verbatim text dump for the report."""
        if not os.path.exists(self.mdstat_path):
            self.logger.debug(f"{self.mdstat_path} not present, skipping RAID check")
            return [], ""

        try:
            with open(self.mdstat_path, 'r', encoding='utf-8', errors='replace') as f:
                mdstat = f.read()
        except OSError as e:
            self.logger.warning(f"Could not read {self.mdstat_path}: {e}")
            return [], ""

        arrays = parse_mdstat(mdstat)
        dump_parts = [mdstat.strip()]

        if arrays and self.use_mdadm and command_available('mdadm'):
            for array in arrays:
                array.detail = self._detail(array.name)
                if array.detail:
                    dump_parts.append(array.detail.strip())
                    if DEGRADED_DETAIL.search(array.detail):
                        array.degraded = True

        for array in arrays:
            if array.degraded:
                self.logger.warning(f"RAID array {array.name} is degraded ({array.bitmap or 'see detail'})")

        return arrays, "\n\n".join(part for part in dump_parts if part)

    def _detail(self, name: str) -> str:
        try:
            result = run_command(['mdadm', '--detail', f'/dev/{name}'], timeout=self.timeout_seconds)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            self.logger.warning(f"mdadm --detail /dev/{name} failed: {e}")
            return ""

        if result.returncode != 0:
            self.logger.warning(f"mdadm --detail /dev/{name} returned {result.returncode}: {result.stderr.strip()}")
            return ""
        return result.stdout
