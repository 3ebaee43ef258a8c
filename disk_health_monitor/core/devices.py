"""Block device discovery for SMART monitoring."""

import json
import logging
import os
import subprocess
from typing import Any, Dict, List, Optional, Sequence

from .models import BlockDevice, MediaType
from ..utils.commands import run_command


class DeviceDiscovery:
    """Finds the block devices to monitor and their media type."""

    LSBLK_COMMAND = ['lsblk', '-J', '-d', '-o', 'NAME,TYPE,ROTA,TRAN']

    def __init__(self, include: Sequence[str] = (), exclude_patterns: Sequence[str] = (),
                 device_options: Optional[Dict[str, List[str]]] = None, timeout_seconds: int = 30):
        """Initialize device discovery.

        Args:
            include: Explicit device names or paths. Empty means auto-discover.
            exclude_patterns: Name prefixes of virtual devices to skip.
            device_options: Extra smartctl options keyed by device name.
            timeout_seconds: Timeout for the lsblk call.
        """
        self.include = list(include)
        self.exclude_patterns = list(exclude_patterns)
        self.device_options = device_options or {}
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def discover(self) -> List[BlockDevice]:
        """Return the devices to monitor, virtual devices filtered out."""
        known = self._list_block_devices()

        if self.include:
            entries = [(entry.rsplit('/', 1)[-1], entry) for entry in self.include]
        else:
            entries = [(name, name) for name, info in known.items() if info.get('type') == 'disk']

        devices = []
        for name, entry in entries:
            path = entry if entry.startswith('/') else f"/dev/{name}"
            # by-id and by-path links resolve to the kernel name lsblk reports
            kernel_name = os.path.realpath(path).rsplit('/', 1)[-1]
            if self.is_excluded(name) or self.is_excluded(kernel_name):
                self.logger.debug(f"Skipping virtual device {name}")
                continue
            info = known.get(name) or known.get(kernel_name, {})
            devices.append(BlockDevice(
                name=name,
                path=path,
                media_type=self._media_type(info),
                transport=info.get('tran'),
                smart_options=list(self.device_options.get(name, [])),
            ))

        self.logger.info(f"Monitoring {len(devices)} devices: {', '.join(d.name for d in devices)}")
        return devices

    def is_excluded(self, name: str) -> bool:
        """Check if a device name matches a virtual device pattern."""
        for pattern in self.exclude_patterns:
            if name.startswith(pattern):
                return True
        return False

    def _list_block_devices(self) -> Dict[str, Dict[str, Any]]:
        """Query lsblk for top-level block devices keyed by name."""
        try:
            result = run_command(self.LSBLK_COMMAND, timeout=self.timeout_seconds)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            self.logger.warning(f"lsblk unavailable: {e}")
            return {}

        if result.returncode != 0:
            self.logger.warning(f"lsblk failed with return code {result.returncode}: {result.stderr.strip()}")
            return {}

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Could not parse lsblk output: {e}")
            return {}

        return {entry['name']: entry for entry in data.get('blockdevices', []) if 'name' in entry}

    def _media_type(self, info: Dict[str, Any]) -> MediaType:
        """Solid-state if the transport is NVMe or the rotational flag is off."""
        if (info.get('tran') or '').lower() == 'nvme':
            return MediaType.SSD

        # Older lsblk prints "0"/"1", newer prints booleans
        rota = info.get('rota')
        if rota in (False, 0, '0'):
            return MediaType.SSD
        return MediaType.HDD
