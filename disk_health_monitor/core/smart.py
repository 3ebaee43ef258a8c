"""SMART data collection via smartctl."""

import json
import logging
import subprocess
from typing import Any, Dict, Tuple

from .models import BlockDevice, DiskObservation
from ..utils.commands import run_command


# ATA attribute IDs of the failure predictors we track
REALLOCATED_SECTOR_CT = 5
CURRENT_PENDING_SECTOR = 197
OFFLINE_UNCORRECTABLE = 198

# smartctl exit status bits 0 and 1: command line error, device open failed
SMARTCTL_FATAL_BITS = 0b011

# A document without any of these carries no reading at all
SMART_CONTENT_KEYS = ('smart_status', 'temperature', 'ata_smart_attributes',
                      'nvme_smart_health_information_log')


class SmartReader:
    """Reads SMART health, temperature and sector counters for a device."""

    def __init__(self, timeout_seconds: int = 30):
        """Initialize SMART reader.

        Args:
            timeout_seconds: Timeout for each smartctl call.
        """
        self.timeout_seconds = timeout_seconds
        self.logger = logging.getLogger(__name__)

    def read(self, device: BlockDevice) -> DiskObservation:
        """Query one device.

        A device that cannot be queried yields an observation with
        readable=False instead of raising.

        Args:
            device: Device to query.

        Returns:
            DiskObservation with raw readings (not yet classified).
        """
        cmd = ['smartctl', '-j', '-H', '-A'] + device.smart_options + [device.path]

        try:
            result = run_command(cmd, timeout=self.timeout_seconds)
        except FileNotFoundError:
            return self._unreadable(device, "smartctl not installed")
        except subprocess.TimeoutExpired:
            return self._unreadable(device, f"smartctl timed out after {self.timeout_seconds}s")

        if result.returncode & SMARTCTL_FATAL_BITS:
            message = self._error_message(result)
            return self._unreadable(device, f"smartctl failed (exit {result.returncode}): {message}")

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            return self._unreadable(device, f"unparsable smartctl output: {e}")

        # Exit bit 2 (SMART command failed) usually comes with an empty document
        if not isinstance(data, dict) or not any(key in data for key in SMART_CONTENT_KEYS):
            if result.returncode:
                message = self._error_message(result)
                return self._unreadable(device, f"no SMART data (exit {result.returncode}): {message}")
            return self._unreadable(device, "no SMART data reported")

        return self.parse(device, data)

    def parse(self, device: BlockDevice, data: Dict[str, Any]) -> DiskObservation:
        """Build an observation from smartctl JSON output."""
        observation = DiskObservation(device=device)

        smart_status = data.get('smart_status')
        if isinstance(smart_status, dict) and 'passed' in smart_status:
            observation.health_passed = bool(smart_status['passed'])

        temperature = data.get('temperature', {}).get('current')

        attributes = {
            attr['id']: attr
            for attr in data.get('ata_smart_attributes', {}).get('table', [])
            if 'id' in attr
        }
        observation.reallocated_sectors = self._raw_value(attributes, REALLOCATED_SECTOR_CT)
        observation.pending_sectors = self._raw_value(attributes, CURRENT_PENDING_SECTOR)
        observation.uncorrectable_sectors = self._raw_value(attributes, OFFLINE_UNCORRECTABLE)

        nvme_log = data.get('nvme_smart_health_information_log')
        if nvme_log:
            if temperature is None:
                temperature = nvme_log.get('temperature')
            observation.uncorrectable_sectors = max(
                observation.uncorrectable_sectors, int(nvme_log.get('media_errors') or 0)
            )

        observation.temperature = int(temperature) if temperature is not None else None
        return observation

    def start_short_selftest(self, device: BlockDevice) -> Tuple[bool, str]:
        """Abort any running self-test and start a short one.

        Args:
            device: Device to test.

        Returns:
            Tuple of (started, message).
        """
        try:
            abort = run_command(['smartctl', '-X'] + device.smart_options + [device.path],
                                timeout=self.timeout_seconds)
            self.logger.debug(f"{device.name}: abort returned {abort.returncode}")

            result = run_command(['smartctl', '-t', 'short'] + device.smart_options + [device.path],
                                 timeout=self.timeout_seconds)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            self.logger.error(f"{device.name}: could not start self-test: {e}")
            return False, str(e)

        if result.returncode & SMARTCTL_FATAL_BITS:
            message = self._error_message(result)
            self.logger.error(f"{device.name}: self-test not started: {message}")
            return False, message

        self.logger.info(f"Started short self-test on {device.path}")
        return True, "short self-test started"

    def _unreadable(self, device: BlockDevice, message: str) -> DiskObservation:
        self.logger.warning(f"{device.name}: {message}")
        return DiskObservation(device=device, readable=False, error_message=message)

    @staticmethod
    def _raw_value(attributes: Dict[int, Dict[str, Any]], attr_id: int) -> int:
        try:
            return int(attributes.get(attr_id, {}).get('raw', {}).get('value', 0))
        except (TypeError, ValueError):
            return 0

    @staticmethod
    def _error_message(result: subprocess.CompletedProcess) -> str:
        # smartctl -j reports errors inside the JSON document
        try:
            messages = json.loads(result.stdout).get('smartctl', {}).get('messages', [])
            if messages:
                return '; '.join(m.get('string', '') for m in messages)
        except (json.JSONDecodeError, AttributeError):
            pass
        return (result.stderr or result.stdout or 'no output').strip()
