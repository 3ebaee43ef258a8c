"""Main disk health monitoring class."""

import logging
import socket
from typing import Dict, List, Any, Optional
from datetime import datetime

from .classifier import classify_disk, classify_raid, classify_usage
from .devices import DeviceDiscovery
from .models import BlockDevice, DiskObservation, HealthReport, Severity
from .raid import RaidChecker
from .smart import SmartReader
from .state import AlertState, StateStore, decide, state_fingerprint, state_text
from .usage import UsageChecker
from ..config.config_manager import ConfigManager
from ..reporters.telegram_reporter import TelegramReporter
from ..utils.formatters import format_report


class DiskHealthMonitor:
    """Main disk health monitoring coordinator."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize disk health monitor.

        Args:
            config_path: Optional path to configuration file.
        """
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.settings = self.config_manager.get_settings()
        self.discovery = None
        self.smart_reader = None
        self.usage_checker = None
        self.raid_checker = None
        self.state_store = None
        self.telegram_reporter = None
        self.logger = logging.getLogger(__name__)

        # Initialize components
        self._initialize_components()

    def _initialize_components(self):
        """Initialize monitoring components."""
        settings = self.settings
        timeout = settings.command_timeout_seconds

        self.discovery = DeviceDiscovery(
            include=settings.include_devices,
            exclude_patterns=settings.exclude_patterns,
            device_options=settings.device_options,
            timeout_seconds=timeout
        )
        self.smart_reader = SmartReader(timeout_seconds=timeout)
        self.usage_checker = UsageChecker(excluded_fs_types=settings.excluded_fs_types)
        self.raid_checker = RaidChecker(
            mdstat_path=settings.mdstat_path,
            use_mdadm=settings.use_mdadm,
            timeout_seconds=timeout
        )
        self.state_store = StateStore(settings.state_path, settings.state_format)

        # The reporter exists even without credentials; sending then logs and skips
        telegram = settings.telegram
        self.telegram_reporter = TelegramReporter(
            bot_token=telegram.bot_token,
            chat_id=telegram.chat_id,
            parse_mode=telegram.parse_mode,
            timeout_seconds=telegram.timeout_seconds,
            api_url=telegram.api_url
        )

    def collect(self) -> HealthReport:
        """Gather and classify every device, filesystem and RAID array.

        Returns:
            Classified HealthReport.
        """
        thresholds = self.settings.thresholds
        report = HealthReport(
            hostname=self.settings.hostname or socket.gethostname(),
            timestamp=datetime.now()
        )

        for device in self.discovery.discover():
            observation = self._read_device(device)
            observation.severity, observation.reasons = classify_disk(observation, thresholds)
            report.disks[device.name] = observation
            self.logger.info(f"{device.name}: {observation.severity.name}"
                             + (f" ({'; '.join(observation.reasons)})" if observation.reasons else ""))

        try:
            report.usage = self.usage_checker.collect()
        except Exception as e:
            self.logger.error(f"Failed to collect filesystem usage: {e}")
            report.usage = []
        for usage in report.usage:
            usage.severity = classify_usage(usage.percent, thresholds)
            if usage.severity > Severity.OK:
                self.logger.info(f"{usage.mountpoint} at {usage.percent:g}%: {usage.severity.name}")

        report.raid_arrays, report.raid_dump = self.raid_checker.collect()
        for array in report.raid_arrays:
            array.severity = classify_raid(array)

        self.logger.info(f"Overall severity: {report.overall_severity.name}")
        return report

    def _read_device(self, device: BlockDevice) -> DiskObservation:
        """Read one device; an unexpected error only affects that device."""
        try:
            return self.smart_reader.read(device)
        except Exception as e:
            self.logger.warning(f"Unexpected error reading {device.name}: {e}")
            return DiskObservation(device=device, readable=False, error_message=str(e))

    def generate_report(self, report: HealthReport, recovery: bool = False) -> str:
        """Render the notification text for a report."""
        return format_report(report, self.settings.thresholds, recovery=recovery)

    def run_check(self, test_mode: bool = False, force: bool = False) -> Dict[str, Any]:
        """Run a full check and notify when the problem set changed.

        Args:
            test_mode: Always send, never store the new state.
            force: Always send and store the new state.

        Returns:
            Dictionary with the report, fingerprint, decision and delivery result.
        """
        self.logger.info("Starting disk health check")

        report = self.collect()
        fingerprint = state_fingerprint(report)
        previous = self.state_store.load()
        decision = decide(fingerprint, report.has_issues, previous,
                          test_mode=test_mode, force=force)
        self.logger.info(f"Notification decision: send={decision.send} persist={decision.persist} "
                         f"({decision.reason})")

        # Stored on the decision, not on delivery
        if decision.persist:
            try:
                self.state_store.save(AlertState(
                    fingerprint=fingerprint,
                    payload=state_text(report),
                    severity=report.overall_severity,
                    timestamp=report.timestamp
                ))
            except OSError as e:
                self.logger.error(f"Could not store alert state in {self.state_store.path}: {e}")

        text = self.generate_report(report, recovery=decision.recovery)
        sent = False
        if decision.send:
            sent = self.telegram_reporter.send_report(text)
            self.logger.info(f"Telegram report sent: {sent}")

        self.logger.info("Disk health check completed")

        return {
            'report': report,
            'text': text,
            'fingerprint': fingerprint,
            'decision': decision,
            'sent': sent,
            'severity': report.overall_severity,
            'timestamp': report.timestamp
        }

    def run_selftests(self) -> List[Dict[str, Any]]:
        """Start a short SMART self-test on every monitored device.

        Returns:
            One result dictionary per device.
        """
        results = []
        for device in self.discovery.discover():
            started, message = self.smart_reader.start_short_selftest(device)
            results.append({'device': device.name, 'started': started, 'message': message})
        return results
