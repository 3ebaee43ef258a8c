"""Alert state persistence and duplicate-alert suppression."""

import hashlib
import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .models import HealthReport, Severity


logger = logging.getLogger(__name__)


@dataclass
class AlertState:
    """The last problem set that was decided on."""
    fingerprint: str
    payload: Optional[str] = None
    severity: Optional[Severity] = None
    timestamp: Optional[datetime] = None


@dataclass
class AlertDecision:
    """Whether to notify and whether to remember the new state."""
    send: bool
    persist: bool
    reason: str
    recovery: bool = False


def state_text(report: HealthReport) -> str:
    """Canonical text of the problem set.

    Only labels go in (device severities, RAID severities, which mounts are
    over a threshold), so readings such as temperature or the exact usage
    percentage do not change the fingerprint.
    """
    lines = ["DISKS:"]
    lines.extend(f"{name}: {obs.severity.name}" for name, obs in sorted(report.disks.items()))

    if report.raid_arrays:
        lines.append("RAID:")
        lines.extend(f"{a.name}: {a.severity.name}" for a in sorted(report.raid_arrays, key=lambda a: a.name))

    critical = sorted(f"{u.mountpoint} ({u.source})" for u in report.critical_usage)
    if critical:
        lines.append("CRITICAL_USAGE:")
        lines.extend(critical)

    warning = sorted(f"{u.mountpoint} ({u.source})" for u in report.warning_usage)
    if warning:
        lines.append("WARNING_USAGE:")
        lines.extend(warning)

    return "\n".join(lines) + "\n"


def state_fingerprint(report: HealthReport) -> str:
    """SHA-256 digest of the canonical problem-set text."""
    return hashlib.sha256(state_text(report).encode('utf-8')).hexdigest()


def decide(fingerprint: str, has_issues: bool, previous: Optional[AlertState],
           test_mode: bool = False, force: bool = False) -> AlertDecision:
    """Decide whether a run notifies and whether its state is stored.

    Args:
        fingerprint: Digest of the current problem set.
        has_issues: Whether anything is above OK.
        previous: Last stored state, None if there is none.
        test_mode: Always send, never store.
        force: Always send, always store.

    Returns:
        AlertDecision.
    """
    if test_mode:
        return AlertDecision(send=True, persist=False, reason="test mode")
    if force:
        return AlertDecision(send=True, persist=True, reason="forced")

    if previous is not None and previous.fingerprint == fingerprint:
        return AlertDecision(send=False, persist=False, reason="state unchanged")

    if has_issues:
        return AlertDecision(send=True, persist=True, reason="state changed")

    if previous is not None and previous.severity is not None and previous.severity > Severity.OK:
        return AlertDecision(send=True, persist=True, reason="recovered", recovery=True)

    return AlertDecision(send=False, persist=True, reason="no issues")


class StateStore:
    """Stores the last alert state as a one-line digest file or as a JSON document."""

    def __init__(self, path: str, state_format: str = 'json'):
        """Initialize state store.

        Args:
            path: State file path.
            state_format: 'hash' for a single "digest SEVERITY" line, 'json' for
                          {hash, payload, severity, timestamp}.
        """
        if state_format not in ('hash', 'json'):
            raise ValueError(f"Unknown state format: {state_format}")
        self.path = path
        self.state_format = state_format

    def load(self) -> Optional[AlertState]:
        """Read the previous state; a missing or corrupt file counts as none."""
        if not os.path.exists(self.path):
            return None

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read().strip()
        except OSError as e:
            logger.warning(f"Could not read state file {self.path}: {e}")
            return None

        if not content:
            return None

        if self.state_format == 'hash':
            # "<digest> <SEVERITY>"; files from older versions hold the digest alone
            fields = content.splitlines()[0].split()
            severity = Severity.__members__.get(fields[1]) if len(fields) > 1 else None
            return AlertState(fingerprint=fields[0], severity=severity)

        try:
            data = json.loads(content)
            severity = data.get('severity')
            timestamp = data.get('timestamp')
            return AlertState(
                fingerprint=data['hash'],
                payload=data.get('payload'),
                severity=Severity[severity] if severity else None,
                timestamp=datetime.fromisoformat(timestamp) if timestamp else None,
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Ignoring corrupt state file {self.path}: {e}")
            return None

    def save(self, state: AlertState) -> None:
        """Write the state atomically (temp file in the same directory, then rename)."""
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)

        if self.state_format == 'hash':
            content = state.fingerprint
            if state.severity is not None:
                content += f" {state.severity.name}"
            content += "\n"
        else:
            content = json.dumps({
                'hash': state.fingerprint,
                'payload': state.payload,
                'severity': state.severity.name if state.severity is not None else None,
                'timestamp': state.timestamp.isoformat() if state.timestamp else None,
            }, indent=2)

        fd, temp_path = tempfile.mkstemp(dir=directory, prefix='.state-')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(temp_path, self.path)
        except OSError:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.debug(f"Stored alert state {state.fingerprint[:12]} in {self.path}")
