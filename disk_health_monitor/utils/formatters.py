"""Formatting utilities for disk health reports."""

from datetime import datetime
from typing import List

from ..config.settings import Thresholds
from ..core.models import DiskObservation, HealthReport, Severity


TELEGRAM_MESSAGE_LIMIT = 4096

# Characters that open an entity in Telegram legacy Markdown
MARKDOWN_SPECIAL = "_*`["


def format_date(dt: datetime, short: bool = False) -> str:
    """Format datetime for display.

    Args:
        dt: Datetime to format.
        short: If True, use short format.

    Returns:
        Formatted date string.
    """
    if short:
        return dt.strftime('%Y-%m-%d %H:%M')
    else:
        return dt.strftime('%Y-%m-%d %H:%M:%S')


def escape_markdown(text: str) -> str:
    """Backslash-escape text placed outside any Markdown entity."""
    return "".join(f"\\{char}" if char in MARKDOWN_SPECIAL else char for char in text)


def format_severity(severity: Severity, use_emoji: bool = True) -> str:
    """Severity label, optionally prefixed with its emoji."""
    if use_emoji:
        return f"{severity.emoji} {severity.name}"
    return severity.name


def format_disk_line(observation: DiskObservation) -> str:
    """One report line for a device, e.g. "sda (HDD): OK, 34°C"."""
    device = observation.device
    line = f"{device.name} ({device.media_type.name}): {observation.severity.name}"

    if observation.readable and observation.temperature is not None:
        line += f", {observation.temperature}°C"
    if observation.reasons:
        line += f" - {'; '.join(observation.reasons)}"
    return line


def format_report(report: HealthReport, thresholds: Thresholds, recovery: bool = False) -> str:
    """Build the Markdown notification text.

    Args:
        report: Health report to render.
        thresholds: Thresholds, shown in the usage block titles.
        recovery: Whether this report announces a return to OK.

    Returns:
        Markdown text, truncated to the Telegram message limit.
    """
    severity = report.overall_severity
    title = "Disk Health Recovered" if recovery else "Disk Health Report"

    lines: List[str] = [
        f"*{title}* for {escape_markdown(report.hostname)}",
        f"Status: {format_severity(severity)}",
        f"Checked: {format_date(report.timestamp)}",
        "",
    ]

    lines.append("*Disks:*")
    if report.disks:
        lines.append("```")
        lines.extend(format_disk_line(obs) for _, obs in sorted(report.disks.items()))
        lines.append("```")
    else:
        lines.append("No devices monitored")

    if report.critical_usage:
        lines.append(f"*CRITICAL Usage (>={_percent(thresholds.usage_crit)}):* ‼️")
        lines.append("```")
        lines.extend(f"{u.mountpoint} ({u.source}) at {_percent(u.percent)}" for u in report.critical_usage)
        lines.append("```")

    if report.warning_usage:
        lines.append(f"*WARNING Usage (>={_percent(thresholds.usage_warn)}):* ⚠️")
        lines.append("```")
        lines.extend(f"{u.mountpoint} ({u.source}) at {_percent(u.percent)}" for u in report.warning_usage)
        lines.append("```")

    if report.raid_arrays:
        states = ", ".join(f"{a.name}: {a.severity.name}" for a in report.raid_arrays)
        lines.append(f"*RAID:* {states}")
    if report.raid_dump:
        lines.append("```")
        lines.append(report.raid_dump.replace("```", "'''"))
        lines.append("```")

    text = "\n".join(lines)
    if len(text) > TELEGRAM_MESSAGE_LIMIT:
        text = truncate_string(text, TELEGRAM_MESSAGE_LIMIT - 4, suffix="\n...")
        # An unclosed code block breaks Markdown parsing
        if text.count("```") % 2:
            text += "\n```"
    return text


def truncate_string(text: str, max_length: int, suffix: str = "...") -> str:
    """Truncate string to maximum length.

    Args:
        text: Text to truncate.
        max_length: Maximum length.
        suffix: Suffix to add when truncating.

    Returns:
        Truncated string.
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def _percent(value: float) -> str:
    return f"{value:g}%"
