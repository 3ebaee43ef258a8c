"""Utility modules for disk health monitoring."""

from .formatters import format_date, format_report, format_severity, truncate_string
from .commands import run_command, command_available

__all__ = ["format_date", "format_report", "format_severity", "truncate_string",
           "run_command", "command_available"]
