"""Notification reporters."""

from .telegram_reporter import TelegramReporter

__all__ = ["TelegramReporter"]
