"""Telegram reporter for sending disk health reports."""

import logging
from datetime import datetime
from typing import List, Optional

import requests


class TelegramReporter:
    """Handles sending disk health reports through the Telegram Bot API."""

    def __init__(self, bot_token: Optional[str] = None, chat_id: Optional[str] = None,
                 parse_mode: str = "Markdown", timeout_seconds: int = 10,
                 api_url: str = "https://api.telegram.org"):
        """Initialize Telegram reporter.

        Args:
            bot_token: Bot token issued by BotFather.
            chat_id: Target chat or channel id.
            parse_mode: Telegram parse mode for the message text.
            timeout_seconds: HTTP timeout for the sendMessage call.
            api_url: Bot API base URL.
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.parse_mode = parse_mode
        self.timeout_seconds = timeout_seconds
        self.api_url = api_url.rstrip('/')
        self.logger = logging.getLogger(__name__)

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def send_report(self, text: str) -> bool:
        """Send a report as one message.

        Delivery is attempted once; failures are logged, not retried.

        Args:
            text: Message text in the configured parse mode.

        Returns:
            True if Telegram answered HTTP 200.
        """
        if not self.is_configured:
            self.logger.warning("Telegram bot token or chat ID not configured, skipping notification")
            return False

        if not text:
            self.logger.error("No content provided for Telegram message")
            return False

        url = f"{self.api_url}/bot{self.bot_token}/sendMessage"
        data = {
            'chat_id': self.chat_id,
            'text': text,
            'parse_mode': self.parse_mode,
        }

        try:
            response = requests.post(url, data=data, timeout=self.timeout_seconds)
        except requests.RequestException as e:
            # The exception text can contain the URL, and with it the token
            self.logger.error(f"Failed to send Telegram message: {type(e).__name__}")
            return False

        if response.status_code != 200:
            self.logger.error(f"Telegram API returned HTTP {response.status_code}: {self._describe_error(response)}")
            return False

        self.logger.info(f"Telegram report sent to chat {self.chat_id}")
        return True

    def send_test_message(self) -> bool:
        """Send a test message to verify configuration.

        Returns:
            True if the test message was delivered.
        """
        test_content = (
            "*Disk Health Monitor test message*\n\n"
            f"Chat: `{self.chat_id}`\n"
            f"Parse mode: `{self.parse_mode}`\n\n"
            "If you receive this message, the Telegram configuration is working correctly.\n\n"
            f"Generated at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        )
        return self.send_report(test_content)

    def validate_configuration(self) -> List[str]:
        """Validate Telegram configuration.

        Returns:
            List of validation errors (empty if valid).
        """
        errors = []

        if not self.bot_token:
            errors.append("Telegram bot token not configured")
        elif ':' not in self.bot_token:
            errors.append("Telegram bot token should look like <id>:<secret>")

        if not self.chat_id:
            errors.append("Telegram chat ID not configured")
        elif not (self.chat_id.lstrip('-').isdigit() or self.chat_id.startswith('@')):
            errors.append(f"Invalid Telegram chat ID: {self.chat_id}")

        return errors

    @staticmethod
    def _describe_error(response: requests.Response) -> str:
        try:
            return response.json().get('description', 'Unknown error')
        except ValueError:
            return response.text[:200] or 'Unknown error'
