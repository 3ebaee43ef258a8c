from __future__ import annotations

import requests

from disk_health_monitor.reporters import telegram_reporter as reporter_module
from disk_health_monitor.reporters.telegram_reporter import TelegramReporter


class _Response:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload or {'ok': True}
        self.text = str(self._payload)

    def json(self):
        return self._payload


def _capture(monkeypatch, response=None, error=None):
    calls = []

    def fake_post(url, data=None, timeout=None):
        calls.append({'url': url, 'data': data, 'timeout': timeout})
        if error is not None:
            raise error
        return response or _Response()

    monkeypatch.setattr(reporter_module.requests, 'post', fake_post)
    return calls


def test_send_report_posts_form_fields(monkeypatch):
    calls = _capture(monkeypatch)
    reporter = TelegramReporter(bot_token='123:abc', chat_id='-1001', timeout_seconds=7)

    assert reporter.send_report('*hello*')
    assert calls == [{
        'url': 'https://api.telegram.org/bot123:abc/sendMessage',
        'data': {'chat_id': '-1001', 'text': '*hello*', 'parse_mode': 'Markdown'},
        'timeout': 7,
    }]


def test_missing_credentials_skip_send(monkeypatch):
    calls = _capture(monkeypatch)
    assert not TelegramReporter(bot_token='123:abc').send_report('text')
    assert not TelegramReporter(chat_id='1').send_report('text')
    assert calls == []


def test_non_200_is_failure_without_retry(monkeypatch):
    calls = _capture(monkeypatch, response=_Response(400, {'ok': False, 'description': "Bad Request: can't parse entities"}))
    assert not TelegramReporter(bot_token='1:a', chat_id='2').send_report('*broken')
    assert len(calls) == 1


def test_network_error_is_failure_without_retry(monkeypatch):
    calls = _capture(monkeypatch, error=requests.ConnectionError('unreachable'))
    assert not TelegramReporter(bot_token='1:a', chat_id='2').send_report('text')
    assert len(calls) == 1


def test_validate_configuration():
    assert TelegramReporter(bot_token='1:a', chat_id='-100').validate_configuration() == []
    assert TelegramReporter(bot_token='1:a', chat_id='@channel').validate_configuration() == []

    errors = TelegramReporter(bot_token='nocolon', chat_id='abc').validate_configuration()
    assert len(errors) == 2

    errors = TelegramReporter().validate_configuration()
    assert errors == ['Telegram bot token not configured', 'Telegram chat ID not configured']
