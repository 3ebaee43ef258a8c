from __future__ import annotations

import logging
import subprocess

import pytest
import yaml

from disk_health_monitor.config.settings import Thresholds
from disk_health_monitor.core.models import BlockDevice, DiskObservation, MediaType


def completed(stdout: str = '', returncode: int = 0, stderr: str = '') -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


def observation(name: str = 'sda', media: MediaType = MediaType.HDD, **fields) -> DiskObservation:
    device = BlockDevice(name=name, path=f'/dev/{name}', media_type=media)
    fields.setdefault('health_passed', True)
    fields.setdefault('temperature', 30)
    return DiskObservation(device=device, **fields)


@pytest.fixture(autouse=True)
def no_telegram_env(monkeypatch):
    monkeypatch.delenv('TELEGRAM_BOT_TOKEN', raising=False)
    monkeypatch.delenv('TELEGRAM_CHAT_ID', raising=False)


@pytest.fixture(autouse=True)
def restore_root_handlers():
    # cli.setup_logging replaces root handlers with ones bound to CliRunner streams
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def thresholds() -> Thresholds:
    return Thresholds()


@pytest.fixture
def write_config(tmp_path):
    """Write a YAML config whose state and mdstat paths live under tmp_path."""

    def _write(**sections) -> str:
        config = {
            'telegram': {'bot_token': '123456:secret', 'chat_id': '-10042'},
            'raid': {'mdstat_path': str(tmp_path / 'mdstat'), 'use_mdadm': False},
            'state': {'path': str(tmp_path / 'state' / 'state.json')},
            'monitoring': {'hostname': 'nas01'},
        }
        for section, values in sections.items():
            config.setdefault(section, {}).update(values)
        path = tmp_path / 'config.yaml'
        path.write_text(yaml.safe_dump(config), encoding='utf-8')
        return str(path)

    return _write
