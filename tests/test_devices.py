from __future__ import annotations

import json
import subprocess

from disk_health_monitor.core import devices as devices_module
from disk_health_monitor.core.devices import DeviceDiscovery
from disk_health_monitor.core.models import MediaType
from disk_health_monitor.config.settings import DEFAULT_EXCLUDE_PATTERNS
from tests.conftest import completed


LSBLK = json.dumps({'blockdevices': [
    {'name': 'sda', 'type': 'disk', 'rota': True, 'tran': 'sata'},
    {'name': 'sdb', 'type': 'disk', 'rota': '1', 'tran': 'usb'},
    {'name': 'nvme0n1', 'type': 'disk', 'rota': False, 'tran': 'nvme'},
    {'name': 'sdc', 'type': 'disk', 'rota': '0', 'tran': 'sata'},
    {'name': 'loop0', 'type': 'loop', 'rota': False, 'tran': None},
    {'name': 'zram0', 'type': 'disk', 'rota': False, 'tran': None},
    {'name': 'sr0', 'type': 'rom', 'rota': True, 'tran': 'sata'},
]})


def _discovery(monkeypatch, stdout=LSBLK, **kwargs):
    calls = []

    def fake_run(cmd, timeout=30):
        calls.append(cmd)
        return completed(stdout)

    monkeypatch.setattr(devices_module, 'run_command', fake_run)
    kwargs.setdefault('exclude_patterns', DEFAULT_EXCLUDE_PATTERNS)
    return DeviceDiscovery(**kwargs), calls


def test_discovers_physical_disks_only(monkeypatch):
    discovery, calls = _discovery(monkeypatch)
    found = discovery.discover()

    assert [d.name for d in found] == ['sda', 'sdb', 'nvme0n1', 'sdc']
    assert calls == [DeviceDiscovery.LSBLK_COMMAND]


def test_media_type_from_rotational_flag_and_transport(monkeypatch):
    discovery, _ = _discovery(monkeypatch)
    media = {d.name: d.media_type for d in discovery.discover()}
    assert media == {
        'sda': MediaType.HDD,
        'sdb': MediaType.HDD,
        'nvme0n1': MediaType.SSD,
        'sdc': MediaType.SSD,
    }


def test_configured_list_still_filters_virtual_devices(monkeypatch):
    discovery, _ = _discovery(monkeypatch, include=['/dev/sdb', 'zram0', 'loop3', 'sdz'])
    found = discovery.discover()

    assert [d.name for d in found] == ['sdb', 'sdz']
    # Unknown to lsblk, so treated as rotational
    assert found[1].media_type == MediaType.HDD
    assert found[1].path == '/dev/sdz'


def test_device_options_attached(monkeypatch):
    discovery, _ = _discovery(monkeypatch, device_options={'sdb': ['-d', 'sat']})
    options = {d.name: d.smart_options for d in discovery.discover()}
    assert options['sdb'] == ['-d', 'sat']
    assert options['sda'] == []


def test_lsblk_missing_yields_no_devices(monkeypatch):
    def fake_run(cmd, timeout=30):
        raise FileNotFoundError('lsblk')

    monkeypatch.setattr(devices_module, 'run_command', fake_run)
    assert DeviceDiscovery().discover() == []


def test_lsblk_timeout_yields_no_devices(monkeypatch):
    def fake_run(cmd, timeout=30):
        raise subprocess.TimeoutExpired(cmd, timeout)

    monkeypatch.setattr(devices_module, 'run_command', fake_run)
    assert DeviceDiscovery().discover() == []


def test_configured_stable_path_kept(monkeypatch, tmp_path):
    # A by-id style link to the SSD lsblk reports as sdc
    link_dir = tmp_path / 'by-id'
    link_dir.mkdir()
    link = link_dir / 'ata-SAMSUNG_XYZ'
    link.symlink_to(tmp_path / 'sdc')

    discovery, _ = _discovery(monkeypatch, include=[str(link)],
                              device_options={'ata-SAMSUNG_XYZ': ['-d', 'sat']})
    [device] = discovery.discover()

    assert device.name == 'ata-SAMSUNG_XYZ'
    assert device.path == str(link)
    assert device.media_type == MediaType.SSD
    assert device.transport == 'sata'
    assert device.smart_options == ['-d', 'sat']


def test_stable_path_to_virtual_device_skipped(monkeypatch, tmp_path):
    link = tmp_path / 'vg-root'
    link.symlink_to(tmp_path / 'dm-0')
    discovery, _ = _discovery(monkeypatch, include=[str(link)])
    assert discovery.discover() == []
