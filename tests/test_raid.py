from __future__ import annotations

from disk_health_monitor.core import raid as raid_module
from disk_health_monitor.core.raid import RaidChecker, parse_mdstat
from tests.conftest import completed


MDSTAT = """Personalities : [raid1] [raid6] [raid5] [raid4]
md0 : active raid1 sdb1[1] sda1[0]
      976630464 blocks super 1.2 [2/2] [UU]
      bitmap: 0/8 pages [0KB], 65536KB chunk

md1 : active raid5 sde1[2] sdd1[1](F) sdc1[0]
      1953258496 blocks super 1.2 level 5, 512k chunk, algorithm 2 [3/2] [U_U]

unused devices: <none>
"""

HEALTHY_MDSTAT = """Personalities : [raid1]
md0 : active raid1 sdb1[1] sda1[0]
      976630464 blocks super 1.2 [2/2] [UU]

unused devices: <none>
"""


def test_parse_mdstat_finds_degraded_member():
    arrays = parse_mdstat(MDSTAT)

    assert [a.name for a in arrays] == ['md0', 'md1']
    assert arrays[0].bitmap == 'UU'
    assert not arrays[0].degraded
    assert arrays[1].bitmap == 'U_U'
    assert arrays[1].degraded
    assert arrays[1].state.startswith('active raid5')


def test_parse_mdstat_without_arrays():
    assert parse_mdstat("Personalities : \nunused devices: <none>\n") == []


def test_missing_mdstat_means_no_raid(tmp_path):
    arrays, dump = RaidChecker(mdstat_path=str(tmp_path / 'absent')).collect()
    assert arrays == []
    assert dump == ''


def test_dump_contains_mdstat_verbatim(tmp_path):
    path = tmp_path / 'mdstat'
    path.write_text(MDSTAT)
    arrays, dump = RaidChecker(mdstat_path=str(path), use_mdadm=False).collect()

    assert len(arrays) == 2
    assert dump == MDSTAT.strip()


def test_mdadm_detail_marks_degraded_and_is_dumped(tmp_path, monkeypatch):
    path = tmp_path / 'mdstat'
    path.write_text(HEALTHY_MDSTAT)
    detail = "/dev/md0:\n           Raid Level : raid1\n                State : clean, degraded\n"
    calls = []

    def fake_run(cmd, timeout=30):
        calls.append(cmd)
        return completed(detail)

    monkeypatch.setattr(raid_module, 'command_available', lambda name: True)
    monkeypatch.setattr(raid_module, 'run_command', fake_run)

    arrays, dump = RaidChecker(mdstat_path=str(path)).collect()

    assert calls == [['mdadm', '--detail', '/dev/md0']]
    assert arrays[0].degraded
    assert arrays[0].detail == detail
    assert 'State : clean, degraded' in dump
    assert dump.startswith('Personalities')


def test_mdadm_failure_keeps_mdstat_verdict(tmp_path, monkeypatch):
    path = tmp_path / 'mdstat'
    path.write_text(HEALTHY_MDSTAT)
    monkeypatch.setattr(raid_module, 'command_available', lambda name: True)
    monkeypatch.setattr(raid_module, 'run_command',
                        lambda cmd, timeout=30: completed('', returncode=1, stderr='permission denied'))

    arrays, dump = RaidChecker(mdstat_path=str(path)).collect()
    assert not arrays[0].degraded
    assert dump == HEALTHY_MDSTAT.strip()
