from __future__ import annotations

import json
from datetime import datetime

import pytest

from disk_health_monitor.core.models import HealthReport, RaidArray, Severity, UsageObservation
from disk_health_monitor.core.state import (
    AlertState, StateStore, decide, state_fingerprint, state_text,
)
from tests.conftest import observation


def _report(**severities) -> HealthReport:
    report = HealthReport(hostname='nas01', timestamp=datetime(2026, 1, 2, 3, 4, 5))
    for name, severity in severities.items():
        obs = observation(name)
        obs.severity = severity
        report.disks[name] = obs
    return report


def test_fingerprint_ignores_cosmetic_readings():
    first = _report(sda=Severity.OK)
    second = _report(sda=Severity.OK)
    second.disks['sda'].temperature = 41
    second.disks['sda'].reasons = ['something else']
    assert state_fingerprint(first) == state_fingerprint(second)


def test_fingerprint_changes_with_device_label():
    assert state_fingerprint(_report(sda=Severity.OK)) != state_fingerprint(_report(sda=Severity.WARN))


def test_fingerprint_independent_of_usage_percent_within_band():
    first = _report(sda=Severity.OK)
    first.usage = [UsageObservation('/dev/sda1', '/', 'ext4', 71.0, Severity.WARN)]
    second = _report(sda=Severity.OK)
    second.usage = [UsageObservation('/dev/sda1', '/', 'ext4', 74.0, Severity.WARN)]
    assert state_fingerprint(first) == state_fingerprint(second)

    second.usage[0].severity = Severity.CRITICAL
    assert state_fingerprint(first) != state_fingerprint(second)


def test_state_text_lists_problem_sections():
    report = _report(sdb=Severity.CRITICAL, sda=Severity.OK)
    report.usage = [
        UsageObservation('/dev/sdc1', '/srv', 'ext4', 90, Severity.CRITICAL),
        UsageObservation('/dev/sda1', '/', 'ext4', 72, Severity.WARN),
        UsageObservation('/dev/sda2', '/home', 'ext4', 10, Severity.OK),
    ]
    report.raid_arrays = [RaidArray(name='md0', state='active raid1', degraded=True, severity=Severity.CRITICAL)]

    assert state_text(report) == (
        "DISKS:\n"
        "sda: OK\n"
        "sdb: CRITICAL\n"
        "RAID:\n"
        "md0: CRITICAL\n"
        "CRITICAL_USAGE:\n"
        "/srv (/dev/sdc1)\n"
        "WARNING_USAGE:\n"
        "/ (/dev/sda1)\n"
    )


def test_decide_first_run_with_issues_sends():
    decision = decide('abc', has_issues=True, previous=None)
    assert decision.send and decision.persist


def test_decide_first_clean_run_is_silent_but_stored():
    decision = decide('abc', has_issues=False, previous=None)
    assert not decision.send
    assert decision.persist


def test_decide_unchanged_state_is_silent():
    decision = decide('abc', has_issues=True, previous=AlertState('abc'))
    assert not decision.send
    assert not decision.persist


def test_decide_test_mode_sends_without_storing():
    decision = decide('abc', has_issues=False, previous=AlertState('abc'), test_mode=True)
    assert decision.send
    assert not decision.persist


def test_decide_force_sends_and_stores():
    decision = decide('abc', has_issues=False, previous=AlertState('abc'), force=True)
    assert decision.send
    assert decision.persist


def test_decide_recovery_only_when_previous_severity_known():
    recovered = decide('new', has_issues=False, previous=AlertState('old', severity=Severity.WARN))
    assert recovered.send and recovered.recovery

    unknown = decide('new', has_issues=False, previous=AlertState('old'))
    assert not unknown.send


def test_hash_store_round_trip(tmp_path):
    store = StateStore(str(tmp_path / 'disk-health-hash'), 'hash')
    assert store.load() is None

    store.save(AlertState('deadbeef', severity=Severity.WARN))
    assert (tmp_path / 'disk-health-hash').read_text() == 'deadbeef WARN\n'
    assert store.load() == AlertState('deadbeef', severity=Severity.WARN)


def test_hash_store_reads_bare_digest(tmp_path):
    path = tmp_path / 'disk-health-hash'
    path.write_text('deadbeef\n')
    assert StateStore(str(path), 'hash').load() == AlertState('deadbeef')


def test_hash_store_severity_enables_recovery_notice(tmp_path):
    store = StateStore(str(tmp_path / 'disk-health-hash'), 'hash')
    store.save(AlertState('old', severity=Severity.CRITICAL))

    decision = decide('new', has_issues=False, previous=store.load())
    assert decision.send and decision.recovery


def test_json_store_keeps_payload_and_severity(tmp_path):
    path = tmp_path / 'nested' / 'state.json'
    store = StateStore(str(path), 'json')
    stamp = datetime(2026, 10, 1, 12, 0, 0)

    store.save(AlertState('cafe', payload='DISKS:\nsda: WARN\n', severity=Severity.WARN, timestamp=stamp))

    data = json.loads(path.read_text())
    assert data == {'hash': 'cafe', 'payload': 'DISKS:\nsda: WARN\n', 'severity': 'WARN',
                    'timestamp': '2026-10-01T12:00:00'}
    loaded = store.load()
    assert loaded.severity == Severity.WARN
    assert loaded.timestamp == stamp


@pytest.mark.parametrize('content', ['{not json', '{"payload": "x"}', '{"hash": "a", "severity": "BOGUS"}'])
def test_corrupt_json_state_counts_as_none(tmp_path, content):
    path = tmp_path / 'state.json'
    path.write_text(content)
    assert StateStore(str(path), 'json').load() is None


def test_unknown_state_format_rejected(tmp_path):
    with pytest.raises(ValueError):
        StateStore(str(tmp_path / 'x'), 'xml')
