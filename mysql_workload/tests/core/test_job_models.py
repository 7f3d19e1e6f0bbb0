"""Tests for the immutable capture, replay and warmer records."""

import dataclasses
import pytest

from mysql_workload.core.models import (
    ALL_SCHEMAS, MySQLCredentials, ReplayJob, ReplayResult, ToolPaths,
    WarmerSettings, WorkloadCapture
)


def test_credentials_repr_hides_password():
    creds = MySQLCredentials('reader', 's3cr3t')
    assert 's3cr3t' not in repr(creds)
    assert 'reader' in repr(creds)


def test_records_are_frozen(credentials):
    job = ReplayJob('db2', '/tmp/slow.log', '/tmp/out', credentials)
    with pytest.raises(dataclasses.FrozenInstanceError):
        job.concurrency = 99


def test_tool_paths_from_config(config):
    config['tools']['nc_bin'] = '/opt/bin/ncat'
    tools = ToolPaths.from_config(config['tools'])
    assert tools.nc == '/opt/bin/ncat'
    assert tools.tcpdump == '/usr/sbin/tcpdump'


class TestWorkloadCapture:

    def test_paths(self):
        capture = WorkloadCapture('db1', 60, '/data/cap')
        assert capture.tcpdump_file == '/data/cap/mysql.tcp'
        assert capture.slowlog_file == '/data/cap/mysql.slow.log'

    def test_receiving_host_defaults_to_hostname(self, monkeypatch):
        monkeypatch.setattr('socket.gethostname', lambda: 'collector')
        assert WorkloadCapture('db1', 60, '/tmp').receiving_host == 'collector'
        assert WorkloadCapture('db1', 60, '/tmp', local_host='c2').receiving_host == 'c2'

    def test_from_config(self, config):
        config['capture']['relay_port'] = 9000
        capture = WorkloadCapture.from_config('db1', '30', '/tmp/cap', config['capture'],
                                              schema='shop')
        assert capture.duration_seconds == 30
        assert capture.relay_port == 9000
        assert capture.schema == 'shop'

    def test_from_config_port_argument_wins(self, config):
        capture = WorkloadCapture.from_config('db1', 30, '/tmp', config['capture'],
                                              relay_port=7000)
        assert capture.relay_port == 7000
        assert capture.schema == ALL_SCHEMAS


class TestReplayJob:

    def test_paths(self, credentials):
        job = ReplayJob('db2', '/data/slow.log', '/data/bench', credentials)
        assert job.tmp_dir == '/data/bench/tmp'
        assert job.log_file == '/data/bench/tmp/playback.log'
        assert job.err_file == '/data/bench/tmp/playback.err'
        assert job.report_file == '/data/bench/ptqd.db2.txt'

    def test_from_config_defaults(self, credentials, config):
        job = ReplayJob.from_config('db2', '/s.log', '/out', credentials, config['replay'])
        assert job.concurrency == 6
        assert job.warmup_loops == 3
        assert job.cold_run is False

    def test_from_config_overrides(self, credentials, config):
        job = ReplayJob.from_config('db2', '/s.log', '/out', credentials, config['replay'],
                                    concurrency=12, cold_run=True)
        assert job.concurrency == 12
        assert job.cold_run is True

    def test_result_paths(self, credentials):
        job = ReplayJob('db2', '/s.log', '/out', credentials)
        result = ReplayResult(job=job, warmed=True, returncode=0)
        assert result.log_file == job.log_file
        assert result.err_file == job.err_file


class TestWarmerSettings:

    def test_from_config_defaults(self, credentials, config):
        settings = WarmerSettings.from_config('db1', 'db2', '/w', credentials, config['warmer'])
        assert settings.concurrency == 16
        assert settings.capture_seconds == 600
        assert settings.cycle_delay == 0.0
        assert settings.schema == ALL_SCHEMAS
        assert settings.max_cycles is None

    def test_zero_cycle_delay_is_kept(self, credentials, config):
        config['warmer']['cycle_delay'] = 10.0
        settings = WarmerSettings.from_config('db1', 'db2', '/w', credentials, config['warmer'],
                                              cycle_delay=0)
        assert settings.cycle_delay == 0.0
