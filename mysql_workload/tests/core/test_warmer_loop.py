"""Tests for the continuous slave warmer loop."""

import os
import pytest
from unittest.mock import MagicMock

from conftest import FakeRunner
from mysql_workload.core.errors import (
    MySQLConnectionError, SSHConnectionError, ToolNotFoundError
)
from mysql_workload.core.models import WarmerSettings
from mysql_workload.core.warmer import SlaveWarmer


class FakeCapturer:
    """Writes a slow log (and a stray raw capture) instead of capturing."""

    def __init__(self, capture, error=None, slowlog=b'SELECT 1;\n'):
        self.capture = capture
        self.error = error
        self.slowlog = slowlog
        self.closed = False
        self.cleaned = False

    def execute(self):
        os.makedirs(self.capture.output_dir, exist_ok=True)
        with open(self.capture.tcpdump_file, 'wb') as f:
            f.write(b'raw')
        if self.error is not None:
            raise self.error
        with open(self.capture.slowlog_file, 'wb') as f:
            f.write(self.slowlog)
        return self.capture.slowlog_file

    def close(self):
        self.closed = True

    def cleanup(self):
        self.cleaned = True


class FakeReplayer:

    def __init__(self, job, seen):
        self.job = job
        self.seen = seen

    def execute(self):
        working_dir = self.job.output_dir
        self.seen.append(sorted(name for name in os.listdir(working_dir) if name.endswith('.log')))
        return 0


@pytest.fixture
def settings(tmp_path, credentials, config):
    return WarmerSettings.from_config(
        'db1', 'db2', str(tmp_path / 'warm'), credentials, config['warmer'],
        schema='shop', max_cycles=3, cycle_delay=0,
    )


def make_warmer(settings, config, capturer_errors=(), seen=None, checker=None, runner=None,
                slowlog=b'SELECT 1;\n'):
    errors = list(capturer_errors)
    capturers = []
    seen = seen if seen is not None else []

    def capturer_factory(capture):
        capturer = FakeCapturer(capture, error=errors.pop(0) if errors else None, slowlog=slowlog)
        capturers.append(capturer)
        return capturer

    warmer = SlaveWarmer(
        settings,
        config,
        runner=runner or FakeRunner(),
        checker=checker or MagicMock(),
        capturer_factory=capturer_factory,
        replayer_factory=lambda job: FakeReplayer(job, seen),
    )
    warmer.capturers = capturers
    return warmer


class TestWarmerPreconditions:

    def test_missing_local_tool(self, settings, config, tools):
        runner = FakeRunner(missing=[tools.percona_playback])
        warmer = make_warmer(settings, config, runner=runner)
        with pytest.raises(ToolNotFoundError):
            warmer.check_preconditions()

    def test_mysqladmin_required_for_default_check(self, settings, config, tools):
        runner = FakeRunner(missing=[tools.mysqladmin])
        warmer = SlaveWarmer(settings, config, runner=runner)
        with pytest.raises(ToolNotFoundError) as exc_info:
            warmer.check_preconditions()
        assert exc_info.value.tool == tools.mysqladmin

    def test_target_rejects_credentials(self, settings, config, tools):
        runner = FakeRunner(returncodes={tools.mysqladmin: 1})
        warmer = SlaveWarmer(settings, config, runner=runner)
        with pytest.raises(MySQLConnectionError):
            warmer.check_preconditions()

    def test_checker_receives_target(self, settings, config):
        checker = MagicMock()
        make_warmer(settings, config, checker=checker).check_preconditions()
        checker.require.assert_called_once_with('db2', settings.credentials)


class TestWarmerLoop:

    def test_runs_max_cycles(self, settings, config):
        warmer = make_warmer(settings, config)
        warmer.setup()
        assert warmer.run() == 3
        assert warmer.failed_cycles == 0

    def test_slowlog_deleted_after_each_cycle(self, settings, config):
        seen = []
        warmer = make_warmer(settings, config, seen=seen)
        warmer.setup()
        warmer.run()

        # exactly one slow log exists while a replay runs
        assert seen == [['mysql.slow.log']] * 3
        assert not os.path.exists(os.path.join(settings.working_dir, 'mysql.slow.log'))
        assert not os.path.exists(os.path.join(settings.working_dir, 'mysql.tcp'))

    def test_replay_is_cold_with_warmer_concurrency(self, settings, config):
        warmer = make_warmer(settings, config)
        job = warmer.replay_job('/tmp/x.log')
        assert job.cold_run is True
        assert job.concurrency == 16
        assert job.target_host == 'db2'

    def test_capture_job(self, settings, config):
        capture = make_warmer(settings, config).capture_job()
        assert capture.master_host == 'db1'
        assert capture.duration_seconds == 600
        assert capture.schema == 'shop'
        assert capture.output_dir == settings.working_dir

    def test_failed_cycle_does_not_stop_loop(self, settings, config, monkeypatch):
        errors = [SSHConnectionError('db1', 'timed out'), SSHConnectionError('db1', 'timed out')]
        warmer = make_warmer(settings, config, capturer_errors=errors)
        delays = []
        monkeypatch.setattr(warmer._stop, 'wait', lambda delay: delays.append(delay))
        warmer.setup()

        assert warmer.run() == 3
        assert warmer.failed_cycles == 2
        assert delays == [1.0, 2.0]
        assert warmer.backoff.failures == 0
        assert all(capturer.closed for capturer in warmer.capturers)

    def test_failed_cycle_cleans_up_files(self, settings, config, monkeypatch):
        warmer = make_warmer(settings, config, capturer_errors=[OSError('disk full')])
        monkeypatch.setattr(warmer._stop, 'wait', lambda delay: None)
        warmer.setup()
        warmer.run()
        assert os.listdir(settings.working_dir) == []

    def test_quiet_master_skips_replay_without_backoff(self, settings, config, monkeypatch):
        seen = []
        warmer = make_warmer(settings, config, seen=seen, slowlog=b'')
        delays = []
        monkeypatch.setattr(warmer._stop, 'wait', lambda delay: delays.append(delay))
        warmer.setup()

        assert warmer.run() == 3
        assert seen == []
        assert warmer.failed_cycles == 0
        assert warmer.skipped_cycles == 3
        assert delays == []
        assert os.listdir(settings.working_dir) == []

    def test_quiet_window_resets_backoff(self, settings, config, monkeypatch):
        timeout = SSHConnectionError('db1', 'timed out')
        errors = [timeout, None, timeout]
        warmer = make_warmer(settings, config, capturer_errors=errors, slowlog=b'')
        delays = []
        monkeypatch.setattr(warmer._stop, 'wait', lambda delay: delays.append(delay))
        warmer.setup()
        warmer.run()

        assert warmer.failed_cycles == 2
        assert warmer.skipped_cycles == 1
        assert delays == [1.0, 1.0]

    def test_cycle_delay_between_successes(self, tmp_path, credentials, config, monkeypatch):
        settings = WarmerSettings.from_config(
            'db1', 'db2', str(tmp_path), credentials, config['warmer'],
            max_cycles=2, cycle_delay=5,
        )
        warmer = make_warmer(settings, config)
        delays = []
        monkeypatch.setattr(warmer._stop, 'wait', lambda delay: delays.append(delay))
        warmer.run()
        assert delays == [5.0, 5.0]

    def test_stop_ends_loop(self, tmp_path, credentials, config):
        settings = WarmerSettings.from_config(
            'db1', 'db2', str(tmp_path), credentials, config['warmer'], cycle_delay=0,
        )
        warmer = make_warmer(settings, config)

        class StoppingReplayer:
            def execute(self):
                warmer.stop()

        warmer.replayer_factory = lambda job: StoppingReplayer()
        assert warmer.run() == 1
        assert warmer.stopped is True

    def test_cleanup_during_capture(self, settings, config):
        warmer = make_warmer(settings, config)
        capturer = MagicMock()
        warmer._capturer = capturer

        warmer.cleanup()

        assert warmer.stopped is True
        capturer.cleanup.assert_called_once()

    def test_cleanup_between_cycles(self, settings, config):
        warmer = make_warmer(settings, config)
        warmer.cleanup()
        assert warmer.stopped is True
        assert warmer.run() == 0
