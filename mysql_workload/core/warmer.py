"""Continuous warmup of a MySQL slave with production workload.

Every cycle captures ``capture_seconds`` of traffic from the master,
replays it cold against the target and deletes the intermediate slow log.
The loop runs until ``stop()`` is called (or ``max_cycles`` is reached).
A failing cycle never ends the loop; consecutive failures are spaced out
with an exponential backoff that resets after the next successful cycle.
"""

import logging
import threading

from mysql_workload.core.capture import WorkloadCapturer
from mysql_workload.core.errors import ToolNotFoundError, WorkloadError
from mysql_workload.core.models import ReplayJob, ToolPaths, WorkloadCapture
from mysql_workload.core.replay import WorkloadReplayer
from mysql_workload.core.retry import ExponentialBackoff
from mysql_workload.io.file_manager import create_dir, is_nonempty_file, remove_file
from mysql_workload.tools.base import CommandRunner
from mysql_workload.tools.connectivity import MysqladminPing, get_connectivity_checker

logger = logging.getLogger(__name__)


class SlaveWarmer:
    """Capture and replay loop keeping a target host's caches warm."""

    def __init__(self, settings, config, runner=None, checker=None,
                 capturer_factory=None, replayer_factory=None):
        self.settings = settings
        self.config = config
        self.runner = runner or CommandRunner()
        self.tools = ToolPaths.from_config(config['tools'])
        self.checker = checker or get_connectivity_checker(
            config['connectivity'], self.tools, runner=self.runner
        )
        self.capturer_factory = capturer_factory or (
            lambda capture: WorkloadCapturer.from_config(capture, self.config, runner=self.runner)
        )
        self.replayer_factory = replayer_factory or (
            lambda job: WorkloadReplayer.from_config(job, self.config, runner=self.runner)
        )
        self.backoff = ExponentialBackoff(
            initial=settings.backoff_initial,
            factor=settings.backoff_factor,
            maximum=settings.backoff_max,
        )
        self.cycles = 0
        self.failed_cycles = 0
        self.skipped_cycles = 0
        self._stop = threading.Event()
        self._capturer = None

    def capture_job(self):
        s = self.settings
        return WorkloadCapture.from_config(
            s.master_host,
            s.capture_seconds,
            s.working_dir,
            self.config['capture'],
            schema=s.schema,
        )

    def replay_job(self, slowlog_file):
        s = self.settings
        return ReplayJob.from_config(
            s.target_host,
            slowlog_file,
            s.working_dir,
            s.credentials,
            self.config['replay'],
            concurrency=s.concurrency,
            cold_run=True,
        )

    def check_preconditions(self):
        """Verify the local tools and the target credentials.

        Raises:
            ToolNotFoundError: A local binary is missing
            MySQLConnectionError: The target rejected the credentials
        """
        required = [self.tools.nc, self.tools.pt_query_digest, self.tools.percona_playback]
        if isinstance(self.checker, MysqladminPing):
            required.append(self.tools.mysqladmin)
        for binary in required:
            if not self.runner.which(binary):
                raise ToolNotFoundError(binary)

        self.checker.require(self.settings.target_host, self.settings.credentials)

    def setup(self):
        create_dir(self.settings.working_dir)

    def run_cycle(self):
        """Capture, replay and clean up once.

        A capture window without SELECT traffic yields an empty slow log;
        the replay is skipped and the cycle counts as a success.
        """
        capture = self.capture_job()
        capturer = self.capturer_factory(capture)
        self._capturer = capturer
        try:
            slowlog_file = capturer.execute()
            if not is_nonempty_file(slowlog_file):
                self.skipped_cycles += 1
                logger.info(
                    f"No SELECT traffic captured from {self.settings.master_host}, skipping replay"
                )
                return None
            replayer = self.replayer_factory(self.replay_job(slowlog_file))
            return replayer.execute()
        finally:
            capturer.close()
            self._capturer = None
            # Clean up the captured slow log
            remove_file(capture.slowlog_file)
            remove_file(capture.tcpdump_file)

    def run(self):
        """Run cycles until stopped.

        Returns:
            int: Number of cycles run
        """
        s = self.settings
        logger.info(
            f"Warming up {s.target_host} with workload from {s.master_host} "
            f"({s.capture_seconds}s per cycle, concurrency {s.concurrency})"
        )
        while not self._stop.is_set():
            if s.max_cycles is not None and self.cycles >= s.max_cycles:
                break
            self.cycles += 1
            logger.info(f"Starting warmup cycle {self.cycles}")
            try:
                self.run_cycle()
            except (WorkloadError, OSError) as e:
                self.failed_cycles += 1
                delay = self.backoff.record_failure()
                logger.error(
                    f"Warmup cycle {self.cycles} failed ({self.backoff.failures} in a row): {e}"
                )
            else:
                self.backoff.record_success()
                delay = s.cycle_delay

            if delay and not self._stop.is_set():
                logger.info(f"Waiting {delay:.1f}s before the next cycle")
                self._stop.wait(delay)

        logger.info(
            f"Warmer stopped after {self.cycles} cycle(s), {self.failed_cycles} failed, "
            f"{self.skipped_cycles} without traffic"
        )
        return self.cycles

    def stop(self):
        self._stop.set()

    @property
    def stopped(self):
        return self._stop.is_set()

    def cleanup(self):
        """Stop the loop and release the relay socket of the running capture."""
        logger.info("Doing cleanup before exiting")
        self.stop()
        if self._capturer is not None:
            self._capturer.cleanup()
