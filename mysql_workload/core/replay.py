"""Replay of a slow query log against a target host.

Unless a cold run is requested, the log is first replayed a few times to
warm the target's buffer pool; the measured replay then preserves the
original query timing and records percona-playback's output under
``<output_dir>/tmp``.
"""

import logging

from mysql_workload.core.errors import EmptySlowLogError, ToolNotFoundError
from mysql_workload.core.models import ReplayResult, ToolPaths
from mysql_workload.io.file_manager import create_dir, is_nonempty_file
from mysql_workload.tools.base import CommandRunner
from mysql_workload.tools.connectivity import get_connectivity_checker
from mysql_workload.tools.playback import PerconaPlayback

logger = logging.getLogger(__name__)

SUMMARY_START = 'user time,'
SUMMARY_END = '# Query size'
SUMMARY_SKIP = ('# Files:', '# Hostname:')


def extract_benchmark_summary(report_text):
    """Return the benchmark digest section of a pt-query-digest report.

    The section runs from the line containing ``user time,`` through the
    ``# Query size`` line; file and host name lines are dropped.
    """
    lines = []
    inside = False
    for line in report_text.splitlines():
        if not inside and SUMMARY_START in line:
            inside = True
        if inside:
            if not line.startswith(SUMMARY_SKIP):
                lines.append(line)
            if SUMMARY_END in line:
                inside = False
    return lines


class WorkloadReplayer:
    """Runs one ReplayJob."""

    def __init__(self, job, tools, checker, runner=None, playback=None):
        self.job = job
        self.tools = tools
        self.checker = checker
        self.runner = runner or CommandRunner()
        self.playback = playback or PerconaPlayback(tools.percona_playback, runner=self.runner)

    @classmethod
    def from_config(cls, job, config, runner=None):
        """Build a replayer and its collaborators from a full configuration."""
        runner = runner or CommandRunner()
        tools = ToolPaths.from_config(config['tools'])
        checker = get_connectivity_checker(config['connectivity'], tools, runner=runner)
        return cls(job, tools, checker, runner=runner)

    def check_slowlog(self):
        if not is_nonempty_file(self.job.slowlog_file):
            raise EmptySlowLogError(self.job.slowlog_file)

    def check_preconditions(self):
        """Verify the slow log, the replay binary and the target credentials.

        Raises:
            EmptySlowLogError: The slow log is missing or empty
            ToolNotFoundError: percona-playback is missing
            MySQLConnectionError: The target rejected the credentials
        """
        self.check_slowlog()
        if not self.runner.which(self.tools.percona_playback):
            raise ToolNotFoundError(self.tools.percona_playback)
        self.checker.require(self.job.target_host, self.job.credentials)

    def run(self):
        """Warm up (unless cold) and run the measured replay.

        Returns:
            ReplayResult: Paths and exit status of the measured replay
        """
        job = self.job
        self.check_slowlog()

        create_dir(job.output_dir)
        create_dir(job.tmp_dir)

        warmed = False
        if not job.cold_run:
            logger.info(f"Warming up the buffer pool on the host {job.target_host}")
            status = self.playback.warmup(job)
            if status != 0:
                logger.warning(f"Warmup replay exited with code {status}")
            warmed = True

        logger.info(
            f"Starting to run the benchmark on the target host {job.target_host} "
            f"with a max concurrency of {job.concurrency}"
        )
        returncode = self.playback.replay(job)
        if returncode != 0:
            logger.warning(f"Replay exited with code {returncode}, see {job.err_file}")
        logger.info("Benchmarks completed.")

        return ReplayResult(job=job, warmed=warmed, returncode=returncode)

    def execute(self):
        """Check preconditions, then run the replay."""
        self.check_preconditions()
        return self.run()

    def print_benchmark_results(self, out=print):
        """Print the benchmark summary from ``ptqd.<host>.txt``.

        Returns:
            bool: False if the report is not available
        """
        job = self.job
        try:
            with open(job.report_file, 'r', errors='replace') as f:
                report = f.read()
        except FileNotFoundError:
            logger.warning(f"No benchmark report found at {job.report_file}")
            return False

        out("")
        out(f"Queries benchmark summary from the target {job.target_host}")
        for line in extract_benchmark_summary(report):
            out(line)
        out("")
        out(f"Detailed reports are available at {job.output_dir}")
        out("#" * 75)
        return True

    def cleanup(self):
        logger.info("Doing cleanup before exiting")
