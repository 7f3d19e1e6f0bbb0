"""Workload replay with percona-playback."""

import logging
import subprocess

from mysql_workload.tools.base import CommandRunner

logger = logging.getLogger(__name__)

PRESERVE_QUERY_TIME = '--query-log-preserve-query-time'


class PerconaPlayback:
    """Builds and runs percona-playback invocations for a ReplayJob."""

    def __init__(self, percona_playback_bin, runner=None):
        self.percona_playback_bin = percona_playback_bin
        self.runner = runner or CommandRunner()

    def build_argv(self, job, warmup=False):
        """Command line for the warmup pass or the measured pass of ``job``.

        The warmup pass loops over the log and ignores the original query
        timing; the measured pass preserves it.
        """
        argv = [
            self.percona_playback_bin,
            f'--db-plugin={job.db_plugin}',
            f'--query-log-file={job.slowlog_file}',
        ]
        if warmup:
            argv.append(f'--loop={job.warmup_loops}')
        else:
            argv.append(PRESERVE_QUERY_TIME)
        argv += [
            f'--dispatcher-plugin={job.dispatcher_plugin}',
            f'--thread-pool-threads-count={job.concurrency}',
            f'--mysql-host={job.target_host}',
            f'--mysql-username={job.credentials.user}',
            f'--mysql-password={job.credentials.password}',
        ]
        return argv

    def warmup(self, job):
        """Replay the log to warm the target's caches, discarding all output."""
        return self.runner.run(
            self.build_argv(job, warmup=True),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def replay(self, job):
        """Measured replay; output goes to the job's playback log files."""
        with open(job.log_file, 'wb') as out, open(job.err_file, 'wb') as err:
            return self.runner.run(self.build_argv(job), stdout=out, stderr=err)
