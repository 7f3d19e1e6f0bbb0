"""Immutable records describing capture, replay and warmer runs.

The records are built once from parsed arguments and configuration and then
handed to the orchestrators; nothing mutates them afterwards.
"""

import os
import socket
from dataclasses import dataclass, field
from typing import Optional

from mysql_workload.config.default_config import (
    CAPTURE_CONFIG, REPLAY_CONFIG, WARMER_CONFIG, TOOLS_CONFIG
)

ALL_SCHEMAS = '__all__'


@dataclass(frozen=True)
class ToolPaths:
    """Absolute paths of the external binaries."""

    tcpdump: str = TOOLS_CONFIG['tcpdump_bin']
    nc: str = TOOLS_CONFIG['nc_bin']
    pt_query_digest: str = TOOLS_CONFIG['pt_query_digest_bin']
    percona_playback: str = TOOLS_CONFIG['percona_playback_bin']
    mysqladmin: str = TOOLS_CONFIG['mysqladmin_bin']

    @classmethod
    def from_config(cls, tools_config):
        return cls(
            tcpdump=tools_config['tcpdump_bin'],
            nc=tools_config['nc_bin'],
            pt_query_digest=tools_config['pt_query_digest_bin'],
            percona_playback=tools_config['percona_playback_bin'],
            mysqladmin=tools_config['mysqladmin_bin'],
        )


@dataclass(frozen=True)
class MySQLCredentials:
    """Read-only MySQL account used to replay the workload."""

    user: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class WorkloadCapture:
    """One time-bounded capture of query traffic from a master host."""

    master_host: str
    duration_seconds: int
    output_dir: str
    schema: str = ALL_SCHEMAS
    relay_port: int = CAPTURE_CONFIG['relay_port']
    interface: str = CAPTURE_CONFIG['interface']
    mysql_port: int = CAPTURE_CONFIG['mysql_port']
    local_host: Optional[str] = None
    tcpdump_filename: str = CAPTURE_CONFIG['tcpdump_filename']
    slowlog_filename: str = CAPTURE_CONFIG['slowlog_filename']
    buffer_size_kb: int = CAPTURE_CONFIG['buffer_size_kb']
    snaplen: int = CAPTURE_CONFIG['snaplen']

    @property
    def tcpdump_file(self):
        return os.path.join(self.output_dir, self.tcpdump_filename)

    @property
    def slowlog_file(self):
        return os.path.join(self.output_dir, self.slowlog_filename)

    @property
    def receiving_host(self):
        """Host name the master streams the capture back to."""
        return self.local_host or socket.gethostname()

    @classmethod
    def from_config(cls, master_host, duration_seconds, output_dir, capture_config,
                    schema=None, relay_port=None):
        return cls(
            master_host=master_host,
            duration_seconds=int(duration_seconds),
            output_dir=output_dir,
            schema=schema or capture_config.get('schema', ALL_SCHEMAS),
            relay_port=int(relay_port or capture_config['relay_port']),
            interface=capture_config['interface'],
            mysql_port=int(capture_config['mysql_port']),
            local_host=capture_config.get('local_host'),
            tcpdump_filename=capture_config['tcpdump_filename'],
            slowlog_filename=capture_config['slowlog_filename'],
            buffer_size_kb=int(capture_config['buffer_size_kb']),
            snaplen=int(capture_config['snaplen']),
        )


@dataclass(frozen=True)
class ReplayJob:
    """One benchmark or warmup run of a slow log against a target host."""

    target_host: str
    slowlog_file: str
    output_dir: str
    credentials: MySQLCredentials
    concurrency: int = REPLAY_CONFIG['concurrency']
    cold_run: bool = False
    warmup_loops: int = REPLAY_CONFIG['warmup_loops']
    db_plugin: str = REPLAY_CONFIG['db_plugin']
    dispatcher_plugin: str = REPLAY_CONFIG['dispatcher_plugin']
    tmp_dirname: str = REPLAY_CONFIG['tmp_dirname']
    playback_log: str = REPLAY_CONFIG['playback_log']
    playback_err: str = REPLAY_CONFIG['playback_err']
    report_template: str = REPLAY_CONFIG['report_template']

    @property
    def tmp_dir(self):
        return os.path.join(self.output_dir, self.tmp_dirname)

    @property
    def log_file(self):
        return os.path.join(self.tmp_dir, self.playback_log)

    @property
    def err_file(self):
        return os.path.join(self.tmp_dir, self.playback_err)

    @property
    def report_file(self):
        return os.path.join(self.output_dir, self.report_template.format(host=self.target_host))

    @classmethod
    def from_config(cls, target_host, slowlog_file, output_dir, credentials, replay_config,
                    concurrency=None, cold_run=False):
        return cls(
            target_host=target_host,
            slowlog_file=slowlog_file,
            output_dir=output_dir,
            credentials=credentials,
            concurrency=int(concurrency or replay_config['concurrency']),
            cold_run=bool(cold_run),
            warmup_loops=int(replay_config['warmup_loops']),
            db_plugin=replay_config['db_plugin'],
            dispatcher_plugin=replay_config['dispatcher_plugin'],
            tmp_dirname=replay_config['tmp_dirname'],
            playback_log=replay_config['playback_log'],
            playback_err=replay_config['playback_err'],
            report_template=replay_config['report_template'],
        )


@dataclass(frozen=True)
class ReplayResult:
    """Outcome of a replay run."""

    job: ReplayJob
    warmed: bool
    returncode: Optional[int]

    @property
    def log_file(self):
        return self.job.log_file

    @property
    def err_file(self):
        return self.job.err_file


@dataclass(frozen=True)
class WarmerSettings:
    """Settings of the continuous capture and replay loop."""

    master_host: str
    target_host: str
    working_dir: str
    credentials: MySQLCredentials
    schema: str = ALL_SCHEMAS
    concurrency: int = WARMER_CONFIG['concurrency']
    capture_seconds: int = WARMER_CONFIG['capture_seconds']
    cycle_delay: float = WARMER_CONFIG['cycle_delay']
    backoff_initial: float = WARMER_CONFIG['backoff_initial']
    backoff_factor: float = WARMER_CONFIG['backoff_factor']
    backoff_max: float = WARMER_CONFIG['backoff_max']
    max_cycles: Optional[int] = None

    @classmethod
    def from_config(cls, master_host, target_host, working_dir, credentials, warmer_config,
                    schema=None, concurrency=None, capture_seconds=None, cycle_delay=None,
                    max_cycles=None):
        return cls(
            master_host=master_host,
            target_host=target_host,
            working_dir=working_dir,
            credentials=credentials,
            schema=schema or ALL_SCHEMAS,
            concurrency=int(concurrency or warmer_config['concurrency']),
            capture_seconds=int(capture_seconds or warmer_config['capture_seconds']),
            cycle_delay=float(warmer_config['cycle_delay'] if cycle_delay is None else cycle_delay),
            backoff_initial=float(warmer_config['backoff_initial']),
            backoff_factor=float(warmer_config['backoff_factor']),
            backoff_max=float(warmer_config['backoff_max']),
            max_cycles=max_cycles,
        )
