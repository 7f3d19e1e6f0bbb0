"""Shared fixtures for testing the capture, replay and warmer workflows.

The external tools are never executed: a ``FakeRunner`` records every
command line and plays back canned exit codes and output, and fake SSH
hosts and relays stand in for paramiko and netcat.
"""

# Standard library imports for file operations and process doubles
import io
import logging

# Testing framework
import pytest

from mysql_workload.config.default_config import get_config
from mysql_workload.core.models import MySQLCredentials, ToolPaths


class FakeProcess:
    """Minimal stand-in for ``subprocess.Popen``."""

    def __init__(self, stdout=b'', returncode=0, pid=4242, exited=False):
        self.stdout = io.BytesIO(stdout)
        self.pid = pid
        self._returncode = returncode
        self.returncode = returncode if exited else None
        self.terminated = False

    def poll(self):
        return self.returncode

    def wait(self, timeout=None):
        self.returncode = self._returncode
        return self.returncode

    def terminate(self):
        self.terminated = True
        self.returncode = -15

    def kill(self):
        self.returncode = -9


class FakeRunner:
    """Records commands instead of running them.

    Args:
        missing: binaries ``which`` reports as absent
        returncodes: exit code per binary (default 0)
        outputs: bytes written to stdout per binary
        processes: FakeProcess returned by ``popen`` per binary
    """

    def __init__(self, missing=(), returncodes=None, outputs=None, processes=None):
        self.missing = set(missing)
        self.returncodes = returncodes or {}
        self.outputs = outputs or {}
        self.processes = processes or {}
        self.calls = []
        self.popen_kwargs = []

    def which(self, binary):
        return None if binary in self.missing else binary

    def run(self, argv, stdout=None, stderr=None):
        self.calls.append(list(argv))
        output = self.outputs.get(argv[0])
        if output is not None and hasattr(stdout, 'write'):
            stdout.write(output)
        return self.returncodes.get(argv[0], 0)

    def popen(self, argv, **kwargs):
        self.calls.append(list(argv))
        self.popen_kwargs.append(kwargs)
        if argv[0] in self.processes:
            return self.processes[argv[0]]
        return FakeProcess(
            stdout=self.outputs.get(argv[0], b''),
            returncode=self.returncodes.get(argv[0], 0),
        )


class FakeRemoteHost:
    """Stand-in for ``RemoteHost`` that records remote commands."""

    def __init__(self, host='db1', reachable=True, missing=(), status=0):
        self.host = host
        self.reachable = reachable
        self.missing = set(missing)
        self.status = status
        self.commands = []
        self.closed = False

    def check_reachable(self):
        from mysql_workload.core.errors import SSHConnectionError
        if not self.reachable:
            raise SSHConnectionError(self.host)

    def has_binary(self, binary):
        return binary not in self.missing

    def run(self, command, get_pty=False):
        self.commands.append((command, get_pty))
        return self.status

    def close(self):
        self.closed = True


class FakeRelay:
    """Stand-in for ``RelayListener``; writes ``payload`` to the capture file on start."""

    def __init__(self, output_file, payload=b'raw tcpdump bytes\n', error=None):
        self.output_file = output_file
        self.payload = payload
        self.error = error
        self.events = []

    def start(self):
        self.events.append('start')
        if self.error is not None:
            raise self.error
        with open(self.output_file, 'wb') as f:
            f.write(self.payload)

    def finish(self, timeout=5.0):
        self.events.append('finish')
        return 0

    def stop(self):
        self.events.append('stop')

    def cleanup(self):
        self.events.append('cleanup')
        return []


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def tools():
    return ToolPaths()


@pytest.fixture
def credentials():
    return MySQLCredentials('reader', 's3cr3t')


@pytest.fixture
def config(monkeypatch):
    """Default configuration, unaffected by MYSQL_WORKLOAD_* variables of the caller."""
    import os
    for var in list(os.environ):
        if var.startswith('MYSQL_WORKLOAD_'):
            monkeypatch.delenv(var, raising=False)
    return get_config()


@pytest.fixture
def slowlog(tmp_path):
    """A small, non-empty slow query log."""
    path = tmp_path / 'mysql.slow.log'
    path.write_text(
        "# Time: 2024-01-01T00:00:00\n"
        "# User@Host: reader[reader] @ 10.0.0.5 []\n"
        "# Query_time: 0.000200\n"
        "use shop;\n"
        "SELECT * FROM orders WHERE id = 1;\n"
    )
    return str(path)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo dictConfig changes a test may have made to the configured loggers."""
    yield
    for name in ('mysql_workload', 'paramiko'):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
