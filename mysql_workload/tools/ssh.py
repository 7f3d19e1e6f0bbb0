"""SSH access to the master host.

The master is reached with paramiko. Host aliases, users, ports and identity
files from ``~/.ssh/config`` are honoured so that a host reachable with a
plain ``ssh <host>`` is reachable here as well.
"""

import os
import shlex
import socket
import logging

import paramiko

from mysql_workload.core.errors import SSHConnectionError
from mysql_workload.utils.logging import sanitize_shell_command

logger = logging.getLogger(__name__)

SSH_CONFIG_PATH = os.path.expanduser('~/.ssh/config')


def _lookup_ssh_config(host, path=SSH_CONFIG_PATH):
    if not os.path.exists(path):
        return {}
    try:
        return paramiko.SSHConfig.from_path(path).lookup(host)
    except (OSError, paramiko.SSHException) as e:
        logger.warning(f"Ignoring unreadable SSH config {path}: {e}")
        return {}


class RemoteHost:
    """A host on which commands are run over SSH."""

    def __init__(self, host, username=None, port=22, timeout=10, key_filename=None,
                 client_factory=paramiko.SSHClient):
        self.host = host
        self.username = username
        self.port = port
        self.timeout = timeout
        self.key_filename = key_filename
        self._client_factory = client_factory
        self._client = None

    @classmethod
    def from_config(cls, host, ssh_config):
        return cls(
            host,
            username=ssh_config.get('username'),
            port=int(ssh_config.get('port') or 22),
            timeout=ssh_config.get('timeout', 10),
            key_filename=ssh_config.get('key_filename'),
        )

    def _connect_kwargs(self):
        host_config = _lookup_ssh_config(self.host)
        kwargs = {
            'hostname': host_config.get('hostname', self.host),
            'port': int(host_config.get('port', self.port)) if self.port == 22 else self.port,
            'timeout': self.timeout,
        }
        username = self.username or host_config.get('user')
        if username:
            kwargs['username'] = username
        key_filename = self.key_filename or host_config.get('identityfile')
        if key_filename:
            kwargs['key_filename'] = key_filename
        return kwargs

    def connect(self):
        """Open the SSH connection if it is not open yet."""
        if self._client is not None:
            return self._client

        client = self._client_factory()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        kwargs = self._connect_kwargs()
        logger.debug(f"Connecting to {self.host} over SSH with {kwargs}")
        try:
            client.connect(**kwargs)
        except paramiko.AuthenticationException as e:
            client.close()
            raise SSHConnectionError(self.host, f"authentication failed: {e}") from e
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise SSHConnectionError(self.host, str(e)) from e

        self._client = client
        return client

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def run(self, command, get_pty=False):
        """Run ``command`` on the host and return its exit status.

        Output is streamed to the debug log line by line.
        """
        client = self.connect()
        logger.debug(f"Executing on {self.host}: {sanitize_shell_command(command)}")
        try:
            _, stdout, _ = client.exec_command(command, get_pty=get_pty)
            for line in stdout:
                logger.debug(f"[{self.host}] {line.rstrip()}")
            status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, socket.error) as e:
            raise SSHConnectionError(self.host, str(e)) from e
        logger.debug(f"Command on {self.host} exited with code {status}")
        return status

    def check_reachable(self):
        """Verify the host accepts an SSH session, raising SSHConnectionError otherwise."""
        status = self.run('exit')
        if status != 0:
            raise SSHConnectionError(self.host, f"'exit' returned {status}")

    def has_binary(self, binary):
        """Check whether ``binary`` is executable on the host."""
        return self.run(f"which {shlex.quote(binary)}") == 0
