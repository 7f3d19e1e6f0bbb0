"""Local TCP relay receiving the packet capture streamed from the master.

The relay is a netcat listener (``nc -dl <port>``) whose standard output is
redirected to the raw capture file. Listening sockets are discovered with
psutil so a port already taken by another relay can be detected before a
new one is started.
"""

import os
import logging
import subprocess

import psutil

from mysql_workload.core.errors import RelayNotReadyError, RelayPortInUseError
from mysql_workload.core.retry import wait_until
from mysql_workload.tools.base import CommandRunner, terminate_process

logger = logging.getLogger(__name__)


def find_listeners(port):
    """Return the PIDs of processes listening on TCP ``port``.

    A PID is None when the owning process is not visible to this user.
    """
    pids = []
    try:
        connections = psutil.net_connections(kind='tcp')
    except psutil.AccessDenied as e:
        logger.warning(f"Not allowed to list sockets, cannot check port {port}: {e}")
        return pids
    for conn in connections:
        if conn.status != psutil.CONN_LISTEN or not conn.laddr:
            continue
        if conn.laddr.port == port and conn.pid not in pids:
            pids.append(conn.pid)
    return pids


def kill_listeners(port, process_name=None, timeout=3.0):
    """Kill the processes listening on ``port``.

    Args:
        port (int): TCP port
        process_name (str, optional): Only kill processes with this name
        timeout (float): Grace period before SIGKILL

    Returns:
        list: PIDs that were signalled
    """
    killed = []
    for pid in find_listeners(port):
        if not pid:
            continue
        try:
            proc = psutil.Process(pid)
            if process_name and proc.name() != process_name:
                logger.debug(f"Leaving pid {pid} ({proc.name()}) on port {port} alone")
                continue
            logger.info(f"Killing relay pid {pid} on port {port}")
            proc.terminate()
            try:
                proc.wait(timeout=timeout)
            except psutil.TimeoutExpired:
                proc.kill()
            killed.append(pid)
        except psutil.NoSuchProcess:
            continue
    return killed


class RelayListener:
    """Netcat listener writing everything it receives to ``output_file``."""

    def __init__(self, nc_bin, port, output_file, runner=None, ready_timeout=10.0,
                 poll_interval=0.2, listener_finder=find_listeners, waiter=wait_until):
        self.nc_bin = nc_bin
        self.port = int(port)
        self.output_file = output_file
        self.runner = runner or CommandRunner()
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self.find_listeners = listener_finder
        self.wait = waiter
        self.process = None
        self._output = None
        self._started = False

    @property
    def name(self):
        return os.path.basename(self.nc_bin)

    def ensure_port_free(self):
        """Raise RelayPortInUseError if something already listens on the port."""
        pids = self.find_listeners(self.port)
        if pids:
            raise RelayPortInUseError(self.port, pids[0])

    def _listening(self):
        return bool(self.find_listeners(self.port))

    def start(self):
        """Start the listener and wait until its socket is bound."""
        self.ensure_port_free()

        logger.info("Creating receiving socket on localhost")
        self._output = open(self.output_file, 'wb')
        argv = [self.nc_bin, '-dl', str(self.port)]
        self.process = self.runner.popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=self._output,
            stderr=subprocess.DEVNULL,
        )
        self._started = True

        ready = self.wait(
            lambda: self.process.poll() is not None or self._listening(),
            timeout=self.ready_timeout,
            interval=self.poll_interval,
        )
        if not ready or self.process.poll() is not None:
            logger.error(f"Relay did not start listening on port {self.port}")
            self.stop()
            raise RelayNotReadyError(self.port)

        logger.info(f"ready localhost:{self.port}")
        return self.process

    def finish(self, timeout=5.0):
        """Give the relay time to drain after the sender closed, then stop it.

        Returns:
            int or None: Exit status of the relay
        """
        if self.process is None:
            return None
        try:
            self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            logger.debug(f"Relay on port {self.port} still running after {timeout}s")
        return self.stop()

    def stop(self):
        """Terminate the relay and close the capture file."""
        returncode = None
        if self.process is not None:
            terminate_process(self.process, self.name)
            returncode = self.process.returncode
        if self._output is not None:
            self._output.close()
            self._output = None
        self._started = False
        return returncode

    def cleanup(self):
        """Stop a relay this listener started and release its port.

        Listeners on the port are left alone unless our relay is still
        running, so another capture's relay is never killed.

        Returns:
            list: PIDs that were signalled
        """
        owned = self._started
        self.stop()
        if not owned:
            return []
        return kill_listeners(self.port, process_name=self.name)
