"""Capture of a production MySQL workload from a master host.

The capture streams tcpdump output from the master to a local netcat relay
and digests the raw packets into a slow query log that percona-playback can
replay:

    master: sudo timeout N tcpdump ... | nc <this host> <port>
    local:  nc -dl <port> > mysql.tcp
    local:  pt-query-digest --type tcpdump mysql.tcp ... > mysql.slow.log

Typical usage:
    from mysql_workload.core.capture import WorkloadCapturer
    from mysql_workload.core.models import WorkloadCapture

    capture = WorkloadCapture('db1', 60, '/tmp/cap')
    capturer = WorkloadCapturer.from_config(capture, config)
    slowlog = capturer.execute()
"""

import logging

from mysql_workload.core.errors import ToolNotFoundError
from mysql_workload.core.models import ToolPaths
from mysql_workload.io.file_manager import create_dir, remove_file, file_size
from mysql_workload.tools.base import CommandRunner
from mysql_workload.tools.digest import QueryDigester
from mysql_workload.tools.relay import RelayListener
from mysql_workload.tools.ssh import RemoteHost
from mysql_workload.tools.tcpdump import PacketCapture

logger = logging.getLogger(__name__)

# exit status of coreutils timeout when the time limit was reached
TIMEOUT_EXPIRED = 124


class WorkloadCapturer:
    """Runs one WorkloadCapture end to end."""

    def __init__(self, capture, tools, remote_host, runner=None, relay=None,
                 packet_capture=None, digester=None):
        self.capture = capture
        self.tools = tools
        self.remote_host = remote_host
        self.runner = runner or CommandRunner()
        self.relay = relay or RelayListener(
            tools.nc, capture.relay_port, capture.tcpdump_file, runner=self.runner
        )
        self.packet_capture = packet_capture or PacketCapture(tools.tcpdump, tools.nc)
        self.digester = digester or QueryDigester(tools.pt_query_digest, runner=self.runner)

    @classmethod
    def from_config(cls, capture, config, runner=None, remote_host=None):
        """Build a capturer and its collaborators from a full configuration."""
        runner = runner or CommandRunner()
        tools = ToolPaths.from_config(config['tools'])
        capture_config = config['capture']
        relay = RelayListener(
            tools.nc,
            capture.relay_port,
            capture.tcpdump_file,
            runner=runner,
            ready_timeout=capture_config['relay_ready_timeout'],
            poll_interval=capture_config['relay_poll_interval'],
        )
        remote_host = remote_host or RemoteHost.from_config(capture.master_host, config['ssh'])
        return cls(capture, tools, remote_host, runner=runner, relay=relay)

    def check_preconditions(self):
        """Verify SSH access to the master and the presence of every tool.

        Raises:
            SSHConnectionError: The master cannot be reached over SSH
            ToolNotFoundError: A binary is missing on the master or locally
        """
        master = self.capture.master_host
        self.remote_host.check_reachable()

        for binary in (self.tools.tcpdump, self.tools.nc):
            if not self.remote_host.has_binary(binary):
                raise ToolNotFoundError(binary, master)

        for binary in (self.tools.nc, self.tools.pt_query_digest):
            if not self.runner.which(binary):
                raise ToolNotFoundError(binary)

    def run(self):
        """Capture, transfer and digest the workload.

        Returns:
            str: Path of the slow query log
        """
        capture = self.capture
        logger.info("Initializing directories")
        create_dir(capture.output_dir)

        logger.info(
            f"Starting to capture production queries via tcpdump on the master {capture.master_host}"
        )
        self.relay.start()
        try:
            status = self.packet_capture.run(self.remote_host, capture)
            if status not in (0, TIMEOUT_EXPIRED):
                logger.warning(f"Remote capture on {capture.master_host} exited with code {status}")
        finally:
            relay_status = self.relay.finish()
            logger.debug(f"Relay exited with code {relay_status}")

        logger.debug(f"Received {file_size(capture.tcpdump_file)} bytes of tcpdump output")
        self.digester.digest(capture.tcpdump_file, capture.slowlog_file, capture.schema)

        # the raw capture has been parsed into the slow log
        remove_file(capture.tcpdump_file)

        logger.info(
            f"MySQL workload successfully streamed from {capture.master_host} to {capture.slowlog_file}"
        )
        return capture.slowlog_file

    def execute(self):
        """Check preconditions, then run the capture."""
        self.check_preconditions()
        return self.run()

    def close(self):
        self.remote_host.close()

    def cleanup(self):
        """Release the relay socket and the SSH connection."""
        logger.info("Doing cleanup before exiting")
        killed = self.relay.cleanup()
        if killed:
            logger.info(f"Killed relay pid(s) {killed}")
        self.close()
