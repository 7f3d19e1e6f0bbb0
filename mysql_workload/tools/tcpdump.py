"""Remote packet capture on the master host."""

import shlex
import logging

logger = logging.getLogger(__name__)

# The low three bits of both ports must match those of 3306, which samples
# roughly one client connection in eight.
PACKET_FILTER = 'port {mysql_port} and tcp[1] & 7 == 2 and tcp[3] & 7 == 2'


class PacketCapture:
    """tcpdump run under ``timeout`` on the master, piped into netcat."""

    def __init__(self, tcpdump_bin, nc_bin):
        self.tcpdump_bin = tcpdump_bin
        self.nc_bin = nc_bin

    def tcpdump_args(self, capture):
        return [
            '-i', capture.interface,
            '-B', str(capture.buffer_size_kb),
            '-s', str(capture.snaplen),
            '-x', '-n', '-q', '-tttt',
            PACKET_FILTER.format(mysql_port=capture.mysql_port),
        ]

    def build_remote_command(self, capture):
        """Shell command executed on the master for ``capture``."""
        tcpdump = ' '.join(
            shlex.quote(arg) for arg in [self.tcpdump_bin] + self.tcpdump_args(capture)
        )
        return (
            f"sudo timeout {int(capture.duration_seconds)} {tcpdump}"
            f" | {shlex.quote(self.nc_bin)} {shlex.quote(capture.receiving_host)} {capture.relay_port}"
        )

    def run(self, remote_host, capture):
        """Capture on ``remote_host`` until the timeout expires.

        A PTY is requested so sudo works without a configured tty exemption.

        Returns:
            int: Exit status of the remote pipeline
        """
        command = self.build_remote_command(capture)
        logger.info(
            f"Capturing MySQL workload on {capture.master_host} via tcpdump "
            f"for {capture.duration_seconds} seconds"
        )
        logger.info(f"Executing {command} on {capture.master_host}")
        return remote_host.run(command, get_pty=True)
