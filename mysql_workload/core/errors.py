"""Exceptions raised by the capture, replay and warmer workflows.

Each exception carries the process exit code the command-line entry points
report for it.
"""

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_ARGUMENT = 22      # OS error code 22: Invalid argument
EXIT_MYSQL_CONNECTION = 2003    # MySQL client error 2003: can't connect


class WorkloadError(Exception):
    """Base class for all workflow errors."""

    exit_code = EXIT_ERROR


class UsageError(WorkloadError):
    """Missing or invalid command-line options."""

    exit_code = EXIT_INVALID_ARGUMENT


class ToolNotFoundError(WorkloadError):
    """A required binary is missing locally or on the remote host."""

    exit_code = EXIT_INVALID_ARGUMENT

    def __init__(self, tool, host='localhost'):
        self.tool = tool
        self.host = host
        super().__init__(f"Can't find {tool} on {host}")


class EmptySlowLogError(WorkloadError):
    """The slow query log to replay is missing or empty."""

    exit_code = EXIT_INVALID_ARGUMENT

    def __init__(self, path):
        self.path = path
        super().__init__(f"Slow query log {path} is missing or empty")


class SSHConnectionError(WorkloadError):
    """The master host cannot be reached over SSH."""

    def __init__(self, host, reason=None):
        self.host = host
        message = f"Could not SSH into {host}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MySQLConnectionError(WorkloadError):
    """The target host refused the MySQL credentials or is unreachable."""

    exit_code = EXIT_MYSQL_CONNECTION

    def __init__(self, host):
        self.host = host
        super().__init__(f"Could not connect to MySQL on {host}")


class RelayPortInUseError(WorkloadError):
    """Another process already listens on the relay port."""

    def __init__(self, port, pid=None):
        self.port = port
        self.pid = pid
        super().__init__(
            f"Could not create the socket localhost:{port}, port already in use"
            + (f" by pid {pid}" if pid else "")
        )


class RelayNotReadyError(WorkloadError):
    """The relay listener never came up."""

    def __init__(self, port):
        self.port = port
        super().__init__(f"Could not create the socket localhost:{port}")
