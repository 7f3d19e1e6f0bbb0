"""Capture, replay and warmer orchestration."""

from .errors import (
    WorkloadError, UsageError, ToolNotFoundError, EmptySlowLogError,
    SSHConnectionError, MySQLConnectionError, RelayPortInUseError, RelayNotReadyError
)
from .models import (
    ALL_SCHEMAS, ToolPaths, MySQLCredentials, WorkloadCapture, ReplayJob,
    ReplayResult, WarmerSettings
)
