"""MySQL connectivity checks against the target host.

Two implementations are available:

- ``MysqladminPing``: runs ``mysqladmin ping`` with the replay credentials
  (default, no Python driver needed)
- ``SQLAlchemyPing``: opens a SQLAlchemy connection through
  mysql-connector-python and runs ``SELECT 1``

Use ``get_connectivity_checker`` to pick one from the configuration.
"""

import logging
import subprocess
from abc import ABC, abstractmethod

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from mysql_workload.core.errors import MySQLConnectionError
from mysql_workload.tools.base import CommandRunner

logger = logging.getLogger(__name__)


class ConnectivityChecker(ABC):
    """Verifies that a MySQL host accepts a set of credentials."""

    @abstractmethod
    def ping(self, host, credentials):
        """Return True if ``host`` accepts ``credentials``."""

    def require(self, host, credentials):
        """Raise MySQLConnectionError unless ``ping`` succeeds."""
        if not host or not self.ping(host, credentials):
            raise MySQLConnectionError(host)
        logger.debug(f"MySQL on {host} is reachable")


class MysqladminPing(ConnectivityChecker):
    """``mysqladmin ping`` based check."""

    def __init__(self, mysqladmin_bin, runner=None, port=3306, connect_timeout=10):
        self.mysqladmin_bin = mysqladmin_bin
        self.runner = runner or CommandRunner()
        self.port = port
        self.connect_timeout = connect_timeout

    def build_argv(self, host, credentials):
        argv = [
            self.mysqladmin_bin,
            f'--host={host}',
            f'--user={credentials.user}',
            f'--password={credentials.password}',
        ]
        if self.port and int(self.port) != 3306:
            argv.append(f'--port={self.port}')
        if self.connect_timeout:
            argv.append(f'--connect-timeout={self.connect_timeout}')
        argv.append('ping')
        return argv

    def ping(self, host, credentials):
        returncode = self.runner.run(
            self.build_argv(host, credentials),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
        return returncode == 0


class SQLAlchemyPing(ConnectivityChecker):
    """SQLAlchemy based check, ``SELECT 1`` over mysql-connector-python."""

    def __init__(self, port=3306, connect_timeout=10, engine_factory=create_engine):
        self.port = int(port)
        self.connect_timeout = connect_timeout
        self._create_engine = engine_factory

    def build_url(self, host, credentials):
        return URL.create(
            'mysql+mysqlconnector',
            username=credentials.user,
            password=credentials.password,
            host=host,
            port=self.port,
        )

    def ping(self, host, credentials):
        engine = self._create_engine(
            self.build_url(host, credentials),
            poolclass=NullPool,
            connect_args={'connection_timeout': self.connect_timeout},
        )
        try:
            with engine.connect() as connection:
                connection.execute(text('SELECT 1'))
            return True
        except SQLAlchemyError as e:
            logger.debug(f"SQLAlchemy ping of {host} failed: {e}")
            return False
        finally:
            engine.dispose()


def get_connectivity_checker(connectivity_config, tools, runner=None):
    """Get the connectivity checker selected by configuration.

    Args:
        connectivity_config (dict): The ``connectivity`` configuration section
        tools (ToolPaths): Tool paths, for the mysqladmin binary
        runner (CommandRunner, optional): Runner for the mysqladmin check

    Returns:
        ConnectivityChecker: Checker instance
    """
    method = connectivity_config.get('method', 'mysqladmin')
    port = connectivity_config.get('port', 3306)
    timeout = connectivity_config.get('connect_timeout', 10)
    logger.debug(f"Using '{method}' connectivity check")

    if method == 'mysqladmin':
        return MysqladminPing(tools.mysqladmin, runner=runner, port=port, connect_timeout=timeout)
    elif method == 'sqlalchemy':
        return SQLAlchemyPing(port=port, connect_timeout=timeout)
    else:
        raise ValueError(f"Unknown connectivity check method: {method}")
