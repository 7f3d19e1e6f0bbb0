"""Logging configuration for the MySQL workload tooling.

Configuration Components:
------------------------
- Formatters
  - standard: timestamped format used on the console
  - detailed: adds file and line information, used for log files

- Handlers
  - console: INFO and higher to stdout (DEBUG with ``verbose``)
  - file: DEBUG and higher to ``<log_dir>/mysql_workload.log``, only added
    when a log directory is configured

- Loggers
  - mysql_workload: parent of every module logger in the package

Environment Variables:
--------------------
MYSQL_WORKLOAD_LOG_DIR: directory for the log file (no file logging if unset)

Usage:
-----
    import logging
    from mysql_workload.config.logging_config import configure_logging

    configure_logging(verbose=True)
    logger = logging.getLogger('mysql_workload.core.capture')

Note:
----
Logging is configured by the command entry points after argument
validation, so that a usage error never creates a log directory.
"""

import os
import logging.config

LOGGER_NAME = 'mysql_workload'
LOG_FILENAME = 'mysql_workload.log'


def get_logging_config(log_dir=None, verbose=False):
    """Build the ``dictConfig`` dictionary.

    Args:
        log_dir (str, optional): Directory for the log file. Falls back to
            ``MYSQL_WORKLOAD_LOG_DIR``; no file handler when neither is set.
        verbose (bool): Log DEBUG messages on the console.

    Returns:
        dict: Logging configuration
    """
    log_dir = log_dir or os.environ.get('MYSQL_WORKLOAD_LOG_DIR')

    config = {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '[%(asctime)s] [%(levelname)s] %(name)s: %(message)s',
                'datefmt': '%Y-%m-%d %H:%M:%S',
            },
            'detailed': {
                'format': '%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s'
            },
        },
        'handlers': {
            'console': {
                'class': 'logging.StreamHandler',
                'level': 'DEBUG' if verbose else 'INFO',
                'formatter': 'standard',
                'stream': 'ext://sys.stdout',
            },
        },
        'loggers': {
            LOGGER_NAME: {
                'handlers': ['console'],
                'level': 'DEBUG',
                'propagate': False,
            },
            'paramiko': {
                'handlers': ['console'],
                'level': 'WARNING',
                'propagate': False,
            },
        },
    }

    if log_dir:
        config['handlers']['file'] = {
            'class': 'logging.FileHandler',
            'level': 'DEBUG',
            'formatter': 'detailed',
            'filename': os.path.join(log_dir, LOG_FILENAME),
            'mode': 'a',
        }
        config['loggers'][LOGGER_NAME]['handlers'].append('file')

    return config


def configure_logging(log_dir=None, verbose=False):
    """Apply the logging configuration, creating the log directory if needed."""
    config = get_logging_config(log_dir, verbose)
    if 'file' in config['handlers']:
        os.makedirs(os.path.dirname(config['handlers']['file']['filename']), exist_ok=True)
    logging.config.dictConfig(config)
    return config
