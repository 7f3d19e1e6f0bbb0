"""Helpers shared by the command-line entry points."""

import os
import sys
import logging
import argparse
from contextlib import contextmanager

import yaml

from mysql_workload.config.default_config import get_config
from mysql_workload.core.errors import EXIT_INVALID_ARGUMENT, UsageError

logger = logging.getLogger(__name__)


class UsageArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that prints the help to stderr and exits with code 22."""

    def error(self, message):
        self.print_help(sys.stderr)
        self.exit(EXIT_INVALID_ARGUMENT, f"\n{self.prog}: error: {message}\n")


def positive_int(value):
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value!r}")
    return number


def non_negative_float(value):
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value!r}")
    return number


def add_common_arguments(parser):
    """Options every command accepts."""
    parser.add_argument('--config', type=str, help='YAML configuration file')
    parser.add_argument('--log-dir', type=str,
                        help='directory for the log file (default: $MYSQL_WORKLOAD_LOG_DIR)')
    parser.add_argument('-v', '--verbose', action='store_true', help='log debug messages')


def require_non_empty(parser, args, *names):
    """Fail with a usage error if any of the named options is empty."""
    for name in names:
        value = getattr(args, name, None)
        if value is None or (isinstance(value, str) and not value.strip()):
            option = '--' + name.replace('_', '-')
            parser.error(f"option {option} is required and must not be empty")


def load_config(config_file):
    """Load configuration from a YAML file.

    Raises:
        UsageError: The file does not exist or is not valid YAML
    """
    if not os.path.exists(config_file):
        raise UsageError(f"Config file not found: {config_file}")

    with open(config_file, 'r') as f:
        config_content = f.read()
    try:
        config = yaml.safe_load(config_content) or {}
    except yaml.YAMLError as e:
        message = f"YAML parsing error in {config_file}: {e}"
        if hasattr(e, 'problem_mark'):
            mark = e.problem_mark
            message += f" (line {mark.line + 1}, column {mark.column + 1})"
        raise UsageError(message) from e

    if not isinstance(config, dict):
        raise UsageError(f"Config file {config_file} must contain a mapping")
    logger.info(f"Loaded configuration from {config_file}")
    logger.debug(f"Configuration structure: {list(config.keys())}")
    return config


def build_config(args, overrides=None):
    """Full configuration for a run: defaults, file, environment, then CLI.

    Args:
        args (argparse.Namespace): Parsed arguments (for ``--config``)
        overrides (dict, optional): ``{section: {key: value}}`` from the
            command line; None values are ignored

    Returns:
        dict: Configuration sections
    """
    file_config = load_config(args.config) if getattr(args, 'config', None) else None
    config = get_config(file_config)
    for section, values in (overrides or {}).items():
        for key, value in values.items():
            if value is not None:
                config[section][key] = value
    return config


@contextmanager
def invalid_config_as_usage_error():
    """Turn malformed configuration values into a UsageError (exit 22)."""
    try:
        yield
    except (ValueError, TypeError) as e:
        raise UsageError(f"Invalid configuration: {e}") from e


def report_error(error):
    """Log a workflow error and return its exit code."""
    logger.error(f"ERROR: {error}")
    return error.exit_code
