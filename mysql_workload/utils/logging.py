"""
Logging utilities for safely handling credentials in log output.

This module provides functions to sanitize configuration dictionaries and
command lines before logging them, so that MySQL passwords passed to
mysqladmin or percona-playback never end up in a log file.
"""

import re
import logging
from typing import Dict, Any, List, Optional, Sequence


# Default list of sensitive field names (case-insensitive matching)
DEFAULT_SENSITIVE_FIELDS = [
    'password',
    'passwd',
    'pwd',
    'secret',
    'token',
]

# Command-line options whose value is a secret
SENSITIVE_OPTIONS = [
    '--password',
    '--mysql-password',
]


def is_sensitive_field(field_name: str, sensitive_fields: Optional[List[str]] = None) -> bool:
    """
    Check if a field name is considered sensitive.

    Args:
        field_name: The field name to check
        sensitive_fields: Optional list of sensitive field names. If None, uses DEFAULT_SENSITIVE_FIELDS

    Returns:
        True if the field is sensitive, False otherwise
    """
    if sensitive_fields is None:
        sensitive_fields = DEFAULT_SENSITIVE_FIELDS

    field_lower = field_name.lower()
    return any(sensitive.lower() in field_lower for sensitive in sensitive_fields)


def sanitize_config(
    config_dict: Dict[str, Any],
    fields: Optional[List[str]] = None,
    mask: str = '***'
) -> Dict[str, Any]:
    """
    Recursively sanitize a configuration dictionary by masking sensitive values.

    Args:
        config_dict: Dictionary to sanitize
        fields: Optional list of sensitive field names. If None, uses DEFAULT_SENSITIVE_FIELDS
        mask: String to use for masking sensitive values

    Returns:
        New dictionary with sensitive values masked
    """
    if not isinstance(config_dict, dict):
        return config_dict

    if fields is None:
        fields = DEFAULT_SENSITIVE_FIELDS

    sanitized = {}
    for key, value in config_dict.items():
        if is_sensitive_field(key, fields) and value is not None:
            sanitized[key] = mask
        elif isinstance(value, dict):
            sanitized[key] = sanitize_config(value, fields, mask)
        elif isinstance(value, list):
            sanitized[key] = [
                sanitize_config(item, fields, mask) if isinstance(item, dict) else item
                for item in value
            ]
        else:
            sanitized[key] = value

    return sanitized


def sanitize_command(
    argv: Sequence[str],
    options: Optional[List[str]] = None,
    mask: str = '***'
) -> List[str]:
    """
    Mask the values of secret options in a command line.

    Handles both ``--password=value`` and ``--password value`` forms. The
    ``--mysql-password`` long option of percona-playback is covered as well.

    Args:
        argv: Command line as a list of arguments
        options: Optional list of secret option names. If None, uses SENSITIVE_OPTIONS
        mask: String to use for masking values

    Returns:
        New list with secret values masked
    """
    if options is None:
        options = SENSITIVE_OPTIONS

    sanitized = []
    mask_next = False
    for arg in argv:
        arg = str(arg)
        if mask_next:
            sanitized.append(mask)
            mask_next = False
            continue
        name, sep, _ = arg.partition('=')
        if name in options:
            if sep:
                sanitized.append(f"{name}={mask}")
            else:
                sanitized.append(arg)
                mask_next = True
        else:
            sanitized.append(arg)
    return sanitized


def sanitize_shell_command(command: str, mask: str = '***') -> str:
    """
    Mask secret option values inside a single shell command string.

    Args:
        command: Shell command line
        mask: String to use for masking values

    Returns:
        Sanitized command string
    """
    if not isinstance(command, str):
        return command
    pattern = r'(--(?:mysql-)?password[= ])\S+'
    return re.sub(pattern, r'\1' + mask, command)


def format_command(argv: Sequence[str]) -> str:
    """Render a sanitized command line for log messages."""
    return ' '.join(sanitize_command(argv))


def log_config_safely(
    logger: logging.Logger,
    config: Dict[str, Any],
    level: int = logging.DEBUG,
    message: Optional[str] = None
) -> None:
    """
    Convenience function to log a configuration dictionary safely.

    Args:
        logger: Logger instance to use
        config: Configuration dictionary to log
        level: Log level (default: DEBUG)
        message: Optional message prefix
    """
    sanitized = sanitize_config(config)
    if message:
        logger.log(level, f"{message}: {sanitized}")
    else:
        logger.log(level, f"Configuration: {sanitized}")
