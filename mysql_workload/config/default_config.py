"""Default configuration for the MySQL workload capture and replay tooling.

This module defines the default settings shared by the capture, replay and
warmer commands. Every value can be overridden, in increasing order of
priority, by:

1. A YAML configuration file passed with ``--config``
2. Environment variables (``MYSQL_WORKLOAD_*``)
3. Command-line arguments

Configuration Sections:
----------------------
TOOLS_CONFIG:
    Absolute paths of the external binaries that do the real work
    (tcpdump, nc, pt-query-digest, percona-playback, mysqladmin).

CAPTURE_CONFIG:
    Packet capture settings: network interface and MySQL port on the
    master, the local relay port and the names of the capture artifacts.

REPLAY_CONFIG:
    Replay settings: default thread concurrency, number of warmup loops
    and the names of the playback artifacts.

WARMER_CONFIG:
    Settings of the continuous warmup loop, including the inter-cycle
    delay and the backoff applied after consecutive failed cycles.

SSH_CONFIG:
    How the master host is reached over SSH (paramiko).

CONNECTIVITY_CONFIG:
    How MySQL credentials are verified on the target host.

Example:
-------
    from mysql_workload.config.default_config import get_tools_config

    tools = get_tools_config()
    print(tools['tcpdump_bin'])

Notes:
-----
- Passwords are never stored here; they come from the command line.
"""

import os

# Absolute paths of the external tools
TOOLS_CONFIG = {
    'tcpdump_bin': '/usr/sbin/tcpdump',
    'nc_bin': '/usr/bin/nc',
    'pt_query_digest_bin': '/usr/bin/pt-query-digest',
    'percona_playback_bin': '/usr/bin/percona-playback',
    'mysqladmin_bin': '/usr/bin/mysqladmin',
}

# Packet capture configuration
CAPTURE_CONFIG = {
    'interface': 'eth0',
    'mysql_port': 3306,
    'relay_port': 7778,
    'schema': '__all__',            # __all__ captures every schema
    'tcpdump_filename': 'mysql.tcp',
    'slowlog_filename': 'mysql.slow.log',
    'buffer_size_kb': 10000,
    'snaplen': 65535,
    'relay_ready_timeout': 10.0,    # seconds to wait for the relay listener
    'relay_poll_interval': 0.2,
    'local_host': None,             # defaults to socket.gethostname()
}

# Replay configuration
REPLAY_CONFIG = {
    'concurrency': 6,
    'warmup_loops': 3,
    'db_plugin': 'libmysqlclient',
    'dispatcher_plugin': 'thread-pool',
    'tmp_dirname': 'tmp',
    'playback_log': 'playback.log',
    'playback_err': 'playback.err',
    'report_template': 'ptqd.{host}.txt',
}

# Continuous warmer configuration
WARMER_CONFIG = {
    'concurrency': 16,
    'capture_seconds': 600,
    'cycle_delay': 0.0,
    'backoff_initial': 1.0,
    'backoff_factor': 2.0,
    'backoff_max': 300.0,
}

# SSH access to the master host
SSH_CONFIG = {
    'username': None,               # defaults to the local user / ssh config
    'port': 22,
    'timeout': 10,
    'key_filename': None,
}

# MySQL connectivity check
CONNECTIVITY_CONFIG = {
    'method': 'mysqladmin',         # 'mysqladmin' or 'sqlalchemy'
    'port': 3306,
    'connect_timeout': 10,
}


# Environment variable overrides per section: variable -> (key, type)
ENV_OVERRIDES = {
    'tools': {
        'MYSQL_WORKLOAD_TCPDUMP_BIN': ('tcpdump_bin', str),
        'MYSQL_WORKLOAD_NC_BIN': ('nc_bin', str),
        'MYSQL_WORKLOAD_PT_QUERY_DIGEST_BIN': ('pt_query_digest_bin', str),
        'MYSQL_WORKLOAD_PERCONA_PLAYBACK_BIN': ('percona_playback_bin', str),
        'MYSQL_WORKLOAD_MYSQLADMIN_BIN': ('mysqladmin_bin', str),
    },
    'capture': {
        'MYSQL_WORKLOAD_INTERFACE': ('interface', str),
        'MYSQL_WORKLOAD_MYSQL_PORT': ('mysql_port', int),
        'MYSQL_WORKLOAD_RELAY_PORT': ('relay_port', int),
        'MYSQL_WORKLOAD_LOCAL_HOST': ('local_host', str),
    },
    'replay': {
        'MYSQL_WORKLOAD_CONCURRENCY': ('concurrency', int),
        'MYSQL_WORKLOAD_WARMUP_LOOPS': ('warmup_loops', int),
    },
    'warmer': {
        'MYSQL_WORKLOAD_WARMER_CONCURRENCY': ('concurrency', int),
        'MYSQL_WORKLOAD_CAPTURE_SECONDS': ('capture_seconds', int),
        'MYSQL_WORKLOAD_CYCLE_DELAY': ('cycle_delay', float),
        'MYSQL_WORKLOAD_BACKOFF_MAX': ('backoff_max', float),
    },
    'ssh': {
        'MYSQL_WORKLOAD_SSH_USER': ('username', str),
        'MYSQL_WORKLOAD_SSH_PORT': ('port', int),
        'MYSQL_WORKLOAD_SSH_KEY': ('key_filename', str),
    },
    'connectivity': {
        'MYSQL_WORKLOAD_CONNECTIVITY_METHOD': ('method', str),
        'MYSQL_WORKLOAD_TARGET_PORT': ('port', int),
    },
}

DEFAULTS = {
    'tools': TOOLS_CONFIG,
    'capture': CAPTURE_CONFIG,
    'replay': REPLAY_CONFIG,
    'warmer': WARMER_CONFIG,
    'ssh': SSH_CONFIG,
    'connectivity': CONNECTIVITY_CONFIG,
}


def _apply_env_overrides(config, section):
    for env_var, (config_key, cast) in ENV_OVERRIDES[section].items():
        env_value = os.environ.get(env_var)
        if not env_value:
            continue
        try:
            config[config_key] = cast(env_value)
        except ValueError:
            # keep the previous value when the override cannot be parsed
            continue
    return config


def get_section_config(section, file_config=None):
    """Get one configuration section.

    Defaults are overlaid with the matching section of ``file_config`` (as
    loaded from a YAML file) and then with environment variables, which win.

    Args:
        section (str): Section name, e.g. ``'capture'``
        file_config (dict, optional): Parsed configuration file content

    Returns:
        dict: Section configuration
    """
    config = DEFAULTS[section].copy()
    if file_config and isinstance(file_config.get(section), dict):
        for key, value in file_config[section].items():
            if value is not None:
                config[key] = value
    return _apply_env_overrides(config, section)


def get_tools_config(file_config=None):
    """Get tool paths with environment variable overrides."""
    return get_section_config('tools', file_config)


def get_config(file_config=None):
    """Build every configuration section, see ``get_section_config``."""
    return {section: get_section_config(section, file_config) for section in DEFAULTS}
