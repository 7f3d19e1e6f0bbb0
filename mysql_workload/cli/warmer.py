"""Continuously warm up a MySQL slave with workload captured from its master.

Usage Examples:
    mysql-slave-warmer --master-host db1 --target-host db2 --working-dir /data/warmup \\
        --mysql-user ro --mysql-password secret --schema shop

The warmer runs until it receives SIGINT, SIGTERM, SIGHUP or SIGPIPE.

Exit codes:
    22    invalid arguments or missing tools
    2003  MySQL connection failure on the target
"""

import sys
import logging

from mysql_workload.cli.common import (
    UsageArgumentParser, add_common_arguments, build_config, non_negative_float,
    invalid_config_as_usage_error, positive_int, report_error, require_non_empty
)
from mysql_workload.config.logging_config import configure_logging
from mysql_workload.core.errors import EXIT_OK, WorkloadError
from mysql_workload.core.models import ALL_SCHEMAS, MySQLCredentials, WarmerSettings
from mysql_workload.core.signals import cleanup_on_signals
from mysql_workload.core.warmer import SlaveWarmer
from mysql_workload.utils.logging import log_config_safely

logger = logging.getLogger('mysql_workload.cli.warmer')


def build_parser():
    parser = UsageArgumentParser(
        prog='mysql-slave-warmer',
        description='Continously warm up a MySQL slave TARGET_HOST by replaying production '
                    'workload captured from the production master MASTER_HOST.',
    )
    parser.add_argument('-m', '--master-host', required=True,
                        help='the master host actively executing production traffic '
                             'that will be used to capture queries')
    parser.add_argument('-t', '--target-host', required=True,
                        help='the host that has to be warmed up')
    parser.add_argument('-w', '--working-dir', required=True,
                        help='the directory that stores the temporary data related to slave warmup')
    parser.add_argument('-u', '--mysql-user', required=True,
                        help='the MySQL read-only username that would be used to run the queries')
    parser.add_argument('-p', '--mysql-password', required=True,
                        help='the MySQL read-only user password')
    parser.add_argument('-s', '--schema', default=ALL_SCHEMAS,
                        help='capture the workload pertaining to only this schema '
                             '(default: capture every schema)')
    parser.add_argument('-C', '--concurrency', type=positive_int,
                        help='the MySQL thread concurrency with which to replay the workload '
                             '(default 16)')
    parser.add_argument('-l', '--tcpdump-seconds', type=positive_int,
                        help='seconds of workload captured and replayed per cycle (default 600)')
    parser.add_argument('--port', type=positive_int,
                        help='local port receiving the captured workload (default: 7778)')
    parser.add_argument('--cycle-delay', type=non_negative_float,
                        help='seconds to wait between two successful cycles (default 0)')
    parser.add_argument('--ssh-user', help='user for the SSH connection to MASTER_HOST')
    add_common_arguments(parser)
    return parser


def parse_arguments(argv=None):
    """Parse and validate command-line arguments (exit 22 on error)."""
    parser = build_parser()
    args = parser.parse_args(argv)
    require_non_empty(parser, args, 'master_host', 'target_host', 'working_dir',
                      'mysql_user', 'mysql_password', 'schema')
    return args


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    configure_logging(args.log_dir, args.verbose)
    log_config_safely(logger, vars(args), message="Command-line arguments")

    try:
        config = build_config(args, {
            'capture': {'relay_port': args.port},
            'ssh': {'username': args.ssh_user},
        })
        with invalid_config_as_usage_error():
            settings = WarmerSettings.from_config(
                args.master_host,
                args.target_host,
                args.working_dir,
                MySQLCredentials(args.mysql_user, args.mysql_password),
                config['warmer'],
                schema=args.schema,
                concurrency=args.concurrency,
                capture_seconds=args.tcpdump_seconds,
                cycle_delay=args.cycle_delay,
            )
            warmer = SlaveWarmer(settings, config)
            warmer.capture_job()
        warmer.check_preconditions()

        with cleanup_on_signals(warmer.cleanup):
            warmer.setup()
            warmer.run()
        warmer.cleanup()
    except WorkloadError as e:
        return report_error(e)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
