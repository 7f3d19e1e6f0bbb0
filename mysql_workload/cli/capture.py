"""Capture tcpdump output from MASTER_HOST and turn it into a slow query log.

Usage Examples:
    # Capture one minute of traffic for every schema
    mysql-workload-capture --master-host db1 --tcpdump-seconds 60 --output-dir /tmp/cap

    # Capture SELECTs of the "shop" schema only, receiving on port 9000
    mysql-workload-capture -m db1 -l 60 -o /tmp/cap --schema shop --port 9000

The slow log is written to OUTPUT_DIR/mysql.slow.log.

Exit codes:
    0     success
    1     generic error (SSH failure, relay port in use)
    22    invalid arguments or missing tools
"""

import sys
import logging

from mysql_workload.cli.common import (
    UsageArgumentParser, add_common_arguments, build_config, positive_int,
    invalid_config_as_usage_error, report_error, require_non_empty
)
from mysql_workload.config.logging_config import configure_logging
from mysql_workload.core.capture import WorkloadCapturer
from mysql_workload.core.errors import EXIT_OK, WorkloadError
from mysql_workload.core.models import ALL_SCHEMAS, WorkloadCapture
from mysql_workload.core.signals import cleanup_on_signals
from mysql_workload.utils.logging import log_config_safely

logger = logging.getLogger('mysql_workload.cli.capture')


def build_parser():
    parser = UsageArgumentParser(
        prog='mysql-workload-capture',
        description='Capture tcpdump output from MASTER_HOST and stream it to OUTPUT_DIR.',
    )
    parser.add_argument('-m', '--master-host', required=True,
                        help='the master host actively executing production traffic '
                             'that will be used to capture queries via tcpdump')
    parser.add_argument('-l', '--tcpdump-seconds', type=positive_int, required=True,
                        help='the number of seconds for which tcpdump will be run on MASTER_HOST')
    parser.add_argument('-o', '--output-dir', required=True,
                        help='the directory that will be used for storing the tcpdump file')
    parser.add_argument('-p', '--port', type=positive_int,
                        help='the port on localhost where the captured workload from master '
                             'is received (default: 7778)')
    parser.add_argument('-s', '--schema', default=ALL_SCHEMAS,
                        help='capture the workload pertaining to only this schema '
                             '(default: capture every schema)')
    parser.add_argument('--ssh-user', help='user for the SSH connection to MASTER_HOST')
    add_common_arguments(parser)
    return parser


def parse_arguments(argv=None):
    """Parse and validate command-line arguments (exit 22 on error)."""
    parser = build_parser()
    args = parser.parse_args(argv)
    require_non_empty(parser, args, 'master_host', 'output_dir', 'schema')
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
            capture = WorkloadCapture.from_config(
                args.master_host,
                args.tcpdump_seconds,
                args.output_dir,
                config['capture'],
                schema=args.schema,
            )
            capturer = WorkloadCapturer.from_config(capture, config)

        # cleanup only kills the relay once run() has started ours
        with cleanup_on_signals(capturer.cleanup):
            try:
                capturer.check_preconditions()
                capturer.run()
            finally:
                capturer.close()
    except WorkloadError as e:
        return report_error(e)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
