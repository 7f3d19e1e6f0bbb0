"""Replay MySQL production workload in slowlog format on a target host.

Usage Examples:
    # Warm the buffer pool, then benchmark with 6 threads
    mysql-workload-replay --target-host db2 --slow-log /data/mysql.slow.log \\
        --output-dir /data/bench --mysql-user ro --mysql-password secret

    # Benchmark with cold caches and 16 threads
    mysql-workload-replay ... --concurrency 16 --cold-run

Exit codes:
    0     success
    1     generic error
    22    invalid arguments or missing tools
    2003  MySQL connection failure
"""

import sys
import logging

from mysql_workload.cli.common import (
    UsageArgumentParser, add_common_arguments, build_config, positive_int,
    invalid_config_as_usage_error, report_error, require_non_empty
)
from mysql_workload.config.logging_config import configure_logging
from mysql_workload.core.errors import EXIT_OK, WorkloadError
from mysql_workload.core.models import MySQLCredentials, ReplayJob
from mysql_workload.core.replay import WorkloadReplayer
from mysql_workload.core.signals import cleanup_on_signals
from mysql_workload.io.file_manager import is_nonempty_file
from mysql_workload.utils.logging import log_config_safely

logger = logging.getLogger('mysql_workload.cli.replay')


def build_parser():
    parser = UsageArgumentParser(
        prog='mysql-workload-replay',
        description='Replay MySQL production workload in slowlog format on TARGET_HOST '
                    'and report the query times.',
    )
    parser.add_argument('-t', '--target-host', required=True,
                        help='the host that has to be benchmarked')
    parser.add_argument('-s', '--slow-log', required=True,
                        help='the slow log file containing the workload that needs to be replayed')
    parser.add_argument('-o', '--output-dir', required=True,
                        help='the directory that stores the benchmark reports')
    parser.add_argument('-u', '--mysql-user', required=True,
                        help='the MySQL read-only username that would be used to run the queries')
    parser.add_argument('-p', '--mysql-password', required=True,
                        help='the MySQL read-only user password')
    parser.add_argument('-C', '--concurrency', type=positive_int,
                        help='the MySQL thread concurrency at which to run the benchmark (default 6)')
    parser.add_argument('-c', '--cold-run', action='store_true',
                        help='run the benchmark with cold InnoDB Buffer Pool cache, '
                             'this is disabled by default')
    parser.add_argument('--summary', action='store_true',
                        help='print the benchmark summary from ptqd.TARGET_HOST.txt at the end')
    add_common_arguments(parser)
    return parser


def parse_arguments(argv=None):
    """Parse and validate command-line arguments (exit 22 on error)."""
    parser = build_parser()
    args = parser.parse_args(argv)
    require_non_empty(parser, args, 'target_host', 'slow_log', 'output_dir',
                      'mysql_user', 'mysql_password')
    if not is_nonempty_file(args.slow_log):
        parser.error(f"slow log {args.slow_log} does not exist or is empty")
    return args


def main(argv=None):
    """Main entry point."""
    args = parse_arguments(argv)
    configure_logging(args.log_dir, args.verbose)
    log_config_safely(logger, vars(args), message="Command-line arguments")

    try:
        config = build_config(args, {'replay': {'concurrency': args.concurrency}})
        with invalid_config_as_usage_error():
            job = ReplayJob.from_config(
                args.target_host,
                args.slow_log,
                args.output_dir,
                MySQLCredentials(args.mysql_user, args.mysql_password),
                config['replay'],
                cold_run=args.cold_run,
            )
            replayer = WorkloadReplayer.from_config(job, config)
        replayer.check_preconditions()

        with cleanup_on_signals(replayer.cleanup):
            replayer.run()
            if args.summary:
                replayer.print_benchmark_results()
        replayer.cleanup()
    except WorkloadError as e:
        return report_error(e)
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
