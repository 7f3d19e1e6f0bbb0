"""Conversion of raw tcpdump output into a slow query log with pt-query-digest."""

import logging
import subprocess

from mysql_workload.core.models import ALL_SCHEMAS
from mysql_workload.tools.base import CommandRunner

logger = logging.getLogger(__name__)

SELECT_ONLY = (
    "($event->{fingerprint} =~ m/^select/i)"
    " && ($event->{arg} !~ m/FOR UPDATE/i)"
    " && ($event->{arg} !~ m/LOCK IN SHARE MODE/i)"
)

# pt-query-digest leaves the auth plugin name glued to the user
# (https://bugs.launchpad.net/percona-toolkit/+bug/1402776) and labels the
# client line in a way percona-playback does not parse.
LINE_FIXUPS = (
    (b'\x00mysql_native_password', b''),
    (b'# Client: ', b'# User@Host: '),
)


def build_digest_filter(schema=ALL_SCHEMAS):
    """Filter expression keeping non-locking SELECTs, optionally for one schema.

    Args:
        schema (str): Schema name prefix, ``__all__`` for every schema

    Returns:
        str: Perl expression for ``pt-query-digest --filter``
    """
    if not schema or schema == ALL_SCHEMAS:
        return f"(defined $event->{{db}}) && {SELECT_ONLY}"
    return f'(($event->{{db}} || "") =~ m/^{schema}/) && {SELECT_ONLY}'


def fixup_line(line):
    """Apply the slow log fixups to one line of digester output (bytes)."""
    for old, new in LINE_FIXUPS:
        line = line.replace(old, new)
    return line


class QueryDigester:
    """pt-query-digest in tcpdump-to-slowlog mode."""

    def __init__(self, pt_query_digest_bin, runner=None):
        self.pt_query_digest_bin = pt_query_digest_bin
        self.runner = runner or CommandRunner()

    def build_argv(self, tcpdump_file, schema=ALL_SCHEMAS):
        return [
            self.pt_query_digest_bin,
            '--type', 'tcpdump', tcpdump_file,
            '--output', 'slowlog',
            '--no-report',
            '--filter', build_digest_filter(schema),
        ]

    def digest(self, tcpdump_file, slowlog_file, schema=ALL_SCHEMAS):
        """Digest ``tcpdump_file`` into ``slowlog_file``.

        The digester's stderr is discarded.

        Returns:
            int: Exit status of pt-query-digest
        """
        argv = self.build_argv(tcpdump_file, schema)
        logger.info(f"Digesting {tcpdump_file} into {slowlog_file}")
        with open(slowlog_file, 'wb') as output:
            proc = self.runner.popen(
                argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
            lines = 0
            for line in proc.stdout:
                output.write(fixup_line(line))
                lines += 1
            proc.stdout.close()
            returncode = proc.wait()

        logger.debug(f"pt-query-digest wrote {lines} lines and exited with code {returncode}")
        if returncode != 0:
            logger.warning(f"pt-query-digest exited with code {returncode}")
        return returncode
