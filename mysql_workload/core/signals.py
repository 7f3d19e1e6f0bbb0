"""Signal handling for the command entry points."""

import signal
import logging
from contextlib import contextmanager

logger = logging.getLogger(__name__)

CLEANUP_SIGNALS = ('SIGHUP', 'SIGPIPE', 'SIGINT', 'SIGTERM')


def make_cleanup_handler(cleanup):
    """Signal handler that runs ``cleanup`` and exits with ``128 + signum``."""
    def handler(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}")
        try:
            cleanup()
        finally:
            raise SystemExit(128 + signum)
    return handler


@contextmanager
def cleanup_on_signals(cleanup, signal_names=CLEANUP_SIGNALS):
    """Install the cleanup handler for hang-up, pipe, interrupt and terminate.

    Previous handlers are restored on exit. Signals missing on the platform
    are skipped.
    """
    handler = make_cleanup_handler(cleanup)
    previous = {}
    for name in signal_names:
        signum = getattr(signal, name, None)
        if signum is None:
            continue
        previous[signum] = signal.signal(signum, handler)
    try:
        yield handler
    finally:
        for signum, old in previous.items():
            if old is not None:
                signal.signal(signum, old)
