"""Tests for cleanup on termination signals."""

import signal
import pytest
from unittest.mock import MagicMock

from mysql_workload.core.signals import cleanup_on_signals, make_cleanup_handler


def test_handler_runs_cleanup_and_exits(mocker):
    cleanup = mocker.Mock()
    handler = make_cleanup_handler(cleanup)

    with pytest.raises(SystemExit) as exc_info:
        handler(signal.SIGTERM, None)

    cleanup.assert_called_once()
    assert exc_info.value.code == 128 + signal.SIGTERM


def test_handler_exits_even_if_cleanup_fails():
    handler = make_cleanup_handler(MagicMock(side_effect=OSError('gone')))
    with pytest.raises(SystemExit) as exc_info:
        handler(signal.SIGINT, None)
    assert exc_info.value.code == 128 + signal.SIGINT


def test_handlers_installed_and_restored():
    before = signal.getsignal(signal.SIGTERM)
    with cleanup_on_signals(MagicMock()) as handler:
        assert signal.getsignal(signal.SIGTERM) is handler
        assert signal.getsignal(signal.SIGINT) is handler
        assert signal.getsignal(signal.SIGHUP) is handler
    assert signal.getsignal(signal.SIGTERM) == before


def test_restored_after_exception():
    before = signal.getsignal(signal.SIGINT)
    with pytest.raises(RuntimeError):
        with cleanup_on_signals(MagicMock()):
            raise RuntimeError('boom')
    assert signal.getsignal(signal.SIGINT) == before


def test_only_named_signals():
    before = signal.getsignal(signal.SIGHUP)
    with cleanup_on_signals(MagicMock(), signal_names=('SIGTERM', 'SIGNOTREAL')) as handler:
        assert signal.getsignal(signal.SIGTERM) is handler
        assert signal.getsignal(signal.SIGHUP) == before
