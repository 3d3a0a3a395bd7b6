"""Graceful shutdown of the poll loop via SIGTERM / SIGINT."""

from __future__ import annotations

import signal
import threading

import structlog

logger = structlog.get_logger()


def install_signal_handlers(shutdown_event: threading.Event) -> None:
    """Register SIGTERM and SIGINT handlers that set *shutdown_event*.

    Call this once from the main thread.  The poll loop waits on the
    event between runs, so a signal ends the loop after the current run.
    """

    def _handle(signum: int, frame: object) -> None:
        logger.info("shutdown_signal_received", signal=signal.Signals(signum).name)
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, _handle)
