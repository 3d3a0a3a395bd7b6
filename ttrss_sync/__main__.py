"""Entry point for the sync client.

Usage::

    python -m ttrss_sync once [sync.toml]   # one run, then exit
    python -m ttrss_sync poll [sync.toml]   # run until SIGTERM / SIGINT

Exit status: 0 on success, 1 when the run was aborted (bad usage,
config, login or feed listing), 2 when some feeds failed.
"""

from __future__ import annotations

import sys
import threading
from pathlib import Path

import structlog

from .client import SessionClient
from .config import DEFAULT_CONFIG_PATH, LoggingConfig, load_config
from .errors import ConfigLoadError, SyncAbortedError
from .logging import setup_logging
from .maildir import MaildirWriter
from .models import SyncReport
from .pipeline import SyncPipeline
from .shutdown import install_signal_handlers

logger = structlog.get_logger()

USAGE = "Usage: python -m ttrss_sync <once|poll> [config.toml]"


def _report(report: SyncReport) -> int:
    failed = report.failed_feeds
    if failed:
        logger.warning(
            "sync_completed_with_failures",
            failed=[
                {"feed_id": r.feed.id, "phase": r.failed_phase, "error": r.error} for r in failed
            ],
        )
    return report.exit_code


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if not args or args[0] not in ("once", "poll") or len(args) > 2:
        print(USAGE, file=sys.stderr)
        return 1

    mode = args[0]
    path = Path(args[1]) if len(args) == 2 else DEFAULT_CONFIG_PATH

    setup_logging(LoggingConfig())

    try:
        config = load_config(path)
    except ConfigLoadError as exc:
        logger.error("sync_aborted", phase="config", path=str(path), error=str(exc))
        return 1

    setup_logging(config.logging)
    writer = MaildirWriter.from_config(config)

    with SessionClient(config) as client:
        pipeline = SyncPipeline(client, writer=writer)

        if mode == "once":
            try:
                report = pipeline.run()
            except SyncAbortedError:
                return 1
            return _report(report)

        shutdown_event = threading.Event()
        install_signal_handlers(shutdown_event)
        last = pipeline.poll(shutdown_event)
        return _report(last) if last is not None else 1


if __name__ == "__main__":
    sys.exit(main())
