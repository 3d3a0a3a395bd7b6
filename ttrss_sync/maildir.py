"""Maildir delivery of correlated units.

Each feed gets its own Maildir under the configured root.  A message's
file name depends only on the article id, so delivering the same unit
twice leaves a single file.
"""

from __future__ import annotations

import email.policy
import email.utils
import os
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path

import structlog

from .config import SyncConfig
from .errors import MailWriteError
from .models import CorrelatedUnit, Feed

logger = structlog.get_logger()

_SUBDIRS = ("tmp", "new", "cur")


@dataclass
class WriteResult:
    written: int = 0
    skipped: int = 0


def _scrub(value: str) -> str:
    # Lone surrogates survive JSON decoding but cannot be encoded.
    return value.encode("utf-8", "replace").decode("utf-8")


def _one_line(value: str) -> str:
    return " ".join(_scrub(value).split())


class MaildirWriter:
    """Write correlated units as RFC 5322 messages into per-feed Maildirs.

    Unread, unstarred items are delivered to ``new/``.  Everything else
    goes to ``cur/`` with the standard ``:2,`` info suffix: ``S`` when the
    item was already read on the server, ``F`` when it is starred.
    """

    def __init__(self, root: Path, *, host: str = "localhost") -> None:
        self._root = Path(root)
        self._host = host

    @classmethod
    def from_config(cls, config: SyncConfig) -> MaildirWriter:
        return cls(config.maildir, host=config.api_host)

    @property
    def root(self) -> Path:
        return self._root

    def folder_for(self, feed: Feed) -> Path:
        """Maildir for *feed*, keyed by the server's feed id."""
        return self._root / f"feed-{feed.id}"

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def write(self, feed: Feed, units: list[CorrelatedUnit]) -> WriteResult:
        """Deliver *units* in order, skipping ids already present."""
        folder = self.folder_for(feed)
        result = WriteResult()
        try:
            for sub in _SUBDIRS:
                (folder / sub).mkdir(parents=True, exist_ok=True)
            for unit in units:
                if self._deliver(folder, feed, unit):
                    result.written += 1
                else:
                    result.skipped += 1
        except OSError as exc:
            raise MailWriteError(
                f"cannot write to {folder}: {exc.strerror or exc}",
                path=folder,
            ) from exc
        except ValueError as exc:
            # Includes UnicodeError raised while serializing the message.
            raise MailWriteError(
                f"cannot build message for {folder}: {exc}",
                path=folder,
            ) from exc

        logger.debug(
            "maildir_written",
            feed_id=feed.id,
            folder=str(folder),
            written=result.written,
            skipped=result.skipped,
        )
        return result

    def _deliver(self, folder: Path, feed: Feed, unit: CorrelatedUnit) -> bool:
        base = f"ttrss-{unit.id}"
        if self.contains(folder, unit.id):
            return False

        flags = self._flags(unit)
        if flags:
            dest = folder / "cur" / f"{base}:2,{flags}"
        else:
            dest = folder / "new" / base

        tmp = folder / "tmp" / f"{base}.{os.getpid()}"
        tmp.write_bytes(bytes(self.build_message(feed, unit)))
        os.replace(tmp, dest)
        return True

    @staticmethod
    def contains(folder: Path, unit_id: int) -> bool:
        """True if a message for *unit_id* already exists in ``new/`` or ``cur/``."""
        base = f"ttrss-{unit_id}"
        if (folder / "new" / base).exists() or (folder / "cur" / base).exists():
            return True
        return any((folder / "cur").glob(f"{base}:*"))

    @staticmethod
    def _flags(unit: CorrelatedUnit) -> str:
        flags = []
        if unit.headline.marked:
            flags.append("F")
        if not unit.headline.unread:
            flags.append("S")
        return "".join(sorted(flags))

    # ------------------------------------------------------------------
    # Message construction
    # ------------------------------------------------------------------

    def build_message(self, feed: Feed, unit: CorrelatedUnit) -> EmailMessage:
        headline = unit.headline
        sender = _one_line(headline.author) or _one_line(feed.title)

        msg = EmailMessage(policy=email.policy.default)
        msg["Subject"] = _one_line(headline.title)
        msg["From"] = email.utils.formataddr((sender, f"ttrss@{self._host}"))
        msg["Date"] = email.utils.formatdate(localtime=True)
        msg["Message-ID"] = f"<ttrss-{unit.id}@{self._host}>"
        msg["X-TTRSS-Feed"] = _one_line(feed.title)
        msg["X-TTRSS-Feed-Id"] = str(feed.id)
        if headline.link:
            msg["X-TTRSS-Link"] = _one_line(headline.link)
        if headline.comments_link:
            msg["X-TTRSS-Comments"] = _one_line(headline.comments_link)
        msg.set_content(_scrub(unit.article.content), subtype="html")
        return msg
