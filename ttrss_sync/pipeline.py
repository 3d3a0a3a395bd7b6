"""SyncPipeline: login, list feeds, then fetch and correlate each feed in turn."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol, TypeVar

import structlog

from .client import SessionClient
from .errors import SyncAbortedError, SyncError
from .maildir import WriteResult
from .models import Article, CorrelatedUnit, Feed, FeedResult, FeedStatus, Headline, SyncReport
from .retry import with_relogin
from .session import Session

logger = structlog.get_logger()

T = TypeVar("T")


class MailWriter(Protocol):
    """Destination for the correlated units of one feed."""

    def write(self, feed: Feed, units: list[CorrelatedUnit]) -> WriteResult:
        """Persist *units*; delivering a unit id twice must not duplicate it."""
        ...


@dataclass(frozen=True)
class Correlation:
    """Result of joining headlines to articles by id."""

    units: list[CorrelatedUnit] = field(default_factory=list)
    missing_ids: list[int] = field(default_factory=list)

    @property
    def gap_count(self) -> int:
        return len(self.missing_ids)


def correlate(headlines: Iterable[Headline], articles: Iterable[Article]) -> Correlation:
    """Pair each headline with the article of the same id.

    Units keep the headline order.  Headlines without an article are
    reported in ``missing_ids``; articles nobody asked for are dropped.
    """
    by_id = {article.id: article for article in articles}
    units: list[CorrelatedUnit] = []
    missing: list[int] = []
    seen: set[int] = set()

    for headline in headlines:
        seen.add(headline.id)
        article = by_id.get(headline.id)
        if article is None:
            missing.append(headline.id)
            continue
        units.append(CorrelatedUnit(headline=headline, article=article))

    unrequested = sorted(set(by_id) - seen)
    if unrequested:
        logger.debug("unrequested_articles", ids=unrequested)

    return Correlation(units=units, missing_ids=missing)


class SyncPipeline:
    """Runs one complete sync over every subscribed feed.

    Feeds are processed sequentially in the order the server lists them.
    A failure while fetching or writing one feed is recorded in that
    feed's :class:`FeedResult` and the run moves on; failing to log in or
    to list the feeds aborts the run with :class:`SyncAbortedError`.

    When the server reports an expired session the pipeline logs in again
    and repeats the call, as configured by ``config.relogin``.
    """

    def __init__(
        self,
        client: SessionClient,
        *,
        writer: MailWriter | None = None,
        since_id: int = 0,
    ) -> None:
        self._client = client
        self._config = client.config
        self._writer = writer
        self._since_id = since_id
        self._retry = with_relogin(self._config.relogin, relogin=self.relogin)

    @property
    def client(self) -> SessionClient:
        """The client currently in use (replaced on every login)."""
        return self._client

    # ------------------------------------------------------------------
    # Session handling
    # ------------------------------------------------------------------

    def login(self) -> None:
        try:
            self._client = self._client.login()
        except SyncError as exc:
            logger.error("sync_aborted", phase="login", error=str(exc))
            raise SyncAbortedError("login", str(exc)) from exc

    def relogin(self) -> None:
        logger.warning("session_expired", user=self._config.user)
        self.login()

    def _call(self, fn: Callable[[SessionClient], T]) -> T:
        @self._retry
        def attempt() -> T:
            return fn(self._client)

        return attempt()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> SyncReport:
        """Log in if needed, then sync every feed once."""
        report = SyncReport()
        logger.info("sync_started", api_url=self._config.api_url, user=self._config.user)

        if not self._client.session.authenticated:
            self.login()

        try:
            feeds = self._call(lambda c: c.get_feeds())
        except SyncAbortedError:
            raise
        except SyncError as exc:
            logger.error("sync_aborted", phase="feeds", error=str(exc))
            raise SyncAbortedError("feeds", str(exc)) from exc

        for feed in feeds:
            report.feeds.append(self.sync_feed(feed))

        report.finished_at = datetime.now(UTC)
        logger.info(
            "sync_finished",
            feeds=len(report.feeds),
            units=report.units_total,
            gaps=report.gap_count,
            failed=len(report.failed_feeds),
        )
        return report

    def sync_feed(self, feed: Feed) -> FeedResult:
        """Fetch, correlate and write a single feed."""
        result = FeedResult(feed=feed)
        log = logger.bind(feed_id=feed.id, feed=feed.title)
        phase = "headlines"

        try:
            headlines = self._call(lambda c: c.get_headlines(feed.id, self._since_id))
            if not headlines:
                log.info("feed_empty")
                return result

            phase = "articles"
            ids = [headline.id for headline in headlines]
            articles = self._call(lambda c: c.get_articles(ids))

            correlation = correlate(headlines, articles)
            result.units = correlation.units
            result.missing_ids = correlation.missing_ids
            if correlation.missing_ids:
                result.status = FeedStatus.PARTIAL
                log.warning(
                    "correlation_gap",
                    missing=correlation.gap_count,
                    ids=correlation.missing_ids,
                )

            if self._writer is not None and correlation.units:
                phase = "write"
                written = self._writer.write(feed, correlation.units)
                result.written = written.written
                result.skipped = written.skipped
        except SyncAbortedError:
            raise
        except SyncError as exc:
            result.status = FeedStatus.FAILED
            result.failed_phase = phase
            result.error = str(exc)
            log.error("feed_failed", phase=phase, error=str(exc))
            return result

        log.info(
            "feed_synced",
            headlines=len(headlines),
            units=len(result.units),
            written=result.written,
            skipped=result.skipped,
        )
        return result

    # ------------------------------------------------------------------
    # Poll loop
    # ------------------------------------------------------------------

    def poll(self, shutdown_event: threading.Event) -> SyncReport | None:
        """Run repeatedly until *shutdown_event* is set.

        An aborted run is logged and the next run starts with a fresh
        login.  Returns the last completed report, if any.
        """
        interval = self._config.poll.interval_seconds
        last: SyncReport | None = None

        while not shutdown_event.is_set():
            try:
                last = self.run()
            except SyncAbortedError as exc:
                logger.error("poll_run_aborted", phase=exc.phase, error=str(exc))
                self._client = self._client.with_session(Session())
            shutdown_event.wait(interval)

        logger.info("poll_stopped")
        return last
