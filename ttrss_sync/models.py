"""Data models for the TT-RSS wire format and the sync results built from it."""

from __future__ import annotations

import functools
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, StrictBool, StrictInt, StrictStr, model_validator


class WireModel(BaseModel):
    """Base for content decoded from the server.

    Unknown fields, missing fields and type coercion are all rejected so a
    shape mismatch can never decode into a silently wrong value.
    """

    model_config = {"extra": "forbid", "frozen": True}


class LoginContent(WireModel):
    """Content of a successful ``login`` response."""

    session_id: StrictStr = Field(description="Opaque session token issued by the server")


class Feed(WireModel):
    """A subscribed feed as returned by ``getFeeds``."""

    title: StrictStr = Field(description="Feed title")
    feed_url: StrictStr = Field(description="URL the server polls for this feed")
    id: StrictInt = Field(ge=0, description="Server-side feed id")
    last_updated: StrictInt = Field(ge=0, description="Last update time (unix seconds)")
    cat_id: StrictInt = Field(ge=0, description="Category id")
    order_id: StrictInt = Field(ge=0, description="Ordering hint within the category")


@functools.total_ordering
class Headline(WireModel):
    """One feed item as returned by ``getHeadlines``.

    Headlines are totally ordered by ``id`` and then by the remaining
    fields in declaration order.  The server defines no order; this one
    only exists for deterministic comparison.
    """

    id: StrictInt = Field(ge=0, description="Article id (shared with the Article)")
    unread: StrictBool = Field(description="Unread flag")
    marked: StrictBool = Field(description="Starred flag")
    title: StrictStr = Field(description="Headline title")
    feed_id: StrictInt = Field(ge=0, description="Id of the owning feed")
    author: StrictStr = Field(description="Author as reported by the feed")
    link: StrictStr = Field(description="Link to the original item")
    comments_link: StrictStr = Field(description="Link to the comments page, may be empty")

    def _sort_key(self) -> tuple[Any, ...]:
        return tuple(getattr(self, name) for name in type(self).model_fields)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Headline):
            return NotImplemented
        return self._sort_key() < other._sort_key()


class Article(WireModel):
    """Body content for a headline as returned by ``getArticle``."""

    id: StrictInt = Field(ge=0, description="Article id")
    content: StrictStr = Field(description="HTML body")


class CorrelatedUnit(BaseModel):
    """A headline joined to its article by id: one future mail message."""

    model_config = {"frozen": True}

    headline: Headline
    article: Article

    @model_validator(mode="after")
    def _ids_match(self) -> CorrelatedUnit:
        if self.headline.id != self.article.id:
            raise ValueError(
                f"headline {self.headline.id} cannot be paired with article {self.article.id}"
            )
        return self

    @property
    def id(self) -> int:
        return self.headline.id


class FeedStatus(str, Enum):
    """Outcome of syncing a single feed."""

    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"


class FeedResult(BaseModel):
    """Everything the pipeline learned about one feed during a run."""

    feed: Feed = Field(description="The feed that was processed")
    units: list[CorrelatedUnit] = Field(
        default_factory=list,
        description="Correlated units in headline order",
    )
    missing_ids: list[int] = Field(
        default_factory=list,
        description="Headline ids for which the server returned no article",
    )
    written: int = Field(default=0, description="Messages delivered to the Maildir")
    skipped: int = Field(default=0, description="Messages already present in the Maildir")
    status: FeedStatus = Field(default=FeedStatus.OK, description="Outcome for this feed")
    failed_phase: str | None = Field(
        default=None,
        description="Phase that failed (headlines, articles, write)",
    )
    error: str | None = Field(default=None, description="Error message when the feed failed")

    @property
    def unit_ids(self) -> list[int]:
        return [unit.id for unit in self.units]


class SyncReport(BaseModel):
    """Summary of a full run over all feeds."""

    feeds: list[FeedResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def failed_feeds(self) -> list[FeedResult]:
        return [r for r in self.feeds if r.status == FeedStatus.FAILED]

    @property
    def gap_count(self) -> int:
        return sum(len(r.missing_ids) for r in self.feeds)

    @property
    def units_total(self) -> int:
        return sum(len(r.units) for r in self.feeds)

    @property
    def degraded(self) -> bool:
        """True when at least one feed failed outright."""
        return bool(self.failed_feeds)

    @property
    def exit_code(self) -> int:
        return 2 if self.degraded else 0
