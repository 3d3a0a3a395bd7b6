"""Remote operations and their wire payloads.

Each operation is a small immutable value carrying only its own
parameters.  :func:`build_payload` is the single place that turns an
operation into the JSON object sent to the server; every operation type
must have exactly one registered payload builder.

The field sets are dictated by the server protocol.  Some operations
resend the credentials alongside ``sid`` and some do not; keep them as
they are.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any, ClassVar

from .config import SyncConfig
from .models import Article, Feed, Headline, LoginContent
from .session import Session


@dataclass(frozen=True)
class Operation:
    """Base for all remote operations."""

    name: ClassVar[str]
    result_type: ClassVar[Any]
    requires_session: ClassVar[bool] = True


@dataclass(frozen=True)
class Login(Operation):
    name: ClassVar[str] = "login"
    result_type: ClassVar[Any] = LoginContent
    requires_session: ClassVar[bool] = False


@dataclass(frozen=True)
class GetFeeds(Operation):
    name: ClassVar[str] = "getFeeds"
    result_type: ClassVar[Any] = list[Feed]


@dataclass(frozen=True)
class GetHeadlines(Operation):
    name: ClassVar[str] = "getHeadlines"
    result_type: ClassVar[Any] = list[Headline]

    feed_id: int
    since_id: int = 0


@dataclass(frozen=True)
class GetArticle(Operation):
    """Fetch the bodies for several articles in one call."""

    name: ClassVar[str] = "getArticle"
    result_type: ClassVar[Any] = list[Article]

    article_ids: tuple[int, ...]

    @classmethod
    def for_ids(cls, ids: Iterable[int]) -> GetArticle:
        return cls(article_ids=tuple(ids))

    @property
    def id_list(self) -> str:
        """Comma-joined ids, in the order they were given."""
        return ",".join(str(i) for i in self.article_ids)


PayloadBuilder = Callable[[Any, SyncConfig, Session], dict[str, Any]]

_BUILDERS: dict[type[Operation], PayloadBuilder] = {}


def _payload_for(op_type: type[Operation]) -> Callable[[PayloadBuilder], PayloadBuilder]:
    def register(builder: PayloadBuilder) -> PayloadBuilder:
        _BUILDERS[op_type] = builder
        return builder

    return register


@_payload_for(Login)
def _login(op: Login, config: SyncConfig, session: Session) -> dict[str, Any]:
    return {
        "op": op.name,
        "user": config.user,
        "password": config.password.get_secret_value(),
    }


@_payload_for(GetFeeds)
def _get_feeds(op: GetFeeds, config: SyncConfig, session: Session) -> dict[str, Any]:
    return {
        "op": op.name,
        "sid": session.require_token(),
    }


@_payload_for(GetHeadlines)
def _get_headlines(op: GetHeadlines, config: SyncConfig, session: Session) -> dict[str, Any]:
    return {
        "op": op.name,
        "user": config.user,
        "password": config.password.get_secret_value(),
        "sid": session.require_token(),
        "feed_id": op.feed_id,
        "since_id": op.since_id,
    }


@_payload_for(GetArticle)
def _get_article(op: GetArticle, config: SyncConfig, session: Session) -> dict[str, Any]:
    return {
        "op": op.name,
        "user": config.user,
        "sid": session.require_token(),
        "article_id": op.id_list,
        "password": config.password.get_secret_value(),
    }


def registered_operations() -> list[type[Operation]]:
    """Operation types that have a payload builder."""
    return list(_BUILDERS)


def build_payload(operation: Operation, config: SyncConfig, session: Session) -> dict[str, Any]:
    """Serialize *operation* into the request object for the wire.

    Raises :class:`TypeError` for an operation type with no registered
    builder, and :class:`AssertionError` when an operation that needs a
    session is built without one.
    """
    try:
        builder = _BUILDERS[type(operation)]
    except KeyError:
        raise TypeError(f"no payload mapping for {type(operation).__name__}") from None
    return builder(operation, config, session)
