"""Shared test fixtures for the ttrss_sync test suite."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

from ttrss_sync.config import RetryConfig, SyncConfig
from ttrss_sync.models import Article, Feed, Headline

API_URL = "http://ttrss.test/api/"


@pytest.fixture
def maildir_root(tmp_path: Path) -> Path:
    return tmp_path / "Mail"


@pytest.fixture
def sync_config(maildir_root: Path) -> SyncConfig:
    return SyncConfig(
        api_url=API_URL,
        user="alice",
        password="x",
        maildir=maildir_root,
        relogin=RetryConfig(max_attempts=3, initial_wait_seconds=0, max_wait_seconds=0),
    )


# ------------------------------------------------------------------
# Wire payload builders
# ------------------------------------------------------------------


@pytest.fixture
def feed_factory():
    """Factory for feed dicts as the server sends them."""

    def _make(**overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = dict(
            title="Example",
            feed_url="https://example.com/feed.xml",
            id=1,
            last_updated=1700000000,
            cat_id=0,
            order_id=0,
        )
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def headline_factory():
    """Factory for headline dicts as the server sends them."""

    def _make(id: int, **overrides: Any) -> dict[str, Any]:
        data: dict[str, Any] = dict(
            id=id,
            unread=True,
            marked=False,
            title=f"Headline {id}",
            feed_id=1,
            author="Bob",
            link=f"https://example.com/{id}",
            comments_link="",
        )
        data.update(overrides)
        return data

    return _make


@pytest.fixture
def make_feed(feed_factory):
    def _make(**overrides: Any) -> Feed:
        return Feed(**feed_factory(**overrides))

    return _make


@pytest.fixture
def make_headline(headline_factory):
    def _make(id: int, **overrides: Any) -> Headline:
        return Headline(**headline_factory(id, **overrides))

    return _make


@pytest.fixture
def make_article():
    def _make(id: int, content: str | None = None) -> Article:
        return Article(id=id, content=content if content is not None else f"<p>{id}</p>")

    return _make


def envelope(content: Any, *, status: int = 0, seq: int = 0) -> dict[str, Any]:
    return {"seq": seq, "status": status, "content": content}


# ------------------------------------------------------------------
# Fake TT-RSS server
# ------------------------------------------------------------------


class FakeTTRSS:
    """In-memory TT-RSS API behind a respx route.

    Every request body is recorded in ``requests``.  Tests program the
    server through ``feeds``, ``headlines`` and ``articles``, or replace
    a whole response with ``overrides[op]`` (a dict or a list of dicts
    consumed one per call).
    """

    def __init__(self) -> None:
        self.session_id = "abc123"
        self.logins = 0
        self.feeds: list[dict[str, Any]] = []
        self.headlines: dict[int, list[dict[str, Any]]] = {}
        self.articles: dict[int, dict[str, Any]] = {}
        self.overrides: dict[str, Any] = {}
        self.requests: list[dict[str, Any]] = []

    def ops(self) -> list[str]:
        return [r["op"] for r in self.requests]

    def requests_for(self, op: str) -> list[dict[str, Any]]:
        return [r for r in self.requests if r["op"] == op]

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        op = body["op"]

        override = self.overrides.get(op)
        if isinstance(override, list):
            if override:
                return httpx.Response(200, json=override.pop(0))
        elif override is not None:
            return httpx.Response(200, json=override)

        if op == "login":
            self.logins += 1
            return httpx.Response(200, json=envelope({"session_id": self.session_id}))
        if body.get("sid") != self.session_id:
            return httpx.Response(200, json=envelope({"error": "NOT_LOGGED_IN"}, status=1))
        if op == "getFeeds":
            return httpx.Response(200, json=envelope(self.feeds))
        if op == "getHeadlines":
            return httpx.Response(200, json=envelope(self.headlines.get(body["feed_id"], [])))
        if op == "getArticle":
            ids = [int(i) for i in body["article_id"].split(",")]
            found = [self.articles[i] for i in ids if i in self.articles]
            return httpx.Response(200, json=envelope(found))
        return httpx.Response(200, json=envelope({"error": "UNKNOWN_METHOD"}, status=1))


@pytest.fixture
def server() -> Iterator[FakeTTRSS]:
    fake = FakeTTRSS()
    with respx.mock(assert_all_called=False) as router:
        router.post(API_URL).mock(side_effect=fake.handle)
        yield fake


@pytest.fixture
def make_envelope():
    return envelope
