"""Blocking HTTP client for the TT-RSS JSON API."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import httpx
import structlog

from .config import SyncConfig
from .envelope import decode_response
from .errors import TransportError
from .models import Article, Feed, Headline, LoginContent
from .operations import GetArticle, GetFeeds, GetHeadlines, Login, Operation, build_payload
from .session import Session

logger = structlog.get_logger()


class SessionClient:
    """Issues typed API operations on behalf of one account.

    The client never changes its own session.  :meth:`authenticate`
    returns a new :class:`Session` and :meth:`with_session` returns a new
    client bound to it, sharing the configuration and the HTTP connection
    pool.  Only the client that created the pool closes it.
    """

    def __init__(
        self,
        config: SyncConfig,
        *,
        http: httpx.Client | None = None,
        session: Session | None = None,
    ) -> None:
        self._config = config
        self._session = session or Session()
        self._owns_http = http is None
        self._http = http or httpx.Client(
            timeout=httpx.Timeout(config.http.timeout_seconds),
            verify=config.http.verify_tls,
            headers={"User-Agent": config.http.user_agent},
        )

    @property
    def config(self) -> SyncConfig:
        return self._config

    @property
    def session(self) -> Session:
        return self._session

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> SessionClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Session transitions
    # ------------------------------------------------------------------

    def authenticate(self) -> Session:
        """Log in and return the resulting authenticated session."""
        content: LoginContent = self.call(Login())
        logger.info("login_succeeded", user=self._config.user)
        return Session(token=content.session_id)

    def with_session(self, session: Session) -> SessionClient:
        return SessionClient(self._config, http=self._http, session=session)

    def login(self) -> SessionClient:
        """Shorthand for ``with_session(authenticate())``."""
        return self.with_session(self.authenticate())

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def call(self, operation: Operation) -> Any:
        """POST one operation and return its decoded content.

        Raises :class:`TransportError` when the HTTP exchange fails, and
        the envelope errors from :func:`decode_response` otherwise.  No
        retry is attempted here.
        """
        payload = build_payload(operation, self._config, self._session)
        logger.debug("rpc_request", operation=operation.name, fields=sorted(payload))

        try:
            response = self._http.post(self._config.api_url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(
                f"{operation.name} request failed: {exc}",
                operation=operation.name,
            ) from exc

        logger.debug(
            "rpc_response",
            operation=operation.name,
            status_code=response.status_code,
            size=len(response.content),
        )
        return decode_response(response.content, operation.result_type, operation=operation.name)

    def get_feeds(self) -> list[Feed]:
        return self.call(GetFeeds())

    def get_headlines(self, feed_id: int, since_id: int = 0) -> list[Headline]:
        return self.call(GetHeadlines(feed_id=feed_id, since_id=since_id))

    def get_articles(self, article_ids: Iterable[int]) -> list[Article]:
        return self.call(GetArticle.for_ids(article_ids))
