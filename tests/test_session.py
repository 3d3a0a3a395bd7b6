"""Tests for ttrss_sync.session."""

from __future__ import annotations

import dataclasses

import pytest

from ttrss_sync.session import Session


class TestSession:
    def test_starts_unauthenticated(self):
        session = Session()
        assert session.authenticated is False
        assert session.token is None

    def test_authenticated_with_token(self):
        session = Session(token="abc123")
        assert session.authenticated is True
        assert session.require_token() == "abc123"

    def test_require_token_without_login(self):
        with pytest.raises(AssertionError, match="Not logged in"):
            Session().require_token()

    def test_immutable(self):
        session = Session()
        with pytest.raises(dataclasses.FrozenInstanceError):
            session.token = "abc"  # type: ignore[misc]

    def test_repr_hides_token(self):
        assert "abc123" not in repr(Session(token="abc123"))
        assert repr(Session(token="abc123")) == "Session(authenticated)"
