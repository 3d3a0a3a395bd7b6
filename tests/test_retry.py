"""Tests for ttrss_sync.retry."""

from __future__ import annotations

import pytest

from ttrss_sync.config import RetryConfig
from ttrss_sync.errors import ProtocolStatusError, TransportError
from ttrss_sync.retry import is_session_expired, with_relogin


def _expired() -> ProtocolStatusError:
    return ProtocolStatusError(1, error_code="NOT_LOGGED_IN", operation="getFeeds")


@pytest.fixture
def config() -> RetryConfig:
    return RetryConfig(max_attempts=3, initial_wait_seconds=0, max_wait_seconds=0)


class TestIsSessionExpired:
    def test_not_logged_in(self):
        assert is_session_expired(_expired())

    def test_other_protocol_error(self):
        assert not is_session_expired(ProtocolStatusError(1, error_code="INCORRECT_USAGE"))

    def test_protocol_error_without_code(self):
        assert not is_session_expired(ProtocolStatusError(1))

    def test_other_exception(self):
        assert not is_session_expired(TransportError("boom"))


class TestWithRelogin:
    def test_succeeds_first_try(self, config):
        relogins = []

        @with_relogin(config, relogin=lambda: relogins.append(1))
        def fn():
            return "ok"

        assert fn() == "ok"
        assert relogins == []

    def test_relogs_in_then_succeeds(self, config):
        relogins = []
        call_count = 0

        @with_relogin(config, relogin=lambda: relogins.append(call_count))
        def fn():
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                raise _expired()
            return "recovered"

        assert fn() == "recovered"
        assert call_count == 2
        assert relogins == [1]

    def test_exhausts_attempts_and_reraises(self, config):
        relogins = []
        call_count = 0

        @with_relogin(config, relogin=lambda: relogins.append(1))
        def fn():
            nonlocal call_count
            call_count += 1
            raise _expired()

        with pytest.raises(ProtocolStatusError) as info:
            fn()
        assert info.value.session_expired
        assert call_count == 3
        assert len(relogins) == 2

    def test_other_errors_are_not_retried(self, config):
        relogins = []
        call_count = 0

        @with_relogin(config, relogin=lambda: relogins.append(1))
        def fn():
            nonlocal call_count
            call_count += 1
            raise TransportError("connection refused")

        with pytest.raises(TransportError):
            fn()
        assert call_count == 1
        assert relogins == []

    def test_single_attempt(self):
        config = RetryConfig(max_attempts=1, initial_wait_seconds=0, max_wait_seconds=0)
        relogins = []

        @with_relogin(config, relogin=lambda: relogins.append(1))
        def fn():
            raise _expired()

        with pytest.raises(ProtocolStatusError):
            fn()
        assert relogins == []

    def test_relogin_failure_propagates(self, config):
        def relogin():
            raise TransportError("server down")

        @with_relogin(config, relogin=relogin)
        def fn():
            raise _expired()

        with pytest.raises(TransportError, match="server down"):
            fn()
