"""Sync unread TT-RSS items into local Maildirs.

Public API re-exported here for convenience::

    from ttrss_sync import SessionClient, SyncPipeline, load_config
"""

from .client import SessionClient
from .config import HttpConfig, LoggingConfig, PollConfig, RetryConfig, SyncConfig, load_config
from .envelope import RemoteEnvelope, decode_response
from .errors import (
    ConfigLoadError,
    ContentDecodeError,
    MailWriteError,
    ProtocolStatusError,
    SyncAbortedError,
    SyncError,
    TransportError,
)
from .logging import setup_logging
from .maildir import MaildirWriter, WriteResult
from .models import (
    Article,
    CorrelatedUnit,
    Feed,
    FeedResult,
    FeedStatus,
    Headline,
    LoginContent,
    SyncReport,
)
from .operations import GetArticle, GetFeeds, GetHeadlines, Login, Operation, build_payload
from .pipeline import Correlation, MailWriter, SyncPipeline, correlate
from .retry import with_relogin
from .session import Session
from .shutdown import install_signal_handlers

__all__ = [
    "Article",
    "ConfigLoadError",
    "ContentDecodeError",
    "Correlation",
    "CorrelatedUnit",
    "Feed",
    "FeedResult",
    "FeedStatus",
    "GetArticle",
    "GetFeeds",
    "GetHeadlines",
    "Headline",
    "HttpConfig",
    "Login",
    "LoggingConfig",
    "LoginContent",
    "MailWriteError",
    "MailWriter",
    "MaildirWriter",
    "Operation",
    "PollConfig",
    "ProtocolStatusError",
    "RemoteEnvelope",
    "RetryConfig",
    "Session",
    "SessionClient",
    "SyncAbortedError",
    "SyncConfig",
    "SyncError",
    "SyncPipeline",
    "SyncReport",
    "TransportError",
    "WriteResult",
    "build_payload",
    "correlate",
    "decode_response",
    "install_signal_handlers",
    "load_config",
    "setup_logging",
    "with_relogin",
]
