"""Sync configuration.

Settings are read from a TOML file (``sync.toml`` by default) and may be
supplied or completed through ``TTRSS_*`` environment variables, which
pydantic-settings resolves for every field the file leaves out.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import httpx
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigLoadError

DEFAULT_CONFIG_PATH = Path("sync.toml")


class HttpConfig(BaseSettings):
    """HTTP transport settings for the API client."""

    model_config = {"env_prefix": "TTRSS_HTTP_"}

    timeout_seconds: float = Field(default=30.0, description="Per-request timeout")
    verify_tls: bool = Field(default=True, description="Verify the server certificate")
    user_agent: str = Field(default="ttrss-sync", description="User-Agent header value")


class RetryConfig(BaseSettings):
    """Re-login policy driven by Tenacity.

    Applies only when the server reports an expired session
    (``NOT_LOGGED_IN``); other errors are never retried.
    """

    model_config = {"env_prefix": "TTRSS_RELOGIN_"}

    max_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts of a call whose session expired",
    )
    initial_wait_seconds: float = Field(default=1.0, description="Initial backoff wait")
    max_wait_seconds: float = Field(default=30.0, description="Maximum backoff wait")
    multiplier: float = Field(default=2.0, description="Exponential backoff multiplier")


class PollConfig(BaseSettings):
    """Poll loop settings (``poll`` mode only)."""

    model_config = {"env_prefix": "TTRSS_POLL_"}

    interval_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Seconds to wait between the end of one run and the next",
    )


class LoggingConfig(BaseSettings):
    model_config = {"env_prefix": "TTRSS_LOG_"}

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=False,
        description="Emit JSON lines instead of the console renderer",
    )


class SyncConfig(BaseSettings):
    """Root configuration for one account on one server.

    The TOML file uses the key ``pass`` for the password; in Python the
    field is ``password`` and its environment variable is ``TTRSS_PASS``.
    """

    model_config = {"env_prefix": "TTRSS_", "populate_by_name": True}

    api_url: str = Field(
        description="Full URL of the API endpoint, e.g. https://host/tt-rss/api/",
    )
    user: str = Field(description="Account login name")
    password: SecretStr = Field(
        validation_alias="TTRSS_PASS",
        description="Account password",
    )
    maildir: Path = Field(description="Root directory for the per-feed Maildirs")

    http: HttpConfig = Field(default_factory=HttpConfig)
    relogin: RetryConfig = Field(default_factory=RetryConfig)
    poll: PollConfig = Field(default_factory=PollConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("api_url")
    @classmethod
    def _check_api_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid URL: {exc}") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError("must be an absolute http or https URL")
        return value

    @field_validator("maildir")
    @classmethod
    def _expand_maildir(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def api_host(self) -> str:
        return httpx.URL(self.api_url).host or "localhost"


def load_config(path: Path | str = DEFAULT_CONFIG_PATH) -> SyncConfig:
    """Load :class:`SyncConfig` from a TOML file.

    Values in the file take precedence over environment variables.
    Raises :class:`ConfigLoadError` if the file is missing, is not valid
    TOML, or does not describe a valid configuration.
    """
    path = Path(path)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ConfigLoadError(f"cannot read {path}: {exc.strerror or exc}", path=path) from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigLoadError(f"malformed TOML in {path}: {exc}", path=path) from exc

    if "pass" in data:
        # Keyed by the field alias so the file value wins over TTRSS_PASS.
        data["TTRSS_PASS"] = data.pop("pass")

    try:
        return SyncConfig(**data)
    except ValidationError as exc:
        raise ConfigLoadError(
            f"invalid configuration in {path}: {exc.error_count()} error(s): "
            + "; ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
            ),
            path=path,
        ) from exc
