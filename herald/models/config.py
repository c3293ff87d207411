"""Configuration models.

Provides Pydantic models for every configurable part of the herald:
- WatcherConfig: registry address, lookback window, poll interval, checkpoint
- FilterConfig: which packages are worth announcing
- BlocklistConfig: remote list of package names never to announce
- PublisherConfig: outbound message template and length limit
- StoreConfig: dedup store location
- FeedConfig: social feed provider and credentials
- LoggingConfig: log level and output format

Usage:
    from herald.models.config import HeraldConfig

    config = HeraldConfig(**yaml.safe_load(raw))
"""

import re
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from herald.utils.duration import parse_duration


def _empty_placeholder(v: Optional[str]) -> Optional[str]:
    """Treat unreplaced ${VAR} placeholders as unset."""
    if not isinstance(v, str):
        return v
    if re.fullmatch(r"\$\{\w+\}", v.strip()):
        return None
    return v


class WatcherConfig(BaseModel):
    """Registry polling configuration"""

    registry: str = Field(
        default="http://registry.npmjs.org",
        description="Registry base address",
    )
    pathname: str = Field(
        default="/-/all/since/",
        description="Change-feed query path",
    )
    since: str = Field(
        default="30m",
        description="How far back to start when no checkpoint exists",
    )
    interval: str = Field(default="15m", description="Time between polls")
    checkpoint_file: str = Field(
        default=".lastnpmsync",
        description="Where the last processed cursor is persisted",
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=600.0,
        description="HTTP timeout for registry requests",
    )
    fetch_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        description="Attempts per poll before the tick is skipped",
    )
    retry_backoff_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Base delay between fetch attempts",
    )

    @field_validator("since", "interval")
    @classmethod
    def validate_duration(cls, v: str) -> str:
        parse_duration(v)
        return v

    @field_validator("interval")
    @classmethod
    def validate_interval_positive(cls, v: str) -> str:
        if parse_duration(v) < 1000:
            raise ValueError("Poll interval must be at least 1s")
        return v

    @field_validator("registry")
    @classmethod
    def validate_registry(cls, v: str) -> str:
        if not re.match(r"^https?://", v, flags=re.IGNORECASE):
            raise ValueError("Registry must be an http(s) URL")
        return v.rstrip("/")

    @property
    def since_ms(self) -> int:
        return parse_duration(self.since)

    @property
    def interval_ms(self) -> int:
        return parse_duration(self.interval)

    @property
    def query_url(self) -> str:
        return self.registry + self.pathname


class FilterConfig(BaseModel):
    """Package filter configuration

    A package passes when its name matches `name_pattern` OR it carries one
    of `keywords`. With neither set, every package passes.
    """

    name_pattern: Optional[str] = Field(
        default=None, description="Case-insensitive regex matched against the name"
    )
    keywords: List[str] = Field(default_factory=list)

    @field_validator("name_pattern")
    @classmethod
    def validate_pattern(cls, v: Optional[str]) -> Optional[str]:
        if v is None or v == "":
            return None
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid name_pattern: {e}")
        return v

    @property
    def match_all(self) -> bool:
        return self.name_pattern is None and not self.keywords


class BlocklistConfig(BaseModel):
    """Remote blocklist of package names (JSON object keyed by name)"""

    url: Optional[str] = Field(default=None)
    timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)

    @field_validator("url", mode="before")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        v = _empty_placeholder(v)
        return v or None


class PublisherConfig(BaseModel):
    """Outbound message formatting"""

    template: str = Field(
        default="${name} (${version}): ${url} ${description}",
        min_length=1,
        description="string.Template rendered against the package",
    )
    truncation_text: str = Field(default="...", max_length=10)
    max_length: int = Field(default=140, ge=20, le=3000)


class StoreConfig(BaseModel):
    """Dedup store location"""

    path: str = Field(default=".herald/dedup")


class FeedProvider(str, Enum):
    BLUESKY = "bluesky"
    DRY_RUN = "dry_run"


class FeedConfig(BaseModel):
    """Social feed configuration"""

    provider: FeedProvider = FeedProvider.DRY_RUN
    pds: str = Field(default="https://bsky.social")
    identifier: Optional[str] = Field(default=None)
    app_password: Optional[str] = Field(default=None)
    timeout_seconds: float = Field(default=15.0, ge=1.0, le=120.0)

    @field_validator("identifier", "app_password", mode="before")
    @classmethod
    def validate_credentials(cls, v: Optional[str]) -> Optional[str]:
        v = _empty_placeholder(v)
        return v or None

    @model_validator(mode="after")
    def check_credentials(self) -> "FeedConfig":
        if self.provider == FeedProvider.BLUESKY and not (
            self.identifier and self.app_password
        ):
            raise ValueError("Bluesky feed requires identifier and app_password")
        return self


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    json_output: bool = True

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return v


class HeraldConfig(BaseModel):
    """Root configuration"""

    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    blocklist: BlocklistConfig = Field(default_factory=BlocklistConfig)
    publisher: PublisherConfig = Field(default_factory=PublisherConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
