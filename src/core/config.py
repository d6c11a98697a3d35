"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_STORE_TAG = "Urban Threads"


@dataclass(frozen=True)
class ExtractorConfig:
    """Settings for the order field extractor."""

    store_tag: str = DEFAULT_STORE_TAG


@dataclass(frozen=True)
class MailboxConfig:
    """Connection settings consumed by the IMAP adapter."""

    host: str
    port: int
    user: str
    password: str
    tls: bool = True
    folder: str = "INBOX"
    auth_timeout_seconds: float = 3.0


@dataclass(frozen=True)
class PollConfig:
    """Scheduler settings for the polling loop."""

    interval_seconds: float = 5.0
