"""Error types raised by adapters and handled at the poll cycle boundary."""

from __future__ import annotations


class OrderWatchError(RuntimeError):
    """Base class for failures that end a poll cycle."""


class MailboxError(OrderWatchError):
    """Connecting to, searching or fetching from the mailbox failed."""


class StoreWriteError(OrderWatchError):
    """Persisting the order collection failed."""
