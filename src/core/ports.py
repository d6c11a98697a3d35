"""Ports (interfaces) used by the core poll cycle.

Ports define the minimal contracts for mailbox and storage adapters so that
the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Iterable, List, Protocol

from core.models import OrderRecord


class MailboxPort(Protocol):
    """Mailbox operations required by the poll cycle."""

    def connect(self) -> None:
        ...

    def select_inbox(self) -> None:
        ...

    def search_unseen(self) -> List[str]:
        ...

    def fetch(self, uid: str) -> bytes:
        ...

    def mark_seen(self, uids: Iterable[str]) -> None:
        ...

    def close(self) -> None:
        ...


class OrderStorePort(Protocol):
    """Storage operations required by the poll cycle."""

    def load(self) -> List[OrderRecord]:
        ...

    def append_new(self, new_records: Iterable[OrderRecord]) -> List[OrderRecord]:
        ...
