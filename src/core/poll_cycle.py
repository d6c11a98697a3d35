"""One mailbox poll cycle.

The cycle enforces a strict order:
1) Connect and select the inbox
2) Search for unseen messages
3) Fetch (without setting \\Seen), decode and extract each message
4) Persist matched orders in a single append
5) Flag every fetched message as \\Seen
6) Close the connection, on every exit path

Messages are acknowledged only after the orders are on disk, so a failed or
interrupted cycle leaves them unseen and the next cycle picks them up again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from core.extractor import OrderExtractor
from core.models import MailMessage, OrderRecord
from core.ports import MailboxPort, OrderStorePort

LOGGER = logging.getLogger(__name__)

Decoder = Callable[[str, bytes], MailMessage]


@dataclass(frozen=True)
class CycleResult:
    """Counters reported by a single poll cycle."""

    fetched: int = 0
    matched: int = 0
    saved: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class PollCycle:
    """Orchestrates fetch, extraction, persistence and acknowledgement."""

    def __init__(
        self,
        mailbox: MailboxPort,
        store: OrderStorePort,
        extractor: OrderExtractor,
        decode: Decoder,
    ) -> None:
        self._mailbox = mailbox
        self._store = store
        self._extractor = extractor
        self._decode = decode

    def _extract_one(self, uid: str, raw: bytes) -> Optional[OrderRecord]:
        try:
            message = self._decode(uid, raw)
            return self._extractor.extract(message.subject, message.sender, message.body)
        except Exception:
            # A message that fails here fails the same way every time; it is
            # acknowledged with the rest so it does not block later cycles.
            LOGGER.exception("Failed to process message uid=%s", uid)
            return None

    def run(self) -> CycleResult:
        """Run one cycle. Never raises; failures are reported in the result."""

        fetched = 0
        matched = 0
        saved = 0
        try:
            LOGGER.info("Connecting to mail server...")
            self._mailbox.connect()
            LOGGER.info("Successfully connected and logged in.")
            self._mailbox.select_inbox()
            LOGGER.info("Inbox selected.")

            uids = self._mailbox.search_unseen()
            LOGGER.info("Found %s new emails.", len(uids))
            if not uids:
                return CycleResult()

            orders: List[OrderRecord] = []
            for uid in uids:
                # Mailbox errors from fetch abort the cycle and leave every message unseen.
                raw = self._mailbox.fetch(uid)
                fetched += 1
                record = self._extract_one(uid, raw)
                if record is not None:
                    orders.append(record)
                    matched += 1

            if orders:
                self._store.append_new(orders)
                saved = len(orders)
                LOGGER.info("%s new orders have been saved", len(orders))

            self._mailbox.mark_seen(uids)
            LOGGER.info("Email check and process completed successfully.")
            return CycleResult(fetched=fetched, matched=matched, saved=saved)
        except Exception as exc:
            LOGGER.exception("Poll cycle failed")
            return CycleResult(fetched=fetched, matched=matched, saved=saved, error=str(exc) or type(exc).__name__)
        finally:
            self._mailbox.close()
