"""IMAP mailbox adapter.

Implements the core MailboxPort with imaplib. Every call uses UIDs so that
fetch and store target the same messages even if the mailbox changes during
a cycle. Messages are fetched with BODY.PEEK[] which leaves \\Seen unset;
the poll cycle flags them explicitly once their orders are persisted.
"""

from __future__ import annotations

import imaplib
import logging
from typing import Callable, Iterable, List, Optional

from core.config import MailboxConfig
from core.errors import MailboxError

LOGGER = logging.getLogger(__name__)

ConnectionFactory = Callable[[MailboxConfig], imaplib.IMAP4]


def open_connection(config: MailboxConfig) -> imaplib.IMAP4:
    """Open a plain or TLS IMAP connection with a socket timeout."""

    if config.tls:
        return imaplib.IMAP4_SSL(config.host, config.port, timeout=config.auth_timeout_seconds)
    return imaplib.IMAP4(config.host, config.port, timeout=config.auth_timeout_seconds)


class ImapMailbox:
    """Thin imaplib wrapper that satisfies the MailboxPort contract."""

    def __init__(self, config: MailboxConfig, connection_factory: ConnectionFactory = open_connection) -> None:
        self._config = config
        self._connection_factory = connection_factory
        self._conn: Optional[imaplib.IMAP4] = None
        self._selected = False

    def _require_connection(self) -> imaplib.IMAP4:
        if self._conn is None:
            raise MailboxError("Mailbox is not connected")
        return self._conn

    def connect(self) -> None:
        """Open the connection and log in."""

        try:
            self._conn = self._connection_factory(self._config)
            self._conn.login(self._config.user, self._config.password)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"Failed to connect to {self._config.host}:{self._config.port}: {exc}") from exc

    def select_inbox(self) -> None:
        conn = self._require_connection()
        try:
            typ, _ = conn.select(self._config.folder)
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"Cannot select folder {self._config.folder}: {exc}") from exc
        if typ != "OK":
            raise MailboxError(f"Cannot select folder: {self._config.folder}")
        self._selected = True

    def search_unseen(self) -> List[str]:
        """Return UIDs of all messages without the \\Seen flag."""

        conn = self._require_connection()
        try:
            typ, data = conn.uid("search", None, "UNSEEN")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"UNSEEN search failed: {exc}") from exc
        if typ != "OK":
            raise MailboxError(f"UNSEEN search failed: {typ}")
        if not data or not data[0]:
            return []
        return [uid.decode("ascii") for uid in data[0].split()]

    def fetch(self, uid: str) -> bytes:
        """Return the raw RFC 822 bytes of one message without marking it seen."""

        conn = self._require_connection()
        try:
            typ, data = conn.uid("fetch", uid, "(BODY.PEEK[])")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"Fetch failed for uid={uid}: {exc}") from exc
        if typ != "OK":
            raise MailboxError(f"Fetch failed for uid={uid}: {typ}")
        # imaplib returns [(b'1 (UID 1 BODY[] {123}', b'<raw>'), b')'].
        for item in data or []:
            if isinstance(item, tuple) and len(item) >= 2 and isinstance(item[1], bytes):
                return item[1]
        raise MailboxError(f"Fetch returned no body for uid={uid}")

    def mark_seen(self, uids: Iterable[str]) -> None:
        uid_list = list(uids)
        if not uid_list:
            return
        conn = self._require_connection()
        try:
            typ, _ = conn.uid("store", ",".join(uid_list), "+FLAGS", "(\\Seen)")
        except (imaplib.IMAP4.error, OSError) as exc:
            raise MailboxError(f"Failed to flag messages as seen: {exc}") from exc
        if typ != "OK":
            raise MailboxError(f"Failed to flag messages as seen: {typ}")

    def close(self) -> None:
        """Close the folder and log out. Safe to call when not connected."""

        conn, self._conn = self._conn, None
        selected, self._selected = self._selected, False
        if conn is None:
            return
        try:
            if selected:
                conn.close()
            conn.logout()
        except (imaplib.IMAP4.error, OSError) as exc:
            LOGGER.warning("Error while closing the mailbox connection: %s", exc)
