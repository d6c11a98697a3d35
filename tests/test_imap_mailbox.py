from __future__ import annotations

import imaplib
import logging
from typing import List, Optional, Tuple

import pytest

from adapters.imap_mailbox import ImapMailbox
from core.config import MailboxConfig
from core.errors import MailboxError

CONFIG = MailboxConfig(host="imap.example.com", port=993, user="orders@example.com", password="secret")


class FakeConnection:
    def __init__(
        self,
        search_data: Optional[list] = None,
        fetch_data: Optional[list] = None,
        select_status: str = "OK",
        logout_error: bool = False,
    ) -> None:
        self.calls: List[Tuple] = []
        self.search_data = search_data if search_data is not None else [b""]
        self.fetch_data = fetch_data or []
        self.select_status = select_status
        self.logout_error = logout_error

    def login(self, user: str, password: str):
        self.calls.append(("login", user, password))
        return "OK", [b"Logged in"]

    def select(self, folder: str):
        self.calls.append(("select", folder))
        return self.select_status, [b"3"]

    def uid(self, command: str, *args):
        self.calls.append(("uid", command) + args)
        if command == "search":
            return "OK", self.search_data
        if command == "fetch":
            return "OK", self.fetch_data
        return "OK", [b""]

    def close(self):
        self.calls.append(("close",))
        return "OK", [b""]

    def logout(self):
        self.calls.append(("logout",))
        if self.logout_error:
            raise imaplib.IMAP4.abort("socket error: EOF")
        return "BYE", [b""]


def _mailbox(conn: FakeConnection) -> ImapMailbox:
    mailbox = ImapMailbox(CONFIG, connection_factory=lambda config: conn)
    mailbox.connect()
    return mailbox


def test_connect_logs_in_with_configured_credentials() -> None:
    conn = FakeConnection()
    _mailbox(conn)

    assert conn.calls == [("login", "orders@example.com", "secret")]


def test_connect_failure_becomes_mailbox_error() -> None:
    def refuse(config: MailboxConfig) -> imaplib.IMAP4:
        raise ConnectionRefusedError("refused")

    mailbox = ImapMailbox(CONFIG, connection_factory=refuse)

    with pytest.raises(MailboxError):
        mailbox.connect()


def test_select_failure_raises() -> None:
    mailbox = _mailbox(FakeConnection(select_status="NO"))

    with pytest.raises(MailboxError):
        mailbox.select_inbox()


def test_search_unseen_returns_uids() -> None:
    conn = FakeConnection(search_data=[b"4 8 15"])
    mailbox = _mailbox(conn)

    assert mailbox.search_unseen() == ["4", "8", "15"]
    assert ("uid", "search", None, "UNSEEN") in conn.calls


def test_search_unseen_handles_empty_result() -> None:
    assert _mailbox(FakeConnection(search_data=[b""])).search_unseen() == []


def test_fetch_peeks_and_returns_raw_bytes() -> None:
    raw = b"Subject: hi\r\n\r\nbody"
    conn = FakeConnection(fetch_data=[(b"1 (UID 4 BODY[] {22}", raw), b")"])
    mailbox = _mailbox(conn)

    assert mailbox.fetch("4") == raw
    assert ("uid", "fetch", "4", "(BODY.PEEK[])") in conn.calls


def test_fetch_without_body_raises() -> None:
    mailbox = _mailbox(FakeConnection(fetch_data=[None]))

    with pytest.raises(MailboxError):
        mailbox.fetch("4")


def test_mark_seen_stores_flag_for_all_uids() -> None:
    conn = FakeConnection()
    mailbox = _mailbox(conn)

    mailbox.mark_seen(["4", "8"])
    mailbox.mark_seen([])

    assert [call for call in conn.calls if call[:2] == ("uid", "store")] == [
        ("uid", "store", "4,8", "+FLAGS", "(\\Seen)")
    ]


def test_close_releases_selected_connection() -> None:
    conn = FakeConnection()
    mailbox = _mailbox(conn)
    mailbox.select_inbox()

    mailbox.close()
    mailbox.close()

    assert conn.calls[-2:] == [("close",), ("logout",)]


def test_close_logs_logout_errors(caplog: pytest.LogCaptureFixture) -> None:
    mailbox = _mailbox(FakeConnection(logout_error=True))

    with caplog.at_level(logging.WARNING, logger="adapters.imap_mailbox"):
        mailbox.close()

    assert "Error while closing the mailbox connection" in caplog.text


def test_calls_before_connect_raise() -> None:
    with pytest.raises(MailboxError):
        ImapMailbox(CONFIG).search_unseen()
