"""IMAP mailbox factory for orderwatch.

The mailbox connects and disconnects once per poll cycle; this module only
assembles its configuration.
"""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

import settings
from adapters.imap_mailbox import ImapMailbox
from core.config import MailboxConfig


def build_mailbox_config() -> MailboxConfig:
    """Combine config.json mailbox settings with credentials from the environment.

    We read IMAP_USER/IMAP_PASSWORD via python-dotenv to keep secrets out of
    the repo.
    """

    load_dotenv()

    user = os.getenv("IMAP_USER")
    password = os.getenv("IMAP_PASSWORD")

    # Fail fast on missing credentials instead of retrying a doomed login forever.
    if not user or not password:
        raise RuntimeError("Missing IMAP_USER or IMAP_PASSWORD in environment")

    return MailboxConfig(
        host=settings.IMAP_HOST,
        port=settings.IMAP_PORT,
        user=user,
        password=password,
        tls=settings.IMAP_TLS,
        folder=settings.IMAP_FOLDER,
        auth_timeout_seconds=settings.IMAP_AUTH_TIMEOUT_SECONDS,
    )


def build_mailbox() -> ImapMailbox:
    config = build_mailbox_config()
    logging.getLogger(__name__).info("Initializing IMAP mailbox %s@%s:%s", config.user, config.host, config.port)
    return ImapMailbox(config)
