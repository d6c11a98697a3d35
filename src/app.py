"""Application entry point for the orderwatch poller."""

from __future__ import annotations

import argparse
import json
import logging
import os
import re
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.json_store import JsonOrderStore
from adapters.mime_decoder import decode_message
from client import build_mailbox
from core.config import ExtractorConfig, PollConfig
from core.extractor import OrderExtractor
from core.poll_cycle import PollCycle
from core.scheduler import FixedDelayPolicy, run_forever

NAME = "ORDERWATCH"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    """Masks credential values (for example the IMAP password) in every record."""

    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first so a secret that contains another is masked whole.
        ordered = sorted({secret for secret in secrets if secret}, key=len, reverse=True)
        self._pattern = re.compile("|".join(re.escape(secret) for secret in ordered)) if ordered else None

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if self._pattern is None:
            return message
        return self._pattern.sub("***", message)


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", True):
        return []
    names = redact_cfg.get("patterns", ["IMAP_PASSWORD"])
    return [value for value in (os.getenv(name) for name in names) if value]


def _build_file_handler(file_cfg: dict, formatter: logging.Formatter, level: int) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/orderwatch.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)

    handler = RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _configure_logging() -> None:
    """Route orderwatch logs to stdout and, optionally, a rotating file."""

    config = settings.LOGGING or {}
    if not config.get("enabled", True):
        return

    # Credentials live in .env; they must be in the environment before the
    # redactor reads them.
    load_dotenv()
    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = _RedactingFormatter(
        _collect_redaction_values(config),
        fmt="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_build_file_handler(file_cfg, formatter, level))

    if handlers:
        logging.basicConfig(level=level, handlers=handlers)


def _build_extractor() -> OrderExtractor:
    return OrderExtractor(ExtractorConfig(store_tag=settings.STORE_TAG))


def _build_cycle() -> PollCycle:
    return PollCycle(
        mailbox=build_mailbox(),
        store=JsonOrderStore(settings.STORE_PATH),
        extractor=_build_extractor(),
        decode=decode_message,
    )


def _run() -> None:
    logger = logging.getLogger(__name__)

    poll_config = PollConfig(interval_seconds=settings.POLL_INTERVAL_SECONDS)
    cycle = _build_cycle()
    logger.info(
        "Starting orderwatch: polling every %ss, saving orders to %s",
        poll_config.interval_seconds,
        settings.STORE_PATH,
    )
    try:
        run_forever(cycle.run, FixedDelayPolicy(poll_config.interval_seconds))
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping orderwatch")


def _once() -> int:
    logging.getLogger(__name__).info("Running a single poll cycle, saving orders to %s", settings.STORE_PATH)
    result = _build_cycle().run()
    return 0 if result.ok else 1


def _parse(path: str) -> int:
    """Run the extractor over a saved .eml file and print the result."""

    with open(path, "rb") as handle:
        message = decode_message(os.path.basename(path), handle.read())

    record = _build_extractor().extract(message.subject, message.sender, message.body)
    if record is None:
        print(f'Not an order notification: "{message.subject}"')
        return 1
    print(json.dumps(record.to_dict(), indent=4, ensure_ascii=False))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="orderwatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Poll the mailbox forever")
    subparsers.add_parser("once", help="Run a single poll cycle and exit")
    parse_parser = subparsers.add_parser(
        "parse",
        help="Extract order fields from a saved .eml file without touching the mailbox.",
    )
    parse_parser.add_argument("path", help="Path to an .eml file")

    args = parser.parse_args(argv)
    if args.command in (None, "run"):
        _print_banner()
    _configure_logging()

    if args.command == "once":
        return _once()
    if args.command == "parse":
        return _parse(args.path)
    _run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
