"""Order field extraction from notification emails (core domain).

Notification bodies are semi-structured: fields sit next to fixed labels but
their content is free-form. Extraction therefore runs as a sequence of small,
independent stages. A stage that does not match leaves its fields empty and
the next stage still runs; only the subject gate can reject a message.

Stages, in order:
1) Subject gate (``match_subject``)
2) Customer name, order id, timestamp (``extract_primary_fields``)
3) Shipping address block (``extract_address_block``)
4) Phone line peeled off the end of the address block (``split_phone``)
5) Customer email (``extract_email``)
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple

from core.config import ExtractorConfig
from core.models import OrderRecord

LOGGER = logging.getLogger(__name__)

# "<name> <surname> placed order #<digits> on <date> at H:MM am|pm"
ORDER_PATTERN = re.compile(
    r"(\w+\s+\w+)\s+placed\s+order\s+#(\d+)\s+on\s+([\w\s,]+ at \d{1,2}:\d{2}\s+[ap]m)",
    re.IGNORECASE,
)

# Everything between the "Shipping address" line and the "Customer Email" label.
ADDRESS_BLOCK_PATTERN = re.compile(
    r"Shipping address\s*\n\s*(.*?)(?=Customer Email)",
    re.IGNORECASE | re.DOTALL,
)

# A whole line made of an optional "+" and 7 to 40 digits/spaces/hyphens/parens,
# starting with a non-space character and holding at least one digit.
PHONE_LINE_PATTERN = re.compile(
    r"^[ \t]*(\+?(?=[^\n]*\d)[\d()\-][\d ()\-]{6,39})[ \t]*$",
    re.MULTILINE,
)

EMAIL_PATTERN = re.compile(r"Customer Email\s*\n\s*(\S+@\S+\.\S+)", re.IGNORECASE)


def build_subject_pattern(store_tag: str) -> re.Pattern:
    """Compile the notification subject gate for a given store tag."""

    return re.compile(rf"\[{re.escape(store_tag)}\] Order #\d+ placed by .+")


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def match_subject(subject: str, pattern: re.Pattern) -> bool:
    """Return True when the trimmed subject is an order notification."""

    return pattern.search(subject.strip()) is not None


def extract_primary_fields(body: str) -> Tuple[Optional[str], Optional[str], Optional[str]]:
    """Return (customer_name, order_id, timestamp), all None when absent."""

    match = ORDER_PATTERN.search(body)
    if not match:
        return None, None, None
    return match.group(1), match.group(2), match.group(3)


def extract_address_block(body: str) -> Optional[str]:
    """Return the raw text of the shipping address block, if present."""

    match = ADDRESS_BLOCK_PATTERN.search(body)
    if not match:
        return None
    return match.group(1)


def normalize_address(block: str) -> str:
    """Strip every line and drop blank ones.

    Applying it to an already normalized block returns the block unchanged.
    """

    lines = (line.strip() for line in block.split("\n"))
    return "\n".join(line for line in lines if line)


def split_phone(block: str) -> Tuple[Optional[str], str]:
    """Separate the phone line from an address block.

    Phone numbers share their characters with postal codes and unit numbers,
    so only a line that consists of nothing else counts, and the last such
    line in the block wins. Returns (phone_number, block_without_phone_line).
    """

    matches = list(PHONE_LINE_PATTERN.finditer(block))
    if not matches:
        return None, block
    last = matches[-1]
    remaining = block[: last.start()] + block[last.end():]
    return last.group(1).strip(), remaining


def extract_email(body: str) -> Optional[str]:
    match = EMAIL_PATTERN.search(body)
    if not match:
        return None
    return match.group(1)


class OrderExtractor:
    """Maps (subject, sender, body) to an OrderRecord, or None when the
    message is not an order notification."""

    def __init__(self, config: Optional[ExtractorConfig] = None) -> None:
        self._config = config or ExtractorConfig()
        self._subject_pattern = build_subject_pattern(self._config.store_tag)

    def is_order_notification(self, subject: str) -> bool:
        return match_subject(subject, self._subject_pattern)

    def extract(self, subject: str, sender: str, body: str) -> Optional[OrderRecord]:
        """Run every extraction stage over one message.

        Returning None is the expected outcome for unrelated mail and is not
        an error; no stage raises on missing data.
        """

        if not self.is_order_notification(subject):
            LOGGER.info('Skipping email with subject: "%s"', subject)
            return None

        text = normalize_newlines(body or "")
        customer_name, order_id, timestamp = extract_primary_fields(text)

        customer_address = None
        phone_number = None
        block = extract_address_block(text)
        if block is not None:
            phone_number, block = split_phone(block)
            customer_address = normalize_address(block) or None

        record = OrderRecord(
            customer_name=customer_name,
            order_id=order_id,
            timestamp=timestamp,
            customer_address=customer_address,
            customer_email=extract_email(text),
            phone_number=phone_number,
        )
        LOGGER.info('Successfully processed email with subject: "%s" from %s', subject, sender)
        return record
