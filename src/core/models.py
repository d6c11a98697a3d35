"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to IMAP or MIME specific types.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, Optional


@dataclass(frozen=True)
class MailMessage:
    """Decoded message handed from the mailbox adapters to the core."""

    uid: str
    subject: str
    sender: str
    body: str


@dataclass(frozen=True)
class OrderRecord:
    """Order fields extracted from a single notification email.

    Every field is optional: a sub-pattern that does not match leaves its
    field as ``None`` rather than a partial value.
    """

    customer_name: Optional[str] = None
    order_id: Optional[str] = None
    timestamp: Optional[str] = None
    customer_address: Optional[str] = None
    customer_email: Optional[str] = None
    phone_number: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the persisted representation (key order = field order)."""

        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderRecord":
        """Build a record from persisted data, ignoring unknown keys."""

        known = {field.name for field in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})
