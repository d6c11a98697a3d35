"""MIME-to-core message decoding adapter.

Turns a raw RFC 822 message into a core MailMessage (subject, sender and a
plain-text body). This keeps email package details out of the core.
"""

from __future__ import annotations

import html
import re
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser

from core.models import MailMessage

NO_SUBJECT = "No Subject"


def html_to_text(raw: str) -> str:
    """Convert HTML content into plain text, one block element per line."""

    with_breaks = re.sub(r"(?i)<\s*br\s*/?>", "\n", raw)
    with_breaks = re.sub(r"(?i)</(p|div|tr|li|h[1-6])>", "\n", with_breaks)
    with_breaks = re.sub(r"(?is)<(script|style)[^>]*>.*?</\1>", " ", with_breaks)
    text = re.sub(r"<[^>]+>", " ", with_breaks)
    text = html.unescape(text).replace("\u00a0", " ")
    lines = [" ".join(line.split()) for line in text.splitlines() if line.strip()]
    return "\n".join(lines)


def _decode_payload(part: EmailMessage) -> str:
    payload = part.get_payload(decode=True)
    if not payload:
        return ""
    charset = part.get_content_charset() or "utf-8"
    try:
        return payload.decode(charset, errors="replace")
    except LookupError:
        return payload.decode("utf-8", errors="replace")


def _part_text(part: EmailMessage) -> str:
    try:
        content = part.get_content()
    except (LookupError, UnicodeError):
        # Unknown or lying charset declarations: fall back to a lossy decode.
        content = _decode_payload(part)
    if not isinstance(content, str):
        return ""
    if part.get_content_subtype() == "html":
        return html_to_text(content)
    return content


def extract_text_body(message: EmailMessage) -> str:
    """Return the plain-text body, converting HTML when no text part exists."""

    if message.is_multipart():
        part = message.get_body(preferencelist=("plain", "html"))
        text = _part_text(part) if part is not None else ""
    elif message.get_content_maintype() == "text":
        text = _part_text(message)
    else:
        text = _decode_payload(message)
    return text.replace("\r\n", "\n").replace("\r", "\n")


def decode_message(uid: str, raw: bytes) -> MailMessage:
    """Parse raw message bytes into a MailMessage."""

    message = BytesParser(policy=policy.default).parsebytes(raw)
    subject = str(message["Subject"] or "").strip() or NO_SUBJECT
    sender = str(message["From"] or "")
    return MailMessage(
        uid=uid,
        subject=subject,
        sender=sender,
        body=extract_text_body(message),
    )
