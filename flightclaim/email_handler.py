"""
Email handling: turn email.message objects into RawEmail input.

The engine itself never talks to a mail server; these helpers cover the
parsing side for callers (and the dev runner) that hold MIME messages.
"""

import email
import email.header
import logging
from email.utils import parsedate_to_datetime

from dateutil import parser as dateutil_parser

from .models import RawEmail

logger = logging.getLogger(__name__)


def decode_header_value(value):
    """Decode an email header value (handles encoded headers).

    Args:
        value: Raw header value

    Returns:
        Decoded string
    """
    if not value:
        return ""
    try:
        decoded_parts = email.header.decode_header(value)
        return ''.join(
            part.decode(charset or 'utf-8', errors='replace') if isinstance(part, bytes) else part
            for part, charset in decoded_parts
        )
    except (LookupError, ValueError, TypeError):
        return str(value)


def _decode_payload(part):
    """Decode an email part's payload with proper charset handling.

    Args:
        part: email.message.Message part

    Returns:
        Decoded string or empty string on failure
    """
    try:
        payload = part.get_payload(decode=True)
        if not payload:
            return ""

        charset_attempts = []
        charset = part.get_content_charset()
        if charset:
            charset_attempts.append(charset.lower())
        charset_attempts.extend(['utf-8', 'iso-8859-1', 'cp1252'])

        for cs in dict.fromkeys(charset_attempts):
            try:
                return payload.decode(cs)
            except (UnicodeDecodeError, LookupError):
                continue

        return payload.decode('utf-8', errors='replace')

    except Exception as e:
        # Broken base64 / quoted-printable costs this part only
        logger.debug(f"Could not decode {part.get_content_type()} part: {e}")
        return ""


def get_email_body(msg):
    """Collect the text of every body part, however deeply nested.

    Plain parts and HTML parts are concatenated separately, in document
    order. Attachments are skipped.

    Args:
        msg: email.message.Message object

    Returns:
        Tuple of (plain_text_body, html_body)
    """
    plain_parts = []
    html_parts = []

    for part in msg.walk():
        content_type = part.get_content_type()
        content_disposition = str(part.get("Content-Disposition", ""))

        if "attachment" in content_disposition.lower():
            continue

        # Skip containers - walk() visits their children
        if part.is_multipart():
            continue

        if content_type not in ("text/plain", "text/html"):
            continue

        text = _decode_payload(part)
        if not text:
            continue
        if content_type == "text/plain":
            plain_parts.append(text)
        else:
            html_parts.append(text)

    return "\n".join(plain_parts), "\n".join(html_parts)


def raw_email_from_message(msg):
    """Build a RawEmail from an email.message.Message."""
    plain_body, html_body = get_email_body(msg)
    return RawEmail(
        subject=decode_header_value(msg.get("Subject", "")),
        from_address=decode_header_value(msg.get("From", "")),
        date_header=str(msg.get("Date", "") or ""),
        html_body=html_body,
        plain_body=plain_body,
    )


def raw_email_from_bytes(data):
    """Parse raw RFC 822 bytes (an .eml file) into a RawEmail."""
    return raw_email_from_message(email.message_from_bytes(data))


def parse_email_date(date_str):
    """Parse an email Date: header.

    Tries strict RFC 2822 first, then a fuzzy dateutil parse for the
    malformed headers some senders produce.

    Returns:
        datetime or None if unparseable
    """
    if not date_str:
        return None
    try:
        return parsedate_to_datetime(date_str)
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return dateutil_parser.parse(date_str, fuzzy=True)
    except (ValueError, OverflowError, TypeError):
        logger.debug(f"Unparseable Date: header {date_str!r}")
        return None


def email_year(raw_email):
    """Year the email was sent, from its Date: header, or None."""
    sent = parse_email_date(raw_email.date_header)
    return sent.year if sent else None
