"""
Document normalization: raw email bodies to one searchable string.

HTML is reduced to its visible text with Python's native html.parser,
entities are decoded and whitespace runs collapse to single spaces. The
result keeps a per-character map back into the pre-collapse source so fact
positions can be traced to the original body.
"""

import logging
import re
from html import unescape
from html.parser import HTMLParser

from .models import NormalizedText

logger = logging.getLogger(__name__)

# Zero-width characters and soft hyphens that senders put inside tokens
_INVISIBLE_CHARS = frozenset("\u200b\u200c\u200d\u2060\ufeff\u00ad")


# ============================================================================
# HTML TEXT EXTRACTION (using native Python html.parser)
# ============================================================================

class _TextExtractor(HTMLParser):
    """Extract visible text from HTML using Python's native html.parser."""

    SKIP_TAGS = frozenset({'script', 'style', 'head', 'title', 'noscript', 'svg'})

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.text_parts = []
        self.skip_depth = 0

    def handle_starttag(self, tag, attrs):
        if tag.lower() in self.SKIP_TAGS:
            self.skip_depth += 1

    def handle_endtag(self, tag):
        if tag.lower() in self.SKIP_TAGS and self.skip_depth > 0:
            self.skip_depth -= 1

    def handle_data(self, data):
        if self.skip_depth == 0:
            text = data.strip()
            if text:
                self.text_parts.append(text)

    def get_text(self):
        return ' '.join(self.text_parts)


def _regex_strip(html_text):
    text = re.sub(r'<(script|style)[^>]*>.*?</\1>', ' ', html_text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'<[^>]+>', ' ', text)
    return unescape(text)


def strip_html_tags(html_text):
    """Remove HTML tags and return only visible text content.

    Entities (&nbsp;, &amp;, &rarr;, &#8594; ...) come back decoded.
    """
    if not html_text:
        return ""

    try:
        parser = _TextExtractor()
        parser.feed(html_text)
        parser.close()
        result = parser.get_text()

        # If HTMLParser returns nothing for a sizeable document the markup is
        # too broken for it; fall back to a plain regex strip
        if not result.strip() and len(html_text) > 100:
            result = _regex_strip(html_text)

        return result
    except Exception as e:
        logger.debug(f"HTML parser failed, using regex strip: {e}")
        return _regex_strip(html_text)


# ============================================================================
# WHITESPACE COLLAPSE WITH OFFSET MAP
# ============================================================================

def collapse_whitespace(source):
    """Collapse whitespace runs to one space and drop invisible characters.

    Args:
        source: Text to normalize

    Returns:
        NormalizedText whose offsets point into source
    """
    chars = []
    offsets = []
    pending_space = None

    for index, char in enumerate(source):
        if char in _INVISIBLE_CHARS:
            continue
        if char.isspace():
            if chars and pending_space is None:
                pending_space = index
            continue
        if pending_space is not None:
            chars.append(' ')
            offsets.append(pending_space)
            pending_space = None
        chars.append(char)
        offsets.append(index)

    return NormalizedText(''.join(chars), offsets)


def normalize_email(raw_email):
    """Build the searchable text of one email.

    Plain-text parts come first, verbatim, followed by the visible text of
    the HTML parts. Never raises on malformed input.

    Args:
        raw_email: RawEmail

    Returns:
        NormalizedText
    """
    plain = raw_email.plain_body or ""
    html_text = strip_html_tags(raw_email.html_body or "")
    source = f"{plain}\n{html_text}" if plain and html_text else (plain or html_text)
    normalized = collapse_whitespace(source)
    logger.debug(f"Normalized {len(source)} chars to {len(normalized)}")
    return normalized
