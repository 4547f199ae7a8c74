# feedcheck/parse.py

from dataclasses import dataclass, field
from datetime import datetime, timezone
from xml.sax import SAXParseException

import feedparser

NOT_A_FEED = "not_a_feed"
UNKNOWN_FORMAT = "unknown_format"
MALFORMED = "malformed"

TRUNCATION_SIGNALS = ("no element found", "unclosed token", "unclosed CDATA section")


class FeedDecodeError(Exception):
    def __init__(self, message: str, kind: str = MALFORMED):
        super().__init__(message)
        self.kind = kind


@dataclass(frozen=True)
class FeedItem:
    published: datetime | None = None


@dataclass(frozen=True)
class Feed:
    items: list[FeedItem] = field(default_factory=list)
    updated: datetime | None = None


def to_datetime(parsed) -> datetime | None:
    """
    Convert a feedparser time struct (always UTC) to an aware datetime.
    """
    if not parsed:
        return None
    try:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    except (TypeError, ValueError):
        return None


def _is_truncated(exc) -> bool:
    # expat's wording when input ends inside an element or a token
    if not isinstance(exc, SAXParseException):
        return False
    message = exc.getMessage()
    return any(signal in message for signal in TRUNCATION_SIGNALS)


def _looks_like_markup(raw: bytes) -> bool:
    return raw.lstrip(b"\xef\xbb\xbf \t\r\n").startswith(b"<")


def decode_feed(raw: bytes) -> Feed:
    """
    Parse raw bytes as RSS, Atom or RDF.

    feedparser never raises, so its ``bozo`` report decides: a document cut
    off before its end, or one expat could not parse, is rejected even when
    feedparser already guessed its feed type. Encoding overrides are the
    only problem tolerated.
    """
    if not raw or not raw.strip():
        raise FeedDecodeError("empty document", NOT_A_FEED)

    parsed = feedparser.parse(raw)

    exc = parsed.get("bozo_exception") if parsed.get("bozo") else None
    if isinstance(exc, feedparser.CharacterEncodingOverride):
        exc = None

    if isinstance(exc, feedparser.NonXMLContentType) or _is_truncated(exc):
        raise FeedDecodeError(str(exc), NOT_A_FEED)

    if not parsed.get("version"):
        if not _looks_like_markup(raw):
            raise FeedDecodeError("no XML content", NOT_A_FEED)
        if exc is None:
            raise FeedDecodeError("Failed to detect feed type", UNKNOWN_FORMAT)
        raise FeedDecodeError(str(exc), MALFORMED)
    if isinstance(exc, SAXParseException):
        raise FeedDecodeError(str(exc), MALFORMED)

    items = [
        FeedItem(published=to_datetime(entry.get("published_parsed")))
        for entry in parsed.entries
    ]
    updated = to_datetime(parsed.feed.get("updated_parsed"))

    return Feed(items=items, updated=updated)
