"""
Pytest configuration and fixtures for feedcheck tests.

Provides:
- Builders for small RSS / Atom documents
- A stand-in for feedcheck.fetch.FetchResponse, so retry and validation
  logic can be exercised without a network
"""

from datetime import datetime, timezone
from email.utils import format_datetime

import pytest


class FakeResponse:
    """Minimal FetchResponse: a status code plus a body that can be read once."""

    def __init__(self, status_code=200, body=b"", read_error=None):
        self.status_code = status_code
        self.body = body
        self.read_error = read_error
        self.closed = False
        self.read_calls = 0

    def read(self):
        self.read_calls += 1
        self.closed = True
        if self.read_error is not None:
            raise self.read_error
        return self.body

    def close(self):
        self.closed = True


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fixed_now():
    return datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_rss():
    """
    Build an RSS 2.0 document.

    ``items`` is a list of publication datetimes (or None for an item with no
    pubDate); ``updated`` becomes the channel's lastBuildDate.
    """

    def _make(items=(), updated=None):
        parts = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            "<title>Example feed</title>",
            "<link>https://example.com/</link>",
            "<description>Test</description>",
        ]
        if updated is not None:
            parts.append(f"<lastBuildDate>{format_datetime(updated, usegmt=True)}</lastBuildDate>")
        for i, published in enumerate(items):
            parts.append("<item>")
            parts.append(f"<title>Item {i}</title><link>https://example.com/{i}</link>")
            if published is not None:
                parts.append(f"<pubDate>{format_datetime(published, usegmt=True)}</pubDate>")
            parts.append("</item>")
        parts.append("</channel></rss>")
        return "\n".join(parts).encode("utf-8")

    return _make


@pytest.fixture
def make_atom():
    def _make(entries=(), updated=None):
        parts = [
            '<?xml version="1.0" encoding="utf-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            "<title>Example Atom</title>",
            "<id>urn:example:feed</id>",
        ]
        if updated is not None:
            parts.append(f"<updated>{updated.strftime('%Y-%m-%dT%H:%M:%SZ')}</updated>")
        for i, published in enumerate(entries):
            parts.append(f"<entry><title>Entry {i}</title><id>urn:example:{i}</id>")
            if published is not None:
                parts.append(f"<published>{published.strftime('%Y-%m-%dT%H:%M:%SZ')}</published>")
            parts.append("</entry>")
        parts.append("</feed>")
        return "\n".join(parts).encode("utf-8")

    return _make
