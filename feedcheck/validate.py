# feedcheck/validate.py

import calendar
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial

import requests

from feedcheck.fetch import (
    DEFAULT_TIMEOUT,
    FetchError,
    FetchTimeout,
    MalformedURLError,
    build_request,
    fetch,
)
from feedcheck.parse import NOT_A_FEED, FeedDecodeError, decode_feed
from feedcheck.retry import (
    DEFAULT_MAX_ATTEMPTS,
    ClientRejection,
    RetriesExhausted,
    fetch_with_retry,
)

logger = logging.getLogger(__name__)

VALID = "valid"
INVALID = "invalid"
TRANSIENT = "transient"

STALE_AFTER_MONTHS = 6
NO_ITEMS_WARNING = "Warning: No feed items"
STALE_WARNING = "Warning: Feed hasn't been updated in over 6 months"
NOT_A_FEED_MESSAGE = "Not a valid feed format"


@dataclass(frozen=True)
class ValidationResult:
    url: str
    status: str
    message: str = ""
    item_count: int = 0
    last_update: datetime | None = None

    @property
    def has_warning(self) -> bool:
        return self.status == VALID and bool(self.message)


def months_before(moment: datetime, months: int) -> datetime:
    """
    Step ``months`` calendar months back from ``moment``.

    The day is clamped to the length of the target month, so 31 August
    minus six months is 28 (or 29) February.
    """
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def is_stale(last_update: datetime | None, now: datetime, months: int = STALE_AFTER_MONTHS) -> bool:
    """
    A feed without any timestamp is never considered stale.
    """
    if last_update is None:
        return False
    return last_update < months_before(now, months)


def classify_feed(url: str, feed, now: datetime | None = None) -> ValidationResult:
    """Turn a decoded feed into a ``valid`` result, with advisory warnings."""
    now = now or datetime.now(timezone.utc)

    last_update = feed.updated
    if last_update is None and feed.items:
        last_update = feed.items[0].published

    message = ""
    if not feed.items:
        message = NO_ITEMS_WARNING
    elif is_stale(last_update, now):
        message = STALE_WARNING

    return ValidationResult(
        url=url,
        status=VALID,
        message=message,
        item_count=len(feed.items),
        last_update=last_update,
    )


def validate_feed(
    url: str,
    session: requests.Session,
    timeout: float = DEFAULT_TIMEOUT,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    now: datetime | None = None,
    sleep=time.sleep,
) -> ValidationResult:
    """
    Fetch, decode and classify one feed.

    Every failure ends up in the returned result; nothing is raised.
    """
    url = url.strip()

    try:
        request = build_request(session, url)
    except MalformedURLError as e:
        return ValidationResult(url=url, status=INVALID, message=f"Invalid URL: {e}")

    try:
        raw = fetch_with_retry(
            partial(fetch, session, request, timeout),
            max_attempts=max_attempts,
            url=url,
            sleep=sleep,
        )
    except ClientRejection as e:
        return ValidationResult(url=url, status=INVALID, message=str(e))
    except FetchTimeout:
        return ValidationResult(
            url=url,
            status=TRANSIENT,
            message=f"Request timed out after {timeout:g} seconds",
        )
    except (FetchError, RetriesExhausted) as e:
        return ValidationResult(url=url, status=TRANSIENT, message=str(e))

    try:
        feed = decode_feed(raw)
    except FeedDecodeError as e:
        logger.debug("Decode failure for %s (%s): %s", url, e.kind, e)
        if e.kind == NOT_A_FEED:
            return ValidationResult(url=url, status=INVALID, message=NOT_A_FEED_MESSAGE)
        return ValidationResult(url=url, status=INVALID, message=str(e))

    return classify_feed(url, feed, now=now)
