# feedcheck/retry.py

import logging
import time
from dataclasses import dataclass
from typing import Callable

from feedcheck.fetch import FetchError, FetchTimeout, FetchResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
INITIAL_BACKOFF = 1  # seconds

SUCCESS = "success"
REJECT = "reject"
RETRY = "retry"


class ClientRejection(Exception):
    """The server answered with a 4xx that retrying will not change."""

    def __init__(self, status_code: int):
        super().__init__(f"HTTP status {status_code}")
        self.status_code = status_code


class RetriesExhausted(Exception):
    def __init__(self, attempts: int, last_status: int):
        super().__init__(f"Failed after {attempts} attempts, last status: {last_status}")
        self.attempts = attempts
        self.last_status = last_status


@dataclass(frozen=True)
class RetryState:
    attempt: int = 1
    backoff: float = INITIAL_BACKOFF

    def next(self) -> "RetryState":
        return RetryState(attempt=self.attempt + 1, backoff=self.backoff * 2)


def classify_status(status_code: int) -> str:
    """
    Decide what a status code means for the retry loop.

    200 is the only success. 4xx other than 429 is a definitive rejection.
    Everything else (429, 5xx, unexpected 1xx/2xx/3xx) is worth another try.
    """
    if status_code == 200:
        return SUCCESS
    if 400 <= status_code < 500 and status_code != 429:
        return REJECT
    return RETRY


def fetch_with_retry(
    fetch: Callable[[], FetchResponse],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    url: str = "",
    sleep: Callable[[float], None] = time.sleep,
) -> bytes:
    """
    Call ``fetch`` until it yields a 200 or ``max_attempts`` is used up.

    Returns the drained body of the first 200 response. Raises the last
    FetchError, ClientRejection, or RetriesExhausted.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    state = RetryState()
    while True:
        final = state.attempt >= max_attempts
        try:
            response = fetch()
            verdict = classify_status(response.status_code)
            if verdict == SUCCESS:
                return response.read()

            status_code = response.status_code
            response.close()
            if verdict == REJECT:
                raise ClientRejection(status_code)

            logger.warning(
                "Retry %d/%d for %s: HTTP status %d",
                state.attempt, max_attempts, url, status_code,
            )
            if final:
                raise RetriesExhausted(max_attempts, status_code)
        except FetchError as e:
            label = "Timeout" if isinstance(e, FetchTimeout) else "Error"
            logger.warning(
                "%s on attempt %d/%d for %s: %s",
                label, state.attempt, max_attempts, url, e,
            )
            if final:
                raise

        sleep(state.backoff)
        state = state.next()
