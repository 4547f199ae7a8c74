# feedcheck/fetch.py

import logging
import time

import requests
from requests.adapters import HTTPAdapter

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30  # seconds, per attempt
USER_AGENT = "Mozilla/5.0 (compatible; FeedValidator/1.0)"
HEADERS = {
    "User-Agent": USER_AGENT,
    "Accept-Language": "en-US;q=0.7,en;q=0.3",
}

MAX_IDLE_CONNECTIONS = 100
MAX_IDLE_CONNECTIONS_PER_HOST = 10
CHUNK_SIZE = 64 * 1024

TIMEOUT = "timeout"
NETWORK = "network"


class MalformedURLError(ValueError):
    pass


class FetchError(Exception):
    kind = NETWORK


class FetchTimeout(FetchError):
    kind = TIMEOUT


class FetchNetworkError(FetchError):
    kind = NETWORK


def create_session(
    pool_connections: int = MAX_IDLE_CONNECTIONS,
    pool_maxsize: int = MAX_IDLE_CONNECTIONS_PER_HOST,
) -> requests.Session:
    """
    Build the session shared by every validation.

    Keep-alive connections are pooled by one adapter for both schemes.
    Adapter-level retries are off; feedcheck.retry owns retrying.
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=0,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


def build_request(session: requests.Session, url: str) -> requests.PreparedRequest:
    """Prepare a GET for ``url`` without touching the network."""
    url = url.strip()
    if not url:
        raise MalformedURLError("empty URL")

    try:
        prepared = session.prepare_request(
            requests.Request("GET", url, headers=HEADERS)
        )
        # raises InvalidSchema for schemes we cannot speak (ftp://, file://, ...)
        session.get_adapter(prepared.url)
    except (
        requests.exceptions.MissingSchema,
        requests.exceptions.InvalidSchema,
        requests.exceptions.InvalidURL,
        requests.exceptions.InvalidHeader,
    ) as e:
        raise MalformedURLError(str(e)) from e

    return prepared


class FetchResponse:
    """
    One HTTP response whose body has not been read yet.

    The body is either drained completely with :meth:`read` or dropped with
    :meth:`close`; both release the underlying connection.
    """

    def __init__(self, response: requests.Response, deadline: float, timeout: float):
        self._response = response
        self._deadline = deadline
        self._timeout = timeout

    @property
    def status_code(self) -> int:
        return self._response.status_code

    def read(self) -> bytes:
        chunks = []
        try:
            for chunk in self._response.iter_content(chunk_size=CHUNK_SIZE):
                if time.monotonic() > self._deadline:
                    raise FetchTimeout(
                        f"deadline of {self._timeout:g}s exceeded while reading body"
                    )
                chunks.append(chunk)
        except requests.Timeout as e:
            raise FetchTimeout(str(e)) from e
        except requests.RequestException as e:
            raise FetchNetworkError(f"Error reading response: {e}") from e
        finally:
            self._response.close()
        return b"".join(chunks)

    def close(self) -> None:
        self._response.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


def fetch(
    session: requests.Session,
    request: requests.PreparedRequest,
    timeout: float = DEFAULT_TIMEOUT,
) -> FetchResponse:
    """Send ``request`` once. No retries happen here."""
    deadline = time.monotonic() + timeout
    settings = session.merge_environment_settings(request.url, {}, True, None, None)
    try:
        resp = session.send(request, timeout=timeout, **settings)
    except requests.Timeout as e:
        raise FetchTimeout(str(e)) from e
    except requests.RequestException as e:
        raise FetchNetworkError(str(e)) from e

    logger.debug("GET %s -> %s", request.url, resp.status_code)
    if time.monotonic() > deadline:
        resp.close()
        raise FetchTimeout(f"deadline of {timeout:g}s exceeded before the response arrived")
    return FetchResponse(resp, deadline, timeout)
