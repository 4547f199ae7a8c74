# feedcheck/config.py

import os
from dataclasses import dataclass
from typing import Mapping

from feedcheck.fetch import DEFAULT_TIMEOUT
from feedcheck.retry import DEFAULT_MAX_ATTEMPTS

DEFAULT_CONCURRENCY = 60


@dataclass(frozen=True)
class Config:
    concurrency: int = DEFAULT_CONCURRENCY
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    timeout: float = DEFAULT_TIMEOUT
    ignore_invalid: bool = False
    fail_on_transient: bool = False
    log_level: str = "INFO"

    def validate(self) -> "Config":
        if self.concurrency <= 0:
            raise ValueError(f"concurrency must be greater than 0, got {self.concurrency}")
        if self.max_attempts < 1:
            raise ValueError(f"max attempts must be at least 1, got {self.max_attempts}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be greater than 0, got {self.timeout}")
        return self


def _flag(environ: Mapping[str, str], name: str) -> bool:
    return environ.get(name, "").strip().lower() == "true"


def _number(environ: Mapping[str, str], name: str, convert, default):
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return convert(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """
    Build the run configuration from environment variables.

    ``IGNORE_INVALID_FEEDS`` and ``FAIL_ON_TRANSIENT`` only shape the exit
    code; they never change how a feed is classified.
    """
    if environ is None:
        environ = os.environ

    config = Config(
        concurrency=_number(environ, "FEEDCHECK_CONCURRENCY", int, DEFAULT_CONCURRENCY),
        max_attempts=_number(environ, "FEEDCHECK_MAX_ATTEMPTS", int, DEFAULT_MAX_ATTEMPTS),
        timeout=_number(environ, "FEEDCHECK_TIMEOUT", float, DEFAULT_TIMEOUT),
        ignore_invalid=_flag(environ, "IGNORE_INVALID_FEEDS"),
        fail_on_transient=_flag(environ, "FAIL_ON_TRANSIENT"),
        log_level=environ.get("FEEDCHECK_LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )
    return config.validate()
