# feedcheck/dispatch.py

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Iterable

from feedcheck.config import DEFAULT_CONCURRENCY
from feedcheck.validate import INVALID, TRANSIENT, VALID, ValidationResult

logger = logging.getLogger(__name__)

STATUS_SYMBOLS = {
    VALID: "✅",
    INVALID: "❌",
    TRANSIENT: "⚠️",
}

_DONE = object()


@dataclass
class Report:
    """Results of one run, in completion order, with running counts."""

    results: list[ValidationResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    valid: int = 0
    invalid: int = 0
    transient: int = 0
    warnings: int = 0

    @property
    def total(self) -> int:
        return len(self.results)

    def add(self, result: ValidationResult) -> None:
        self.results.append(result)
        if result.status == VALID:
            self.valid += 1
            if result.message:
                self.warnings += 1
        elif result.status == INVALID:
            self.invalid += 1
        elif result.status == TRANSIENT:
            self.transient += 1

    def by_url(self) -> dict[str, ValidationResult]:
        return {r.url: r for r in self.results}


def format_result_line(result: ValidationResult) -> str:
    symbol = STATUS_SYMBOLS.get(result.status, "?")
    line = f"{symbol} {result.url} → {result.status}"
    if result.message:
        line += f" ({result.message})"
    return line


def print_result(result: ValidationResult) -> None:
    print(format_result_line(result), flush=True)


def _collect(results: queue.Queue, report: Report, emit) -> None:
    while True:
        result = results.get()
        if result is _DONE:
            return
        report.add(result)
        if emit is not None:
            try:
                emit(result)
            except Exception:
                logger.exception("Failed to emit result for %s", result.url)


def dispatch(
    urls: Iterable[str],
    validator: Callable[[str], ValidationResult],
    concurrency: int = DEFAULT_CONCURRENCY,
    emit: Callable[[ValidationResult], None] | None = print_result,
) -> Report:
    """
    Run ``validator`` over every URL with at most ``concurrency`` in flight.

    A permit is taken before each task is created and given back when the
    task ends, so the pool never holds more than ``concurrency`` pending
    validations. Every task posts exactly one result to a queue drained by a
    single collector thread, which is the only writer of the report.
    """
    if concurrency <= 0:
        raise ValueError(f"concurrency must be greater than 0, got {concurrency}")

    report = Report()
    skipped = []
    results = queue.Queue()
    admission = threading.BoundedSemaphore(concurrency)

    def run(url: str) -> None:
        try:
            result = validator(url)
        except Exception as e:
            logger.exception("Unexpected error validating %s", url)
            result = ValidationResult(
                url=url.strip(),
                status=TRANSIENT,
                message=str(e) or e.__class__.__name__,
            )
        finally:
            admission.release()
        results.put(result)

    collector = threading.Thread(
        target=_collect,
        args=(results, report, emit),
        name="feedcheck-collector",
        daemon=True,
    )
    collector.start()

    try:
        with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="feedcheck") as pool:
            for url in urls:
                admission.acquire()
                try:
                    pool.submit(run, url)
                except RuntimeError as e:
                    admission.release()
                    logger.error("Failed to schedule %s: %s", url, e)
                    skipped.append(url)
    finally:
        results.put(_DONE)
        collector.join()

    report.skipped = skipped
    return report
