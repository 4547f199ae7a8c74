# feedcheck/main.py

import argparse
import logging
import sys
from dataclasses import replace
from functools import partial

from feedcheck.config import load_config
from feedcheck.dispatch import Report, dispatch, print_result
from feedcheck.fetch import create_session
from feedcheck.sources import load_urls
from feedcheck.validate import INVALID, TRANSIENT, validate_feed

INPUT_FILE_DEFAULT = "feeds.csv"


def exit_code(report: Report, ignore_invalid: bool = False, fail_on_transient: bool = False) -> int:
    """
    Invalid feeds fail the run unless ``ignore_invalid``; transient failures
    are tolerated unless ``fail_on_transient``.
    """
    code = 0
    if report.invalid > 0 and not ignore_invalid:
        code = 1
    if report.transient > 0 and fail_on_transient:
        code = 1
    return code


def print_report(report: Report) -> None:
    for r in report.results:
        if r.status == INVALID:
            print(f"[Invalid] {r.url} ({r.message})")
        elif r.status == TRANSIENT:
            print(f"[Transient] {r.url} ({r.message})")

    print("\nResults Summary:")
    print(f"✅ Valid: {report.valid} (with {report.warnings} warnings)")
    print(f"❌ Invalid: {report.invalid}")
    print(f"⚠️ Transient Errors: {report.transient}")
    print(f"Total: {report.total} feeds checked")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="feedcheck",
        description="Check that a list of RSS/Atom feed URLs fetch and parse.",
    )
    parser.add_argument("input", nargs="?", default=INPUT_FILE_DEFAULT,
                        help="CSV (first column) or YAML file of feed URLs")
    parser.add_argument("--no-header", action="store_true",
                        help="the CSV file has no header row")
    parser.add_argument("--concurrency", type=int, help="feeds checked at once")
    parser.add_argument("--max-attempts", type=int, help="attempts per feed")
    parser.add_argument("--timeout", type=float, help="seconds allowed per attempt")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
        overrides = {
            key: value
            for key, value in (
                ("concurrency", args.concurrency),
                ("max_attempts", args.max_attempts),
                ("timeout", args.timeout),
            )
            if value is not None
        }
        config = replace(config, **overrides).validate()
        logging.basicConfig(level=config.log_level, format="%(levelname)s: %(message)s")
    except ValueError as e:
        print(f"Error in configuration: {e}", file=sys.stderr)
        return 1

    try:
        urls = load_urls(args.input, has_header=not args.no_header)
    except (OSError, ValueError) as e:
        print(f"Error opening file: {e}", file=sys.stderr)
        return 1

    if not urls:
        print("No URLs found to validate")
        return 0

    session = create_session()
    validator = partial(
        validate_feed,
        session=session,
        timeout=config.timeout,
        max_attempts=config.max_attempts,
    )
    try:
        report = dispatch(urls, validator, concurrency=config.concurrency, emit=print_result)
    finally:
        session.close()

    print_report(report)
    return exit_code(report, config.ignore_invalid, config.fail_on_transient)


def run():
    sys.exit(main())


if __name__ == "__main__":
    run()
