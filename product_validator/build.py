"""Validate product records before and after enrichment; fail the build on any error.

Phases, per record:
  1. validate       properties set by the authors          -> pre-validated
  2. enrich         external step (identity by default)    -> enriched
  3. validate_urls  outbound URLs, only if enabled         -> post-validated
Once every record went through all phases the build either passes or is
aborted with the total error count.

URL checking is slow and off by default. Enable it with MUST_CHECK_URLS=true
or --check-urls.

Usage:
  product-validator products/ --defaults products-defaults.yml
  MUST_CHECK_URLS=true product-validator products/ --jobs 8 --report report.json
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from . import __version__
from .errors import EXIT_ABORTED, EXIT_OK, BuildAborted, ConfigError
from .identifiers import render_identifier
from .log import TOPIC, log, set_verbosity
from .records import Record, load_defaults, load_records
from .sink import ErrorSink
from .url_checker import URL_CHECK_CONNECT_TIMEOUT, URL_CHECK_READ_TIMEOUT, UrlChecker
from .url_policies import load_policies
from .validator import Renderer, validate, validate_urls

CHECK_URLS_ENV = "MUST_CHECK_URLS"
TRUTHY = {"1", "true", "yes", "on"}

# Record states
PRE_VALIDATED = "pre-validated"
ENRICHED = "enriched"
POST_VALIDATED = "post-validated"
SKIPPED = "skipped"

# Build outcomes
PASSED = "passed"
ABORTED = "aborted"


def must_check_urls(environ: dict | None = None) -> bool:
    environ = os.environ if environ is None else environ
    return environ.get(CHECK_URLS_ENV, "").strip().lower() in TRUTHY


@dataclass
class BuildResult:
    status: str
    error_count: int
    warning_count: int
    checked_urls: bool
    states: dict[str, str] = field(default_factory=dict)


class Build:
    def __init__(
        self,
        sink: ErrorSink | None = None,
        renderer: Renderer = render_identifier,
        enrich: Callable[[Record], Record] | None = None,
        check_urls: bool | None = None,
        checker: UrlChecker | None = None,
        jobs: int = 1,
        today: date | None = None,
    ):
        self.sink = sink if sink is not None else ErrorSink()
        self.renderer = renderer
        self.enrich_step = enrich
        self.check_urls = must_check_urls() if check_urls is None else check_urls
        self.checker = checker
        self.jobs = max(1, jobs)
        self.today = today
        self.states: dict[str, str] = {}

    def pre_validate(self, record: Record) -> None:
        if record.load_error is not None:
            self.sink.report(record.name, "front matter", record.key, record.load_error)
        else:
            validate(record, self.sink, self.renderer, self.today)
        self.states[record.key] = PRE_VALIDATED

    def enrich(self, record: Record) -> Record:
        if self.enrich_step is not None:
            record = self.enrich_step(record)
        self.states[record.key] = ENRICHED
        return record

    def post_validate(self, record: Record, checker: UrlChecker) -> None:
        validate_urls(record, self.sink, checker)
        self.states[record.key] = POST_VALIDATED

    def run(self, records: list[Record]) -> BuildResult:
        products = []
        for record in records:
            # The layout of an unparsable file is unknown; report it anyway.
            if record.load_error is not None or record.is_product:
                products.append(record)
            else:
                log(f"{TOPIC} Skipping '{record.name}', not a product page.", "DEBUG")
                self.states[record.key] = SKIPPED

        for record in products:
            self.pre_validate(record)
        products = [self.enrich(record) for record in products if record.load_error is None]

        if self.check_urls:
            self._check_all_urls(products)
        return self.finish()

    def _check_all_urls(self, records: list[Record]) -> None:
        checker = self.checker or UrlChecker()
        try:
            if self.jobs == 1:
                for record in records:
                    self.post_validate(record, checker)
            else:
                with ThreadPoolExecutor(max_workers=self.jobs) as pool:
                    list(pool.map(lambda r: self.post_validate(r, checker), records))
        finally:
            if checker is not self.checker:
                checker.close()

    def finish(self) -> BuildResult:
        """Gate the build: raise BuildAborted if any error was reported."""
        error_count = self.sink.count()
        if error_count > 0:
            raise BuildAborted(error_count)
        return BuildResult(PASSED, error_count, self.sink.warning_count(), self.check_urls, dict(self.states))


# ─── CLI ────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="product-validator", description="Validate product lifecycle records.")
    ap.add_argument("paths", nargs="*", default=["products"],
                    help="Product markdown files or directories (default: products)")
    ap.add_argument("--defaults", help="YAML file with front matter defaults applied to every record")
    ap.add_argument("--policies", help="YAML file with URL ignore/suppress tables (default: bundled)")
    urls = ap.add_mutually_exclusive_group()
    urls.add_argument("--check-urls", dest="check_urls", action="store_true", default=None,
                      help=f"Check outbound URLs (default: ${CHECK_URLS_ENV})")
    urls.add_argument("--no-check-urls", dest="check_urls", action="store_false")
    ap.add_argument("--jobs", type=int, default=1, help="Records checked concurrently during the URL phase")
    ap.add_argument("--connect-timeout", type=float, default=URL_CHECK_CONNECT_TIMEOUT)
    ap.add_argument("--read-timeout", type=float, default=URL_CHECK_READ_TIMEOUT)
    ap.add_argument("--report", help="Write a JSON validation report to this path")
    ap.add_argument("-v", "--verbose", action="store_true")
    ap.add_argument("-q", "--quiet", action="store_true")
    ap.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return ap


def write_report(path: str, sink: ErrorSink, status: str, record_count: int, checked_urls: bool) -> None:
    report = {
        "valid": status == PASSED,
        "status": status,
        "record_count": record_count,
        "checked_urls": checked_urls,
    }
    report.update(sink.to_dict())
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report, f, ensure_ascii=False, indent=2)
    log(f"Report written to {path}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    set_verbosity(args.verbose, args.quiet)

    checker = None
    try:
        records = load_records(args.paths, load_defaults(args.defaults))
        build = Build(check_urls=args.check_urls, jobs=args.jobs)
        if build.check_urls:
            checker = UrlChecker(load_policies(args.policies),
                                 connect_timeout=args.connect_timeout, read_timeout=args.read_timeout)
            build.checker = checker
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return e.code

    log(f"{TOPIC} Validating {len(records)} records (URL checks {'on' if build.check_urls else 'off'}).")
    status, code = PASSED, EXIT_OK
    try:
        build.run(records)
    except BuildAborted as e:
        log(f"{TOPIC} {e}", "ERROR")
        status, code = ABORTED, EXIT_ABORTED
    finally:
        if checker is not None:
            checker.close()

    if not args.quiet:
        print()
        print("\n".join(build.sink.summary()))
    if args.report:
        write_report(args.report, build.sink, status, len(records), build.check_urls)
    return code


if __name__ == "__main__":
    sys.exit(main())
