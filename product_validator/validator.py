"""Product record validation.

``validate`` checks the properties set by product authors and runs before
enrichment. ``validate_urls`` runs after enrichment, since most URLs (release
links built from ``changelogTemplate``) only exist then. It is slow and only
runs when URL checking is enabled.

Nothing here raises on bad data: every problem is reported to the sink and
checking carries on with the next field, release or URL.
"""

from __future__ import annotations

import re
import time
from datetime import date
from typing import Callable

from .identifiers import render_identifier
from .log import TOPIC, log
from .rules import (
    ALTERNATE_URL_PATTERN,
    PERMALINK_PATTERN,
    RELEASE_CYCLE_PATTERN,
    STANDARD_RELEASE_FIELDS,
    TAGS_PATTERN,
    URL_PATTERN,
    VALID_CATEGORIES,
    VALID_CUSTOM_FIELD_DISPLAY,
    as_date,
    check_array,
    check_before,
    check_bool_or_date,
    check_bool_or_string,
    check_date,
    check_in,
    check_mapping,
    check_not_too_far_in_future,
    check_number,
    check_pattern,
    check_string,
    is_date_like,
    type_name,
)
from .records import Record
from .sink import IDENTIFIER, ORDERING, SCHEMA, UNDECLARED_FIELD, URL, ErrorSink, Issue
from .url_checker import UrlChecker

Renderer = Callable[[object], tuple]

COLUMN_DIMENSIONS = ("eol", "eoas", "release", "releaseDate", "discontinued", "eoes")
WARN_THRESHOLD_DIMENSIONS = ("eol", "eoas", "discontinued", "eoes")


# ─── Locations ──────────────────────────────────────────────────────────────

def release_location(record: Record, release: object) -> str:
    if isinstance(release, dict) and "releaseCycle" in release:
        return f"{record.name}#releases#{release['releaseCycle']}"
    return record.name


def custom_field_location(record: Record, custom_field: object) -> str:
    if isinstance(custom_field, dict) and "name" in custom_field:
        return f"{record.name}#customField#{custom_field['name']}"
    return record.name


def column_enabled(data: dict, dimension: str) -> bool:
    value = data.get(f"{dimension}Column")
    return value is not None and value is not False


def _as_list(value: object) -> list:
    return value if isinstance(value, list) else []


# ─── Field checker ──────────────────────────────────────────────────────────

class FieldChecker:
    """Applies rules to the fields of one mapping and reports under one location."""

    def __init__(self, sink: ErrorSink, location: str, data: object, name: str = "data"):
        self.sink = sink
        self.location = location
        self.issues: list[Issue] = []
        reason = check_mapping(data)
        if reason:
            self.error(name, data, reason)
            data = {}
        self.data = data

    def error(self, field: str, value: object, reason: str, kind: str = SCHEMA) -> None:
        self.issues.append(self.sink.report(self.location, field, value, reason, kind))

    def has(self, field: str) -> bool:
        return field in self.data

    def expect(self, condition: bool, field: str, value: object, reason: str, kind: str = SCHEMA) -> None:
        if not condition:
            self.error(field, value, reason, kind)

    def _apply(self, field: str, rule: Callable[[object], str | None]) -> None:
        value = self.data.get(field)
        reason = rule(value)
        if reason:
            self.error(field, value, reason)

    def expect_string(self, field: str) -> None:
        self._apply(field, check_string)

    def expect_number(self, field: str) -> None:
        self._apply(field, check_number)

    def expect_array(self, field: str) -> None:
        self._apply(field, check_array)

    def expect_date(self, field: str) -> None:
        self._apply(field, check_date)

    def expect_bool_or_string(self, field: str) -> None:
        self._apply(field, check_bool_or_string)

    def expect_bool_or_date(self, field: str) -> None:
        self._apply(field, check_bool_or_date)

    def expect_in(self, field: str, allowed: tuple[str, ...]) -> None:
        self._apply(field, lambda v: check_in(v, allowed))

    def expect_match(self, field: str, pattern: re.Pattern) -> None:
        for value, reason in check_pattern(self.data.get(field), pattern):
            self.error(field, value, reason)

    def expect_url(self, field: str) -> None:
        self.expect_match(field, URL_PATTERN)

    def expect_not_in_future(self, field: str, today: date | None = None) -> None:
        self._apply(field, lambda v: check_not_too_far_in_future(v, today))

    def expect_before(self, field1: str, field2: str) -> None:
        value1 = self.data.get(field1)
        reason = check_before(value1, self.data.get(field2), field2)
        if reason:
            self.error(field1, value1, reason, ORDERING)


# ─── Whole-list release checks ──────────────────────────────────────────────

def check_release_order(checker: FieldChecker, releases: list[dict]) -> None:
    """Releases are listed newest first, except those flagged ``outOfOrder``."""
    previous_cycle = None
    previous_date = None
    for release in releases:
        if release.get("outOfOrder"):
            continue
        release_date = release.get("releaseDate")
        if not is_date_like(release_date):
            continue
        cycle = release.get("releaseCycle")
        if previous_date is not None and as_date(previous_date) < as_date(release_date):
            checker.error(
                "releases", cycle,
                f"expecting release (released on {release_date}) to be before "
                f"{previous_cycle} (released on {previous_date})",
                ORDERING,
            )
        previous_cycle = cycle
        previous_date = release_date


def check_undeclared_fields(sink: ErrorSink, record: Record, releases: list[dict],
                            custom_field_names: list[str]) -> list[Issue]:
    issues = []
    declared = set(STANDARD_RELEASE_FIELDS) | set(custom_field_names)
    for release in releases:
        for field in release:
            if field not in declared:
                issues.append(sink.report(release_location(record, release), field, release[field],
                                          "undeclared field", UNDECLARED_FIELD))
    return issues


def check_custom_field_values(sink: ErrorSink, record: Record, releases: list[dict],
                              custom_field_names: list[str]) -> list[Issue]:
    # YAML turns some strings into dates; both are fine.
    issues = []
    for release in releases:
        for name in custom_field_names:
            value = release.get(name)
            if value is not None and not isinstance(value, str) and not is_date_like(value):
                issues.append(sink.report(release_location(record, release), name, value,
                                          f"expecting a value of type string or date, got {type_name(value)}"))
    return issues


# ─── Pre-enrichment validation ──────────────────────────────────────────────

def validate(record: Record, sink: ErrorSink, renderer: Renderer = render_identifier,
             today: date | None = None) -> list[Issue]:
    """Check the properties of ``record`` and return the issues reported."""
    start = time.perf_counter()
    log(f"{TOPIC} Validating '{record.name}'...", "DEBUG")

    product = FieldChecker(sink, record.name, record.data, "product")
    checkers = [product]
    issues: list[Issue] = []
    data = product.data

    product.expect_string("title")
    product.expect_in("category", VALID_CATEGORIES)
    if product.has("tags"):
        product.expect_match("tags", TAGS_PATTERN)
    product.expect_match("permalink", PERMALINK_PATTERN)
    product.expect_match("alternate_urls", ALTERNATE_URL_PATTERN)
    if product.has("versionCommand"):
        product.expect_string("versionCommand")
    for field in ("releasePolicyLink", "releaseImage", "changelogTemplate"):
        if product.has(field):
            product.expect_url(field)
    if product.has("releaseLabel"):
        product.expect_string("releaseLabel")
    product.expect_string("LTSLabel")
    for dimension in COLUMN_DIMENSIONS:
        product.expect_bool_or_string(f"{dimension}Column")
        if dimension in WARN_THRESHOLD_DIMENSIONS:
            product.expect_number(f"{dimension}WarnThreshold")
    product.expect_array("identifiers")
    product.expect_array("releases")
    if product.has("customFields"):
        product.expect_array("customFields")

    releases = _as_list(data.get("releases"))
    release_maps = [r for r in releases if isinstance(r, dict)]
    custom_fields = _as_list(data.get("customFields"))
    custom_field_names = [cf["name"] for cf in custom_fields if isinstance(cf, dict) and isinstance(cf.get("name"), str)]

    check_release_order(product, release_maps)
    issues += check_undeclared_fields(sink, record, release_maps, custom_field_names)
    issues += check_custom_field_values(sink, record, release_maps, custom_field_names)

    for identifier in _as_list(data.get("identifiers")):
        try:
            _, err = renderer(identifier)
        except Exception as e:
            err = str(e) or type(e).__name__
        if err:
            product.error("identifiers", identifier, err, IDENTIFIER)

    if product.has("auto"):
        auto = FieldChecker(sink, record.name, data["auto"], "auto")
        auto.expect_array("methods")
        checkers.append(auto)

    for custom_field in custom_fields:
        column = FieldChecker(sink, custom_field_location(record, custom_field), custom_field, "customFields")
        column.expect_string("name")
        column.expect_in("display", VALID_CUSTOM_FIELD_DISPLAY)
        column.expect_string("label")
        if column.has("description"):
            column.expect_string("description")
        if column.has("link"):
            column.expect_url("link")
        checkers.append(column)

    cycles = [r.get("releaseCycle") for r in release_maps]
    duplicates = []
    for cycle in cycles:
        if cycles.count(cycle) > 1 and cycle not in duplicates:
            duplicates.append(cycle)
    product.expect(not duplicates, "releases", duplicates, "Duplicate releases")

    for release in releases:
        checkers.append(validate_release(record, release, sink, data, today))

    for checker in checkers:
        issues += checker.issues
    log(f"{TOPIC} Product '{record.name}' successfully validated in {time.perf_counter() - start:.3f} seconds.",
        "DEBUG")
    return issues


def validate_release(record: Record, release: object, sink: ErrorSink, product: dict,
                     today: date | None = None) -> FieldChecker:
    r = FieldChecker(sink, release_location(record, release), release, "releases")
    eoas = column_enabled(product, "eoas")
    eoes = column_enabled(product, "eoes")
    release_column = column_enabled(product, "release")

    r.expect_match("releaseCycle", RELEASE_CYCLE_PATTERN)
    if r.has("releaseLabel"):
        r.expect_string("releaseLabel")
    if r.has("codename"):
        r.expect_string("codename")
    r.expect_date("releaseDate")
    r.expect_not_in_future("releaseDate", today)
    if eoas:
        r.expect_bool_or_date("eoas")
    r.expect_bool_or_date("eol")
    if column_enabled(product, "discontinued"):
        r.expect_bool_or_date("discontinued")
    if eoes and r.has("eoes"):
        r.expect_bool_or_date("eoes")
    if r.has("lts"):
        r.expect_bool_or_date("lts")
    if release_column:
        r.expect_string("latest")
        if r.has("latestReleaseDate"):
            r.expect_date("latestReleaseDate")
            r.expect_not_in_future("latestReleaseDate", today)
    if r.data.get("link"):
        r.expect_url("link")

    if eoas:
        r.expect_before("releaseDate", "eoas")
    r.expect_before("releaseDate", "eol")
    if eoes:
        r.expect_before("releaseDate", "eoes")
    if eoas:
        r.expect_before("eoas", "eol")
    if eoas and eoes:
        r.expect_before("eoas", "eoes")
    if eoes:
        r.expect_before("eol", "eoes")
    return r


# ─── Post-enrichment URL validation ─────────────────────────────────────────

def validate_urls(record: Record, sink: ErrorSink, checker: UrlChecker) -> int:
    """Check every outbound URL of ``record``; return how many failed."""
    start = time.perf_counter()
    log(f"{TOPIC} Validating urls for '{record.name}'...")
    data = record.data if isinstance(record.data, dict) else {}
    failed = 0

    def verify(location: str, field: str, url: object) -> None:
        nonlocal failed
        if not url:
            return
        if not isinstance(url, str):
            sink.report(location, field, url, "expecting a URL string", URL)
            failed += 1
        elif not checker.verify(sink, location, field, url):
            failed += 1

    for field in ("releasePolicyLink", "releaseImage", "iconUrl"):
        verify(record.name, field, data.get(field))
    failed += checker.verify_text(sink, record.name, record.content)

    for custom_field in _as_list(data.get("customFields")):
        if isinstance(custom_field, dict):
            verify(custom_field_location(record, custom_field), "link", custom_field.get("link"))

    for release in _as_list(data.get("releases")):
        if isinstance(release, dict):
            verify(release_location(record, release), "link", release.get("link"))

    log(f"{TOPIC} Product '{record.name}' urls successfully validated in {time.perf_counter() - start:.3f} seconds.")
    return failed
