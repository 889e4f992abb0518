"""Field assertion primitives.

Every check takes a value loaded from YAML front matter and returns ``None``
when the value is acceptable, or a human-readable reason otherwise. Checks
never raise and never report; callers decide where the reason goes.

Values come from ``yaml.safe_load`` and are one of: str, int/float, bool,
datetime.date (or datetime.datetime), list, dict or None.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

# ─── Constants ──────────────────────────────────────────────────────────────

VALID_CATEGORIES = (
    "app", "database", "device", "framework", "lang", "library", "os",
    "server-app", "service", "standard",
)
VALID_CUSTOM_FIELD_DISPLAY = (
    "none", "api-only", "after-release-column", "before-latest-column", "after-latest-column",
)
STANDARD_RELEASE_FIELDS = (
    "releaseCycle", "releaseLabel", "codename", "releaseDate", "eoas", "eol", "eoes",
    "discontinued", "latest", "latestReleaseDate", "link", "lts", "outOfOrder",
)

# Teams may pre-publish a release up to a week ahead.
FUTURE_TOLERANCE = timedelta(days=7)

URL_PATTERN = re.compile(r"^https?://.+$")
TAGS_PATTERN = re.compile(r"^[a-z0-9\-]+( [a-z0-9\-]+)*$")
PERMALINK_PATTERN = re.compile(r"^/[a-z0-9-]+$")
ALTERNATE_URL_PATTERN = re.compile(r"^/[a-z0-9\-_]+$")
RELEASE_CYCLE_PATTERN = re.compile(r"^[a-z0-9.\-+_]+$")


# ─── Value kinds ────────────────────────────────────────────────────────────

def type_name(value: object) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def is_date_like(value: object) -> bool:
    return isinstance(value, date)


def as_date(value: date) -> date:
    """Drop the time part so dates and datetimes compare."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ─── Type checks ────────────────────────────────────────────────────────────

def check_string(value: object) -> str | None:
    if not isinstance(value, str):
        return f"expecting a value of type string, got {type_name(value)}"
    return None


def check_number(value: object) -> str | None:
    if not is_number(value):
        return f"expecting a value of type numeric, got {type_name(value)}"
    return None


def check_array(value: object) -> str | None:
    if not isinstance(value, list):
        return f"expecting an array, got {type_name(value)}"
    return None


def check_mapping(value: object) -> str | None:
    if not isinstance(value, dict):
        return f"expecting a mapping, got {type_name(value)}"
    return None


def check_date(value: object) -> str | None:
    if not is_date_like(value):
        return f"expecting a value of type date, got {type_name(value)}"
    return None


def check_bool_or_string(value: object) -> str | None:
    if not isinstance(value, (bool, str)):
        return f"expecting a value of type boolean or string, got {type_name(value)}"
    return None


def check_bool_or_date(value: object) -> str | None:
    if not (isinstance(value, bool) or is_date_like(value)):
        return f"expecting a value of type boolean or date, got {type_name(value)}"
    return None


# ─── Format and membership ──────────────────────────────────────────────────

def check_pattern(value: object, pattern: re.Pattern) -> list[tuple[object, str]]:
    """Match a value, or every element of a list, against ``pattern``.

    Returns one ``(offending_value, reason)`` pair per failing element.
    """
    values = value if isinstance(value, list) else [value]
    failures = []
    for v in values:
        if not isinstance(v, str) or not pattern.match(v):
            failures.append((v, f"should match {pattern.pattern}"))
    return failures


def check_url(value: object) -> list[tuple[object, str]]:
    return check_pattern(value, URL_PATTERN)


def check_in(value: object, allowed: tuple[str, ...]) -> str | None:
    if value not in allowed:
        return f"expecting one of {', '.join(allowed)}"
    return None


# ─── Temporal checks ────────────────────────────────────────────────────────

def check_not_too_far_in_future(value: object, today: date | None = None) -> str | None:
    if not is_date_like(value):
        return None
    today = today or date.today()
    if as_date(value) > today + FUTURE_TOLERANCE:
        return f"expecting a value in the next {FUTURE_TOLERANCE.days} days, got {value}"
    return None


def check_before(value1: object, value2: object, other_field: str) -> str | None:
    """``value1`` must not be later than ``value2``.

    Booleans (e.g. ``eol: false``) mean "not applicable" and are never compared.
    """
    if not (is_date_like(value1) and is_date_like(value2)):
        return None
    if as_date(value1) > as_date(value2):
        return f"expecting a value before {other_field} ({value2})"
    return None
