"""Error accumulation for one full build.

The sink is passed explicitly into every validation call. It only grows:
there is no way to reset it mid-build.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from datetime import date

from .log import TOPIC, log

# Issue kinds
SCHEMA = "schema"
ORDERING = "ordering"
UNDECLARED_FIELD = "undeclared-field"
IDENTIFIER = "identifier"
URL = "url"
URL_SUPPRESSED = "url-suppressed"


@dataclass(frozen=True)
class Issue:
    location: str
    field: str
    value: object
    reason: str
    kind: str = SCHEMA
    severity: str = "error"

    def message(self) -> str:
        return f"Invalid {self.field} '{self.value}' for {self.location}, {self.reason}."

    def to_dict(self) -> dict:
        d = asdict(self)
        d["value"] = _jsonable(self.value)
        return d


def _jsonable(value: object) -> object:
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class ErrorSink:
    def __init__(self):
        self.errors: list[Issue] = []
        self.warnings: list[Issue] = []
        self._lock = threading.Lock()

    def report(self, location: str, field: str, value: object, reason: str, kind: str = SCHEMA) -> Issue:
        issue = Issue(location, field, value, reason, kind, "error")
        log(f"{TOPIC} {issue.message()}", "ERROR")
        with self._lock:
            self.errors.append(issue)
        return issue

    def warn(self, location: str, field: str, value: object, reason: str, kind: str = URL_SUPPRESSED) -> Issue:
        issue = Issue(location, field, value, reason, kind, "warning")
        log(f"{TOPIC} {issue.message()}", "WARN")
        with self._lock:
            self.warnings.append(issue)
        return issue

    def count(self) -> int:
        with self._lock:
            return len(self.errors)

    def warning_count(self) -> int:
        with self._lock:
            return len(self.warnings)

    @property
    def ok(self) -> bool:
        return self.count() == 0

    def summary(self) -> list[str]:
        with self._lock:
            errors = list(self.errors)
            warnings = list(self.warnings)
        lines = []
        if errors:
            lines.append(f"ERRORS ({len(errors)}):")
            for e in errors:
                lines.append(f"  ✗ {e.message()}")
        if warnings:
            lines.append(f"WARNINGS ({len(warnings)}):")
            for w in warnings:
                lines.append(f"  ⚠ {w.message()}")
        if not errors and not warnings:
            lines.append("✓ All checks passed")
        elif not errors:
            lines.append(f"✓ No errors ({len(warnings)} warnings)")
        return lines

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "error_count": len(self.errors),
                "warning_count": len(self.warnings),
                "errors": [e.to_dict() for e in self.errors],
                "warnings": [w.to_dict() for w in self.warnings],
            }
