"""Ignore and suppress tables for URL checks.

Both tables are ordered ``(prefix, reason)`` pairs; lookups are case-sensitive
prefix matches and the first match wins. The default tables ship in
``data/url_policies.yaml`` and are validated against
``data/url_policies.schema.json`` when loaded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import jsonschema
import yaml

from .errors import ConfigError

DATA_DIR = Path(__file__).resolve().parent / "data"
DEFAULT_POLICIES_PATH = DATA_DIR / "url_policies.yaml"
POLICIES_SCHEMA_PATH = DATA_DIR / "url_policies.schema.json"


@dataclass(frozen=True)
class PrefixTable:
    entries: tuple[tuple[str, str], ...] = ()

    def match(self, url: str) -> str | None:
        """Return the reason of the first entry whose prefix starts ``url``."""
        for prefix, reason in self.entries:
            if url.startswith(prefix):
                return reason
        return None

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class UrlPolicies:
    ignored: PrefixTable = field(default_factory=PrefixTable)
    suppressed: PrefixTable = field(default_factory=PrefixTable)


def _table(rows: list[dict]) -> PrefixTable:
    return PrefixTable(tuple((row["prefix"], row["reason"]) for row in rows))


def policies_from_dict(data: dict) -> UrlPolicies:
    schema = json.loads(POLICIES_SCHEMA_PATH.read_text(encoding="utf-8"))
    try:
        jsonschema.validate(data, schema)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid URL policies: {e.message}") from e
    return UrlPolicies(ignored=_table(data["ignored"]), suppressed=_table(data["suppressed"]))


def load_policies(path: str | Path | None = None) -> UrlPolicies:
    path = Path(path) if path else DEFAULT_POLICIES_PATH
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read URL policies {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse URL policies {path}: {e}") from e
    return policies_from_dict(data)
