"""Load product records from markdown files with YAML front matter.

A product file looks like::

    ---
    title: Python
    category: lang
    releases:
      - releaseCycle: "3.12"
        releaseDate: 2023-10-02
    ---

    Free-form markdown content, scanned for URLs.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigError

FRONT_MATTER_DELIMITER = "---"


@dataclass
class Record:
    name: str
    data: dict = field(default_factory=dict)
    content: str = ""
    path: Path | None = None
    # Set when the front matter could not be parsed; ``data`` is then empty.
    load_error: str | None = None

    @property
    def key(self) -> str:
        """Unique per build: the path when known, else the name."""
        return str(self.path) if self.path is not None else self.name

    @property
    def is_product(self) -> bool:
        return self.data.get("layout") == "product"


def split_front_matter(text: str) -> tuple[str, str]:
    """Return ``(front_matter, content)``; front matter is empty if absent."""
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return "", text
    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_DELIMITER:
            return "".join(lines[1:i]), "".join(lines[i + 1:])
    raise ValueError("front matter is not closed by '---'")


def merge_defaults(data: dict, defaults: dict | None) -> dict:
    """Record keys win over defaults; the defaults themselves are not shared."""
    if not defaults:
        return data
    merged = copy.deepcopy(defaults)
    merged.update(data)
    return merged


def parse_record(name: str, text: str, defaults: dict | None = None, path: Path | None = None) -> Record:
    """Parse one product file.

    Unparsable front matter does not raise: the record comes back with
    ``load_error`` set so the build can report it and carry on with the other
    files. YAML raises a plain ValueError for impossible dates (2023-02-30).
    """
    try:
        front_matter, content = split_front_matter(text)
        data = yaml.safe_load(front_matter) if front_matter.strip() else {}
    except (ValueError, yaml.YAMLError) as e:
        return Record(name=name, content=text, path=path, load_error=f"cannot parse front matter: {e}")
    if not isinstance(data, dict):
        return Record(name=name, content=content, path=path,
                      load_error=f"front matter must be a mapping, got {type(data).__name__}")
    return Record(name=name, data=merge_defaults(data, defaults), content=content, path=path)


def load_record(path: str | Path, defaults: dict | None = None) -> Record:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e
    return parse_record(path.name, text, defaults, path)


def load_defaults(path: str | Path | None) -> dict:
    if not path:
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read defaults {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Cannot parse defaults {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Defaults {path} must be a mapping, got {type(data).__name__}")
    return data


def find_record_files(paths: list[str | Path]) -> list[Path]:
    """Expand directories to their ``*.md`` files (sorted); keep files as given."""
    files: list[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            files.extend(sorted(p.glob("*.md")))
        elif p.is_file():
            files.append(p)
        else:
            raise ConfigError(f"No such file or directory: {p}")
    return files


def load_records(paths: list[str | Path], defaults: dict | None = None) -> list[Record]:
    return [load_record(p, defaults) for p in find_record_files(paths)]
