"""Console logging for the validator.

Lines look like ``[12:03:44] [ERROR] Product Validator: ...``. Errors and
warnings go to stderr, everything else to stdout.
"""

from __future__ import annotations

import sys
from datetime import datetime

TOPIC = "Product Validator:"

LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")

_min_level = "INFO"


def set_verbosity(verbose: bool = False, quiet: bool = False) -> None:
    global _min_level
    if quiet:
        _min_level = "WARN"
    elif verbose:
        _min_level = "DEBUG"
    else:
        _min_level = "INFO"


def enabled(level: str) -> bool:
    return LEVELS.index(level) >= LEVELS.index(_min_level)


def log(msg: str, level: str = "INFO") -> None:
    if not enabled(level):
        return
    timestamp = datetime.now().strftime("%H:%M:%S")
    line = f"[{timestamp}] [{level}] {msg}"
    stream = sys.stderr if level in ("WARN", "ERROR") else sys.stdout
    print(line, file=stream, flush=True)
