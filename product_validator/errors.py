from __future__ import annotations

from dataclasses import dataclass

EXIT_OK = 0
EXIT_ABORTED = 1
EXIT_CONFIG = 2


@dataclass
class ConfigError(Exception):
    """Unusable input: unreadable records, bad front matter, bad policy file."""

    message: str
    code: int = EXIT_CONFIG

    def __str__(self) -> str:
        return self.message


class BuildAborted(Exception):
    """Raised once, at the end of a build, when any error was reported."""

    code = EXIT_ABORTED

    def __init__(self, error_count: int):
        self.error_count = error_count
        super().__init__(f"Site build canceled : {error_count} errors detected")
