"""Include/exclude line filtering."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from .exceptions import ConfigError

PatternLike = str | re.Pattern[str]


def compile_patterns(patterns: Iterable[PatternLike] | None) -> list[re.Pattern[str]]:
    """Compile a sequence of regular expressions, preserving order.

    Raises:
        ConfigError: If a pattern is not a valid regular expression.
    """
    compiled: list[re.Pattern[str]] = []
    for pattern in patterns or ():
        if isinstance(pattern, re.Pattern):
            compiled.append(pattern)
            continue
        try:
            compiled.append(re.compile(pattern))
        except re.error as e:
            raise ConfigError(f"invalid pattern {pattern!r}: {e}") from e
    return compiled


class LineFilter:
    """Decides which lines are delivered.

    Exclude patterns are checked first and any match drops the line. If
    include patterns are configured, a surviving line must match at least one
    of them; with no include patterns every non-excluded line is kept.
    Patterns match anywhere in the line (``re.search``).
    """

    def __init__(
        self,
        include_patterns: Iterable[PatternLike] | None = None,
        exclude_patterns: Iterable[PatternLike] | None = None,
    ):
        self.include: list[re.Pattern[str]] = compile_patterns(include_patterns)
        self.exclude: list[re.Pattern[str]] = compile_patterns(exclude_patterns)

    def accepts(self, line: str) -> bool:
        if any(pattern.search(line) for pattern in self.exclude):
            return False
        if not self.include:
            return True
        return any(pattern.search(line) for pattern in self.include)

    def apply(self, lines: Sequence[str]) -> list[str]:
        return [line for line in lines if self.accepts(line)]
