"""Event-name pattern compilation.

Event names are ``.``-delimited segments. A pattern may use:

- ``*`` for exactly one segment (one or more characters, none of them ``.``)
- ``{a,b,c}`` for an alternation of literal members

Patterns always match the whole name::

    >>> compile_pattern("user.*").matches("user.create")
    True
    >>> compile_pattern("user.*").matches("user.group.create")
    False
    >>> compile_pattern("user.{create,delete}").matches("user.update")
    False
"""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass

from .protocols import EventName

_ALTERNATION = re.compile(r"\{([^}]+)\}")
_SEGMENT = "[^.]+"


def is_wildcard(pattern: EventName) -> bool:
    """Whether ``pattern`` needs matching rather than an exact lookup."""
    return "*" in pattern or "{" in pattern


@dataclass(frozen=True, slots=True)
class PatternMatcher:
    """Compiled predicate for one event-name pattern."""

    pattern: EventName
    regex: re.Pattern[str]

    def matches(self, name: EventName) -> bool:
        return self.regex.fullmatch(name) is not None

    __call__ = matches


def _translate(pattern: EventName) -> str:
    parts: list[str] = []
    position = 0
    for match in _ALTERNATION.finditer(pattern):
        parts.append(_translate_plain(pattern[position : match.start()]))
        members = (re.escape(member) for member in match.group(1).split(","))
        parts.append(f"(?:{'|'.join(members)})")
        position = match.end()
    parts.append(_translate_plain(pattern[position:]))
    return "".join(parts)


def _translate_plain(text: str) -> str:
    return _SEGMENT.join(re.escape(chunk) for chunk in text.split("*"))


@functools.lru_cache(maxsize=512)
def compile_pattern(pattern: EventName) -> PatternMatcher:
    """Compile ``pattern`` into a :class:`PatternMatcher` (memoized)."""
    return PatternMatcher(pattern=pattern, regex=re.compile(_translate(pattern)))


__all__ = ["PatternMatcher", "compile_pattern", "is_wildcard"]
