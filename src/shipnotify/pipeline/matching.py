"""Ordered rule matching shared by the extraction stages.

A rule list is an ordered sequence of ``(pattern, handler)`` pairs. The
first pattern that matches wins and its handler turns the regex match into
a value. List order is the tie-break when several patterns could match.
"""

import re
import unicodedata
from typing import Callable, Optional, Sequence, TypeVar

T = TypeVar("T")

Handler = Callable[[re.Match], Optional[T]]
Rule = tuple[re.Pattern, Handler]


def first_match(text: str, rules: Sequence[Rule]) -> Optional[T]:
    """Evaluate ``rules`` in order against ``text``.

    Args:
        text: Text to search.
        rules: Ordered ``(compiled pattern, handler)`` pairs.

    Returns:
        The value from the first rule whose pattern matches and whose
        handler returns something other than None, else None.
    """
    for pattern, handler in rules:
        match = pattern.search(text)
        if match is None:
            continue
        value = handler(match)
        if value is not None:
            return value
    return None


def group(index: int = 1) -> Handler:
    """Handler returning one stripped capture group."""

    def _handler(match: re.Match) -> Optional[str]:
        value = match.group(index)
        if value is None:
            return None
        return value.strip() or None

    return _handler


def constant(value: T) -> Handler:
    """Handler returning ``value`` whenever the pattern matches."""
    return lambda _match: value


def strip_accents(text: str) -> str:
    """Lower-case ``text`` and drop combining accent marks."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()
