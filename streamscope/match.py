"""
StreamScope Matching - Selecting Subscriptions by Tag
=====================================================

A match selects which subscriptions a probe applies to:

- a `Stream` matches subscriptions to that exact stream
- an `int` matches the subscription record with that id
- a `str` matches the tag exactly, or as a shell-style glob when it contains
  `*`, `?` or `[`
- a compiled regular expression is searched for in the tag
- any other callable is called with the tag and must return a bool
"""

import fnmatch
import re
from typing import Any, Callable, Optional, Pattern, Union

from cachetools import LRUCache, cached

from .record import SubscriptionRecord
from .stream.stream import Stream

Match = Union[Stream, int, str, Pattern, Callable[[Optional[str]], bool]]

_GLOB_CHARS = frozenset("*?[")


@cached(cache=LRUCache(maxsize=256))
def _compile_glob(pattern: str) -> Pattern:
    return re.compile(fnmatch.translate(pattern))


def matches(record: SubscriptionRecord, match: Match) -> bool:
    """
    Check whether a subscription record is selected by a match.

    Raises:
        TypeError: If the match is of an unsupported type
    """
    tag = record.tag
    if isinstance(match, Stream):
        return record.stream is match
    if isinstance(match, bool):
        raise TypeError(f"Unsupported match: {match!r}")
    if isinstance(match, int):
        return record.id == match
    if isinstance(match, str):
        if tag is None:
            return False
        if _GLOB_CHARS.intersection(match):
            return _compile_glob(match).match(tag) is not None
        return tag == match
    if isinstance(match, re.Pattern):
        return tag is not None and match.search(tag) is not None
    if callable(match):
        return bool(match(tag))
    raise TypeError(f"Unsupported match: {match!r}")


def match_to_string(match: Any) -> str:
    if isinstance(match, Stream):
        return "[Stream]"
    if isinstance(match, re.Pattern):
        return f"/{match.pattern}/"
    if isinstance(match, str):
        return match
    if callable(match):
        return f"[Function] {getattr(match, '__name__', repr(match))}"
    return str(match)
