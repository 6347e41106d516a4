"""Shell glob matching for slash-separated image paths.

Patterns are matched one path segment at a time with fnmatch, which gives
the usual ``*``, ``?`` and ``[...]`` semantics without letting ``*`` cross a
``/``. A segment consisting only of ``**`` matches zero or more whole
segments, and ``{a,b}`` alternatives are expanded before matching.

As with most glob implementations, wildcards do not match a segment that
starts with ``.`` unless the pattern segment also starts with ``.``.
"""

from __future__ import annotations

import fnmatch
from collections.abc import Iterable
from functools import lru_cache

GLOBSTAR = "**"


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternatives into separate patterns.

    Nested groups are supported. A brace without a matching close brace or
    without a top-level comma is kept literally.

    Args:
        pattern: Glob pattern, possibly with brace groups.

    Returns:
        List of patterns with every brace group expanded.

    Example:
        >>> expand_braces("**/{package,bower}.json")
        ['**/package.json', '**/bower.json']
    """
    depth = 0
    start = -1
    commas: list[int] = []
    for i, char in enumerate(pattern):
        if char == "{":
            if depth == 0:
                start = i
                commas = []
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                if not commas:
                    # "{x}" has nothing to expand, keep it and look further on
                    rest = expand_braces(pattern[i + 1 :])
                    return [pattern[: i + 1] + tail for tail in rest]
                prefix = pattern[:start]
                suffix = pattern[i + 1 :]
                bounds = [start, *commas, i]
                expanded: list[str] = []
                for left, right in zip(bounds, bounds[1:]):
                    option = pattern[left + 1 : right]
                    expanded.extend(expand_braces(prefix + option + suffix))
                return expanded
        elif char == "," and depth == 1:
            commas.append(i)
    return [pattern]


def _normalize_segment(segment: str) -> str:
    # fnmatch negates classes with "!", minimatch-style patterns also use "^"
    return segment.replace("[^", "[!")


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> tuple[tuple[str, ...], ...]:
    return tuple(
        tuple(_normalize_segment(segment) for segment in alternative.split("/"))
        for alternative in expand_braces(pattern)
    )


def _segment_matches(segment: str, pattern: str) -> bool:
    if segment.startswith(".") and not pattern.startswith("."):
        return False
    if not segment and pattern:
        # wildcards never match the empty leading segment of an absolute path
        return pattern == segment
    return fnmatch.fnmatchcase(segment, pattern)


def _close(states: set[int], pattern: tuple[str, ...]) -> set[int]:
    # a globstar may match zero segments
    for j in sorted(states):
        while j < len(pattern) and pattern[j] == GLOBSTAR:
            j += 1
            states.add(j)
    return states


def _match_segments(path: tuple[str, ...], pattern: tuple[str, ...]) -> bool:
    # states holds every j for which pattern[:j] matches the path consumed so far
    states = _close({0}, pattern)
    for segment in path:
        following: set[int] = set()
        for j in states:
            if j == len(pattern):
                continue
            part = pattern[j]
            if part == GLOBSTAR:
                if not segment.startswith("."):
                    following.add(j)
            elif _segment_matches(segment, part):
                following.add(j + 1)
        if not following:
            return False
        states = _close(following, pattern)
    return len(pattern) in states


def match(path: str, pattern: str) -> bool:
    """Check whether a single glob pattern matches a path.

    Args:
        path: Slash-separated path, usually absolute.
        pattern: Glob pattern.

    Returns:
        True if the pattern matches the whole path.
    """
    if not path or not pattern:
        return False
    segments = tuple(path.split("/"))
    return any(
        _match_segments(segments, alternative) for alternative in _compile(pattern)
    )


def matches(path: str, patterns: Iterable[str] | None) -> bool:
    """Check whether any of the glob patterns matches a path.

    Args:
        path: Slash-separated path.
        patterns: Glob patterns. None or an empty list never matches.

    Returns:
        True if at least one pattern matches.
    """
    if not path or not patterns:
        return False
    return any(match(path, pattern) for pattern in patterns)


def is_excluded(path: str, exclusion_globs: Iterable[str] | None) -> bool:
    """Check whether a path is dropped by the exclusion globs."""
    return matches(path, exclusion_globs)
