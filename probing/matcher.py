"""
Matcher — evaluate compiled byte patterns against a raw response body.

Patterns run on bytes, never on decoded text, so a body in any encoding
(or no valid encoding at all) can be inspected. Only the extracted spans
are decoded, lossily.
"""

import re
from typing import Iterable

from probing.errors import MalformedPattern


class _NotApplicable:
    """Sentinel: no patterns configured, so any response counts."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __bool__(self) -> bool:
        return True


NOT_APPLICABLE = _NotApplicable()


def compile_patterns(patterns: Iterable[str]) -> tuple[re.Pattern, ...]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern.encode("utf-8")))
        except re.error as exc:
            raise MalformedPattern(pattern, str(exc)) from exc
    return tuple(compiled)


def _extract(match: re.Match) -> bytes:
    if match.re.groups and match.group(1) is not None:
        return match.group(1)
    return match.group(0)


def evaluate(body: bytes, patterns: tuple[re.Pattern, ...]):
    """Run every pattern over ``body``.

    Returns ``NOT_APPLICABLE`` when ``patterns`` is empty, the list of
    extracted texts (one per matching pattern, in pattern order) when at
    least one pattern matched, and ``None`` otherwise.
    """
    if not patterns:
        return NOT_APPLICABLE

    extracted: list[str] = []
    for pattern in patterns:
        m = pattern.search(body)
        if m is not None:
            extracted.append(_extract(m).decode("utf-8", errors="replace"))

    return extracted or None
