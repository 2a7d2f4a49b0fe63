"""Heuristic completion of truncated Ruby fragments."""

from __future__ import annotations

import re

from .fragments import has_end_keyword, strip_string_literals

__all__ = ["WIRING_KEYWORDS", "has_wiring_keyword", "preprocess"]

WIRING_KEYWORDS = ("data", "controller", "target", "action", "value")

_VERBATIM_PATTERNS = (
    re.compile(r"^\w+\s*\(.*\)$", re.DOTALL),
    re.compile(r"^[\w.\[\]]+$"),
    re.compile(
        r"^(?:if|unless|case|when|else|elsif|end|do|while|for|begin|rescue|ensure)\b"
    ),
    re.compile(r"^(?:def|class|module)\b"),
    re.compile(r"^@?\w+\s*(?:=(?![=~>])|\[)"),
    re.compile(r"^[\w.\[\]\"']+$"),
)
_TRAILING_DO = re.compile(r"\bdo\s*(?:\|[^|]*\|)?\s*$")
_DO_WITH_PARAMS = re.compile(r"\sdo\s*\|")
_BARE_DO = re.compile(r"\sdo\b(?!\s*\|)")
_CLOSERS = {"{": "}", "[": "]", "(": ")"}


def has_wiring_keyword(code: str) -> bool:
    """Return ``True`` when ``code`` mentions any wiring keyword."""

    return any(keyword in code for keyword in WIRING_KEYWORDS)


def _opens_unclosed_do(code: str) -> bool:
    bare = strip_string_literals(code)
    if has_end_keyword(bare):
        return False
    return bool(
        _DO_WITH_PARAMS.search(bare)
        or _BARE_DO.search(bare)
        or _TRAILING_DO.search(bare)
    )


def _missing_closers(bare: str) -> list[str]:
    """Closers for still-open brackets, innermost first.

    Example:
        >>> _missing_closers("foo(data: { a: [1")
        [']', '}', ')']
    """

    stack: list[str] = []
    for char in bare:
        if char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif stack and char == stack[-1]:
            stack.pop()
    return stack[::-1]


def preprocess(code: str) -> str:
    """Return ``code`` completed enough to parse in isolation.

    Fragments without a wiring keyword, and fragments that are plain calls,
    identifiers, control flow, definitions or simple assignments, are
    returned unchanged. Other fragments get an ``end`` for a dangling ``do``
    and closing characters for unbalanced braces, brackets and parentheses.
    Applying the function twice yields the same result as applying it once.

    Example:
        >>> preprocess('form_with(data: { controller: "x" }) do |f|')
        'form_with(data: { controller: "x" }) do |f|\\nend'
    """

    stripped = code.strip()
    if not has_wiring_keyword(stripped):
        return code
    if any(pattern.search(stripped) for pattern in _VERBATIM_PATTERNS):
        return code

    result = stripped
    if _opens_unclosed_do(result):
        result = f"{result}\nend"

    for closer in _missing_closers(strip_string_literals(result)):
        result += f" {closer}"
    return result
