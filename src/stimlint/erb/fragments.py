"""Lexical extraction and block merging of embedded Ruby fragments.

Templates are split on ``<% ... %>`` delimiters only; no Ruby is parsed here.
A fragment that opens a block (``form_with ... do |f|``) is later re-joined
with the fragments up to its closer so the whole construct parses as one
snippet.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import StrEnum
from typing import Sequence

__all__ = [
    "Fragment",
    "FragmentKind",
    "extract_fragments",
    "has_end_keyword",
    "line_number",
    "merge_fragments",
    "parse_fragments",
    "strip_string_literals",
]

_TAG_PATTERN = re.compile(
    r"<%(?P<sigil>%|=|#|-)?(?P<code>.*?)-?%>",
    re.DOTALL,
)
_STRING_LITERAL = re.compile(r"'[^']*'|\"[^\"]*\"")
_END_KEYWORD = re.compile(r"\bend\b")
_DO_OPENER = re.compile(r"\bdo\s*(\|[^|]*\|)?")
_DO_KEYWORD = re.compile(r"\bdo\b")
_STATEMENT_OPENER = re.compile(
    r"(?:^|[;\n])\s*(?:if|unless|case|while|until|for|begin|def|class|module)\b"
)


class FragmentKind(StrEnum):
    """Whether a fragment interpolates output or only executes."""

    OUTPUT = "output"
    EXECUTION = "execution"


@dataclass(frozen=True, slots=True)
class Fragment:
    """A span of Ruby code lifted from a template.

    ``offset`` is the character offset of the opening ``<%`` and ``line`` its
    1-based line number. Merged fragments keep the offset of the fragment
    that opened the block and extend ``end_offset`` to the closer.

    ``anchors`` pairs a row of ``code`` with the template line it came from,
    one entry per joined part.
    """

    kind: FragmentKind
    code: str
    offset: int
    end_offset: int
    line: int
    merged: bool = False
    anchors: tuple[tuple[int, int], ...] = ()

    def source_line(self, row: int) -> int:
        """Map a 0-based row of :attr:`code` back to a template line."""

        source = self.line + row
        for first_row, first_line in self.anchors:
            if first_row > row:
                break
            source = first_line + (row - first_row)
        return source


def line_number(text: str, offset: int) -> int:
    """Return the 1-based line containing ``offset`` within ``text``.

    Example:
        >>> line_number("a\\nb\\nc", 4)
        3
    """

    return text.count("\n", 0, offset) + 1


def strip_string_literals(code: str) -> str:
    """Remove single- and double-quoted literal contents from ``code``."""

    return _STRING_LITERAL.sub("", code)


def has_end_keyword(code: str) -> bool:
    """Return ``True`` when ``code`` has an ``end`` outside string literals."""

    return bool(_END_KEYWORD.search(strip_string_literals(code)))


def extract_fragments(text: str) -> list[Fragment]:
    """Split ``text`` into ordered output/execution fragments.

    Comment tags (``<%#``) and escaped delimiters (``<%%``) are skipped. An
    output tag is only ever reported once, as :attr:`FragmentKind.OUTPUT`.
    """

    fragments: list[Fragment] = []
    for match in _TAG_PATTERN.finditer(text):
        sigil = match.group("sigil")
        if sigil in {"%", "#"}:
            continue
        raw = match.group("code")
        code = raw.strip()
        kind = FragmentKind.OUTPUT if sigil == "=" else FragmentKind.EXECUTION
        code_start = match.start("code") + (len(raw) - len(raw.lstrip()))
        fragments.append(
            Fragment(
                kind=kind,
                code=code,
                offset=match.start(),
                end_offset=match.end(),
                line=line_number(text, match.start()),
                anchors=((0, line_number(text, code_start)),),
            )
        )
    return fragments


def _opens_block(code: str) -> bool:
    bare = strip_string_literals(code)
    if _DO_OPENER.search(bare) and not _END_KEYWORD.search(bare):
        return True
    return bare.count("{") > bare.count("}")


def _nesting_delta(code: str) -> int:
    bare = strip_string_literals(code)
    opened = (
        len(_DO_KEYWORD.findall(bare))
        + len(_STATEMENT_OPENER.findall(bare))
        + bare.count("{")
    )
    closed = len(_END_KEYWORD.findall(bare)) + bare.count("}")
    return opened - closed


def _merge_from(
    fragments: Sequence[Fragment],
    start: int,
) -> tuple[Fragment, int] | None:
    """Merge ``fragments[start]`` with its closer.

    Returns the merged fragment and the index of the last consumed fragment,
    or ``None`` when the span never balances.
    """

    opener = fragments[start]
    parts = [opener.code]
    anchors = list(opener.anchors)
    row = opener.code.count("\n") + 1
    nesting = 1
    index = start + 1
    while index < len(fragments):
        current = fragments[index]
        nesting += _nesting_delta(current.code)
        parts.append(current.code)
        anchors.extend((row + first, line) for first, line in current.anchors)
        row += current.code.count("\n") + 1
        if nesting == 0:
            merged = replace(
                opener,
                code="\n".join(parts),
                end_offset=current.end_offset,
                merged=True,
                anchors=tuple(anchors),
            )
            return merged, index
        if nesting < 0:
            return None
        index += 1
    return None


def merge_fragments(fragments: Sequence[Fragment]) -> list[Fragment]:
    """Coalesce block-opening fragments with everything up to their closer.

    A single forward counter is kept per opener: nested openers inside the
    window are folded into it. Spans that never balance (end of input, or a
    stray closer driving the counter negative) are left unmerged.
    """

    merged: list[Fragment] = []
    index = 0
    while index < len(fragments):
        fragment = fragments[index]
        if _opens_block(fragment.code):
            outcome = _merge_from(fragments, index)
            if outcome is not None:
                combined, last = outcome
                merged.append(combined)
                index = last + 1
                continue
        merged.append(fragment)
        index += 1
    return merged


def parse_fragments(text: str) -> list[Fragment]:
    """Extract and merge fragments for ``text`` in one step."""

    return merge_fragments(extract_fragments(text))
