"""Controller scope resolution for targets, values, actions and selectors.

Markup declarations are resolved on the parsed element tree. Declarations
produced by embedded Ruby have no element, so they are placed by source line:
a controller's scope is the line span from the tag that declares it to the
matching closing tag, or the span of a fragment that declares it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Callable, Iterable

from bs4 import Tag
from soupsieve import SelectorSyntaxError

from stimlint.core.logging import get_logger
from stimlint.erb.fragments import line_number
from stimlint.erb.queries import (
    PairMatch,
    contains_controller,
    declared_controllers,
    find_targets,
    find_values,
)
from stimlint.erb.ruby import RubyParser, RubyTree

from .partials import PartialReferenceMap, rendered_partials
from .views import ParsedFragment, ViewDocument, ViewSet, controller_tokens

__all__ = [
    "LineSpan",
    "ScopeResolver",
    "ScopeState",
    "element_line_span",
    "find_scope_end",
    "line_scopes",
]

_logger = get_logger(__name__, component="scope")

_OPENING_TAG = re.compile(r"<(\w+)(?:\s[^>]*)?(?:\s+data-controller|\s+id=)")
_VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "embed",
        "hr",
        "img",
        "input",
        "link",
        "meta",
        "source",
        "track",
        "wbr",
    }
)


class ScopeState(StrEnum):
    IN_SCOPE = "in_scope"
    OUT_OF_SCOPE = "out_of_scope"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class LineSpan:
    """Inclusive 1-based line range."""

    start: int
    end: int

    def contains(self, line: int) -> bool:
        return self.start <= line <= self.end


def _depth_scan(lines: list[str], tag: str, start: int, column: int = 0) -> int:
    """Return the 1-based line closing the ``tag`` opened on ``start``.

    Falls back to the last line when no matching closer exists.
    """

    opener = re.compile(rf"<{re.escape(tag)}(?:\s|>)")
    closer = re.compile(rf"</{re.escape(tag)}>")
    depth = 0
    found = False
    for index in range(start, len(lines)):
        line = lines[index][column:] if index == start else lines[index]
        events = sorted(
            [(m.start(), 1) for m in opener.finditer(line)]
            + [(m.start(), -1) for m in closer.finditer(line)]
        )
        for _, delta in events:
            depth += delta
            if delta > 0:
                found = True
            elif found and depth == 0:
                return index + 1
    return len(lines)


def find_scope_end(lines: list[str], start_index: int) -> int:
    """Return the last line of the element opened at ``start_index``.

    The opening tag is looked for on the given line or the line before it;
    without one the scope runs to the end of the file.

    Example:
        >>> find_scope_end(['<div data-controller="a">', "<p></p>", "</div>", "x"], 0)
        3
    """

    for index in (start_index - 1, start_index):
        if index < 0:
            continue
        match = _OPENING_TAG.search(lines[index])
        if match is not None:
            return _depth_scan(lines, match.group(1), index)
    return len(lines)


def _mentions_controller(line: str, controller: str) -> bool:
    if "data-controller=" not in line or controller not in line:
        return False
    quoted = (
        f'"{controller}"',
        f"'{controller}'",
        f'"{controller} ',
        f"'{controller} ",
        f' {controller}"',
        f" {controller}'",
        f" {controller} ",
    )
    return any(candidate in line for candidate in quoted)


def line_scopes(lines: list[str], controller: str) -> list[LineSpan]:
    """Line spans of markup tags whose ``data-controller`` names ``controller``."""

    spans: list[LineSpan] = []
    for index, line in enumerate(lines):
        if _mentions_controller(line, controller):
            spans.append(LineSpan(index + 1, find_scope_end(lines, index)))
    return spans


def element_line_span(document: ViewDocument, element: Tag) -> LineSpan:
    """Line span covered by ``element`` in the template source."""

    start = getattr(element, "sourceline", None) or 1
    column = getattr(element, "sourcepos", None) or 0
    if element.name in _VOID_ELEMENTS:
        return LineSpan(start, start)
    end = _depth_scan(document.lines, element.name, start - 1, column)
    return LineSpan(start, end)


def _fragment_span(document: ViewDocument, parsed: ParsedFragment) -> LineSpan:
    fragment = parsed.fragment
    return LineSpan(
        fragment.line, line_number(document.text, fragment.end_offset)
    )


def _has_token(element: Tag, attribute: str, token: str) -> bool:
    value = element.get(attribute)
    if value is None:
        return False
    if isinstance(value, list):
        value = " ".join(value)
    return token in value.split()


def _is_within(element: Tag, container: Tag) -> bool:
    return element is container or any(
        parent is container for parent in element.parents
    )


class ScopeResolver:
    """Resolves declarations of one view document against controller scope.

    ``strict_fragment_scope`` controls how declarations found in embedded
    Ruby are classified: when set, they count only if they sit inside the
    controller element's line span or the declaring fragment attaches the
    controller itself; otherwise any match in the file counts.
    """

    def __init__(
        self,
        document: ViewDocument,
        parser: RubyParser,
        *,
        strict_fragment_scope: bool = True,
        partials: PartialReferenceMap | None = None,
        views: ViewSet | None = None,
        views_dir: str = "app/views",
    ) -> None:
        self.document = document
        self.parser = parser
        self.strict_fragment_scope = strict_fragment_scope
        self.partials = partials
        self.views = views
        self.views_dir = views_dir
        self._fragment_spans: dict[str, list[LineSpan]] = {}

    # ------------------------------------------------------------------
    # Targets and values
    # ------------------------------------------------------------------
    def resolve_target(
        self,
        element: Tag,
        controller: str,
        target: str,
    ) -> ScopeState:
        attribute = f"data-{controller}-target"
        if _has_token(element, attribute, target):
            return ScopeState.IN_SCOPE
        if element.find(lambda tag: _has_token(tag, attribute, target)):
            return ScopeState.IN_SCOPE

        fragment_state = self._fragment_state(
            element,
            controller,
            lambda tree: find_targets(tree, controller, target),
        )
        if fragment_state is ScopeState.IN_SCOPE:
            return fragment_state
        if self._rendered_partials_declare(
            element, lambda doc: self._declares_target(doc, controller, target)
        ):
            return ScopeState.IN_SCOPE

        for candidate in self.document.soup.find_all(
            lambda tag: _has_token(tag, attribute, target)
        ):
            if not _is_within(candidate, element):
                return ScopeState.OUT_OF_SCOPE
        return fragment_state

    def resolve_value(
        self,
        element: Tag,
        controller: str,
        attribute: str,
        value: str,
    ) -> ScopeState:
        if element.has_attr(attribute):
            return ScopeState.IN_SCOPE
        return self._fragment_state(
            element,
            controller,
            lambda tree: find_values(tree, controller, value),
        )

    def _fragment_state(
        self,
        element: Tag,
        controller: str,
        query: Callable[[RubyTree], list[PairMatch]],
    ) -> ScopeState:
        span = element_line_span(self.document, element)
        state = ScopeState.NOT_FOUND
        for parsed in self.document.parsed_fragments(self.parser):
            matches = query(parsed.tree)
            if not matches:
                continue
            if not self.strict_fragment_scope:
                return ScopeState.IN_SCOPE
            if contains_controller(parsed.tree, controller):
                return ScopeState.IN_SCOPE
            for match in matches:
                if span.contains(parsed.source_line(match.row)):
                    return ScopeState.IN_SCOPE
            state = ScopeState.OUT_OF_SCOPE
        return state

    def _declares_target(
        self,
        document: ViewDocument,
        controller: str,
        target: str,
    ) -> bool:
        attribute = f"data-{controller}-target"
        if document.soup.find(lambda tag: _has_token(tag, attribute, target)):
            return True
        return any(
            find_targets(parsed.tree, controller, target)
            for parsed in document.parsed_fragments(self.parser)
        )

    def _rendered_partials_declare(
        self,
        element: Tag,
        predicate: Callable[[ViewDocument], bool],
    ) -> bool:
        """Check partials rendered inside ``element``, transitively."""

        if self.views is None:
            return False
        span = element_line_span(self.document, element)
        pending = [
            path
            for path, line in rendered_partials(self.document, self.views_dir)
            if span.contains(line)
        ]
        visited: set[str] = {self.document.relative_path}
        while pending:
            path = pending.pop(0)
            if path in visited:
                continue
            visited.add(path)
            document = self.views.get(path)
            if document is None:
                continue
            if predicate(document):
                return True
            pending.extend(
                path for path, _ in rendered_partials(document, self.views_dir)
            )
        return False

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def fragment_controller_spans(self, controller: str) -> list[LineSpan]:
        """Spans of fragments that attach ``controller`` themselves."""

        if controller not in self._fragment_spans:
            self._fragment_spans[controller] = [
                _fragment_span(self.document, parsed)
                for parsed in self.document.parsed_fragments(self.parser)
                if controller in declared_controllers(parsed.tree)
            ]
        return self._fragment_spans[controller]

    def controller_spans(self, controller: str) -> list[LineSpan]:
        """Line spans where ``controller`` is attached in this document."""

        return line_scopes(
            self.document.lines, controller
        ) + self.fragment_controller_spans(controller)

    def markup_action_in_scope(self, element: Tag, controller: str) -> bool:
        """Check the element, its ancestors, then enclosing block helpers."""

        if controller in controller_tokens(element):
            return True
        for ancestor in element.parents:
            if controller in controller_tokens(ancestor):
                return True
        line = getattr(element, "sourceline", None)
        if line is None:
            return False
        spans = self.fragment_controller_spans(controller)
        return any(span.contains(line) for span in spans)

    def fragment_action_in_scope(self, line: int, controller: str) -> bool:
        spans = self.controller_spans(controller)
        return any(span.contains(line) for span in spans)

    def in_parent_scope(self, controller: str) -> bool:
        """Whether a template rendering this partial attaches ``controller``."""

        if not self.document.is_partial or self.partials is None:
            return False
        if self.views is None:
            return False
        parents = self.partials.controllers_from_parents(
            self.document.relative_path, self.views, self.parser
        )
        return controller in parents

    def classify_unscoped_action(self, controller: str) -> ScopeState:
        """Distinguish a misplaced action from one with no controller at all."""

        if self.document.declares_controller(controller, self.parser):
            return ScopeState.OUT_OF_SCOPE
        return ScopeState.NOT_FOUND

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------
    def resolve_selector(
        self,
        selector: str,
        controller_elements: Iterable[Tag],
    ) -> ScopeState:
        """Classify a ``querySelector`` literal against controller elements.

        Selectors soupsieve cannot compile match nothing.
        """

        elements = list(controller_elements)
        for element in elements:
            try:
                if element.select(selector):
                    return ScopeState.IN_SCOPE
            except SelectorSyntaxError:
                _logger.debug(
                    "selector-invalid",
                    file=self.document.relative_path,
                    selector=selector,
                )
                return ScopeState.NOT_FOUND

        try:
            matches = self.document.soup.select(selector)
        except SelectorSyntaxError:
            return ScopeState.NOT_FOUND
        for match in matches:
            if not any(_is_within(match, element) for element in elements):
                return ScopeState.OUT_OF_SCOPE
        return ScopeState.NOT_FOUND
