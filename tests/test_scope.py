"""Tests for :mod:`stimlint.scope`."""

from __future__ import annotations

import textwrap
from pathlib import Path

from stimlint.erb.ruby import RubyParser
from stimlint.scope import (
    LineSpan,
    ScopeResolver,
    ScopeState,
    element_line_span,
    find_scope_end,
    line_scopes,
)
from stimlint.views import ViewDocument


def _document(text: str, name: str = "home/index.html.erb") -> ViewDocument:
    relative = f"app/views/{name}"
    return ViewDocument(
        relative_path=relative,
        path=Path("/srv/app") / relative,
        text=textwrap.dedent(text).lstrip("\n"),
    )


def _resolver(
    document: ViewDocument,
    parser: RubyParser | None = None,
    *,
    strict: bool = True,
) -> ScopeResolver:
    return ScopeResolver(
        document,
        parser or RubyParser(),
        strict_fragment_scope=strict,
    )


GALLERY = """
<div data-controller="gallery">
  <ul>
    <li data-gallery-target="slide">one</li>
  </ul>
</div>
<section>
  <span data-gallery-target="caption">outside</span>
</section>
"""


def test_descendant_target_is_in_scope() -> None:
    document = _document(GALLERY)
    [element] = document.controller_elements("gallery")

    state = _resolver(document).resolve_target(element, "gallery", "slide")

    assert state is ScopeState.IN_SCOPE


def test_sibling_target_is_out_of_scope() -> None:
    document = _document(GALLERY)
    [element] = document.controller_elements("gallery")

    state = _resolver(document).resolve_target(element, "gallery", "caption")

    assert state is ScopeState.OUT_OF_SCOPE


def test_absent_target_is_not_found() -> None:
    document = _document(GALLERY)
    [element] = document.controller_elements("gallery")

    state = _resolver(document).resolve_target(element, "gallery", "thumb")

    assert state is ScopeState.NOT_FOUND


def test_target_on_controller_element_itself() -> None:
    document = _document(
        '<div data-controller="menu" data-menu-target="root"></div>'
    )
    [element] = document.controller_elements("menu")

    state = _resolver(document).resolve_target(element, "menu", "root")

    assert state is ScopeState.IN_SCOPE


ERB_FORM = """
<div data-controller="search">
  <%= form_with url: search_path do |f| %>
    <%= f.text_field :q, data: { "search-target": "input" } %>
  <% end %>
</div>
<div data-controller="filter"></div>
<%= tag.span "x", data: { "filter-target": "label" } %>
"""


def test_erb_target_inside_element_span_is_in_scope(ruby_parser) -> None:
    document = _document(ERB_FORM)
    [element] = document.controller_elements("search")

    resolver = _resolver(document, ruby_parser)

    assert resolver.resolve_target(element, "search", "input") is (
        ScopeState.IN_SCOPE
    )


def test_erb_target_elsewhere_depends_on_strictness(ruby_parser) -> None:
    document = _document(ERB_FORM)
    [element] = document.controller_elements("filter")

    strict = _resolver(document, ruby_parser, strict=True)
    loose = _resolver(document, ruby_parser, strict=False)

    assert strict.resolve_target(element, "filter", "label") is (
        ScopeState.OUT_OF_SCOPE
    )
    assert loose.resolve_target(element, "filter", "label") is (
        ScopeState.IN_SCOPE
    )


def test_erb_fragment_declaring_controller_counts(ruby_parser) -> None:
    document = _document(
        """
        <div data-controller="tabs"></div>
        <%= tag.div data: { controller: "tabs", tabs_target: "panel" } %>
        """
    )
    [element] = document.controller_elements("tabs")

    state = _resolver(document, ruby_parser).resolve_target(
        element, "tabs", "panel"
    )

    assert state is ScopeState.IN_SCOPE


def test_value_on_element_is_in_scope() -> None:
    document = _document(
        '<div data-controller="countdown" '
        'data-countdown-ends-at-value="2024"></div>'
    )
    [element] = document.controller_elements("countdown")

    state = _resolver(document).resolve_value(
        element, "countdown", "data-countdown-ends-at-value", "endsAt"
    )

    assert state is ScopeState.IN_SCOPE


def test_find_scope_end_tracks_nesting() -> None:
    lines = [
        '<div data-controller="a">',
        "  <div>",
        "  </div>",
        "</div>",
        "<p>after</p>",
    ]

    assert find_scope_end(lines, 0) == 4


def test_line_scopes_requires_exact_token() -> None:
    lines = [
        '<div data-controller="menu-item">',
        "</div>",
        '<nav data-controller="nav menu">',
        "</nav>",
    ]

    assert line_scopes(lines, "menu") == [LineSpan(3, 4)]


def test_element_line_span_for_void_element() -> None:
    document = _document('<p>\n<input data-controller="picker">\n</p>')
    [element] = document.controller_elements("picker")

    assert element_line_span(document, element) == LineSpan(2, 2)


def test_markup_action_ancestor_scope() -> None:
    document = _document(
        """
        <div data-controller="menu">
          <button data-action="click->menu#open">Open</button>
        </div>
        <button data-action="click->menu#close">Close</button>
        """
    )
    inside, outside = document.soup.find_all("button")
    resolver = _resolver(document)

    assert resolver.markup_action_in_scope(inside, "menu") is True
    assert resolver.markup_action_in_scope(outside, "menu") is False
    assert resolver.classify_unscoped_action("menu") is ScopeState.OUT_OF_SCOPE


def test_selector_resolution() -> None:
    document = _document(
        """
        <div data-controller="modal">
          <div class="dialog"></div>
        </div>
        <div class="backdrop"></div>
        """
    )
    elements = document.controller_elements("modal")
    resolver = _resolver(document)

    assert resolver.resolve_selector(".dialog", elements) is (
        ScopeState.IN_SCOPE
    )
    assert resolver.resolve_selector(".backdrop", elements) is (
        ScopeState.OUT_OF_SCOPE
    )
    assert resolver.resolve_selector(".missing", elements) is (
        ScopeState.NOT_FOUND
    )
    assert resolver.resolve_selector("[[broken", elements) is (
        ScopeState.NOT_FOUND
    )
