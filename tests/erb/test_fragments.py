"""Tests for :mod:`stimlint.erb.fragments`."""

from __future__ import annotations

import re

from stimlint.erb.fragments import (
    FragmentKind,
    extract_fragments,
    has_end_keyword,
    merge_fragments,
    parse_fragments,
    strip_string_literals,
)


ACCORDION = """\
<div class="list">
  <%= form_with(model: @item, data: { controller: "accordion" }) do |f| %>
    <%= f.text_field :name %>
    <% if @open %>
      <p>open</p>
    <% end %>
  <% end %>
</div>
"""


def test_extract_classifies_output_and_execution() -> None:
    fragments = extract_fragments("<%= title %><% x = 1 %><%- y -%>")

    assert [f.kind for f in fragments] == [
        FragmentKind.OUTPUT,
        FragmentKind.EXECUTION,
        FragmentKind.EXECUTION,
    ]
    assert [f.code for f in fragments] == ["title", "x = 1", "y"]


def test_extract_skips_comments_and_escaped_tags() -> None:
    fragments = extract_fragments("<%# note %><%% literal %><%= shown %>")

    assert [f.code for f in fragments] == ["shown"]


def test_extract_reports_line_numbers() -> None:
    fragments = extract_fragments(ACCORDION)

    assert [f.line for f in fragments] == [2, 3, 4, 6, 7]


def test_merge_joins_block_with_its_closer() -> None:
    merged = parse_fragments(ACCORDION)

    assert len(merged) == 1
    block = merged[0]
    assert block.merged is True
    assert block.kind is FragmentKind.OUTPUT
    assert block.code.splitlines() == [
        'form_with(model: @item, data: { controller: "accordion" }) do |f|',
        "f.text_field :name",
        "if @open",
        "end",
        "end",
    ]
    assert block.line == 2
    assert block.end_offset == ACCORDION.rindex("%>") + 2


def test_merged_rows_map_back_to_template_lines() -> None:
    block = parse_fragments(ACCORDION)[0]

    assert [block.source_line(row) for row in range(5)] == [2, 3, 4, 6, 7]


def test_merge_abandons_unbalanced_block() -> None:
    text = "<%= link_to root_path do %><span>x</span>"

    fragments = parse_fragments(text)

    assert len(fragments) == 1
    assert fragments[0].merged is False


def test_merge_abandons_on_stray_closer() -> None:
    fragments = extract_fragments(
        "<% items.each do |i| %><% end %><% end %><% end %>"
    )
    merged = merge_fragments(fragments)

    assert [f.code for f in merged] == [
        "items.each do |i|\nend",
        "end",
        "end",
    ]


def test_merge_is_balanced() -> None:
    for fragment in parse_fragments(ACCORDION):
        bare = strip_string_literals(fragment.code)
        opened = len(re.findall(r"\b(?:do|if)\b", bare)) + bare.count("{")
        closed = len(re.findall(r"\bend\b", bare)) + bare.count("}")
        assert opened == closed


def test_extract_and_merge_is_idempotent() -> None:
    first = parse_fragments(ACCORDION)
    second = parse_fragments(ACCORDION)

    assert first == second


def test_has_end_keyword_ignores_string_contents() -> None:
    assert has_end_keyword('link_to "the end", path') is False
    assert has_end_keyword("items.each do |i| puts i end") is True
