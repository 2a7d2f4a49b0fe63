"""Tests for :mod:`stimlint.validators.actions`."""

from __future__ import annotations

from stimlint.findings import FindingKind


def test_missing_method_is_reported_when_in_scope(rails_project) -> None:
    rails_project.controller("menu", methods=["open"])
    rails_project.view(
        "home/index.html.erb",
        """
        <nav data-controller="menu">
          <button data-action="click->menu#open">Open</button>
          <button data-action="click->menu#close">Close</button>
        </nav>
        """,
    )

    report = rails_project.run("actions")

    [finding] = report.findings
    assert finding.kind is FindingKind.MISSING_METHOD
    assert finding.subject == "close"
    assert finding.line == 3
    assert finding.details["available_methods"] == ["open"]


def test_action_without_any_controller_needs_scope(rails_project) -> None:
    rails_project.controller("menu", methods=["open"])
    rails_project.view(
        "home/index.html.erb",
        '<button data-action="click->menu#open">Open</button>\n',
    )

    report = rails_project.run("actions")

    [finding] = report.findings
    assert finding.kind is FindingKind.MISSING_ACTION_SCOPE
    assert finding.suggestion == 'Wrap with <div data-controller="menu">...</div>'


def test_partial_action_uses_parent_controller(rails_project) -> None:
    rails_project.controller("menu", methods=["open"])
    rails_project.view(
        "home/index.html.erb",
        """
        <nav data-controller="menu">
          <%= render "button" %>
        </nav>
        """,
    )
    rails_project.view(
        "home/_button.html.erb",
        '<button data-action="click->menu#open">Open</button>\n',
    )

    report = rails_project.run("actions")

    assert report.passed, report.failure_message()


def test_orphan_partial_action_names_parent_files(rails_project) -> None:
    rails_project.controller("menu", methods=["open"])
    rails_project.view(
        "home/index.html.erb",
        '<%= render "button" %>\n',
    )
    rails_project.view(
        "home/_button.html.erb",
        '<button data-action="click->menu#open">Open</button>\n',
    )

    report = rails_project.run("actions")

    [finding] = report.findings
    assert finding.kind is FindingKind.MISSING_ACTION_SCOPE
    assert finding.file == "app/views/home/_button.html.erb"
    assert finding.details["parent_files"] == ["app/views/home/index.html.erb"]
    assert "partial rendered in" in finding.message


def test_erb_action_inside_markup_scope(rails_project, ruby_parser) -> None:
    rails_project.controller("search", methods=["run"])
    rails_project.view(
        "home/index.html.erb",
        """
        <div data-controller="search">
          <%= button_tag "Go", data: { action: "click->search#run" } %>
        </div>
        <%= button_tag "Go", data: { action: "click->search#run" } %>
        """,
    )

    report = rails_project.run("actions")

    [finding] = report.findings
    assert finding.kind is FindingKind.ACTION_OUT_OF_SCOPE
    assert finding.line == 4
    assert finding.details["source"] == "erb"


def test_markup_action_inside_block_helper_scope(
    rails_project, ruby_parser
) -> None:
    rails_project.controller("form", methods=["submit"])
    rails_project.view(
        "home/index.html.erb",
        """
        <%= form_with url: "/x", data: { controller: "form" } do |f| %>
          <button data-action="click->form#submit">Save</button>
        <% end %>
        """,
    )

    report = rails_project.run("actions")

    assert report.passed, report.failure_message()
