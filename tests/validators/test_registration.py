"""Tests for :mod:`stimlint.validators.registration`."""

from __future__ import annotations

from stimlint.findings import FindingKind
from stimlint.validators import generator_command


def test_generator_command_uses_underscores() -> None:
    assert generator_command("admin--user-list") == (
        "rails generate stimulus_controller admin__user_list"
    )


def test_unknown_controller_reported_once_per_file(rails_project) -> None:
    rails_project.controller("menu")
    rails_project.view(
        "home/index.html.erb",
        """
        <nav data-controller="menu ghost"></nav>
        <div data-controller="ghost"></div>
        """,
    )
    rails_project.view(
        "home/about.html.erb",
        '<div data-controller="ghost"></div>\n',
    )

    report = rails_project.run("registration")

    assert [(f.file, f.line) for f in report.findings] == [
        ("app/views/home/about.html.erb", 1),
        ("app/views/home/index.html.erb", 1),
    ]
    finding = report.findings[0]
    assert finding.kind is FindingKind.MISSING_CONTROLLER
    assert finding.suggestion == (
        "Create controller file: rails generate stimulus_controller ghost"
    )


def test_nested_controller_name_resolves(rails_project) -> None:
    name = rails_project.controller("admin/user_list")
    rails_project.view(
        "admin/index.html.erb",
        f'<div data-controller="{name}"></div>\n',
    )

    assert name == "admin--user-list"
    assert rails_project.run("registration").passed
