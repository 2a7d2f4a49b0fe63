"""Tests for :mod:`stimlint.validators.targets` and the accordion scenario."""

from __future__ import annotations

from stimlint.findings import FindingKind

ACCORDION = """
<div data-controller="accordion">
  <button data-action="click->accordion#toggle">Toggle</button>
  <div data-accordion-target="panel">Body</div>
</div>
"""

ACCORDION_BUTTON_OUTSIDE = """
<div data-controller="accordion">
  <div data-accordion-target="panel">Body</div>
</div>
<button data-action="click->accordion#toggle">Toggle</button>
"""


def _accordion(rails_project, template: str, **record) -> None:
    record.setdefault("targets", ["panel"])
    record.setdefault("methods", ["toggle"])
    rails_project.controller("accordion", **record)
    rails_project.view("pages/faq.html.erb", template)


def test_accordion_is_clean(rails_project) -> None:
    _accordion(rails_project, ACCORDION)

    report = rails_project.run("registration", "targets", "actions")

    assert report.passed, report.failure_message()
    assert [result.name for result in report.results] == [
        "registration",
        "targets",
        "actions",
    ]


def test_action_outside_controller_yields_single_scope_finding(
    rails_project,
) -> None:
    _accordion(rails_project, ACCORDION_BUTTON_OUTSIDE)

    report = rails_project.run("registration", "targets", "actions")

    assert [finding.kind for finding in report.findings] == [
        FindingKind.ACTION_OUT_OF_SCOPE
    ]
    finding = report.findings[0]
    assert finding.file == "app/views/pages/faq.html.erb"
    assert finding.line == 4
    assert finding.controller == "accordion"


def test_missing_target_is_reported(rails_project) -> None:
    _accordion(
        rails_project,
        '<div data-controller="accordion"></div>\n',
        targets=["panel", "header"],
    )

    report = rails_project.run("targets")

    kinds = sorted((f.kind, f.subject) for f in report.findings)
    assert kinds == [
        (FindingKind.MISSING_TARGET, "header"),
        (FindingKind.MISSING_TARGET, "panel"),
    ]
    assert "accordion-target" in report.findings[0].suggestion


def test_target_in_sibling_is_out_of_scope(rails_project) -> None:
    _accordion(
        rails_project,
        """
        <div data-controller="accordion"></div>
        <div data-accordion-target="panel"></div>
        """,
    )

    report = rails_project.run("targets")

    [finding] = report.findings
    assert finding.kind is FindingKind.TARGET_OUT_OF_SCOPE
    assert finding.line == 1


def test_skip_directive_and_optional_targets_are_not_required(
    rails_project,
) -> None:
    _accordion(
        rails_project,
        '<div data-controller="accordion"></div>\n',
        targets=["panel", "icon"],
        targets_with_skip=["panel"],
        optional_targets=["icon"],
    )

    report = rails_project.run("targets")

    assert report.passed


def test_target_rendered_from_partial_counts(rails_project) -> None:
    _accordion(
        rails_project,
        """
        <div data-controller="accordion">
          <%= render "panel" %>
        </div>
        """,
    )
    rails_project.view(
        "pages/_panel.html.erb",
        '<div data-accordion-target="panel"></div>\n',
    )

    report = rails_project.run("targets")

    assert report.passed, report.failure_message()


def test_erb_declared_target_is_found(rails_project, ruby_parser) -> None:
    _accordion(
        rails_project,
        """
        <div data-controller="accordion">
          <%= tag.div "Body", data: { accordion_target: "panel" } %>
        </div>
        """,
    )

    report = rails_project.run("targets")

    assert report.passed, report.failure_message()
