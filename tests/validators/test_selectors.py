"""Tests for :mod:`stimlint.validators.selectors`."""

from __future__ import annotations

from stimlint.findings import FindingKind

MODAL_VIEW = """
<div data-controller="modal">
  <div class="dialog"></div>
</div>
<div class="backdrop"></div>
"""


def _selector(selector: str, line: int, **extra) -> dict:
    return {
        "selector": selector,
        "method": "querySelector",
        "line": line,
        **extra,
    }


def test_selector_states(rails_project) -> None:
    rails_project.controller(
        "modal",
        query_selectors=[
            _selector(".dialog", 3),
            _selector(".backdrop", 4),
            _selector(".missing", 5),
            _selector("[[broken", 6),
            _selector(".dynamic-${id}", 7, is_template=True),
            _selector(".skipped", 8, skip_validation=True),
        ],
    )
    rails_project.view("home/index.html.erb", MODAL_VIEW)

    report = rails_project.run("selectors")

    summary = [(f.kind, f.subject, f.line) for f in report.findings]
    assert summary == [
        (FindingKind.SELECTOR_OUT_OF_SCOPE, ".backdrop", 4),
        (FindingKind.MISSING_SELECTOR, ".missing", 5),
        (FindingKind.MISSING_SELECTOR, "[[broken", 6),
    ]
    finding = report.findings[0]
    assert finding.file == "app/javascript/controllers/modal_controller.ts"
    assert finding.details == {"view_file": "app/views/home/index.html.erb"}


def test_views_without_the_controller_are_ignored(rails_project) -> None:
    rails_project.controller("modal", query_selectors=[_selector(".x", 1)])
    rails_project.view("home/index.html.erb", "<p>nothing here</p>\n")

    assert rails_project.run("selectors").passed
