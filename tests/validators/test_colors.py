"""Tests for :mod:`stimlint.validators.colors`."""

from __future__ import annotations

from stimlint.findings import FindingKind
from stimlint.validators.colors import count_color_classes


def test_count_respects_word_boundaries() -> None:
    counts = count_color_classes(
        '<p class="text-whitesmoke bg-white">', ["text-white", "bg-white"]
    )

    assert counts == {"bg-white": 1}


def test_one_finding_per_view(rails_project) -> None:
    rails_project.view(
        "home/index.html.erb",
        """
        <div class="bg-black text-white">
          <span class="text-white">Hi</span>
        </div>
        """,
    )
    rails_project.view("home/about.html.erb", '<p class="text-gray-50">x</p>\n')

    report = rails_project.run("colors")

    [finding] = report.findings
    assert finding.kind is FindingKind.FORBIDDEN_COLOR_CLASS
    assert finding.line is None
    assert finding.message == (
        "Potential contrast issues in app/views/home/index.html.erb: "
        "text-white (2x), bg-black (1x)"
    )
    assert [item["class"] for item in finding.details["colors"]] == [
        "text-white",
        "bg-black",
    ]


def test_configured_classes_extend_defaults(rails_project) -> None:
    rails_project.view(
        "home/index.html.erb", '<p class="text-yellow-200"></p>\n'
    )

    report = rails_project.run(
        "colors",
        rules={"forbidden_colors": {"text-yellow-200": "use text-amber-700"}},
    )

    [finding] = report.findings
    assert finding.details["colors"] == [
        {"class": "text-yellow-200", "count": 1, "advice": "use text-amber-700"}
    ]
