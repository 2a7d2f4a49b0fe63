"""Tests for :mod:`stimlint.stats`."""

from __future__ import annotations

from stimlint.stats import collect_usage, quick_fixes


def test_collect_usage_separates_system_controllers(rails_project) -> None:
    rails_project.controller("menu")
    rails_project.controller("modal")
    rails_project.controller("flash", is_system_controller=True)
    rails_project.view(
        "home/index.html.erb",
        '<nav data-controller="menu"></nav>\n',
    )

    usage = collect_usage(rails_project.context())

    assert usage.total == 3
    assert usage.checkable == 2
    assert usage.used == ("menu",)
    assert usage.unused == ("modal",)
    assert usage.system == ("flash",)


def test_quick_fixes_cover_controllers_and_actions(rails_project) -> None:
    rails_project.controller("menu")
    rails_project.view(
        "home/index.html.erb",
        """
        <nav data-controller="menu image-gallery">
          <button data-action="click->menu#open click->dropdown#toggle">
          </button>
        </nav>
        """,
    )

    assert quick_fixes(rails_project.context()) == [
        "rails generate stimulus_controller dropdown",
        "rails generate stimulus_controller image_gallery",
    ]


def test_quick_fixes_empty_when_everything_exists(rails_project) -> None:
    rails_project.controller("menu")
    rails_project.view(
        "home/index.html.erb",
        '<nav data-controller="menu"></nav>\n',
    )

    assert quick_fixes(rails_project.context()) == []
