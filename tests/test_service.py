"""Tests for :mod:`stimlint.service`."""

from __future__ import annotations

import pytest

from stimlint.errors import ConfigError, ControllerMetadataError
from stimlint.validators import build_default_registry


def test_default_registry_order() -> None:
    registry = build_default_registry()

    assert registry.names() == [
        "registration",
        "targets",
        "values",
        "outlets",
        "actions",
        "selectors",
        "broadcasts",
        "colors",
        "architecture",
        "turbo-frames",
        "routes",
        "controller-index",
        "seeds",
    ]


def test_run_uses_enabled_validators(rails_project) -> None:
    rails_project.controller("menu")
    rails_project.view(
        "home/index.html.erb", '<nav data-controller="menu"></nav>\n'
    )

    report = rails_project.run(rules={"enabled": ["registration", "colors"]})

    assert [result.name for result in report.results] == [
        "registration",
        "colors",
    ]
    assert report.views_scanned == 1
    assert report.controllers_scanned == 1
    assert report.passed


def test_run_rejects_unknown_validator(rails_project) -> None:
    with pytest.raises(ConfigError, match="Unknown validator 'nope'"):
        rails_project.run("nope")


def test_missing_metadata_record_aborts_run(rails_project) -> None:
    rails_project.controller("menu")
    service = rails_project.service()
    rails_project.write("app/javascript/controllers/extra_controller.ts", "")

    with pytest.raises(ControllerMetadataError):
        service.run()


def test_excluded_views_are_not_scanned(rails_project) -> None:
    rails_project.view("admin/index.html.erb", '<div data-controller="x">\n')
    rails_project.view("home/index.html.erb", "<p></p>\n")

    report = rails_project.run(
        "registration", paths={"exclude": ["admin/"]}
    )

    assert report.views_scanned == 1
    assert report.passed


def test_context_can_be_shared_between_runs(rails_project) -> None:
    rails_project.view(
        "home/index.html.erb", '<div data-controller="ghost"></div>\n'
    )
    service = rails_project.service()
    context = service.load_context()

    first = service.run(["registration"], context=context)
    second = service.run(["targets"], context=context)

    assert first.total == 1
    assert second.passed
