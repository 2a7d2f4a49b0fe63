"""Tests for :mod:`stimlint.controllers.metadata`."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

from stimlint.controllers import (
    ControllerRegistry,
    controller_name_for,
    discover_controller_files,
)
from stimlint.core.paths import ProjectPaths
from stimlint.errors import ControllerMetadataError


def _paths(rails_project) -> ProjectPaths:
    return ProjectPaths.from_config(rails_project.config())


def test_controller_name_for_nested_sources(tmp_path: Path) -> None:
    root = tmp_path / "controllers"

    assert controller_name_for(root / "chat_controller.ts", root) == "chat"
    assert (
        controller_name_for(root / "admin/user_list_controller.ts", root)
        == "admin--user-list"
    )


def test_discover_controller_files(rails_project) -> None:
    rails_project.controller("menu")
    rails_project.controller("admin/user_list")
    rails_project.write("app/javascript/controllers/index.ts", "")

    files = discover_controller_files(
        _paths(rails_project), ("**/*_controller.ts",)
    )

    assert [item.name for item in files] == ["admin--user-list", "menu"]
    assert files[1].relative_path == (
        "app/javascript/controllers/menu_controller.ts"
    )


def test_registry_loads_json_file(rails_project) -> None:
    rails_project.controller("menu", methods=["open"], targets=["list"])
    paths = _paths(rails_project)

    registry = ControllerRegistry.load(
        paths,
        globs=("**/*_controller.ts",),
        command=("unused",),
        json_file=paths.root / "controllers.metadata.json",
    )

    descriptor = registry.get("menu")
    assert descriptor is not None
    assert descriptor.methods == ("open",)
    assert descriptor.source_file == Path(
        "app/javascript/controllers/menu_controller.ts"
    )
    assert "menu" in registry
    assert len(registry) == 1


def test_registry_rejects_missing_record(rails_project) -> None:
    rails_project.controller("menu")
    paths = _paths(rails_project)
    (paths.root / "controllers.metadata.json").write_text("{}")

    with pytest.raises(ControllerMetadataError, match="menu"):
        ControllerRegistry.load(
            paths,
            globs=("**/*_controller.ts",),
            command=("unused",),
            json_file=paths.root / "controllers.metadata.json",
        )


def test_registry_runs_extractor_command(rails_project) -> None:
    rails_project.controller("menu")
    script = rails_project.write(
        "bin/extract.py",
        """
        import json, sys
        print(json.dumps({"methods": ["toggle"], "name": "ignored"}))
        """,
    )

    registry = ControllerRegistry.load(
        _paths(rails_project),
        globs=("**/*_controller.ts",),
        command=(sys.executable, str(script)),
    )

    descriptor = registry.get("menu")
    assert descriptor is not None
    assert descriptor.name == "menu"
    assert descriptor.methods == ("toggle",)


@pytest.mark.parametrize(
    "body",
    [
        "import sys; sys.exit(3)",
        "print('not json')",
        "print('[1, 2]')",
    ],
)
def test_extractor_failures_raise(rails_project, body: str) -> None:
    rails_project.controller("menu")
    script = rails_project.write("bin/extract.py", body + "\n")

    with pytest.raises(ControllerMetadataError):
        ControllerRegistry.load(
            _paths(rails_project),
            globs=("**/*_controller.ts",),
            command=(sys.executable, str(script)),
        )


def test_extractor_schema_mismatch_raises(rails_project) -> None:
    rails_project.controller("menu")
    payload = json.dumps({"methods": "not-a-list-of-strings", "line": []})
    script = rails_project.write(
        "bin/extract.py", f"print({payload!r})\n"
    )

    with pytest.raises(ControllerMetadataError, match="schema"):
        ControllerRegistry.load(
            _paths(rails_project),
            globs=("**/*_controller.ts",),
            command=(sys.executable, str(script)),
        )
