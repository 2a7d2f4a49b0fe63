"""Tests for :mod:`stimlint.core.paths`."""

from __future__ import annotations

from pathlib import Path

import pytest

from stimlint.core.config import load_project_config
from stimlint.core.paths import ProjectPaths, resolve_project_root
from stimlint.errors import ProjectLayoutError


def test_resolve_project_root_prefers_cli_override(tmp_path: Path) -> None:
    cli_root = tmp_path / "cli"
    env_root = tmp_path / "env"
    cli_root.mkdir()
    env_root.mkdir()

    root = resolve_project_root(root_override=cli_root, env_override=env_root)

    assert root == cli_root.resolve()


def test_resolve_project_root_uses_env_then_cwd(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)

    assert resolve_project_root(env_override=tmp_path) == tmp_path.resolve()
    assert resolve_project_root() == tmp_path.resolve()


def test_resolve_project_root_supports_relative_paths(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    (tmp_path / "apps" / "shop").mkdir(parents=True)
    monkeypatch.chdir(tmp_path)

    root = resolve_project_root(root_override=Path("apps/shop"))

    assert root == (tmp_path / "apps" / "shop").resolve()


def test_resolve_project_root_rejects_missing_directory(
    tmp_path: Path,
) -> None:
    with pytest.raises(ProjectLayoutError):
        resolve_project_root(root_override=tmp_path / "missing")


def test_project_paths_from_config(tmp_path: Path) -> None:
    config = load_project_config(tmp_path, environ={})

    paths = ProjectPaths.from_config(config)

    root = tmp_path.resolve()
    assert paths.views_dir == root / "app" / "views"
    assert paths.controllers_index == (
        root / "app" / "javascript" / "controllers" / "index.ts"
    )
    assert paths.log_dir == root / ".stimlint" / "logs"
    assert paths.relative(root / "config" / "routes.rb") == "config/routes.rb"
    assert paths.relative(Path("/elsewhere/x.rb")) == "/elsewhere/x.rb"


def test_glob_yields_each_file_once_sorted(tmp_path: Path) -> None:
    for name in ("b_channel.rb", "a_channel.rb"):
        target = tmp_path / "app" / "channels" / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")
    (tmp_path / "app" / "channels" / "nested_channel.rb").mkdir()
    paths = ProjectPaths.from_config(load_project_config(tmp_path, environ={}))

    found = list(
        paths.glob(["app/channels/*_channel.rb", "app/channels/**/*.rb"])
    )

    assert [paths.relative(path) for path in found] == [
        "app/channels/a_channel.rb",
        "app/channels/b_channel.rb",
    ]
