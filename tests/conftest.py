"""Shared pytest fixtures building Rails-like project trees."""

from __future__ import annotations

import json
import logging
import textwrap
from pathlib import Path
from typing import Any, Iterator

import pytest

from stimlint.core.config import AppConfig, load_project_config
from stimlint.report import ValidationReport
from stimlint.service import ValidationService
from stimlint.validators import ValidationContext

METADATA_FILENAME = "controllers.metadata.json"


class RailsProject:
    """A throwaway Rails application tree plus controller metadata.

    Controller records are collected in memory and written as the
    pre-extracted metadata JSON whenever a config is built, so tests never
    need the TypeScript extractor.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.metadata: dict[str, dict[str, Any]] = {}

    def write(self, relative: str, text: str) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
        return path

    def view(self, relative: str, text: str) -> Path:
        return self.write(f"app/views/{relative}", text)

    def controller(
        self,
        module: str,
        source: str = "",
        **record: Any,
    ) -> str:
        """Add ``app/javascript/controllers/<module>_controller.ts``.

        Returns the registration name (``admin/user_list`` becomes
        ``admin--user-list``).
        """

        name = "--".join(part.replace("_", "-") for part in module.split("/"))
        self.write(
            f"app/javascript/controllers/{module}_controller.ts",
            source or "export default class extends Controller {}\n",
        )
        self.metadata[name] = record
        return name

    def config(self, **overrides: Any) -> AppConfig:
        (self.root / METADATA_FILENAME).write_text(
            json.dumps(self.metadata), encoding="utf-8"
        )
        layers: dict[str, Any] = {
            "metadata": {"json_file": METADATA_FILENAME},
            "paths": {"log_dir": "", "exclude": []},
        }
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(layers.get(key), dict):
                layers[key] = {**layers[key], **value}
            else:
                layers[key] = value
        return load_project_config(self.root, environ={}, cli_overrides=layers)

    def service(self, **overrides: Any) -> ValidationService:
        return ValidationService(self.config(**overrides))

    def context(self, **overrides: Any) -> ValidationContext:
        return self.service(**overrides).load_context()

    def run(self, *only: str, **overrides: Any) -> ValidationReport:
        return self.service(**overrides).run(list(only) or None)


@pytest.fixture
def rails_project(tmp_path: Path) -> RailsProject:
    """Return an empty Rails-like project rooted in ``tmp_path``."""

    root = tmp_path / "app_root"
    (root / "app" / "views").mkdir(parents=True)
    (root / "app" / "javascript" / "controllers").mkdir(parents=True)
    return RailsProject(root)


@pytest.fixture
def ruby_parser():
    """Return a Ruby parser, skipping when the grammar is not installed."""

    pytest.importorskip("tree_sitter_languages")
    from stimlint.erb.ruby import RubyParser

    return RubyParser()


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    """Drop handlers installed by CLI invocations between tests."""

    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
