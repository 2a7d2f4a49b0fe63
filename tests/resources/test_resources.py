"""Tests for :mod:`stimlint.resources`."""

from __future__ import annotations

import tomllib

from stimlint.resources import DEFAULTS_FILE, read_defaults


def test_read_defaults_returns_packaged_toml() -> None:
    text = read_defaults()

    assert DEFAULTS_FILE == "stimlint.defaults.toml"
    assert "[rules.forbidden_colors]" in text
    assert "paths" in tomllib.loads(text)
