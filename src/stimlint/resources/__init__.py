"""Packaged data files shipped with :mod:`stimlint`."""

from __future__ import annotations

from importlib import resources

DEFAULTS_FILE = "stimlint.defaults.toml"


def read_defaults() -> str:
    """Return the packaged defaults TOML as text."""

    return resources.files(__package__).joinpath(DEFAULTS_FILE).read_text(
        encoding="utf-8"
    )


__all__ = ["DEFAULTS_FILE", "read_defaults"]
