"""Domain-specific exceptions for :mod:`stimlint`."""

from __future__ import annotations


class StimlintError(RuntimeError):
    """Base error for validation run failures."""


class ConfigError(StimlintError):
    """Raised when configuration files or values cannot be loaded."""


class ProjectLayoutError(StimlintError):
    """Raised when the project root does not look like a Rails application."""


class ControllerMetadataError(StimlintError):
    """Raised when controller metadata cannot be extracted or decoded.

    Every validator depends on the descriptor map, so this error aborts the
    whole run instead of degrading to partial results.
    """


class RubyParserUnavailableError(StimlintError):
    """Raised when the tree-sitter Ruby grammar cannot be loaded."""


class ValidationFailure(AssertionError):
    """Raised by :func:`stimlint.report.assert_clean` when findings exist."""


__all__ = [
    "StimlintError",
    "ConfigError",
    "ProjectLayoutError",
    "ControllerMetadataError",
    "RubyParserUnavailableError",
    "ValidationFailure",
]
