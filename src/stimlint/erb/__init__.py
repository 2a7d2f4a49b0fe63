"""Embedded Ruby analysis: fragments, preprocessing and wiring queries."""

from __future__ import annotations

from .fragments import (
    Fragment,
    FragmentKind,
    extract_fragments,
    merge_fragments,
    parse_fragments,
)
from .preprocess import preprocess
from .queries import (
    ActionToken,
    contains_controller,
    declared_controllers,
    find_actions,
    find_targets,
    find_values,
    kebab_case,
    parse_action_string,
)
from .ruby import RubyParser, RubyTree, StringKey, SymbolKey

__all__ = [
    "ActionToken",
    "Fragment",
    "FragmentKind",
    "RubyParser",
    "RubyTree",
    "StringKey",
    "SymbolKey",
    "contains_controller",
    "declared_controllers",
    "extract_fragments",
    "find_actions",
    "find_targets",
    "find_values",
    "kebab_case",
    "merge_fragments",
    "parse_action_string",
    "parse_fragments",
    "preprocess",
]
