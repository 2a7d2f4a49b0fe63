"""Controller metadata records produced by the TypeScript extractor."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

__all__ = [
    "AntiPattern",
    "ControllerDescriptor",
    "QuerySelectorCall",
    "controller_class_name",
]

_RECORD_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
    "str_strip_whitespace": True,
}


class QuerySelectorCall(BaseModel):
    """A ``querySelector``-style lookup recorded inside a controller."""

    selector: str = Field(description="Selector literal passed to the call.")
    method: str = Field(
        default="querySelector",
        description="DOM method invoked (querySelector, querySelectorAll).",
    )
    in_method: str | None = Field(
        default=None,
        description="Controller method containing the call.",
    )
    line: int | None = Field(default=None, description="Source line.")
    is_template: bool = Field(
        default=False,
        description="Selector is a template literal and cannot be checked.",
    )
    skip_validation: bool = Field(
        default=False,
        description="Preceded by a disable-next-line directive.",
    )

    model_config = _RECORD_CONFIG


class AntiPattern(BaseModel):
    """An architecture anti-pattern flagged by the extractor."""

    type: str = Field(description="Anti-pattern identifier.")
    method: str | None = Field(default=None)
    line: int | None = Field(default=None)
    issue: str = Field(default="", description="Human readable problem.")

    model_config = _RECORD_CONFIG


class ControllerDescriptor(BaseModel):
    """Declared surface of one Stimulus controller.

    Lists keep the extractor's order. ``*_with_skip`` entries were preceded
    by a ``// stimulus-validator: disable-next-line`` directive.
    """

    name: str = Field(description="Kebab-case registration name.")
    targets: tuple[str, ...] = Field(default_factory=tuple)
    optional_targets: tuple[str, ...] = Field(default_factory=tuple)
    targets_with_skip: tuple[str, ...] = Field(default_factory=tuple)
    values: tuple[str, ...] = Field(default_factory=tuple)
    values_with_defaults: tuple[str, ...] = Field(default_factory=tuple)
    values_with_skip: tuple[str, ...] = Field(default_factory=tuple)
    outlets: tuple[str, ...] = Field(default_factory=tuple)
    methods: tuple[str, ...] = Field(default_factory=tuple)
    query_selectors: tuple[QuerySelectorCall, ...] = Field(
        default_factory=tuple
    )
    anti_patterns: tuple[AntiPattern, ...] = Field(default_factory=tuple)
    is_system_controller: bool = Field(default=False)
    source_file: Path | None = Field(
        default=None,
        description="Controller source path relative to the project root.",
    )

    model_config = _RECORD_CONFIG

    def required_targets(self) -> tuple[str, ...]:
        """Targets that must be present in markup."""

        skipped = set(self.optional_targets) | set(self.targets_with_skip)
        return tuple(name for name in self.targets if name not in skipped)

    def required_values(self) -> tuple[str, ...]:
        """Values without a default or skip directive."""

        skipped = set(self.values_with_defaults) | set(self.values_with_skip)
        return tuple(name for name in self.values if name not in skipped)

    @property
    def class_name(self) -> str:
        """PascalCase class name conventionally used for the controller.

        Example:
            >>> ControllerDescriptor(name="admin--user-list").class_name
            'AdminUserListController'
        """

        return controller_class_name(self.name)


def controller_class_name(name: str) -> str:
    """PascalCase class name for the registration ``name``."""

    parts = name.replace("--", "-").split("-")
    return "".join(part.capitalize() for part in parts if part) + "Controller"
