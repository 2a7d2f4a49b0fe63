"""Controller usage statistics and quick-fix commands."""

from __future__ import annotations

from dataclasses import dataclass

from stimlint.erb.queries import find_actions, parse_action_string
from stimlint.validators import ValidationContext, generator_command
from stimlint.views import ViewDocument, controller_tokens

__all__ = ["ControllerUsage", "collect_usage", "quick_fixes"]


@dataclass(frozen=True, slots=True)
class ControllerUsage:
    """Which known controllers are attached anywhere in the views.

    System controllers are wired outside views and excluded from ``unused``.
    """

    total: int
    used: tuple[str, ...]
    unused: tuple[str, ...]
    system: tuple[str, ...]

    @property
    def checkable(self) -> int:
        return self.total - len(self.system)


def _attached(document: ViewDocument, context: ValidationContext) -> set[str]:
    names = set(document.markup_controllers())
    names.update(document.fragment_controllers(context.parser))
    return names


def collect_usage(context: ValidationContext) -> ControllerUsage:
    attached: set[str] = set()
    for document in context.views:
        attached |= _attached(document, context)

    known = context.controllers.names()
    system = tuple(
        descriptor.name
        for descriptor in sorted(context.controllers, key=lambda d: d.name)
        if descriptor.is_system_controller
    )
    used = tuple(name for name in known if name in attached)
    unused = tuple(
        name for name in known if name not in attached and name not in system
    )
    return ControllerUsage(
        total=len(known),
        used=used,
        unused=unused,
        system=system,
    )


def _referenced(
    document: ViewDocument,
    context: ValidationContext,
) -> set[str]:
    names = _attached(document, context)
    for element in document.soup.find_all(attrs={"data-action": True}):
        value = element.get("data-action")
        if isinstance(value, list):
            value = " ".join(value)
        names.update(token.controller for token in parse_action_string(value))
    for parsed in document.parsed_fragments(context.parser):
        names.update(token.controller for token in find_actions(parsed.tree))
    return names


def quick_fixes(context: ValidationContext) -> list[str]:
    """Generator commands creating every referenced but unknown controller.

    Example output::

        rails generate stimulus_controller image_gallery
    """

    missing: set[str] = set()
    for document in context.views:
        missing |= {
            name
            for name in _referenced(document, context)
            if name not in context.controllers
        }
    return [generator_command(name) for name in sorted(missing)]
