"""Wiring queries over parsed Ruby fragments.

Every query is a :func:`walk_pairs` traversal with a different matcher: the
walk visits each ``pair`` held by a hash literal or a call's argument list,
and the matcher decides from the pair's classified key whether it yields a
result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, TypeVar

from .ruby import PairKey, RubyTree, StringKey, SymbolKey

__all__ = [
    "ActionToken",
    "PairMatch",
    "contains_controller",
    "controller_keys",
    "declared_controllers",
    "find_actions",
    "find_targets",
    "find_values",
    "kebab_case",
    "parse_action_string",
    "snake_case",
    "target_keys",
    "value_keys",
    "walk_pairs",
]

T = TypeVar("T")

_ACTION_TOKEN = re.compile(
    r"^(?:(?P<event>[\w-]+(?:[.:][\w-]+)*)->)?"
    r"(?P<controller>\w+(?:-{1,2}\w+)*)#(?P<method>\w+)(?:@\w+)?$"
)
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


@dataclass(frozen=True, slots=True)
class ActionToken:
    """One parsed ``[event->]controller#method[@option]`` descriptor."""

    raw: str
    event: str | None
    controller: str
    method: str
    row: int = 0


@dataclass(frozen=True, slots=True)
class PairMatch:
    """A matched pair and the 0-based row it starts on."""

    key: PairKey
    value: str | None
    row: int


def kebab_case(name: str) -> str:
    """Convert ``camelCase`` to ``kebab-case``.

    Example:
        >>> kebab_case("maxItems")
        'max-items'
    """

    return _CAMEL_BOUNDARY.sub(r"\1-\2", name).replace("_", "-").lower()


def snake_case(name: str) -> str:
    return kebab_case(name).replace("-", "_")


def parse_action_string(value: str, *, row: int = 0) -> list[ActionToken]:
    """Parse a whitespace-separated action attribute into descriptors.

    Tokens that do not follow the descriptor grammar are ignored.

    Example:
        >>> [t.method for t in parse_action_string("click->menu#open blur")]
        ['open']
    """

    tokens: list[ActionToken] = []
    for raw in value.split():
        match = _ACTION_TOKEN.match(raw)
        if match is None:
            continue
        tokens.append(
            ActionToken(
                raw=raw,
                event=match.group("event"),
                controller=match.group("controller"),
                method=match.group("method"),
                row=row,
            )
        )
    return tokens


def _attribute_keys(
    attribute: str,
    *,
    symbol_forms: Iterable[str] = (),
) -> frozenset[PairKey]:
    keys: set[PairKey] = {
        StringKey(attribute),
        SymbolKey(attribute),
        StringKey(f"data-{attribute}"),
        SymbolKey(f"data-{attribute}"),
    }
    keys.update(SymbolKey(form) for form in symbol_forms)
    return frozenset(keys)


def controller_keys() -> frozenset[PairKey]:
    return _attribute_keys("controller")


def target_keys(controller: str) -> frozenset[PairKey]:
    """Candidate keys declaring a target of ``controller``.

    Example:
        >>> SymbolKey("image_gallery_target") in target_keys("image-gallery")
        True
    """

    underscored = controller.replace("-", "_")
    return _attribute_keys(
        f"{controller}-target", symbol_forms=(f"{underscored}_target",)
    )


def value_keys(controller: str, value: str) -> frozenset[PairKey]:
    """Candidate keys declaring ``value`` of ``controller``."""

    underscored = controller.replace("-", "_")
    return _attribute_keys(
        f"{controller}-{kebab_case(value)}-value",
        symbol_forms=(f"{underscored}_{snake_case(value)}_value",),
    )


_ACTION_KEYS = _attribute_keys("action")
_CONTROLLER_KEYS = controller_keys()


def walk_pairs(
    tree: RubyTree,
    matcher: Callable[[RubyTree, Any, PairKey], T | None],
) -> list[T]:
    """Apply ``matcher`` to every classifiable pair in ``tree``.

    Traversal continues below every pair whether it matched or not, so a
    fragment can yield matches from nested option hashes.
    """

    results: list[T] = []
    for pair in tree.pairs():
        key = tree.pair_key(pair)
        if key is None:
            continue
        outcome = matcher(tree, pair, key)
        if outcome is not None:
            results.append(outcome)
    return results


def _keyed_string(
    keys: frozenset[PairKey],
) -> Callable[[RubyTree, Any, PairKey], PairMatch | None]:
    def _matcher(tree: RubyTree, pair: Any, key: PairKey) -> PairMatch | None:
        if key not in keys:
            return None
        value = tree.string_value(tree.pair_value(pair))
        return PairMatch(key=key, value=value, row=pair.start_point[0])

    return _matcher


def find_targets(
    tree: RubyTree,
    controller: str,
    target: str,
) -> list[PairMatch]:
    """Return pairs declaring ``target`` for ``controller``."""

    matches = walk_pairs(tree, _keyed_string(target_keys(controller)))
    return [
        match
        for match in matches
        if match.value is not None and target in match.value.split()
    ]


def find_values(
    tree: RubyTree,
    controller: str,
    value: str,
) -> list[PairMatch]:
    """Return pairs declaring ``value`` for ``controller``; any value counts."""

    return walk_pairs(tree, _keyed_string(value_keys(controller, value)))


def find_actions(
    tree: RubyTree,
    controller: str | None = None,
) -> list[ActionToken]:
    """Return action descriptors, optionally filtered to ``controller``."""

    tokens: list[ActionToken] = []
    for match in walk_pairs(tree, _keyed_string(_ACTION_KEYS)):
        if match.value is None:
            continue
        for token in parse_action_string(match.value, row=match.row):
            if controller is None or token.controller == controller:
                tokens.append(token)
    return tokens


def declared_controllers(tree: RubyTree) -> list[str]:
    """Return controller names declared anywhere in ``tree``, in order."""

    names: list[str] = []
    for match in walk_pairs(tree, _keyed_string(_CONTROLLER_KEYS)):
        if match.value is None:
            continue
        for name in match.value.split():
            if name not in names:
                names.append(name)
    return names


def contains_controller(tree: RubyTree, controller: str) -> bool:
    return controller in declared_controllers(tree)
