"""Ruby syntax trees backed by tree-sitter.

The grammar is loaded lazily from ``tree_sitter_languages`` the first time a
snippet is parsed. Trees that contain ``ERROR`` or ``MISSING`` nodes are
reported as unparsable (``None``) rather than partially queried.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Union

from stimlint.errors import RubyParserUnavailableError

__all__ = [
    "CALL_NODE_TYPES",
    "CallParts",
    "PairKey",
    "RubyParser",
    "RubyTree",
    "StringKey",
    "SymbolKey",
]

CALL_NODE_TYPES = frozenset({"call", "method_call"})
PAIR_CONTAINER_TYPES = frozenset({"hash", "argument_list"})
_STRING_PART_TYPES = frozenset({"string_content", "escape_sequence"})


@dataclass(frozen=True, slots=True)
class StringKey:
    """A ``"name" => value`` hash key."""

    name: str


@dataclass(frozen=True, slots=True)
class SymbolKey:
    """A ``name: value``, ``"name": value`` or ``:name => value`` key."""

    name: str


PairKey = Union[StringKey, SymbolKey]


@dataclass(frozen=True, slots=True)
class CallParts:
    """Receiver, method name and argument list of a call node."""

    receiver: Any | None
    method: str
    arguments: Any | None


@dataclass(slots=True)
class _ParserResources:
    """Container holding the tree-sitter parser instance."""

    parser: Any


class RubyTree:
    """A successfully parsed Ruby snippet and its source bytes."""

    __slots__ = ("root", "source_bytes")

    def __init__(self, root: Any, source_bytes: bytes) -> None:
        self.root = root
        self.source_bytes = source_bytes

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def walk(self, node: Any | None = None) -> Iterator[Any]:
        """Yield ``node`` (default: the root) and every descendant, pre-order."""

        stack = [self.root if node is None else node]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def pairs(self, node: Any | None = None) -> Iterator[Any]:
        """Yield ``pair`` nodes held directly by hashes or argument lists."""

        for current in self.walk(node):
            if current.type not in PAIR_CONTAINER_TYPES:
                continue
            for child in current.named_children:
                if child.type == "pair":
                    yield child

    def calls(self, node: Any | None = None) -> Iterator[Any]:
        """Yield call nodes under ``node`` (default: the root), pre-order."""

        for current in self.walk(node):
            if current.type in CALL_NODE_TYPES:
                yield current

    # ------------------------------------------------------------------
    # Node helpers
    # ------------------------------------------------------------------
    def text(self, node: Any) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode(
            "utf-8", errors="ignore"
        )

    def string_value(self, node: Any | None) -> str | None:
        """Return the literal value of a non-interpolated string node."""

        if node is None or node.type != "string":
            return None
        parts: list[str] = []
        for child in node.named_children:
            if child.type == "interpolation":
                return None
            if child.type in _STRING_PART_TYPES:
                parts.append(self.text(child))
        return "".join(parts)

    def static_prefix(self, node: Any | None) -> str | None:
        """Return the literal text preceding the first interpolation.

        Example: ``"chat_#{id}"`` yields ``"chat_"``. Plain strings return
        their whole value; strings starting with an interpolation return
        ``None``.
        """

        if node is None or node.type != "string":
            return None
        parts: list[str] = []
        for child in node.named_children:
            if child.type == "interpolation":
                break
            if child.type in _STRING_PART_TYPES:
                parts.append(self.text(child))
        prefix = "".join(parts)
        return prefix or None

    def symbol_name(self, node: Any | None) -> str | None:
        if node is None:
            return None
        if node.type in {"simple_symbol", "hash_key_symbol"}:
            return self.text(node).lstrip(":")
        if node.type == "delimited_symbol":
            return "".join(
                self.text(child)
                for child in node.named_children
                if child.type in _STRING_PART_TYPES
            )
        return None

    def pair_key(self, pair: Any) -> PairKey | None:
        """Classify the key of ``pair`` as a string or symbol key."""

        key = pair.child_by_field_name("key")
        if key is None:
            return None
        if key.type == "string":
            value = self.string_value(key)
            if value is None:
                return None
            if any(child.type == "=>" for child in pair.children):
                return StringKey(value)
            return SymbolKey(value)
        name = self.symbol_name(key)
        if name is None:
            return None
        return SymbolKey(name)

    def pair_value(self, pair: Any) -> Any | None:
        return pair.child_by_field_name("value")

    def call_parts(self, node: Any) -> CallParts | None:
        """Normalize ``call``/``method_call`` nodes across grammar versions."""

        if node.type not in CALL_NODE_TYPES:
            return None
        receiver = node.child_by_field_name("receiver")
        method = node.child_by_field_name("method")
        arguments = node.child_by_field_name("arguments")
        if method is not None and method.type in CALL_NODE_TYPES:
            receiver = method.child_by_field_name("receiver")
            method = method.child_by_field_name("method")
        if method is None:
            return None
        return CallParts(
            receiver=receiver,
            method=self.text(method),
            arguments=arguments,
        )


class RubyParser:
    """Lazily constructed tree-sitter Ruby parser."""

    def __init__(self) -> None:
        self._resources: _ParserResources | None = None

    def parse(self, code: str) -> RubyTree | None:
        """Parse ``code`` returning ``None`` when the tree contains errors.

        Raises:
            RubyParserUnavailableError: If the Ruby grammar cannot be loaded.
        """

        resources = self._load_parser()
        source_bytes = code.encode("utf-8")
        tree = resources.parser.parse(source_bytes)
        root = tree.root_node
        if root.has_error:
            return None
        return RubyTree(root, source_bytes)

    def _load_parser(self) -> _ParserResources:
        if self._resources is not None:
            return self._resources
        try:
            from tree_sitter_languages import get_parser  # type: ignore[import]
        except Exception as exc:  # pragma: no cover - dependency missing
            raise RubyParserUnavailableError(
                "Ruby parsing requires tree_sitter_languages."
            ) from exc

        try:
            parser = get_parser("ruby")
        except Exception as exc:  # pragma: no cover
            raise RubyParserUnavailableError(
                f"tree-sitter parser for 'ruby' is unavailable: {exc}"
            ) from exc

        self._resources = _ParserResources(parser=parser)
        return self._resources
