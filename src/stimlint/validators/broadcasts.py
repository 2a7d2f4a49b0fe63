"""ActionCable broadcasts must reach a frontend handler.

For ``ActionCable.server.broadcast(stream, payload)`` the stream name selects
a frontend controller (``chat_42`` -> ``chat_controller.ts``) and the
payload's ``type`` selects a handler method (``new-message`` ->
``handleNewMessage``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator

from stimlint.core.logging import get_logger
from stimlint.erb.ruby import RubyTree, StringKey, SymbolKey
from stimlint.findings import Finding, FindingKind

from .base import ValidationContext

__all__ = [
    "BroadcastCall",
    "BroadcastValidator",
    "find_broadcasts",
    "handler_name",
    "infer_channel_name",
]

_TRAILING_ID = re.compile(r"_\d+$")
_TYPE_KEYS = frozenset({SymbolKey("type"), StringKey("type")})

_logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class BroadcastCall:
    stream_name: str | None
    type: str | None
    line: int


def infer_channel_name(stream_name: str | None) -> str | None:
    """Strip a trailing record id from ``stream_name``.

    Example:
        >>> infer_channel_name("chat_123"), infer_channel_name("chat_")
        ('chat', 'chat')
    """

    if not stream_name:
        return None
    channel = _TRAILING_ID.sub("", stream_name).removesuffix("_")
    return channel or None


def handler_name(type_value: str) -> str:
    """Frontend method expected to handle ``type_value`` messages.

    Example:
        >>> handler_name("new-message")
        'handleNewMessage'
    """

    parts = re.split(r"[-_]", type_value)
    return "handle" + "".join(part.capitalize() for part in parts)


def _is_actioncable_broadcast(tree: RubyTree, node: Any) -> bool:
    parts = tree.call_parts(node)
    if parts is None or parts.method != "broadcast":
        return False
    server = parts.receiver
    if server is None:
        return False
    server_parts = tree.call_parts(server)
    if server_parts is None or server_parts.method != "server":
        return False
    owner = server_parts.receiver
    if owner is None:
        return False
    return tree.text(owner).lstrip(":") == "ActionCable"


def _string_or_prefix(tree: RubyTree, node: Any | None) -> str | None:
    value = tree.string_value(node)
    if value is not None:
        return value
    return tree.static_prefix(node)


def _broadcast_type(tree: RubyTree, arguments: list[Any]) -> str | None:
    for argument in arguments:
        if argument.type == "pair":
            pairs = [argument]
        elif argument.type == "hash":
            pairs = [c for c in argument.named_children if c.type == "pair"]
        else:
            continue
        for pair in pairs:
            if tree.pair_key(pair) in _TYPE_KEYS:
                value = tree.string_value(tree.pair_value(pair))
                if value is not None:
                    return value
    return None


def find_broadcasts(tree: RubyTree) -> Iterator[BroadcastCall]:
    """Yield broadcast calls in source order.

    Local string assignments seen earlier in the walk resolve streams passed
    by variable.
    """

    local_vars: dict[str, str] = {}
    for node in tree.walk():
        if node.type == "assignment":
            left = node.child_by_field_name("left")
            right = node.child_by_field_name("right")
            if left is not None and left.type == "identifier":
                value = _string_or_prefix(tree, right)
                if value is not None:
                    local_vars[tree.text(left)] = value
            continue
        if not _is_actioncable_broadcast(tree, node):
            continue
        parts = tree.call_parts(node)
        arguments = (
            list(parts.arguments.named_children)
            if parts is not None and parts.arguments is not None
            else []
        )
        stream_name: str | None = None
        if arguments:
            first = arguments[0]
            if first.type == "identifier":
                stream_name = local_vars.get(tree.text(first))
            else:
                stream_name = _string_or_prefix(tree, first)
        yield BroadcastCall(
            stream_name=stream_name,
            type=_broadcast_type(tree, arguments[1:]),
            line=node.start_point[0] + 1,
        )


class BroadcastValidator:
    name = "broadcasts"
    description = "broadcast types have matching frontend handlers"

    def validate(self, context: ValidationContext) -> list[Finding]:
        settings = context.config.paths
        excluded = set(settings.broadcast_exclude)
        findings: list[Finding] = []
        for path in context.paths.glob(settings.broadcast_source_globs):
            relative = context.paths.relative(path)
            if relative in excluded:
                continue
            tree = context.parser.parse(
                path.read_text(encoding="utf-8", errors="replace")
            )
            if tree is None:
                _logger.warning("ruby-parse-skipped", file=relative)
                continue
            for call in find_broadcasts(tree):
                finding = self._check(context, relative, call)
                if finding is not None:
                    findings.append(finding)
        return findings

    @staticmethod
    def _check(
        context: ValidationContext,
        relative: str,
        call: BroadcastCall,
    ) -> Finding | None:
        channel = infer_channel_name(call.stream_name)
        if channel is None:
            return None
        controller = channel.replace("_", "-")
        controllers_dir = context.config.paths.controllers_dir
        frontend = f"{controllers_dir}/{channel}_controller.ts"
        details = {
            "stream_name": call.stream_name,
            "channel_name": channel,
            "frontend_file": frontend,
        }

        if not context.paths.absolute(frontend).is_file():
            expected = handler_name(call.type) if call.type else None
            return Finding(
                kind=FindingKind.BROADCAST_MISSING_FRONTEND_FILE,
                file=relative,
                line=call.line,
                message=(
                    f"stream '{call.stream_name}' needs {frontend}"
                ),
                suggestion=(
                    "Create frontend controller (refer to existing "
                    "*_controller.ts files for examples)"
                ),
                controller=controller,
                subject=call.stream_name,
                details={**details, "expected_method": expected},
            )

        if call.type is None:
            return Finding(
                kind=FindingKind.BROADCAST_MISSING_TYPE,
                file=relative,
                line=call.line,
                message=(
                    f"stream '{call.stream_name}' broadcast missing 'type' "
                    "field"
                ),
                suggestion=(
                    "Add 'type' field to broadcast hash: "
                    "{ type: 'your-type', ... }"
                ),
                controller=controller,
                subject=call.stream_name,
                details=details,
            )

        method = handler_name(call.type)
        descriptor = context.controllers.get(controller)
        methods = descriptor.methods if descriptor is not None else ()
        if method in methods:
            return None
        return Finding(
            kind=FindingKind.BROADCAST_MISSING_HANDLER,
            file=relative,
            line=call.line,
            message=(
                f"stream '{call.stream_name}' type '{call.type}' needs "
                f"{method}() in {frontend}"
            ),
            suggestion=(
                "Add method to frontend controller: "
                f"protected {method}(data: any): void {{ ... }}"
            ),
            controller=controller,
            subject=method,
            details={**details, "type": call.type, "expected_method": method},
        )
