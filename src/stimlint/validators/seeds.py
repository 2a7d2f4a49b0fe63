"""Seed records must attach the images their models declare.

Models are read from ``app/models`` for ``has_one_attached`` and
``has_many_attached`` declarations; ``db/seeds.rb`` is then scanned for
``Model.create``/``Model.create!`` calls that leave an image attachment out.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator

from stimlint.core.logging import get_logger
from stimlint.erb.ruby import RubyTree
from stimlint.findings import Finding, FindingKind

from .base import ValidationContext

__all__ = [
    "Attachment",
    "ModelCreation",
    "SeedValidator",
    "find_attachments",
    "find_model_creations",
    "is_image_attachment",
]

_IMAGE_NAME = re.compile(
    r"image|photo|picture|avatar|cover|banner|logo|thumbnail|icon|gallery"
)
_NON_IMAGE_NAME = re.compile(r"document|file|pdf|resume|cv|report")
_ATTACH_MACROS = {"has_one_attached": "one", "has_many_attached": "many"}
_CREATE_METHODS = frozenset({"create", "create!"})
_CONSTANT_TYPES = frozenset({"constant", "scope_resolution"})
_SCOPE_TYPES = frozenset({"class", "module"})
_SAMPLE_IO = (
    "{ io: URI.open('https://picsum.photos/800'), filename: 'photo.jpg' }"
)

_logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Attachment:
    name: str
    cardinality: str


@dataclass(frozen=True, slots=True)
class ModelCreation:
    model: str
    params: frozenset[str]
    line: int


def is_image_attachment(name: str) -> bool:
    """Whether an attachment name looks like it holds images.

    Example:
        >>> is_image_attachment("cover_photo")
        True
        >>> is_image_attachment("photo_file")
        False
    """

    return bool(_IMAGE_NAME.search(name)) and not _NON_IMAGE_NAME.search(name)


def _constant_name(tree: RubyTree, node: Any) -> str:
    return tree.text(node).rpartition("::")[2]


def _class_body(class_node: Any) -> Iterator[Any]:
    stack = list(reversed(class_node.named_children))
    while stack:
        current = stack.pop()
        if current.type in _SCOPE_TYPES:
            continue
        yield current
        stack.extend(reversed(current.named_children))


def find_attachments(tree: RubyTree) -> dict[str, list[Attachment]]:
    """Map model class names to their declared attachments.

    Nested classes are reported under their own name, not the outer one.
    """

    models: dict[str, list[Attachment]] = {}
    for node in tree.walk():
        if node.type != "class":
            continue
        name = node.child_by_field_name("name")
        if name is None:
            continue
        for call in _class_body(node):
            parts = tree.call_parts(call)
            if parts is None or parts.receiver is not None:
                continue
            cardinality = _ATTACH_MACROS.get(parts.method)
            if cardinality is None or parts.arguments is None:
                continue
            arguments = parts.arguments.named_children
            attachment = tree.symbol_name(arguments[0]) if arguments else None
            if attachment is None:
                continue
            models.setdefault(_constant_name(tree, name), []).append(
                Attachment(attachment, cardinality)
            )
    return models


def _hash_keys(tree: RubyTree, arguments: Any) -> set[str]:
    # Top-level keys only; nested hashes such as ``{ io:, filename: }`` are
    # attachment values, not record params.
    pairs: list[Any] = []
    for argument in arguments.named_children:
        if argument.type == "pair":
            pairs.append(argument)
        elif argument.type == "hash":
            pairs.extend(
                c for c in argument.named_children if c.type == "pair"
            )
    keys: set[str] = set()
    for pair in pairs:
        key = tree.pair_key(pair)
        if key is not None:
            keys.add(key.name)
    return keys


def find_model_creations(tree: RubyTree) -> Iterator[ModelCreation]:
    """Yield ``Model.create``/``Model.create!`` calls with their hash keys."""

    for node in tree.calls():
        parts = tree.call_parts(node)
        if parts is None or parts.method not in _CREATE_METHODS:
            continue
        receiver = parts.receiver
        if receiver is None or receiver.type not in _CONSTANT_TYPES:
            continue
        params = (
            _hash_keys(tree, parts.arguments)
            if parts.arguments is not None
            else set()
        )
        yield ModelCreation(
            model=_constant_name(tree, receiver),
            params=frozenset(params),
            line=node.start_point[0] + 1,
        )


def _example_value(attachment: Attachment) -> str:
    if attachment.cardinality == "one":
        return _SAMPLE_IO
    return f"[{_SAMPLE_IO}]"


class SeedValidator:
    name = "seeds"
    description = "seed records attach the images their models declare"

    def validate(self, context: ValidationContext) -> list[Finding]:
        seeds = context.paths.absolute(context.config.paths.seeds_file)
        if not seeds.is_file():
            _logger.debug("seeds-missing", file=str(seeds))
            return []
        relative = context.paths.relative(seeds)
        tree = context.parser.parse(
            seeds.read_text(encoding="utf-8", errors="replace")
        )
        if tree is None:
            _logger.warning("ruby-parse-skipped", file=relative)
            return []

        images = self._image_attachments(context)
        findings: list[Finding] = []
        for creation in find_model_creations(tree):
            for attachment in images.get(creation.model, ()):
                if attachment.name in creation.params:
                    continue
                findings.append(
                    Finding(
                        kind=FindingKind.SEED_MISSING_ATTACHMENT,
                        file=relative,
                        line=creation.line,
                        message=(
                            f"{creation.model}: missing {attachment.name} "
                            f"({attachment.cardinality})"
                        ),
                        suggestion=(
                            "Add 'require \"open-uri\"' at top, then pass "
                            f"{attachment.name}: {_example_value(attachment)}"
                        ),
                        subject=f"{creation.model}#{attachment.name}",
                        details={
                            "model": creation.model,
                            "attachment": attachment.name,
                            "type": attachment.cardinality,
                        },
                    )
                )
        return findings

    @staticmethod
    def _image_attachments(
        context: ValidationContext,
    ) -> dict[str, list[Attachment]]:
        images: dict[str, list[Attachment]] = {}
        for path in context.paths.glob(context.config.paths.model_globs):
            tree = context.parser.parse(
                path.read_text(encoding="utf-8", errors="replace")
            )
            if tree is None:
                _logger.warning(
                    "ruby-parse-skipped", file=context.paths.relative(path)
                )
                continue
            for model, attachments in find_attachments(tree).items():
                images.setdefault(model, []).extend(
                    a for a in attachments if is_image_attachment(a.name)
                )
        return images
