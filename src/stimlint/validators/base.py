"""Shared validator plumbing: run context, protocol and registry."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Protocol, Sequence

from bs4 import Tag

from stimlint.controllers import ControllerDescriptor, ControllerRegistry
from stimlint.core.config import AppConfig
from stimlint.core.logging import get_logger, validator_context
from stimlint.core.paths import ProjectPaths
from stimlint.erb.ruby import RubyParser
from stimlint.errors import ConfigError
from stimlint.findings import Finding
from stimlint.partials import PartialReferenceMap
from stimlint.scope import ScopeResolver
from stimlint.views import ViewDocument, ViewSet, controller_tokens

__all__ = [
    "ControllerUse",
    "ValidationContext",
    "Validator",
    "ValidatorDescriptor",
    "ValidatorRegistry",
    "controller_uses",
    "run_validator",
]


@dataclass(slots=True)
class ValidationContext:
    """Read-only inputs shared by every validator in one run."""

    config: AppConfig
    paths: ProjectPaths
    controllers: ControllerRegistry
    views: ViewSet
    partials: PartialReferenceMap
    parser: RubyParser = field(default_factory=RubyParser)
    _resolvers: dict[str, ScopeResolver] = field(
        default_factory=dict, repr=False
    )

    def resolver(self, document: ViewDocument) -> ScopeResolver:
        """Return the scope resolver for ``document``, built once."""

        resolver = self._resolvers.get(document.relative_path)
        if resolver is None:
            resolver = ScopeResolver(
                document,
                self.parser,
                strict_fragment_scope=self.config.scope.strict_fragment_scope,
                partials=self.partials,
                views=self.views,
                views_dir=self.config.paths.views_dir,
            )
            self._resolvers[document.relative_path] = resolver
        return resolver


class Validator(Protocol):
    """Protocol that concrete validators follow."""

    name: str
    description: str

    def validate(self, context: ValidationContext) -> list[Finding]:
        """Return findings for the run described by ``context``."""


ValidatorFactory = Callable[[], Validator]


@dataclass(frozen=True, slots=True)
class ValidatorDescriptor:
    """Registry entry describing a validator implementation."""

    name: str
    description: str
    factory: ValidatorFactory


def run_validator(
    validator: Validator,
    context: ValidationContext,
) -> list[Finding]:
    """Run ``validator`` inside its logging context with sorted output."""

    logger = get_logger(__name__)
    with validator_context(validator.name):
        logger.debug("validator-start")
        findings = sorted(validator.validate(context), key=Finding.sort_key)
        logger.info("validator-complete", findings=len(findings))
    return findings


class ValidatorRegistry:
    """Validators available to a run, in declaration order."""

    def __init__(self, descriptors: Iterable[ValidatorDescriptor]) -> None:
        ordered: list[ValidatorDescriptor] = []
        seen: set[str] = set()
        for descriptor in descriptors:
            if descriptor.name in seen:
                raise ValueError(
                    f"Duplicate validator descriptor: {descriptor.name!r}"
                )
            ordered.append(descriptor)
            seen.add(descriptor.name)
        self._descriptors = tuple(ordered)
        self._index = {item.name: item for item in self._descriptors}

    def __iter__(self) -> Iterator[ValidatorDescriptor]:
        return iter(self._descriptors)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def names(self) -> list[str]:
        return [descriptor.name for descriptor in self._descriptors]

    def get(self, name: str) -> ValidatorDescriptor:
        try:
            return self._index[name]
        except KeyError as exc:
            known = ", ".join(self.names())
            raise ConfigError(
                f"Unknown validator {name!r}; expected one of: {known}"
            ) from exc

    def select(self, names: Sequence[str]) -> list[Validator]:
        """Instantiate the named validators in registry order.

        Raises:
            ConfigError: If a name is not registered.
        """

        wanted = {self.get(name).name for name in names}
        return [
            descriptor.factory()
            for descriptor in self._descriptors
            if descriptor.name in wanted
        ]


@dataclass(frozen=True, slots=True)
class ControllerUse:
    """A markup element attaching a known controller."""

    document: ViewDocument
    element: Tag
    descriptor: ControllerDescriptor

    @property
    def line(self) -> int | None:
        return getattr(self.element, "sourceline", None)


def controller_uses(context: ValidationContext) -> Iterator[ControllerUse]:
    """Yield each markup attachment of a known controller, in file order."""

    for document in context.views:
        for element in document.controller_elements():
            for name in controller_tokens(element):
                descriptor = context.controllers.get(name)
                if descriptor is None:
                    continue
                yield ControllerUse(document, element, descriptor)
