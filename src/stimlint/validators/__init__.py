"""Validators run by ``stimlint check`` and their default registry."""

from __future__ import annotations

from .actions import ActionValidator
from .architecture import (
    ArchitectureValidator,
    RouteValidator,
    TurboFrameValidator,
)
from .base import (
    ValidationContext,
    Validator,
    ValidatorDescriptor,
    ValidatorRegistry,
    run_validator,
)
from .broadcasts import BroadcastValidator
from .colors import ColorValidator
from .controller_index import ControllerIndexValidator
from .outlets import OutletValidator
from .registration import RegistrationValidator, generator_command
from .seeds import SeedValidator
from .selectors import SelectorValidator
from .targets import TargetValidator
from .values import ValueValidator

__all__ = [
    "ValidationContext",
    "Validator",
    "ValidatorDescriptor",
    "ValidatorRegistry",
    "build_default_registry",
    "generator_command",
    "run_validator",
]

_DEFAULT_VALIDATORS = (
    RegistrationValidator,
    TargetValidator,
    ValueValidator,
    OutletValidator,
    ActionValidator,
    SelectorValidator,
    BroadcastValidator,
    ColorValidator,
    ArchitectureValidator,
    TurboFrameValidator,
    RouteValidator,
    ControllerIndexValidator,
    SeedValidator,
)


def build_default_registry() -> ValidatorRegistry:
    """Build a registry holding every built-in validator.

    Example:
        >>> build_default_registry().names()[:3]
        ['registration', 'targets', 'values']
    """

    return ValidatorRegistry(
        ValidatorDescriptor(
            name=validator.name,
            description=validator.description,
            factory=validator,
        )
        for validator in _DEFAULT_VALIDATORS
    )
