"""Required values must be set on the controller element."""

from __future__ import annotations

import re

from bs4 import Tag

from stimlint.erb.queries import kebab_case
from stimlint.findings import Finding, FindingKind
from stimlint.scope import ScopeState
from stimlint.views import ViewDocument

from .base import ValidationContext, controller_uses

__all__ = ["ValueValidator", "common_value_mistakes", "value_attribute"]

_STANDARD_ATTRIBUTES = ("data-controller", "data-action", "data-target")


def value_attribute(controller: str, value: str) -> str:
    """Attribute name Stimulus reads ``value`` from.

    Example:
        >>> value_attribute("countdown", "endsAt")
        'data-countdown-ends-at-value'
    """

    return f"data-{controller}-{kebab_case(value)}-value"


def common_value_mistakes(controller: str, value: str) -> list[str]:
    """Near-miss attribute names people write instead of the real one."""

    kebab = kebab_case(value)
    candidates = [
        f"data-{value}",
        f"data-{controller}-{value}",
        f"data-{controller}-{kebab}",
        f"data-{value}-value",
    ]
    return [
        attr
        for attr in dict.fromkeys(candidates)
        if not attr.startswith(_STANDARD_ATTRIBUTES)
    ]


def _present(document: ViewDocument, element: Tag, attribute: str) -> bool:
    if element.has_attr(attribute):
        return True
    pattern = rf"(?<![\w-]){re.escape(attribute)}(?![\w-])"
    return re.search(pattern, document.text) is not None


class ValueValidator:
    """Check every required value; report near misses as format errors."""

    name = "values"
    description = "required values are declared on the controller element"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        for use in controller_uses(context):
            controller = use.descriptor.name
            resolver = context.resolver(use.document)
            file = use.document.relative_path
            for value in use.descriptor.required_values():
                expected = value_attribute(controller, value)
                state = resolver.resolve_value(
                    use.element, controller, expected, value
                )
                if state is ScopeState.IN_SCOPE:
                    continue

                found = next(
                    (
                        attr
                        for attr in common_value_mistakes(controller, value)
                        if _present(use.document, use.element, attr)
                    ),
                    None,
                )
                if found is not None:
                    findings.append(
                        Finding(
                            kind=FindingKind.VALUE_WRONG_FORMAT,
                            file=file,
                            line=use.line,
                            message=(
                                f"{controller}:{value} incorrect format "
                                f"'{found}' in {file}, expected '{expected}'"
                            ),
                            suggestion=f"Change '{found}' to '{expected}'",
                            controller=controller,
                            subject=value,
                            details={"expected": expected, "found": found},
                        )
                    )
                    continue

                message = f"{controller}:{value} missing in {file}"
                if state is ScopeState.OUT_OF_SCOPE:
                    message += " (declared outside the controller element)"
                findings.append(
                    Finding(
                        kind=FindingKind.MISSING_VALUE,
                        file=file,
                        line=use.line,
                        message=message,
                        suggestion=(
                            f'Add {expected}="..." to controller element'
                        ),
                        controller=controller,
                        subject=value,
                        details={"expected": expected},
                    )
                )
        return findings
