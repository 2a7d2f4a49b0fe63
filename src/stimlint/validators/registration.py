"""Controllers attached in markup must exist."""

from __future__ import annotations

from stimlint.findings import Finding, FindingKind
from stimlint.views import controller_tokens

from .base import ValidationContext

__all__ = ["RegistrationValidator", "generator_command"]


def generator_command(controller: str) -> str:
    """Rails generator invocation creating ``controller``.

    Example:
        >>> generator_command("image-gallery")
        'rails generate stimulus_controller image_gallery'
    """

    return f"rails generate stimulus_controller {controller.replace('-', '_')}"


class RegistrationValidator:
    """Report ``data-controller`` names without a controller file."""

    name = "registration"
    description = "data-controller names resolve to controller files"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        for document in context.views:
            reported: set[str] = set()
            for element in document.controller_elements():
                for controller in controller_tokens(element):
                    if controller in context.controllers:
                        continue
                    if controller in reported:
                        continue
                    reported.add(controller)
                    findings.append(
                        Finding(
                            kind=FindingKind.MISSING_CONTROLLER,
                            file=document.relative_path,
                            line=getattr(element, "sourceline", None),
                            message=(
                                f"{controller} controller not found in "
                                f"{document.relative_path}"
                            ),
                            suggestion=(
                                "Create controller file: "
                                f"{generator_command(controller)}"
                            ),
                            controller=controller,
                        )
                    )
        return findings
