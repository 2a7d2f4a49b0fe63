"""Declared targets must exist inside their controller's scope."""

from __future__ import annotations

from stimlint.findings import Finding, FindingKind
from stimlint.scope import ScopeState

from .base import ValidationContext, controller_uses

__all__ = ["TargetValidator"]


class TargetValidator:
    """Check every required target of each attached controller.

    Optional targets (guarded by ``hasXTarget``) and targets preceded by a
    disable directive are not required.
    """

    name = "targets"
    description = "required targets exist within controller scope"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        for use in controller_uses(context):
            controller = use.descriptor.name
            resolver = context.resolver(use.document)
            for target in use.descriptor.required_targets():
                state = resolver.resolve_target(
                    use.element, controller, target
                )
                if state is ScopeState.IN_SCOPE:
                    continue
                findings.append(
                    self._finding(
                        state,
                        use.document.relative_path,
                        use.line,
                        controller,
                        target,
                    )
                )
        return findings

    @staticmethod
    def _finding(
        state: ScopeState,
        file: str,
        line: int | None,
        controller: str,
        target: str,
    ) -> Finding:
        markup = f'<div data-{controller}-target="{target}">...</div>'
        if state is ScopeState.OUT_OF_SCOPE:
            return Finding(
                kind=FindingKind.TARGET_OUT_OF_SCOPE,
                file=file,
                line=line,
                message=(
                    f"{controller}:{target} exists but is out of controller "
                    f"scope in {file}"
                ),
                suggestion=(
                    f"Move {markup} inside controller scope or move "
                    "controller definition to parent element"
                ),
                controller=controller,
                subject=target,
            )
        return Finding(
            kind=FindingKind.MISSING_TARGET,
            file=file,
            line=line,
            message=f"{controller}:{target} missing in {file}",
            suggestion=(
                f"Add {markup} within controller scope or use ERB syntax: "
                f'data: {{ "{controller}-target" => "{target}" }}'
            ),
            controller=controller,
            subject=target,
        )
