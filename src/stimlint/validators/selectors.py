"""``querySelector`` literals must match elements inside the controller."""

from __future__ import annotations

from stimlint.findings import Finding, FindingKind
from stimlint.scope import ScopeState

from .base import ValidationContext

__all__ = ["SelectorValidator"]


class SelectorValidator:
    """Check static selectors in every view attaching the controller.

    Template-literal selectors are dynamic and skipped, as are calls
    preceded by a disable directive.
    """

    name = "selectors"
    description = "querySelector calls target elements within scope"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        for descriptor in context.controllers:
            calls = [
                call
                for call in descriptor.query_selectors
                if not call.is_template and not call.skip_validation
            ]
            if not calls:
                continue
            controller = descriptor.name
            controller_file = (
                descriptor.source_file.as_posix()
                if descriptor.source_file is not None
                else controller
            )
            for document in context.views:
                elements = document.controller_elements(controller)
                if not elements:
                    continue
                resolver = context.resolver(document)
                view = document.relative_path
                for call in calls:
                    state = resolver.resolve_selector(call.selector, elements)
                    if state is ScopeState.IN_SCOPE:
                        continue
                    where = f"{controller}#{call.in_method or call.method}()"
                    if state is ScopeState.OUT_OF_SCOPE:
                        kind = FindingKind.SELECTOR_OUT_OF_SCOPE
                        message = (
                            f"{where} selector '{call.selector}' exists but "
                            f"is out of scope in {view}"
                        )
                        suggestion = (
                            f"Selector '{call.selector}' exists in {view} but "
                            f"is outside the '{controller}' controller scope. "
                            "Move the element(s) inside "
                            f'<div data-controller="{controller}">...</div>.'
                        )
                    else:
                        kind = FindingKind.MISSING_SELECTOR
                        message = (
                            f"{where} selector '{call.selector}' not found "
                            f"in {view}"
                        )
                        suggestion = (
                            f"Selector '{call.selector}' not found in {view}. "
                            "Add an element with this selector within the "
                            f"'{controller}' controller scope."
                        )
                    findings.append(
                        Finding(
                            kind=kind,
                            file=controller_file,
                            line=call.line,
                            message=message,
                            suggestion=suggestion,
                            controller=controller,
                            subject=call.selector,
                            details={"view_file": view},
                        )
                    )
        return findings
