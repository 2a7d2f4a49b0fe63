"""Actions must sit inside their controller and name an existing method."""

from __future__ import annotations

from dataclasses import dataclass

from stimlint.erb.queries import ActionToken, find_actions, parse_action_string
from stimlint.findings import Finding, FindingKind
from stimlint.scope import ScopeResolver, ScopeState
from stimlint.views import ViewDocument

from .base import ValidationContext

__all__ = ["ActionUse", "ActionValidator", "collect_actions"]


@dataclass(frozen=True, slots=True)
class ActionUse:
    """One action descriptor and where it was declared."""

    token: ActionToken
    line: int | None
    in_scope: bool
    source: str


def collect_actions(
    document: ViewDocument,
    resolver: ScopeResolver,
) -> list[ActionUse]:
    """Gather markup and fragment actions with their scope verdict."""

    uses: list[ActionUse] = []
    for element in document.soup.find_all(attrs={"data-action": True}):
        value = element.get("data-action")
        if isinstance(value, list):
            value = " ".join(value)
        for token in parse_action_string(value or ""):
            in_scope = resolver.markup_action_in_scope(
                element, token.controller
            ) or resolver.in_parent_scope(token.controller)
            uses.append(
                ActionUse(
                    token=token,
                    line=getattr(element, "sourceline", None),
                    in_scope=in_scope,
                    source="markup",
                )
            )

    for parsed in document.parsed_fragments(resolver.parser):
        for token in find_actions(parsed.tree):
            line = parsed.source_line(token.row)
            in_scope = resolver.fragment_action_in_scope(
                line, token.controller
            ) or resolver.in_parent_scope(token.controller)
            uses.append(
                ActionUse(
                    token=token,
                    line=line,
                    in_scope=in_scope,
                    source="erb",
                )
            )
    return uses


class ActionValidator:
    """Check action scope first; methods are only checked once in scope."""

    name = "actions"
    description = "actions are scoped to their controller and methods exist"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        for document in context.views:
            resolver = context.resolver(document)
            for use in collect_actions(document, resolver):
                if not use.in_scope:
                    findings.append(
                        self._scope_finding(context, document, resolver, use)
                    )
                    continue
                descriptor = context.controllers.get(use.token.controller)
                if descriptor is None:
                    continue
                if use.token.method in descriptor.methods:
                    continue
                controller = use.token.controller
                method = use.token.method
                findings.append(
                    Finding(
                        kind=FindingKind.MISSING_METHOD,
                        file=document.relative_path,
                        line=use.line,
                        message=(
                            f"{controller}#{method} not found in "
                            f"{document.relative_path}"
                        ),
                        suggestion=(
                            f"Add method '{method}(): void {{ }}' to "
                            f"{controller} controller"
                        ),
                        controller=controller,
                        subject=method,
                        details={
                            "action": use.token.raw,
                            "available_methods": list(descriptor.methods),
                            "source": use.source,
                        },
                    )
                )
        return findings

    @staticmethod
    def _scope_finding(
        context: ValidationContext,
        document: ViewDocument,
        resolver: ScopeResolver,
        use: ActionUse,
    ) -> Finding:
        controller = use.token.controller
        file = document.relative_path
        wrapper = f'<div data-controller="{controller}">...</div>'
        parents = list(context.partials.parents_of(file))
        state = resolver.classify_unscoped_action(controller)

        if state is ScopeState.OUT_OF_SCOPE:
            kind = FindingKind.ACTION_OUT_OF_SCOPE
            message = (
                f"{use.token.raw} controller exists but action is out of "
                f"scope in {file}"
            )
            if document.is_partial:
                suggestion = (
                    f"Controller '{controller}' exists but action is out of "
                    "scope - move action within controller scope or define "
                    "controller in parent template"
                )
            else:
                suggestion = (
                    f"Controller '{controller}' exists but action is out of "
                    f"scope - move action within {wrapper}"
                )
        else:
            kind = FindingKind.MISSING_ACTION_SCOPE
            message = f"{use.token.raw} needs controller scope in {file}"
            if document.is_partial:
                suggestion = (
                    f"Controller '{controller}' should be defined in parent "
                    f"template or wrap with {wrapper}"
                )
            else:
                suggestion = f"Wrap with {wrapper}"

        if document.is_partial and parents:
            message += f" (partial rendered in: {', '.join(parents)})"
        return Finding(
            kind=kind,
            file=file,
            line=use.line,
            message=message,
            suggestion=suggestion,
            controller=controller,
            subject=use.token.method,
            details={
                "action": use.token.raw,
                "parent_files": parents,
                "source": use.source,
            },
        )
