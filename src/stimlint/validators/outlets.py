"""Outlets must be wired with a resolvable ``[data-controller]`` selector."""

from __future__ import annotations

import re

from soupsieve import SelectorSyntaxError

from stimlint.erb.queries import kebab_case
from stimlint.findings import Finding, FindingKind

from .base import ControllerUse, ValidationContext, controller_uses

__all__ = ["OutletValidator", "outlet_attribute"]

_CONTROLLER_SELECTOR = re.compile(r"^\[data-controller")


def outlet_attribute(controller: str, outlet: str) -> str:
    """Attribute carrying the selector for ``outlet``.

    Example:
        >>> outlet_attribute("chat", "message_list")
        'data-chat-message-list-outlet'
    """

    return f"data-{controller}-{kebab_case(outlet)}-outlet"


class OutletValidator:
    name = "outlets"
    description = "outlet attributes exist and select a controller element"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings: list[Finding] = []
        for use in controller_uses(context):
            for outlet in use.descriptor.outlets:
                finding = self._check(use, outlet)
                if finding is not None:
                    findings.append(finding)
        return findings

    def _check(self, use: ControllerUse, outlet: str) -> Finding | None:
        controller = use.descriptor.name
        file = use.document.relative_path
        element = use.element
        attribute = outlet_attribute(controller, outlet)

        if not element.has_attr(attribute):
            wrong = f"{attribute}-value"
            if element.has_attr(wrong):
                return self._finding(
                    use,
                    outlet,
                    FindingKind.OUTLET_WRONG_ATTR,
                    f"{controller}:{outlet} wrong attribute name '{wrong}' "
                    f"in {file}, expected '{attribute}'",
                    f"Change '{wrong}' to '{attribute}' "
                    "(remove -value suffix)",
                    expected=attribute,
                    found=wrong,
                )
            return self._finding(
                use,
                outlet,
                FindingKind.MISSING_OUTLET,
                f"{controller}:{outlet} missing outlet attribute "
                f"'{attribute}' in {file}",
                f"Add {attribute}=\"[data-controller='...']\" to element",
                expected=attribute,
            )

        selector = str(element.get(attribute, "")).strip()
        if not _CONTROLLER_SELECTOR.match(selector):
            return self._finding(
                use,
                outlet,
                FindingKind.INVALID_OUTLET_SELECTOR,
                f"{controller}:{outlet} uses invalid selector '{selector}' "
                f"in {file}",
                "Outlet selector must use [data-controller] pattern, "
                f"found: '{selector}'",
                selector=selector,
            )

        try:
            target = use.document.soup.select_one(selector)
        except SelectorSyntaxError:
            target = None
        if target is None:
            return self._finding(
                use,
                outlet,
                FindingKind.OUTLET_TARGET_NOT_FOUND,
                f"{controller}:{outlet} target not found for selector "
                f"'{selector}' in {file}",
                f"No element found matching selector '{selector}'",
                selector=selector,
            )
        return None

    @staticmethod
    def _finding(
        use: ControllerUse,
        outlet: str,
        kind: FindingKind,
        message: str,
        suggestion: str,
        **details: str,
    ) -> Finding:
        return Finding(
            kind=kind,
            file=use.document.relative_path,
            line=use.line,
            message=message,
            suggestion=suggestion,
            controller=use.descriptor.name,
            subject=outlet,
            details=details,
        )
