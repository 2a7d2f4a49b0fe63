"""Validation findings."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Mapping

__all__ = ["Finding", "FindingKind"]


class FindingKind(StrEnum):
    """Categories of wiring problems reported by validators."""

    MISSING_CONTROLLER = "MissingController"
    MISSING_TARGET = "MissingTarget"
    TARGET_OUT_OF_SCOPE = "TargetOutOfScope"
    MISSING_VALUE = "MissingValue"
    VALUE_WRONG_FORMAT = "ValueWrongFormat"
    MISSING_OUTLET = "MissingOutlet"
    OUTLET_WRONG_ATTR = "OutletWrongAttr"
    INVALID_OUTLET_SELECTOR = "InvalidOutletSelector"
    OUTLET_TARGET_NOT_FOUND = "OutletTargetNotFound"
    MISSING_SELECTOR = "MissingSelector"
    SELECTOR_OUT_OF_SCOPE = "SelectorOutOfScope"
    MISSING_METHOD = "MissingMethod"
    MISSING_ACTION_SCOPE = "MissingActionScope"
    ACTION_OUT_OF_SCOPE = "ActionOutOfScope"
    BROADCAST_MISSING_FRONTEND_FILE = "BroadcastMissingFrontendFile"
    BROADCAST_MISSING_TYPE = "BroadcastMissingType"
    BROADCAST_MISSING_HANDLER = "BroadcastMissingHandler"
    FORBIDDEN_COLOR_CLASS = "ForbiddenColorClass"
    ARCHITECTURE_VIOLATION = "ArchitectureViolation"
    TURBO_FRAME_USAGE = "TurboFrameUsage"
    ROUTE_PARAM_OPTION = "RouteParamOption"
    MISSING_CONTROLLER_IMPORT = "MissingControllerImport"
    MISSING_CONTROLLER_REGISTRATION = "MissingControllerRegistration"
    SEED_MISSING_ATTACHMENT = "SeedMissingAttachment"

    @property
    def title(self) -> str:
        """Human readable category heading.

        Example:
            >>> FindingKind.TARGET_OUT_OF_SCOPE.title
            'Target out of scope'
        """

        return _TITLES.get(self, self.value)


_TITLES: dict[FindingKind, str] = {
    FindingKind.MISSING_CONTROLLER: "Missing controllers",
    FindingKind.MISSING_TARGET: "Missing targets",
    FindingKind.TARGET_OUT_OF_SCOPE: "Target out of scope",
    FindingKind.MISSING_VALUE: "Missing values",
    FindingKind.VALUE_WRONG_FORMAT: "Value attribute format",
    FindingKind.MISSING_OUTLET: "Missing outlets",
    FindingKind.OUTLET_WRONG_ATTR: "Outlet attribute format",
    FindingKind.INVALID_OUTLET_SELECTOR: "Invalid outlet selectors",
    FindingKind.OUTLET_TARGET_NOT_FOUND: "Outlet targets not found",
    FindingKind.MISSING_SELECTOR: "Missing selector elements",
    FindingKind.SELECTOR_OUT_OF_SCOPE: "Selector out of scope",
    FindingKind.MISSING_METHOD: "Missing action methods",
    FindingKind.MISSING_ACTION_SCOPE: "Actions without controller scope",
    FindingKind.ACTION_OUT_OF_SCOPE: "Actions outside controller scope",
    FindingKind.BROADCAST_MISSING_FRONTEND_FILE: "Broadcast channel controllers",
    FindingKind.BROADCAST_MISSING_TYPE: "Broadcasts without type",
    FindingKind.BROADCAST_MISSING_HANDLER: "Broadcast handlers",
    FindingKind.FORBIDDEN_COLOR_CLASS: "Forbidden color classes",
    FindingKind.ARCHITECTURE_VIOLATION: "Architecture notices",
    FindingKind.TURBO_FRAME_USAGE: "Turbo Frame usage",
    FindingKind.ROUTE_PARAM_OPTION: "Custom route params",
    FindingKind.MISSING_CONTROLLER_IMPORT: "Missing controller imports",
    FindingKind.MISSING_CONTROLLER_REGISTRATION: "Missing controller registrations",
    FindingKind.SEED_MISSING_ATTACHMENT: "Seed images not attached",
}


@dataclass(frozen=True, slots=True)
class Finding:
    """One reported wiring problem.

    ``file`` is project-relative; ``line`` is 1-based or ``None`` when the
    problem has no single source location.
    """

    kind: FindingKind
    file: str
    line: int | None
    message: str
    suggestion: str
    controller: str | None = None
    subject: str | None = None
    details: Mapping[str, Any] = field(
        default_factory=dict, hash=False, compare=False
    )

    @property
    def location(self) -> str:
        return self.file if self.line is None else f"{self.file}:{self.line}"

    def sort_key(self) -> tuple[str, int, str, str]:
        return (self.file, self.line or 0, self.kind.value, self.message)
