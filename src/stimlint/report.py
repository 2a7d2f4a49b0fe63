"""Aggregate validation results into a categorized report."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from stimlint.errors import ValidationFailure
from stimlint.findings import Finding, FindingKind

__all__ = [
    "ReportSection",
    "ValidationReport",
    "ValidatorResult",
    "truncation_notice",
]

_SKIP_DIRECTIVE = "// stimulus-validator: disable-next-line"

_SKIP_HINTS: tuple[tuple[frozenset[FindingKind], str], ...] = (
    (
        frozenset(
            {FindingKind.MISSING_TARGET, FindingKind.TARGET_OUT_OF_SCOPE}
        ),
        "If you've confirmed the target is handled dynamically or in another "
        f"way, add '{_SKIP_DIRECTIVE}' before the target declaration.",
    ),
    (
        frozenset({FindingKind.MISSING_VALUE, FindingKind.VALUE_WRONG_FORMAT}),
        "If you've confirmed the value is handled dynamically or has a "
        f"default, add '{_SKIP_DIRECTIVE}' before the value declaration.",
    ),
    (
        frozenset(
            {FindingKind.MISSING_SELECTOR, FindingKind.SELECTOR_OUT_OF_SCOPE}
        ),
        "If you've confirmed the selector is used dynamically or elsewhere, "
        f"add '{_SKIP_DIRECTIVE}' before the querySelector call.",
    ),
)


def truncation_notice(remaining: int) -> str:
    """Line appended when a listing hides ``remaining`` findings.

    Example:
        >>> truncation_notice(3)
        '... and 3 more. Fix these first, then re-run to see remaining errors.'
    """

    return (
        f"... and {remaining} more. Fix these first, then re-run to see "
        "remaining errors."
    )


@dataclass(frozen=True, slots=True)
class ValidatorResult:
    """Findings produced by one validator."""

    name: str
    description: str
    findings: tuple[Finding, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.findings


@dataclass(frozen=True, slots=True)
class ReportSection:
    """One category heading and the findings listed beneath it."""

    kind: FindingKind
    total: int
    shown: tuple[Finding, ...]

    @property
    def hidden(self) -> int:
        return self.total - len(self.shown)

    @property
    def heading(self) -> str:
        return f"{self.kind.title} ({self.total})"


@dataclass(slots=True)
class ValidationReport:
    """All validator results for one run.

    ``max_display`` caps how many findings each validator lists verbosely;
    the category counts always cover every finding.
    """

    results: list[ValidatorResult] = field(default_factory=list)
    views_scanned: int = 0
    controllers_scanned: int = 0
    max_display: int = 5

    @property
    def findings(self) -> list[Finding]:
        return [
            finding for result in self.results for finding in result.findings
        ]

    @property
    def total(self) -> int:
        return sum(len(result.findings) for result in self.results)

    @property
    def passed(self) -> bool:
        return self.total == 0

    def add(self, result: ValidatorResult) -> None:
        self.results.append(result)

    def counts(self) -> Counter[FindingKind]:
        """Number of findings per category, across validators."""

        return Counter(finding.kind for finding in self.findings)

    def result(self, name: str) -> ValidatorResult | None:
        for result in self.results:
            if result.name == name:
                return result
        return None

    def sections(self, result: ValidatorResult) -> list[ReportSection]:
        """Group ``result`` by category, sharing one display budget.

        Categories are listed in declaration order of :class:`FindingKind`.
        Once the budget is spent, later categories show counts only.
        """

        grouped: dict[FindingKind, list[Finding]] = {}
        for finding in result.findings:
            grouped.setdefault(finding.kind, []).append(finding)

        budget = self.max_display
        sections: list[ReportSection] = []
        for kind in FindingKind:
            items = grouped.get(kind)
            if not items:
                continue
            shown = tuple(items[: max(budget, 0)])
            budget -= len(shown)
            sections.append(
                ReportSection(kind=kind, total=len(items), shown=shown)
            )
        return sections

    def skip_hints(self, result: ValidatorResult) -> list[str]:
        kinds = {finding.kind for finding in result.findings}
        return [hint for trigger, hint in _SKIP_HINTS if kinds & trigger]

    def render_lines(self) -> Iterator[str]:
        """Plain-text rendering of the full report, one line at a time."""

        yield (
            f"Scanned: {self.views_scanned} views, "
            f"{self.controllers_scanned} controllers"
        )
        for result in self.results:
            yield ""
            if result.passed:
                yield f"{result.name}: passed"
                continue
            yield f"{result.name}: {len(result.findings)} issue(s)"
            for section in self.sections(result):
                yield f"  {section.heading}:"
                for finding in section.shown:
                    yield f"    - {finding.location} {finding.message}"
                    if finding.suggestion:
                        yield f"      fix: {finding.suggestion}"
                if section.hidden:
                    yield f"    {truncation_notice(section.hidden)}"
            for hint in self.skip_hints(result):
                yield f"  hint: {hint}"

    def failure_message(self) -> str:
        """Itemized message naming the first findings of every validator."""

        lines = [f"Found {self.total} issue(s):"]
        for result in self.results:
            if result.passed:
                continue
            lines.extend(_itemize(result.findings, self.max_display))
        return "\n".join(lines)

    def assert_clean(self) -> None:
        """Raise :class:`ValidationFailure` when any finding exists.

        Suited for embedding a run inside a test suite::

            report = ValidationService(config).run()
            report.assert_clean()
        """

        if not self.passed:
            raise ValidationFailure(self.failure_message())


def _itemize(findings: Sequence[Finding], limit: int) -> Iterable[str]:
    for finding in findings[:limit]:
        yield (
            f"{finding.kind.title}: {finding.message} at {finding.location}"
            f" - {finding.suggestion}"
        )
    remaining = len(findings) - limit
    if remaining > 0:
        yield truncation_notice(remaining)
