"""Turbo Stream architecture checks for backend and frontend controllers.

Three validators live here: general response-style notices for Rails and
Stimulus controllers, Turbo Frame usage, and ``param:`` route options.
Findings are line based; Ruby sources are parsed only to locate methods
whose lines are exempt.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from stimlint.core.logging import get_logger
from stimlint.erb.ruby import RubyParser
from stimlint.findings import Finding, FindingKind

from .base import ValidationContext

__all__ = [
    "ArchitectureValidator",
    "LineRule",
    "RouteValidator",
    "TurboFrameValidator",
    "exempt_line_ranges",
]

_EXEMPT_METHOD = re.compile(r"(^|_)(webhook|callback)$")
_IMPLICIT_REDIRECT = re.compile(r"\bredirect_to\s+@(?P<var>\w+)")
_EXPLICIT_REDIRECT = re.compile(r"\bredirect_to\s+\w+_(path|url)\(")
_FETCH_CALL = re.compile(r"\bfetch\s*\(")
_ROUTE_PARAM = re.compile(r"\bparam:\s*:")


@dataclass(frozen=True, slots=True)
class LineRule:
    """A regex flagged on individual source lines."""

    key: str
    pattern: re.Pattern[str]
    issue: str
    suggestion: str


BACKEND_RULES: tuple[LineRule, ...] = (
    LineRule(
        "head_response",
        re.compile(r"\bhead\s+:(ok|no_content)\b"),
        "Lacks explicit frontend interaction feedback",
        "Use Turbo Stream to provide specific UI update instructions",
    ),
    LineRule(
        "render_json",
        re.compile(r"\brender\s+json:"),
        "JSON response requires manual frontend data handling and DOM "
        "updates",
        "Use Turbo Stream for server-rendered HTML fragments",
    ),
    LineRule(
        "respond_to",
        re.compile(r"\brespond_to\s+(do\b|\{)"),
        "respond_to block adds unnecessary complexity and branching logic",
        "Remove respond_to - use direct Turbo Stream rendering or HTML only",
    ),
    LineRule(
        "format_block",
        re.compile(r"\bformat\.\w+"),
        "Format-based response handling adds complexity and violates Turbo "
        "Stream architecture",
        "Remove format blocks - render Turbo Streams directly or HTML "
        "templates only",
    ),
)

VIEW_TURBO_RULES: tuple[LineRule, ...] = tuple(
    LineRule(
        key,
        re.compile(pattern),
        issue,
        f"Remove {issue} - create .turbo_stream.erb templates for partial "
        "updates instead",
    )
    for key, pattern, issue in (
        ("turbo_frame_tag", r"\bturbo_frame_tag\b", "Turbo Frame helper"),
        (
            "data_turbo_frame",
            r"\bdata-turbo-frame\b",
            "Turbo Frame data attribute",
        ),
        ("turbo_frame_element", r"<turbo-frame\b", "Turbo Frame HTML tag"),
        (
            "turbo_stream_from",
            r"\bturbo_stream_from\b",
            "turbo_stream_from helper",
        ),
    )
)

BACKEND_TURBO_RULES: tuple[LineRule, ...] = (
    LineRule(
        "turbo_frame_request",
        re.compile(r"\bturbo_frame_request\?"),
        "Turbo Frame request check",
        "Remove Turbo Frame request check - Turbo Frames not allowed (use "
        "format.turbo_stream instead)",
    ),
)

_logger = get_logger(__name__)


def exempt_line_ranges(
    parser: RubyParser,
    source: str,
) -> list[range] | None:
    """Line ranges of ``*webhook``/``*callback`` methods in ``source``.

    Returns ``None`` when the source does not parse.
    """

    tree = parser.parse(source)
    if tree is None:
        return None
    ranges: list[range] = []
    for node in tree.walk():
        if node.type not in {"method", "singleton_method"}:
            continue
        name = node.child_by_field_name("name")
        if name is None or not _EXEMPT_METHOD.search(tree.text(name)):
            continue
        ranges.append(range(node.start_point[0] + 1, node.end_point[0] + 2))
    return ranges


def _code_lines(text: str, comment: str) -> Iterator[tuple[int, str]]:
    for number, line in enumerate(text.splitlines(), start=1):
        if line.strip().startswith(comment):
            continue
        yield number, line


def _read(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="replace")


class ArchitectureValidator:
    """Response-style notices for Rails controllers and Stimulus sources."""

    name = "architecture"
    description = "controllers follow the Turbo Stream response style"

    def validate(self, context: ValidationContext) -> list[Finding]:
        findings = list(self._backend(context))
        findings.extend(self._frontend(context))
        return findings

    # ------------------------------------------------------------------
    # Rails controllers
    # ------------------------------------------------------------------
    def _backend(self, context: ValidationContext) -> Iterator[Finding]:
        api_prefix = context.config.rules.api_controllers_prefix
        globs = context.config.paths.backend_controller_globs
        for path in context.paths.glob(globs):
            relative = context.paths.relative(path)
            if api_prefix and relative.startswith(api_prefix):
                continue
            text = _read(path)
            exempt = exempt_line_ranges(context.parser, text)
            if exempt is None:
                _logger.warning("ruby-parse-fallback", file=relative)
                exempt = []
            for number, line in _code_lines(text, "#"):
                if any(number in span for span in exempt):
                    continue
                yield from self._backend_line(relative, number, line)

    @staticmethod
    def _backend_line(
        relative: str,
        number: int,
        line: str,
    ) -> Iterator[Finding]:
        code = line.strip()
        for rule in BACKEND_RULES:
            if rule.pattern.search(line):
                yield Finding(
                    kind=FindingKind.ARCHITECTURE_VIOLATION,
                    file=relative,
                    line=number,
                    message=f"{rule.issue}: {code}",
                    suggestion=rule.suggestion,
                    subject=rule.key,
                    details={"code": code},
                )
        match = _IMPLICIT_REDIRECT.search(line)
        if match and not _EXPLICIT_REDIRECT.search(line):
            var = f"@{match.group('var')}"
            resource = match.group("var")
            yield Finding(
                kind=FindingKind.ARCHITECTURE_VIOLATION,
                file=relative,
                line=number,
                message=(
                    "Implicit route for redirect_to makes code less "
                    f"readable and harder to refactor: {code}"
                ),
                suggestion=(
                    "Use explicit route helper: redirect_to "
                    f"{resource}_path({var}) instead of redirect_to {var}"
                ),
                subject="implicit_redirect",
                details={"code": code},
            )

    # ------------------------------------------------------------------
    # Stimulus controllers
    # ------------------------------------------------------------------
    def _frontend(self, context: ValidationContext) -> Iterator[Finding]:
        for descriptor in context.controllers:
            file = (
                descriptor.source_file.as_posix()
                if descriptor.source_file is not None
                else descriptor.name
            )
            for pattern in descriptor.anti_patterns:
                where = f"In {pattern.method}(): " if pattern.method else ""
                yield Finding(
                    kind=FindingKind.ARCHITECTURE_VIOLATION,
                    file=file,
                    line=pattern.line,
                    message=f"{descriptor.name}: {pattern.issue}",
                    suggestion=(
                        f"{where}Remove preventDefault() if you want the "
                        "form to submit"
                    ),
                    controller=descriptor.name,
                    subject=pattern.type,
                    details={"method": pattern.method},
                )

        for controller_file in context.controllers.files:
            text = _read(controller_file.path)
            for number, line in _code_lines(text, "//"):
                if not _FETCH_CALL.search(line):
                    continue
                yield Finding(
                    kind=FindingKind.ARCHITECTURE_VIOLATION,
                    file=controller_file.relative_path,
                    line=number,
                    message=(
                        "Using fetch() breaks Turbo Stream architecture and "
                        "requires manual response handling"
                    ),
                    suggestion=(
                        "Use standard form submission to let Turbo handle "
                        "the interaction"
                    ),
                    controller=controller_file.name,
                    subject="fetch",
                    details={"code": line.strip()},
                )


class TurboFrameValidator:
    """Turbo Frames are not used; partial updates go through streams."""

    name = "turbo-frames"
    description = "views and controllers avoid Turbo Frames"

    def validate(self, context: ValidationContext) -> list[Finding]:
        allowed = set(context.config.rules.turbo_stream_from_allowed)
        findings: list[Finding] = []
        for document in context.views:
            rules = [
                rule
                for rule in VIEW_TURBO_RULES
                if rule.key != "turbo_stream_from"
                or document.name not in allowed
            ]
            for number, line in enumerate(document.lines, start=1):
                findings.extend(
                    _turbo_finding(document.relative_path, number, rule, line)
                    for rule in rules
                    if rule.pattern.search(line)
                )

        globs = context.config.paths.backend_controller_globs
        for path in context.paths.glob(globs):
            relative = context.paths.relative(path)
            for number, line in _code_lines(_read(path), "#"):
                findings.extend(
                    _turbo_finding(relative, number, rule, line)
                    for rule in BACKEND_TURBO_RULES
                    if rule.pattern.search(line)
                )
        return findings


def _turbo_finding(file: str, line: int, rule: LineRule, code: str) -> Finding:
    return Finding(
        kind=FindingKind.TURBO_FRAME_USAGE,
        file=file,
        line=line,
        message=f"{rule.issue} found: {code.strip()}",
        suggestion=rule.suggestion,
        subject=rule.key,
        details={"code": code.strip()},
    )


class RouteValidator:
    name = "routes"
    description = "routes do not customize params with param:"

    def validate(self, context: ValidationContext) -> list[Finding]:
        routes = context.paths.routes_file
        if not routes.is_file():
            return []
        relative = context.paths.relative(routes)
        findings: list[Finding] = []
        for number, line in _code_lines(_read(routes), "#"):
            if not _ROUTE_PARAM.search(line):
                continue
            findings.append(
                Finding(
                    kind=FindingKind.ROUTE_PARAM_OPTION,
                    file=relative,
                    line=number,
                    message=f"Custom route param: {line.strip()}",
                    suggestion=(
                        "Do not use 'param:' to customize route parameter. "
                        "Use friendly_id (already configured) for slug "
                        "customization instead."
                    ),
                    subject="param",
                    details={"code": line.strip()},
                )
            )
        return findings
