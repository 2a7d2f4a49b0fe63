"""Flag utility color classes that tend to break contrast."""

from __future__ import annotations

import re
from collections import Counter

from stimlint.findings import Finding, FindingKind

from .base import ValidationContext

__all__ = ["ColorValidator", "count_color_classes"]


def count_color_classes(text: str, classes: list[str]) -> Counter[str]:
    """Count word-bounded occurrences of each class in ``text``.

    Example:
        >>> count_color_classes("text-white text-white", ["text-white"])
        Counter({'text-white': 2})
    """

    counts: Counter[str] = Counter()
    for name in classes:
        hits = len(re.findall(rf"\b{re.escape(name)}\b", text))
        if hits:
            counts[name] = hits
    return counts


class ColorValidator:
    name = "colors"
    description = "views avoid forbidden color utility classes"

    def validate(self, context: ValidationContext) -> list[Finding]:
        advice = context.config.rules.forbidden_colors
        if not advice:
            return []
        classes = list(advice)
        findings: list[Finding] = []
        for document in context.views:
            counts = count_color_classes(document.text, classes)
            if not counts:
                continue
            listed = ", ".join(
                f"{name} ({count}x)" for name, count in counts.items()
            )
            findings.append(
                Finding(
                    kind=FindingKind.FORBIDDEN_COLOR_CLASS,
                    file=document.relative_path,
                    line=None,
                    message=(
                        "Potential contrast issues in "
                        f"{document.relative_path}: {listed}"
                    ),
                    suggestion=(
                        "Use design system colors first; if unavailable, "
                        "confirm contrast is OK, then use gray shades as "
                        "fallback"
                    ),
                    details={
                        "colors": [
                            {
                                "class": name,
                                "count": count,
                                "advice": advice[name],
                            }
                            for name, count in counts.items()
                        ]
                    },
                )
            )
        return findings
