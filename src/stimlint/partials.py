"""Partial-to-parent template references."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from stimlint.erb.fragments import line_number
from stimlint.erb.ruby import RubyParser

from .views import ViewDocument, ViewSet

__all__ = ["PartialReferenceMap", "partial_path_for", "rendered_partials"]

_RENDER_CALL = re.compile(
    r"""\brender[\s(]+(?:partial:\s*)?['"](?P<name>[^'"]+)['"]"""
)


def partial_path_for(name: str, current_dir: str, views_dir: str) -> str:
    """Map a ``render`` argument to the partial's project-relative path.

    Example:
        >>> partial_path_for("shared/header", "app/views/home", "app/views")
        'app/views/shared/_header.html.erb'
        >>> partial_path_for("row", "app/views/home", "app/views")
        'app/views/home/_row.html.erb'
    """

    if "/" in name:
        directory, _, leaf = name.rpartition("/")
        return f"{views_dir}/{directory}/_{leaf}.html.erb"
    return f"{current_dir}/_{name}.html.erb"


def rendered_partials(
    document: ViewDocument,
    views_dir: str,
) -> list[tuple[str, int]]:
    """Return ``(partial path, line)`` for each render call in ``document``."""

    return [
        (
            partial_path_for(
                match.group("name"), document.directory, views_dir
            ),
            line_number(document.text, match.start()),
        )
        for match in _RENDER_CALL.finditer(document.text)
    ]


class PartialReferenceMap:
    """Maps a partial path to the templates that render it.

    Parents are kept in discovery order without duplicates. The map is built
    once per run and not modified afterwards.
    """

    def __init__(self, parents: Mapping[str, Iterable[str]]) -> None:
        self._parents = {
            partial: tuple(dict.fromkeys(files))
            for partial, files in parents.items()
        }

    @classmethod
    def build(cls, views: ViewSet, *, views_dir: str) -> "PartialReferenceMap":
        parents: dict[str, list[str]] = {}
        for document in views:
            for partial, _ in rendered_partials(document, views_dir):
                parents.setdefault(partial, []).append(document.relative_path)
        return cls(parents)

    def __contains__(self, partial: object) -> bool:
        return partial in self._parents

    def parents_of(self, partial: str) -> tuple[str, ...]:
        return self._parents.get(partial, ())

    def controllers_from_parents(
        self,
        partial: str,
        views: ViewSet,
        parser: RubyParser,
    ) -> list[str]:
        """Controllers declared by any template that (transitively) renders
        ``partial``."""

        controllers: list[str] = []
        visited: set[str] = {partial}
        pending = list(self.parents_of(partial))
        while pending:
            parent_path = pending.pop(0)
            if parent_path in visited:
                continue
            visited.add(parent_path)
            document = views.get(parent_path)
            if document is None:
                continue
            for name in _declared(document, parser):
                if name not in controllers:
                    controllers.append(name)
            if document.is_partial:
                pending.extend(self.parents_of(parent_path))
        return controllers


def _declared(document: ViewDocument, parser: RubyParser) -> list[str]:
    names = document.markup_controllers()
    for name in document.fragment_controllers(parser):
        if name not in names:
            names.append(name)
    return names
