"""View templates loaded for one validation run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from bs4 import BeautifulSoup, Tag
from pathspec import PathSpec

from stimlint.core.logging import get_logger
from stimlint.core.paths import ProjectPaths
from stimlint.erb.fragments import Fragment, parse_fragments
from stimlint.erb.preprocess import has_wiring_keyword, preprocess
from stimlint.erb.queries import declared_controllers
from stimlint.erb.ruby import RubyParser, RubyTree

__all__ = [
    "ParsedFragment",
    "ViewDocument",
    "ViewSet",
    "controller_tokens",
    "discover_views",
]

_logger = get_logger(__name__, component="views")


def controller_tokens(element: Tag) -> list[str]:
    """Return the ``data-controller`` names declared on ``element``."""

    value = element.get("data-controller")
    if value is None:
        return []
    if isinstance(value, list):
        value = " ".join(value)
    return value.split()


@dataclass(frozen=True, slots=True)
class ParsedFragment:
    """A fragment whose preprocessed code parsed cleanly."""

    fragment: Fragment
    tree: RubyTree

    def source_line(self, row: int) -> int:
        return self.fragment.source_line(row)


@dataclass(slots=True)
class ViewDocument:
    """One template: raw text, markup tree and merged fragments.

    The markup tree and parsed fragments are built lazily and kept for the
    lifetime of the document, which never outlives a validation run.
    """

    relative_path: str
    path: Path
    text: str
    _soup: BeautifulSoup | None = field(default=None, repr=False)
    _fragments: list[Fragment] | None = field(default=None, repr=False)
    _parsed: list[ParsedFragment] | None = field(default=None, repr=False)
    _lines: list[str] | None = field(default=None, repr=False)

    @classmethod
    def from_path(cls, path: Path, paths: ProjectPaths) -> "ViewDocument":
        return cls(
            relative_path=paths.relative(path),
            path=path,
            text=path.read_text(encoding="utf-8", errors="replace"),
        )

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.text, "html.parser")
        return self._soup

    @property
    def fragments(self) -> list[Fragment]:
        if self._fragments is None:
            self._fragments = parse_fragments(self.text)
        return self._fragments

    @property
    def lines(self) -> list[str]:
        if self._lines is None:
            self._lines = self.text.split("\n")
        return self._lines

    @property
    def name(self) -> str:
        return Path(self.relative_path).name

    @property
    def is_partial(self) -> bool:
        return self.name.startswith("_")

    @property
    def directory(self) -> str:
        return Path(self.relative_path).parent.as_posix()

    def parsed_fragments(self, parser: RubyParser) -> list[ParsedFragment]:
        """Parse every wiring-relevant fragment once, skipping failures."""

        if self._parsed is not None:
            return self._parsed
        parsed: list[ParsedFragment] = []
        for fragment in self.fragments:
            if not has_wiring_keyword(fragment.code):
                continue
            tree = parser.parse(preprocess(fragment.code))
            if tree is None:
                _logger.debug(
                    "fragment-parse-failed",
                    file=self.relative_path,
                    line=fragment.line,
                )
                continue
            parsed.append(ParsedFragment(fragment=fragment, tree=tree))
        self._parsed = parsed
        return parsed

    def controller_elements(self, name: str | None = None) -> list[Tag]:
        """Markup elements declaring ``name`` (or any controller)."""

        elements = self.soup.find_all(attrs={"data-controller": True})
        if name is None:
            return list(elements)
        return [el for el in elements if name in controller_tokens(el)]

    def markup_controllers(self) -> list[str]:
        names: list[str] = []
        for element in self.controller_elements():
            for name in controller_tokens(element):
                if name not in names:
                    names.append(name)
        return names

    def fragment_controllers(self, parser: RubyParser) -> list[str]:
        names: list[str] = []
        for parsed in self.parsed_fragments(parser):
            for name in declared_controllers(parsed.tree):
                if name not in names:
                    names.append(name)
        return names

    def declares_controller(self, name: str, parser: RubyParser) -> bool:
        """Return ``True`` when markup or any fragment declares ``name``."""

        if self.controller_elements(name):
            return True
        return name in self.fragment_controllers(parser)


def _exclusion_spec(patterns: Iterable[str]) -> PathSpec | None:
    patterns = [pattern for pattern in patterns if pattern]
    if not patterns:
        return None
    return PathSpec.from_lines("gitwildmatch", patterns)


def discover_views(
    paths: ProjectPaths,
    *,
    view_glob: str,
    exclude: Iterable[str] = (),
) -> Iterator[Path]:
    """Yield view templates under ``paths.views_dir`` in sorted order.

    ``exclude`` holds gitwildmatch patterns relative to the views directory.
    """

    spec = _exclusion_spec(exclude)
    if not paths.views_dir.is_dir():
        return
    for match in sorted(paths.views_dir.glob(view_glob)):
        if not match.is_file():
            continue
        relative = match.relative_to(paths.views_dir).as_posix()
        if spec is not None and spec.match_file(relative):
            _logger.debug("view-excluded", file=relative)
            continue
        yield match


class ViewSet:
    """Documents loaded for a run, keyed by project-relative path."""

    def __init__(self, documents: Iterable[ViewDocument]) -> None:
        self._documents = {doc.relative_path: doc for doc in documents}

    @classmethod
    def load(
        cls,
        paths: ProjectPaths,
        *,
        view_glob: str,
        exclude: Iterable[str] = (),
    ) -> "ViewSet":
        documents = [
            ViewDocument.from_path(path, paths)
            for path in discover_views(
                paths, view_glob=view_glob, exclude=exclude
            )
        ]
        _logger.info("views-loaded", count=len(documents))
        return cls(documents)

    def __iter__(self) -> Iterator[ViewDocument]:
        return iter(self._documents.values())

    def __len__(self) -> int:
        return len(self._documents)

    def get(self, relative_path: str) -> ViewDocument | None:
        return self._documents.get(relative_path)
