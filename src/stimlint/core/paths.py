"""Project path helpers for :mod:`stimlint`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator

from stimlint.errors import ProjectLayoutError

from .config import AppConfig

__all__ = [
    "ProjectPaths",
    "resolve_project_root",
]


@dataclass(frozen=True, slots=True)
class ProjectPaths:
    """Resolved locations inside a Rails project.

    Example:
        >>> from pathlib import Path
        >>> paths = ProjectPaths(
        ...     root=Path("/srv/app"),
        ...     views_dir=Path("/srv/app/app/views"),
        ...     controllers_dir=Path("/srv/app/app/javascript/controllers"),
        ...     controllers_index=Path("/srv/app/app/javascript/controllers/index.ts"),
        ...     routes_file=Path("/srv/app/config/routes.rb"),
        ...     log_dir=None,
        ... )
        >>> paths.relative(Path("/srv/app/app/views/home/index.html.erb"))
        'app/views/home/index.html.erb'
    """

    root: Path
    views_dir: Path
    controllers_dir: Path
    controllers_index: Path
    routes_file: Path
    log_dir: Path | None

    @classmethod
    def from_config(cls, config: AppConfig) -> "ProjectPaths":
        root = config.root.resolve(strict=False)
        settings = config.paths
        return cls(
            root=root,
            views_dir=root / settings.views_dir,
            controllers_dir=root / settings.controllers_dir,
            controllers_index=root / settings.controllers_index,
            routes_file=root / settings.routes_file,
            log_dir=root / settings.log_dir if settings.log_dir else None,
        )

    def relative(self, path: Path) -> str:
        """Return ``path`` relative to the project root in POSIX form."""

        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def absolute(self, relative: str) -> Path:
        """Return the absolute path for a project-relative ``relative``."""

        return self.root / relative

    def glob(self, patterns: Iterable[str]) -> Iterator[Path]:
        """Yield files matching any project-relative glob, sorted, once."""

        seen: set[Path] = set()
        for pattern in patterns:
            for match in sorted(self.root.glob(pattern)):
                if match.is_file() and match not in seen:
                    seen.add(match)
                    yield match


def resolve_project_root(
    *,
    root_override: Path | None = None,
    env_override: Path | None = None,
) -> Path:
    """Resolve the project root honoring CLI and environment overrides.

    Raises:
        ProjectLayoutError: If the resolved root is not a directory.
    """

    base = root_override or env_override or Path.cwd()
    candidate = Path(base).expanduser()
    if not candidate.is_absolute():
        candidate = Path.cwd() / candidate
    root = candidate.resolve(strict=False)
    if not root.is_dir():
        raise ProjectLayoutError(f"Project root is not a directory: {root}")
    return root
