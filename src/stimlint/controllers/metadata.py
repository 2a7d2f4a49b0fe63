"""Discover Stimulus controllers and load their extracted metadata."""

from __future__ import annotations

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Sequence

from pydantic import ValidationError

from stimlint.core.logging import get_logger
from stimlint.core.paths import ProjectPaths
from stimlint.errors import ControllerMetadataError

from .models import ControllerDescriptor

__all__ = [
    "ControllerFile",
    "ControllerRegistry",
    "controller_name_for",
    "discover_controller_files",
    "load_from_command",
    "load_from_json_file",
]

_CONTROLLER_SUFFIX = "_controller"

_logger = get_logger(__name__, component="controllers")


@dataclass(frozen=True, slots=True)
class ControllerFile:
    """A controller source file and its registration name."""

    name: str
    path: Path
    relative_path: str


def controller_name_for(path: Path, controllers_dir: Path) -> str:
    """Derive the kebab-case registration name for a controller source.

    Nested directories become ``--`` namespaces.

    Example:
        >>> from pathlib import Path
        >>> root = Path("/app/javascript/controllers")
        >>> controller_name_for(root / "admin/user_list_controller.ts", root)
        'admin--user-list'
    """

    try:
        relative = path.relative_to(controllers_dir)
    except ValueError:
        relative = Path(path.name)
    parts = list(relative.parent.parts)
    stem = relative.name.split(".", 1)[0]
    if stem.endswith(_CONTROLLER_SUFFIX):
        stem = stem[: -len(_CONTROLLER_SUFFIX)]
    parts.append(stem)
    return "--".join(part.replace("_", "-") for part in parts)


def discover_controller_files(
    paths: ProjectPaths,
    globs: Iterable[str],
) -> list[ControllerFile]:
    """Return controller files under ``paths.controllers_dir`` sorted by path."""

    files: list[ControllerFile] = []
    seen: set[Path] = set()
    for pattern in globs:
        for match in sorted(paths.controllers_dir.glob(pattern)):
            if not match.is_file() or match in seen:
                continue
            seen.add(match)
            files.append(
                ControllerFile(
                    name=controller_name_for(match, paths.controllers_dir),
                    path=match,
                    relative_path=paths.relative(match),
                )
            )
    files.sort(key=lambda item: item.relative_path)
    return files


def _descriptor_from_record(
    record: Mapping[str, Any],
    controller: ControllerFile,
) -> ControllerDescriptor:
    payload = dict(record)
    payload["name"] = controller.name
    payload["sourceFile"] = controller.relative_path
    payload.pop("source_file", None)
    try:
        return ControllerDescriptor.model_validate(payload)
    except ValidationError as exc:
        raise ControllerMetadataError(
            f"Metadata for {controller.relative_path} does not match the "
            f"controller schema: {exc}"
        ) from exc


def load_from_command(
    controllers: Sequence[ControllerFile],
    *,
    command: Sequence[str],
    cwd: Path,
) -> dict[str, ControllerDescriptor]:
    """Run the extractor once per controller file.

    Raises:
        ControllerMetadataError: If the command cannot be started, exits
            non-zero, prints non-JSON output, or the record fails validation.
    """

    descriptors: dict[str, ControllerDescriptor] = {}
    for controller in controllers:
        argv = [*command, str(controller.path)]
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                cwd=cwd,
                check=False,
            )
        except OSError as exc:
            raise ControllerMetadataError(
                f"Failed to run controller metadata command {argv[0]!r}: {exc}"
            ) from exc
        if completed.returncode != 0:
            detail = completed.stderr.strip() or completed.stdout.strip()
            raise ControllerMetadataError(
                f"Controller metadata command failed for "
                f"{controller.relative_path} (exit {completed.returncode}): "
                f"{detail}"
            )
        try:
            record = json.loads(completed.stdout)
        except json.JSONDecodeError as exc:
            raise ControllerMetadataError(
                f"Controller metadata for {controller.relative_path} is not "
                f"valid JSON: {exc}"
            ) from exc
        if not isinstance(record, Mapping):
            raise ControllerMetadataError(
                f"Controller metadata for {controller.relative_path} must be "
                "a JSON object."
            )
        descriptors[controller.name] = _descriptor_from_record(
            record, controller
        )
        _logger.debug(
            "controller-metadata-loaded",
            controller=controller.name,
            source=controller.relative_path,
        )
    return descriptors


def load_from_json_file(
    controllers: Sequence[ControllerFile],
    *,
    json_file: Path,
) -> dict[str, ControllerDescriptor]:
    """Load pre-extracted records keyed by controller name.

    Controllers without a record in the file raise, since every validator
    relies on a complete descriptor map.
    """

    try:
        payload = json.loads(json_file.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ControllerMetadataError(
            f"Failed to read controller metadata file {json_file}: {exc}"
        ) from exc
    except json.JSONDecodeError as exc:
        raise ControllerMetadataError(
            f"Controller metadata file {json_file} is not valid JSON: {exc}"
        ) from exc
    if not isinstance(payload, Mapping):
        raise ControllerMetadataError(
            f"Controller metadata file {json_file} must map names to records."
        )

    descriptors: dict[str, ControllerDescriptor] = {}
    for controller in controllers:
        record = payload.get(controller.name)
        if not isinstance(record, Mapping):
            raise ControllerMetadataError(
                f"No metadata record for controller {controller.name!r} in "
                f"{json_file}."
            )
        descriptors[controller.name] = _descriptor_from_record(
            record, controller
        )
    return descriptors


class ControllerRegistry:
    """Read-only descriptor map for one validation run."""

    def __init__(
        self,
        descriptors: Mapping[str, ControllerDescriptor],
        files: Sequence[ControllerFile] = (),
    ) -> None:
        self._descriptors = dict(descriptors)
        self._files = tuple(files)

    @classmethod
    def load(
        cls,
        paths: ProjectPaths,
        *,
        globs: Iterable[str],
        command: Sequence[str],
        json_file: Path | None = None,
    ) -> "ControllerRegistry":
        files = discover_controller_files(paths, globs)
        if json_file is not None:
            descriptors = load_from_json_file(files, json_file=json_file)
        else:
            descriptors = load_from_command(
                files, command=command, cwd=paths.root
            )
        _logger.info("controllers-loaded", count=len(descriptors))
        return cls(descriptors, files)

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[ControllerDescriptor]:
        return iter(self._descriptors.values())

    def __len__(self) -> int:
        return len(self._descriptors)

    def get(self, name: str) -> ControllerDescriptor | None:
        return self._descriptors.get(name)

    def names(self) -> list[str]:
        return sorted(self._descriptors)

    @property
    def files(self) -> tuple[ControllerFile, ...]:
        return self._files
