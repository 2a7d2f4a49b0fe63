"""Every controller source must be imported and registered in index.ts."""

from __future__ import annotations

import re
from pathlib import PurePosixPath

from stimlint.controllers import ControllerFile, controller_class_name
from stimlint.findings import Finding, FindingKind

from .base import ValidationContext

__all__ = ["ControllerIndexValidator", "import_path_for"]

_BASE_PREFIX = "base_"


def import_path_for(controller: ControllerFile, controllers_dir: str) -> str:
    """Relative module specifier used to import ``controller``.

    Example:
        >>> from pathlib import Path
        >>> item = ControllerFile(
        ...     name="admin--user-list",
        ...     path=Path("/app/admin/user_list_controller.ts"),
        ...     relative_path="app/js/admin/user_list_controller.ts",
        ... )
        >>> import_path_for(item, "app/js")
        './admin/user_list_controller'
    """

    module = PurePosixPath(controller.relative_path)
    try:
        module = module.relative_to(controllers_dir)
    except ValueError:
        module = PurePosixPath(module.name)
    return "./" + module.as_posix().removesuffix(module.suffix)


class ControllerIndexValidator:
    name = "controller-index"
    description = "controllers are imported and registered in index.ts"

    def validate(self, context: ValidationContext) -> list[Finding]:
        index = context.paths.controllers_index
        if not index.is_file():
            return []
        content = index.read_text(encoding="utf-8", errors="replace")
        relative = context.paths.relative(index)
        controllers_dir = context.config.paths.controllers_dir

        findings: list[Finding] = []
        for controller in context.controllers.files:
            if controller.path.name.startswith(_BASE_PREFIX):
                continue
            class_name = controller_class_name(controller.name)
            module = import_path_for(controller, controllers_dir)
            import_pattern = (
                rf"import\s+{class_name}\s+from\s+"
                rf"[\"']{re.escape(module)}[\"']"
            )
            if not re.search(import_pattern, content):
                findings.append(
                    Finding(
                        kind=FindingKind.MISSING_CONTROLLER_IMPORT,
                        file=relative,
                        line=None,
                        message=(
                            f"{controller.relative_path} is not imported in "
                            f"{relative}"
                        ),
                        suggestion=(
                            f'Add to index.ts: import {class_name} from '
                            f'"{module}"'
                        ),
                        controller=controller.name,
                        subject=class_name,
                        details={"controller_file": controller.relative_path},
                    )
                )
            register_pattern = (
                r"application\.register\s*\(\s*"
                rf"[\"']{re.escape(controller.name)}[\"']\s*,\s*"
                rf"{class_name}\s*\)"
            )
            if not re.search(register_pattern, content):
                findings.append(
                    Finding(
                        kind=FindingKind.MISSING_CONTROLLER_REGISTRATION,
                        file=relative,
                        line=None,
                        message=(
                            f"'{controller.name}' is not registered in "
                            f"{relative}"
                        ),
                        suggestion=(
                            "Add to index.ts: application.register("
                            f'"{controller.name}", {class_name})'
                        ),
                        controller=controller.name,
                        subject=class_name,
                        details={"controller_file": controller.relative_path},
                    )
                )
        return findings
