"""Run orchestration: load inputs once, execute validators, build a report."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from stimlint.controllers import ControllerRegistry
from stimlint.core.config import AppConfig
from stimlint.core.logging import get_logger
from stimlint.core.paths import ProjectPaths
from stimlint.erb.ruby import RubyParser
from stimlint.partials import PartialReferenceMap
from stimlint.report import ValidationReport, ValidatorResult
from stimlint.validators import (
    ValidationContext,
    ValidatorRegistry,
    build_default_registry,
    run_validator,
)
from stimlint.views import ViewSet

__all__ = ["ValidationService"]


class ValidationService:
    """Entry point shared by the CLI and test-suite embedding.

    Example:
        >>> service = ValidationService(AppConfig(root=Path("/srv/app")))
        >>> service.paths.views_dir.as_posix()
        '/srv/app/app/views'
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        registry: ValidatorRegistry | None = None,
        parser: RubyParser | None = None,
    ) -> None:
        self.config = config
        self.paths = ProjectPaths.from_config(config)
        self.registry = registry or build_default_registry()
        self._parser = parser or RubyParser()
        self._logger = get_logger(__name__, root=str(self.paths.root))

    def load_context(self) -> ValidationContext:
        """Load controllers, views and the partial map for one run.

        Raises:
            ControllerMetadataError: If controller metadata is unusable.
        """

        settings = self.config.paths
        json_file = self.config.metadata.json_file
        controllers = ControllerRegistry.load(
            self.paths,
            globs=settings.controller_globs,
            command=self.config.metadata.command,
            json_file=self.paths.absolute(json_file) if json_file else None,
        )
        views = ViewSet.load(
            self.paths,
            view_glob=settings.view_glob,
            exclude=settings.exclude,
        )
        partials = PartialReferenceMap.build(
            views, views_dir=settings.views_dir
        )
        return ValidationContext(
            config=self.config,
            paths=self.paths,
            controllers=controllers,
            views=views,
            partials=partials,
            parser=self._parser,
        )

    def run(
        self,
        only: Sequence[str] | None = None,
        *,
        context: ValidationContext | None = None,
    ) -> ValidationReport:
        """Execute the enabled validators, or ``only`` the named ones.

        Raises:
            ConfigError: If a validator name is unknown.
        """

        names = list(only) if only else list(self.config.rules.enabled)
        validators = self.registry.select(names)
        context = context or self.load_context()
        report = ValidationReport(
            views_scanned=len(context.views),
            controllers_scanned=len(context.controllers),
            max_display=self.config.report.max_display_errors,
        )
        for validator in validators:
            findings = run_validator(validator, context)
            report.add(
                ValidatorResult(
                    name=validator.name,
                    description=validator.description,
                    findings=tuple(findings),
                )
            )
        self._logger.info(
            "validation-complete",
            validators=len(validators),
            findings=report.total,
        )
        return report
