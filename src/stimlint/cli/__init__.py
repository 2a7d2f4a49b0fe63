"""Command-line interface for :mod:`stimlint`.

Example:
    >>> import typer
    >>> from stimlint.cli import create_app
    >>> app = create_app()
    >>> isinstance(app, typer.Typer)
    True
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import typer

from stimlint.core.config import (
    ENV_ROOT,
    USER_CONFIG_FILENAME,
    AppConfig,
    load_project_config,
    render_user_config,
)
from stimlint.core.logging import configure_logging, get_logger
from stimlint.core.paths import resolve_project_root
from stimlint.errors import StimlintError
from stimlint.report import ValidationReport
from stimlint.service import ValidationService
from stimlint.stats import collect_usage, quick_fixes
from stimlint.validators import build_default_registry

_app_help = (
    "Static checks for Stimulus wiring in Rails ERB views."
    "\n\n"
    "Use `stimlint check` inside a Rails project (or pass --root)."
)

_EXIT_FINDINGS = 1
_EXIT_ERROR = 2

_ROOT_OPTION = typer.Option(
    None,
    "--root",
    "-r",
    help="Rails project root (defaults to STIMLINT_ROOT or the cwd).",
)
_LOG_LEVEL_OPTION = typer.Option(
    None,
    "--log-level",
    "-l",
    help="Override the logging level (DEBUG/INFO/WARNING/ERROR).",
)
_METADATA_OPTION = typer.Option(
    None,
    "--metadata-json",
    help="Pre-extracted controller metadata JSON instead of the extractor.",
)


def _fail(message: str) -> typer.Exit:
    typer.secho(message, fg=typer.colors.RED, err=True)
    return typer.Exit(code=_EXIT_ERROR)


def _resolve_root(root: Path | None) -> Path:
    env_root = os.environ.get(ENV_ROOT)
    env_path = Path(env_root).expanduser() if env_root else None
    return resolve_project_root(root_override=root, env_override=env_path)


def _load(
    root: Path | None,
    *,
    log_level: str | None = None,
    metadata_json: Path | None = None,
    loose_scope: bool = False,
) -> AppConfig:
    """Resolve the project config and configure logging for the command."""

    resolved = _resolve_root(root)
    overrides: dict[str, Any] = {}
    if log_level:
        overrides["log_level"] = log_level
    if metadata_json is not None:
        overrides["metadata"] = {"json_file": str(metadata_json.resolve())}
    if loose_scope:
        overrides["scope"] = {"strict_fragment_scope": False}
    config = load_project_config(
        resolved,
        environ=os.environ,
        cli_overrides=overrides,
    )
    log_dir = config.paths.log_dir
    configure_logging(
        level=config.log_level,
        log_dir=config.root / log_dir if log_dir else None,
    )
    return config


def _emit_report(report: ValidationReport) -> None:
    for line in report.render_lines():
        if line.endswith(": passed"):
            typer.secho(line, fg=typer.colors.GREEN)
        elif line.endswith("issue(s)"):
            typer.secho(line, fg=typer.colors.RED, bold=True)
        elif line.lstrip().startswith("hint:"):
            typer.secho(line, fg=typer.colors.YELLOW)
        else:
            typer.echo(line)
    typer.echo()
    if report.passed:
        typer.secho("All validations passed", fg=typer.colors.GREEN, bold=True)
        return
    typer.secho(
        f"Found {report.total} issue(s)", fg=typer.colors.RED, bold=True
    )
    for kind, count in sorted(report.counts().items()):
        typer.echo(f"  {kind.title}: {count}")


def create_app() -> "typer.Typer":
    """Return the Typer application powering the ``stimlint`` CLI.

    Example:
        >>> from typer.testing import CliRunner
        >>> result = CliRunner().invoke(create_app(), ["--help"])
        >>> result.exit_code
        0
    """

    app = typer.Typer(
        help=_app_help,
        no_args_is_help=True,
        rich_markup_mode="rich",
    )

    @app.command("check", help="Validate views, controllers and broadcasts.")
    def check_command(
        root: Path | None = _ROOT_OPTION,
        only: list[str] = typer.Option(
            None,
            "--only",
            "-o",
            metavar="VALIDATOR",
            help="Run only the named validator (repeatable).",
        ),
        log_level: str | None = _LOG_LEVEL_OPTION,
        metadata_json: Path | None = _METADATA_OPTION,
        loose_scope: bool = typer.Option(
            False,
            "--loose-scope",
            help="Treat any ERB declaration in the file as in scope.",
        ),
    ) -> None:
        try:
            config = _load(
                root,
                log_level=log_level,
                metadata_json=metadata_json,
                loose_scope=loose_scope,
            )
            report = ValidationService(config).run(only or None)
        except StimlintError as exc:
            raise _fail(f"stimlint error: {exc}") from exc

        logger = get_logger(__name__, command="check")
        logger.info("check-complete", findings=report.total)
        _emit_report(report)
        if not report.passed:
            raise typer.Exit(code=_EXIT_FINDINGS)

    @app.command("stats", help="Show which controllers the views attach.")
    def stats_command(
        root: Path | None = _ROOT_OPTION,
        log_level: str | None = _LOG_LEVEL_OPTION,
        metadata_json: Path | None = _METADATA_OPTION,
    ) -> None:
        try:
            config = _load(
                root, log_level=log_level, metadata_json=metadata_json
            )
            usage = collect_usage(ValidationService(config).load_context())
        except StimlintError as exc:
            raise _fail(f"stimlint error: {exc}") from exc

        typer.secho("Controller usage", bold=True)
        typer.echo(f"  total: {usage.total}")
        typer.echo(f"  checkable: {usage.checkable}")
        typer.echo(f"  used: {len(usage.used)}")
        typer.echo(f"  system: {len(usage.system)}")
        typer.echo(f"  unused: {len(usage.unused)}")
        for name in usage.unused:
            typer.secho(f"    - {name}", fg=typer.colors.YELLOW)

    @app.command(
        "fixes",
        help="Print generator commands for controllers the views reference.",
    )
    def fixes_command(
        root: Path | None = _ROOT_OPTION,
        log_level: str | None = _LOG_LEVEL_OPTION,
        metadata_json: Path | None = _METADATA_OPTION,
    ) -> None:
        try:
            config = _load(
                root, log_level=log_level, metadata_json=metadata_json
            )
            commands = quick_fixes(ValidationService(config).load_context())
        except StimlintError as exc:
            raise _fail(f"stimlint error: {exc}") from exc

        if not commands:
            typer.secho("No missing controllers", fg=typer.colors.GREEN)
            return
        for command in commands:
            typer.echo(command)

    @app.command("validators", help="List available validators.")
    def validators_command(
        root: Path | None = _ROOT_OPTION,
    ) -> None:
        try:
            resolved = _resolve_root(root)
            config = load_project_config(resolved, environ=os.environ)
        except StimlintError as exc:
            raise _fail(f"stimlint error: {exc}") from exc

        enabled = set(config.rules.enabled)
        for descriptor in build_default_registry():
            state = "enabled" if descriptor.name in enabled else "disabled"
            typer.echo(
                f"  - {descriptor.name}: {state} - {descriptor.description}"
            )

    @app.command("init", help=f"Write a starter {USER_CONFIG_FILENAME}.")
    def init_command(
        root: Path | None = _ROOT_OPTION,
        force: bool = typer.Option(
            False,
            "--force",
            help=f"Overwrite an existing {USER_CONFIG_FILENAME}.",
        ),
    ) -> None:
        try:
            resolved = _resolve_root(root)
            target = resolved / USER_CONFIG_FILENAME
            if target.exists() and not force:
                typer.secho(
                    f"{target} already exists (use --force to overwrite)",
                    fg=typer.colors.YELLOW,
                )
                raise typer.Exit(code=_EXIT_FINDINGS)
            config = load_project_config(resolved, environ=os.environ)
        except StimlintError as exc:
            raise _fail(f"stimlint error: {exc}") from exc

        target.write_text(render_user_config(config), encoding="utf-8")
        typer.secho("Config written", fg=typer.colors.GREEN, bold=True)
        typer.echo(f"  path: {target}")

    return app


__all__ = ["create_app"]
