"""Configuration models and loaders for :mod:`stimlint`."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from pathlib import Path
from typing import Any, Mapping

import tomllib
import tomlkit
from pydantic import BaseModel, Field, ValidationError, field_validator

from stimlint.errors import ConfigError
from stimlint.resources import DEFAULTS_FILE, read_defaults

DEFAULTS_RESOURCE_NAME = DEFAULTS_FILE
USER_CONFIG_FILENAME = "stimlint.toml"

ENV_ROOT = "STIMLINT_ROOT"
ENV_LOG_LEVEL = "STIMLINT_LOG_LEVEL"


class PathsSettings(BaseModel):
    """Project-relative locations scanned during a validation run."""

    views_dir: str = Field(
        default="app/views",
        description="Directory containing ERB view templates.",
    )
    view_glob: str = Field(
        default="**/*.html.erb",
        description="Glob (relative to views_dir) selecting view templates.",
    )
    controllers_dir: str = Field(
        default="app/javascript/controllers",
        description="Directory containing Stimulus controller sources.",
    )
    controller_globs: tuple[str, ...] = Field(
        default=("**/*_controller.ts",),
        description="Globs (relative to controllers_dir) for controllers.",
    )
    controllers_index: str = Field(
        default="app/javascript/controllers/index.ts",
        description="Controller registration module.",
    )
    backend_controller_globs: tuple[str, ...] = Field(
        default=("app/controllers/**/*_controller.rb",),
        description="Globs selecting Rails controllers.",
    )
    broadcast_source_globs: tuple[str, ...] = Field(
        default=("app/channels/**/*_channel.rb", "app/jobs/**/*.rb"),
        description="Globs selecting files that call ActionCable broadcast.",
    )
    broadcast_exclude: tuple[str, ...] = Field(
        default=("app/channels/application_cable/channel.rb",),
        description="Project-relative files ignored by the broadcast check.",
    )
    routes_file: str = Field(
        default="config/routes.rb",
        description="Rails routes file.",
    )
    seeds_file: str = Field(
        default="db/seeds.rb",
        description="Rails seed script checked for image attachments.",
    )
    model_globs: tuple[str, ...] = Field(
        default=("app/models/**/*.rb",),
        description="Globs selecting ActiveRecord models.",
    )
    log_dir: str | None = Field(
        default=".stimlint/logs",
        description="Directory receiving JSON log files; blank disables.",
    )
    exclude: tuple[str, ...] = Field(
        default_factory=tuple,
        description="gitwildmatch patterns (relative to views_dir) to skip.",
    )

    model_config = {"frozen": True, "str_strip_whitespace": True}

    @field_validator("log_dir")
    @classmethod
    def _blank_log_dir(cls, value: str | None) -> str | None:
        return value or None


class MetadataSettings(BaseModel):
    """How controller metadata is obtained from the extractor."""

    command: tuple[str, ...] = Field(
        default=("node", "bin/parse_ts_controller.js"),
        description="Extractor command; the controller path is appended.",
    )
    json_file: str | None = Field(
        default=None,
        description="Pre-extracted metadata JSON used instead of the command.",
    )

    model_config = {"frozen": True, "str_strip_whitespace": True}

    @field_validator("command")
    @classmethod
    def _require_command(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("Metadata command cannot be empty.")
        return value

    @field_validator("json_file")
    @classmethod
    def _blank_json_file(cls, value: str | None) -> str | None:
        return value or None


class ScopeSettings(BaseModel):
    """Scope resolution switches."""

    strict_fragment_scope: bool = Field(
        default=True,
        description=(
            "Require ERB-declared targets/values to sit inside the controller "
            "element's line span (or share its fragment)."
        ),
    )

    model_config = {"frozen": True}


class ReportSettings(BaseModel):
    """Report rendering limits."""

    max_display_errors: int = Field(
        default=5,
        ge=1,
        description="Findings listed verbosely before truncating.",
    )

    model_config = {"frozen": True}


class RulesSettings(BaseModel):
    """Which validators run and the data driving the policy checks."""

    enabled: tuple[str, ...] = Field(
        default=(
            "registration",
            "targets",
            "values",
            "outlets",
            "actions",
            "selectors",
            "broadcasts",
            "colors",
            "architecture",
            "turbo-frames",
            "routes",
            "controller-index",
            "seeds",
        ),
        description="Validator names executed by ``stimlint check``.",
    )
    api_controllers_prefix: str = Field(
        default="app/controllers/api/",
        description="Backend controllers exempt from architecture checks.",
    )
    turbo_stream_from_allowed: tuple[str, ...] = Field(
        default=("application.html.erb", "admin.html.erb"),
        description="Layouts allowed to call turbo_stream_from.",
    )
    forbidden_colors: dict[str, str] = Field(
        default_factory=dict,
        description="Utility classes flagged for contrast, mapped to advice.",
    )

    model_config = {"frozen": True, "str_strip_whitespace": True}

    @field_validator("enabled")
    @classmethod
    def _normalize_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        names = [item.strip().lower().replace("_", "-") for item in value]
        return tuple(dict.fromkeys(name for name in names if name))


class AppConfig(BaseModel):
    """Root configuration for a validation run."""

    root: Path = Field(
        default_factory=Path.cwd,
        description="Rails project root.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level for the run.",
    )
    paths: PathsSettings = Field(default_factory=PathsSettings)
    metadata: MetadataSettings = Field(default_factory=MetadataSettings)
    scope: ScopeSettings = Field(default_factory=ScopeSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)
    rules: RulesSettings = Field(default_factory=RulesSettings)

    model_config = {
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("root")
    @classmethod
    def _expand_root(cls, value: Path) -> Path:
        return Path(value).expanduser()


def read_packaged_defaults_text() -> str:
    """Return the raw packaged defaults TOML content.

    Example:
        >>> read_packaged_defaults_text().startswith("#")
        True
    """

    return read_defaults()


def load_packaged_defaults() -> dict[str, Any]:
    """Load the packaged defaults as a plain dictionary.

    Example:
        >>> load_packaged_defaults()["report"]["max_display_errors"]
        5
    """

    return tomllib.loads(read_packaged_defaults_text())


def _deep_merge(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
) -> dict[str, Any]:
    """Recursively merge ``overlay`` into ``base`` returning a new dict."""

    merged: dict[str, Any] = dict(base)
    for key, value in overlay.items():
        if (
            key in merged
            and isinstance(merged[key], MappingABC)
            and isinstance(value, MappingABC)
        ):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    *,
    defaults: Mapping[str, Any],
    user_config: Mapping[str, Any] | None = None,
    env_config: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Load configuration according to the precedence stack.

    Args:
        defaults: Packaged defaults shipped with the application.
        user_config: Parsed project ``stimlint.toml`` content.
        env_config: Settings derived from environment variables.
        cli_overrides: Settings supplied via CLI flags.

    Returns:
        A validated :class:`AppConfig` instance.

    Raises:
        ConfigError: If the merged payload fails validation.
    """

    stack = dict(defaults)
    for layer in (user_config, env_config, cli_overrides):
        if layer:
            stack = _deep_merge(stack, layer)

    try:
        return AppConfig(**stack)
    except ValidationError as exc:
        raise ConfigError(f"Invalid stimlint configuration: {exc}") from exc


def read_user_config(root: Path) -> dict[str, Any] | None:
    """Return the parsed ``stimlint.toml`` under ``root`` if present.

    Raises:
        ConfigError: If the file exists but cannot be read or parsed.
    """

    path = root / USER_CONFIG_FILENAME
    if not path.exists():
        return None
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    if not text.strip():
        return None
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        message = f"Failed to parse config file {path}: TOML error: {exc}"
        raise ConfigError(message) from exc


def env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    """Translate ``STIMLINT_*`` environment variables into config values."""

    overrides: dict[str, Any] = {}
    root = environ.get(ENV_ROOT)
    if root:
        overrides["root"] = root
    level = environ.get(ENV_LOG_LEVEL)
    if level:
        overrides["log_level"] = level
    return overrides


def load_project_config(
    root: Path,
    *,
    environ: Mapping[str, str] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> AppConfig:
    """Resolve the full configuration for the project at ``root``."""

    overrides = dict(cli_overrides or {})
    overrides.setdefault("root", str(root))
    return load_config(
        defaults=load_packaged_defaults(),
        user_config=read_user_config(root),
        env_config=env_overrides(environ or {}),
        cli_overrides=overrides,
    )


def render_user_config(config: AppConfig) -> str:
    """Render a ``stimlint.toml`` starting point for a project."""

    document = tomlkit.document()
    document.add(tomlkit.comment("Generated by stimlint init"))
    document.add(
        tomlkit.comment(
            "Precedence: CLI flags > env vars > stimlint.toml > defaults"
        )
    )
    document.add(tomlkit.comment("Environment overrides:"))
    document.add(tomlkit.comment(f"  {ENV_ROOT}=/path/to/rails/app"))
    document.add(tomlkit.comment(f"  {ENV_LOG_LEVEL}=info"))
    document.add(tomlkit.nl())

    document["log_level"] = config.log_level

    paths_table = tomlkit.table()
    paths_table["views_dir"] = config.paths.views_dir
    paths_table["controllers_dir"] = config.paths.controllers_dir
    paths_table["exclude"] = list(config.paths.exclude)
    document["paths"] = paths_table

    metadata_table = tomlkit.table()
    metadata_table["command"] = list(config.metadata.command)
    metadata_table["json_file"] = config.metadata.json_file or ""
    document["metadata"] = metadata_table

    scope_table = tomlkit.table()
    scope_table["strict_fragment_scope"] = config.scope.strict_fragment_scope
    document["scope"] = scope_table

    report_table = tomlkit.table()
    report_table["max_display_errors"] = config.report.max_display_errors
    document["report"] = report_table

    rules_table = tomlkit.table()
    rules_table["enabled"] = list(config.rules.enabled)
    document["rules"] = rules_table

    return tomlkit.dumps(document)


__all__ = [
    "AppConfig",
    "MetadataSettings",
    "PathsSettings",
    "ReportSettings",
    "RulesSettings",
    "ScopeSettings",
    "DEFAULTS_RESOURCE_NAME",
    "USER_CONFIG_FILENAME",
    "ENV_LOG_LEVEL",
    "ENV_ROOT",
    "env_overrides",
    "load_config",
    "load_packaged_defaults",
    "load_project_config",
    "read_packaged_defaults_text",
    "read_user_config",
    "render_user_config",
]
