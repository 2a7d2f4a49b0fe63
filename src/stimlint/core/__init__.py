"""Core utilities shared across :mod:`stimlint` modules.

The core namespace provides cohesive seams for configuration loading, logging
setup, and project path resolution so validators remain lightweight.
"""

from __future__ import annotations

from .config import AppConfig, load_config, load_project_config
from .logging import configure_logging, get_logger
from .paths import ProjectPaths, resolve_project_root

__all__ = [
    "AppConfig",
    "configure_logging",
    "get_logger",
    "load_config",
    "load_project_config",
    "ProjectPaths",
    "resolve_project_root",
]
