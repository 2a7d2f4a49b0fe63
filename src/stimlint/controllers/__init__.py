"""Stimulus controller descriptors and their loaders."""

from __future__ import annotations

from .metadata import (
    ControllerFile,
    ControllerRegistry,
    controller_name_for,
    discover_controller_files,
    load_from_command,
    load_from_json_file,
)
from .models import (
    AntiPattern,
    ControllerDescriptor,
    QuerySelectorCall,
    controller_class_name,
)

__all__ = [
    "AntiPattern",
    "ControllerDescriptor",
    "ControllerFile",
    "ControllerRegistry",
    "QuerySelectorCall",
    "controller_class_name",
    "controller_name_for",
    "discover_controller_files",
    "load_from_command",
    "load_from_json_file",
]
