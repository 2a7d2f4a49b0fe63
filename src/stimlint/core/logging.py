"""Structured logging for validation runs.

Console records go to stderr through Rich so ``stimlint check`` keeps stdout
for the report. When a log directory is configured each run also rewrites
``stimlint.log`` with one JSON object per record, which makes a CI artifact
of the last run easy to inspect.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

Logger = structlog.stdlib.BoundLogger

LOG_FILENAME = "stimlint.log"


def _add_location(
    _logger: WrappedLogger,
    _method: str,
    event_dict: EventDict,
) -> EventDict:
    """Fold ``file`` and ``line`` into a single ``location`` field.

    Example:
        >>> _add_location(None, "warning", {"file": "db/seeds.rb", "line": 4})
        {'location': 'db/seeds.rb:4'}
    """

    if event_dict.get("line") is not None and "file" in event_dict:
        file = event_dict.pop("file")
        line = event_dict.pop("line")
        event_dict["location"] = f"{file}:{line}"
    return event_dict


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        _add_location,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _parse_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unsupported log level: {level!r}")
    return value


def _console_handler(level: int, console: Console | None) -> RichHandler:
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        log_time_format="%H:%M:%S",
    )
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.dev.ConsoleRenderer(colors=False),
            foreign_pre_chain=_pre_chain(),
        )
    )
    return handler


def _run_log_handler(log_dir: Path, level: int) -> logging.FileHandler:
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(
        log_dir / LOG_FILENAME,
        mode="w",
        encoding="utf-8",
        delay=True,
    )
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(sort_keys=True),
            foreign_pre_chain=_pre_chain(),
        )
    )
    return handler


def configure_logging(
    *,
    level: str = "WARNING",
    log_dir: str | Path | None = None,
    console: Console | None = None,
) -> None:
    """Route structlog events for one run to the console and the run log.

    Args:
        level: Level name applied to every handler (case-insensitive).
        log_dir: Directory receiving ``stimlint.log``; ``None`` disables the
            file.
        console: Rich console override, used by tests.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """

    log_level = _parse_level(level)

    structlog.reset_defaults()
    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [_console_handler(log_level, console)]
    if log_dir is not None:
        directory = Path(log_dir).expanduser().resolve(strict=False)
        handlers.append(_run_log_handler(directory, log_level))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(log_level)


@contextmanager
def validator_context(name: str) -> Iterator[None]:
    """Tag every record emitted inside the block with ``validator=name``."""

    with structlog.contextvars.bound_contextvars(validator=name):
        yield


def get_logger(name: str | None = None, **initial_context: Any) -> Logger:
    return structlog.get_logger(name).bind(**initial_context)


__all__ = [
    "LOG_FILENAME",
    "Logger",
    "configure_logging",
    "get_logger",
    "validator_context",
]
