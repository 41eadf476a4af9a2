"""structlog configuration for adrctl.

Log lines go to stderr so stdout stays clean for command output. Human
mode renders with structlog's console renderer (colored on a TTY);
``--log-json`` writes one JSON object per line. Once a command touches a
repository, :func:`bind_repository` adds its records directory and mode
to every later line.
"""

from __future__ import annotations

import logging
import sys
from pathlib import PurePath
from typing import TYPE_CHECKING, Any, TextIO

import structlog

if TYPE_CHECKING:
    from structlog.types import EventDict, Processor, WrappedLogger

    from adrctl.config.models import RepositoryContext

# Libraries that log at INFO/DEBUG on their own; kept at WARNING.
QUIET_LOGGERS = ("jinja2", "ruamel.yaml")


def paths_to_posix(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Render ``Path`` values as POSIX strings instead of their repr."""
    for key, value in event_dict.items():
        if isinstance(value, PurePath):
            event_dict[key] = value.as_posix()
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        paths_to_posix,
    ]


def _renderer(log_json: bool, stream: TextIO) -> Processor:
    if log_json:
        return structlog.processors.JSONRenderer(sort_keys=True)
    return structlog.dev.ConsoleRenderer(colors=stream.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False, stream: TextIO | None = None) -> None:
    """Route structlog and stdlib ``logging`` through one stderr handler.

    Args:
        verbose: ``adrctl`` loggers emit DEBUG; otherwise WARNING and up.
        log_json: JSON lines instead of console rendering.
        stream: Where lines go; stderr unless a test passes a buffer.
    """
    stream = stream or sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    structlog.contextvars.clear_contextvars()

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(log_json, stream)],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("adrctl").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_repository(context: RepositoryContext, **extra: Any) -> None:
    """Tag later log lines with the repository they concern."""
    structlog.contextvars.bind_contextvars(
        records_dir=context.records_dir,
        mode=context.mode.value,
        **extra,
    )
