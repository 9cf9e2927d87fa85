"""structlog setup for the harness.

Each configured output gets its own stdlib handler, level and renderer.
Events carry the run id of the current invocation, and the first file output
is remembered so the bug-report guidance can point at it.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from installcheck.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)
_log_file_path: Path | None = None


def set_run_id(run_id: str | None = None) -> str:
    """Bind *run_id*, or a fresh 12-character id, to every later event."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def get_log_file_path() -> Path | None:
    return _log_file_path


def _inject_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := _run_id.get():
        event_dict["run_id"] = rid
    return event_dict


def _level(name: str) -> int:
    return logging.getLevelNamesMapping()[name.upper()]


def _renderer(output: LogOutputConfig) -> structlog.types.Processor:
    if output.format == "json":
        return structlog.processors.JSONRenderer()
    to_terminal = output.destination in ("stderr", "stdout") and sys.stderr.isatty()
    return structlog.dev.ConsoleRenderer(colors=to_terminal, pad_event_to=0)


def _open_destination(destination: str) -> logging.Handler:
    if destination in ("stderr", "stdout"):
        return logging.StreamHandler(getattr(sys, destination))
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def configure_logging(config: LoggingConfig) -> Path | None:
    """Install one root handler per output, replacing any earlier ones.

    Returns:
        The first file destination, or None when every output is a stream.
    """
    global _log_file_path

    root_level = _level(config.level)
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _inject_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for stale in root.handlers[:]:
        root.removeHandler(stale)
        stale.close()
    root.setLevel(root_level)

    _log_file_path = next(
        (Path(o.destination) for o in config.outputs if o.destination not in ("stderr", "stdout")),
        None,
    )
    for output in config.outputs:
        handler = _open_destination(output.destination)
        handler.setLevel(_level(output.level or config.level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=_renderer(output), foreign_pre_chain=pre_chain
            )
        )
        root.addHandler(handler)
    return _log_file_path


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
