"""
Structured logging for robotcell.

Events are structlog key/value records routed through the standard library,
rendered as JSON lines or as coloured console lines. Compilation binds the
program and robot system names with :func:`program_context`, so checker,
solver and post processor events can be traced back to the program that
emitted them. Float values are rounded before rendering; joint values and
poses otherwise carry sixteen digits of noise.

Usage::

    from robotcell.core.logging import configure_logging, get_logger, program_context

    configure_logging(level="DEBUG")
    logger = get_logger(__name__)
    with program_context("Weld", "IRB120"):
        logger.info("targets_fixed", targets=12)
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

import numpy as np
import structlog

FLOAT_DIGITS = 6


def round_floats(logger, method_name: str, event_dict: dict) -> dict:
    """Round float and numpy values of an event to :data:`FLOAT_DIGITS` digits."""
    for key, value in event_dict.items():
        if isinstance(value, (float, np.floating)):
            event_dict[key] = round(float(value), FLOAT_DIGITS)
        elif isinstance(value, np.ndarray):
            event_dict[key] = np.round(value, FLOAT_DIGITS).tolist()
        elif isinstance(value, (list, tuple)) and value and all(isinstance(v, float) for v in value):
            event_dict[key] = [round(v, FLOAT_DIGITS) for v in value]
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure structured logging; the CLI calls this before any command runs.

    Args:
        level: Minimum log level name, e.g. ``"DEBUG"``.
        json_output: Render JSON lines instead of console lines.
        log_file: Also append records to this file.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(format="%(message)s", level=log_level, handlers=handlers, force=True)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        round_floats,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
    )
    for handler in logging.root.handlers:
        handler.setFormatter(formatter)


@contextmanager
def program_context(program: str, system: str) -> Iterator[None]:
    """Bind ``program`` and ``system`` to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(program=program, system=system):
        yield


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Module logger, typically ``get_logger(__name__)``."""
    return structlog.get_logger(name)
