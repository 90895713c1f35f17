"""
Logging Configuration Module
============================

Root logger setup for the ``cloudsweep`` command.

Human-readable output goes to stderr through Rich so it never interleaves
with the match and outcome tables on stdout. With ``--log-file`` every
record is also appended to a plain-text file, which doubles as an audit
trail of the deletes a run issued.

Example
-------
>>> from cloudsweep.core.logging import setup_logging
>>>
>>> setup_logging(level="DEBUG", log_file="cloudsweep.log")
>>> logging.getLogger("cloudsweep.resources.elb").info("Deleted lb-1")
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

CONSOLE_FORMAT = "%(message)s"
AUDIT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
AUDIT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# SDK loggers that flood DEBUG output with request dumps
NOISY_LOGGERS = ("boto3", "botocore", "urllib3", "s3transfer")


def resolve_level(level: Union[str, int]) -> int:
    """Numeric level for a name like ``"debug"``; unknown names mean INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _console_handler(console: Optional[Console], rich_tracebacks: bool) -> logging.Handler:
    # markup=False: resource names may contain square brackets
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=rich_tracebacks,
    )
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _audit_handler(log_file: str) -> logging.Handler:
    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt=AUDIT_DATE_FORMAT))
    return handler


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[str] = None,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
) -> None:
    """
    Route all log records through Rich, and optionally to ``log_file``.

    Parameters
    ----------
    level : str or int, default="INFO"
        Root level. Unknown names fall back to INFO.
    log_file : str, optional
        File that receives the same records in plain text.
    rich_tracebacks : bool, default=True
        Render exception tracebacks with Rich.
    console : Console, optional
        Console for the Rich handler. A stderr console by default.

    Notes
    -----
    Existing root handlers are replaced, so repeated calls leave exactly
    one console handler behind.
    """
    numeric_level = resolve_level(level)

    handlers = [_console_handler(console, rich_tracebacks)]
    if log_file:
        handlers.append(_audit_handler(log_file))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.debug(
        f"Log level {logging.getLevelName(numeric_level)}"
        + (f", audit file {log_file}" if log_file else "")
    )
