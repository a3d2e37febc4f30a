"""Logging setup for the post-processor CLI.

Log records go to stderr (stdout carries the G-code program when no
output file is given) and optionally to a file, formatted either for a
person or as one JSON object per line.  Fields pushed with
:func:`push_context` (app, job) are attached to every record.

Formats::

    2025-10-28T13:45:12.345Z | INFO     | app=post job=outline.yaml | Section 1: cutting mode ETCH
    {"t": "2025-10-28T13:45:12.345000+00:00", "lvl": "INFO", "app": "post", "msg": "..."}

Calling :func:`setup_logging` again replaces the handlers it installed
before and leaves every other root handler alone.
"""

import contextvars
import json as jsonlib
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context: contextvars.ContextVar = contextvars.ContextVar("log_context", default={})

_installed: List[logging.Handler] = []

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class ContextFormatter(logging.Formatter):
    """Render records with the pushed context fields.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Colour the level name; ignored unless stderr is a terminal.
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True):
        super().__init__()
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        fields = _context.get()

        if self.fmt_mode == "json":
            payload = {"t": ts.isoformat(), "lvl": record.levelname}
            payload.update(fields)
            payload["msg"] = record.getMessage()
            if record.exc_info:
                payload["exc"] = self.formatException(record.exc_info)
            return jsonlib.dumps(payload)

        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{_LEVEL_COLORS.get(record.levelname, '')}{level}{_RESET}"
        parts = [ts.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z", level]
        if fields:
            parts.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())
        text = " | ".join(parts)
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    capture_warnings: bool = True,
    context: Optional[Dict[str, Any]] = None,
) -> List[logging.Handler]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL".
    log_file : str, optional
        Also log to this file (parent directories are created).
    json : bool
        JSON lines instead of the human format.
    color : bool
        Colour level names on a terminal.
    to_stderr : bool
        Attach the stderr handler.
    capture_warnings : bool
        Route ``warnings.warn`` through logging.
    context : dict, optional
        Fields pushed before the first record, e.g. ``{"app": "post"}``.

    Returns
    -------
    list[logging.Handler]
        The handlers installed by this call.
    """
    root = logging.getLogger()
    while _installed:
        handler = _installed.pop()
        root.removeHandler(handler)
        handler.close()

    root.setLevel(getattr(logging, log_level.upper()))
    mode = "json" if json else "human"

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter(mode, color))
        _installed.append(console)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(ContextFormatter(mode, use_color=False))
        _installed.append(file_handler)

    for handler in _installed:
        root.addHandler(handler)

    if context:
        push_context(**context)
    if capture_warnings:
        logging.captureWarnings(True)

    return list(_installed)


def push_context(**fields: Any) -> None:
    """Attach *fields* to every later record, e.g. ``push_context(job="outline.yaml")``."""
    _context.set({**_context.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the named fields, or all of them when *keys* is None."""
    if keys is None:
        _context.set({})
        return
    remaining = dict(_context.get())
    for key in keys:
        remaining.pop(key, None)
    _context.set(remaining)
