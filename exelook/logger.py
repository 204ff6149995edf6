"""
Exelook Structured Logger
==========================

:class:`ExelookLogger` binds a stdlib logger under the ``exelook.``
namespace to a Rich console handler on stderr and, when configured, a
rotating log file in plain or JSON-lines format.

Records carry the component name and the current operation (``lookup``,
``inspect``, ``extract``) so JSON logs can be filtered per command.
The lookup core never logs; the engine and the CLI do.

References:
    - Python logging HOWTO. https://docs.python.org/3/howto/logging.html
    - Rich library. https://github.com/Textualize/rich
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterator

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

_LOG_THEME = Theme(
    {
        "log.level.debug": "dim cyan",
        "log.level.info": "bold bright_blue",
        "log.level.warning": "bold yellow",
        "log.level.error": "bold red",
    }
)

_FILE_MAX_BYTES: int = 10_485_760  # 10 MiB
_FILE_BACKUPS: int = 5
_PLAIN_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(operation)s | %(message)s"


class _JSONFormatter(logging.Formatter):
    """One JSON object per record.

    Keys: ``timestamp``, ``level``, ``logger``, ``message``, plus
    ``component``/``operation`` when bound, ``extra`` for keyword
    context and ``exc_info`` for tracebacks.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for attr in ("component", "operation"):
            value = getattr(record, attr, None)
            if value is not None:
                entry[attr] = value

        extra = getattr(record, "exelook_extra", None)
        if extra is not None:
            entry["extra"] = extra
        if record.exc_info and record.exc_info[1] is not None:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _console_handler(level: int) -> RichHandler:
    return RichHandler(
        level=level,
        console=Console(theme=_LOG_THEME, stderr=True),
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )


def _file_handler(path: Path, level: int, json_logs: bool) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(path),
        maxBytes=_FILE_MAX_BYTES,
        backupCount=_FILE_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    if json_logs:
        handler.setFormatter(_JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_PLAIN_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S%z"))
    return handler


class ExelookLogger:
    """Logger for one exelook component.

    Usage::

        log = ExelookLogger("cli", log_file="exelook.log", json_logs=True)
        with log.operation("extract"):
            log.info("Writing %s", path, icon_id=3)

    Keyword arguments other than ``exc_info``/``stack_info`` passed to
    the log methods end up under ``extra`` in JSON records.

    Creating a logger for a component that already has one replaces and
    closes the previous handlers.
    """

    def __init__(
        self,
        component: str,
        *,
        log_level: str = "INFO",
        log_file: str | Path | None = None,
        json_logs: bool = False,
        console_output: bool = True,
    ) -> None:
        self._component = component
        self._operation: str | None = None
        level = getattr(logging, log_level.upper(), logging.INFO)

        self._logger = logging.getLogger(f"exelook.{component}")
        self._logger.setLevel(level)
        self._logger.propagate = False
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        if console_output:
            self._logger.addHandler(_console_handler(level))
        if log_file:
            self._logger.addHandler(_file_handler(Path(log_file), level, json_logs))
        if not self._logger.handlers:
            self._logger.addHandler(logging.NullHandler())

    @contextmanager
    def operation(self, name: str) -> Iterator[ExelookLogger]:
        """Tag every record logged inside the block with ``operation=name``."""
        previous, self._operation = self._operation, name
        try:
            yield self
        finally:
            self._operation = previous

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Log the start and the elapsed time of the block at debug level."""
        start = time.perf_counter()
        self.debug("Started: %s", label)
        try:
            yield
        finally:
            self.debug("Finished: %s (%.3f sec)", label, time.perf_counter() - start)

    def _log(self, level: int, msg: str, args: tuple, kwargs: dict[str, Any]) -> None:
        exc_info = kwargs.pop("exc_info", None)
        stack_info = kwargs.pop("stack_info", False)
        extra: dict[str, Any] = {
            "component": self._component,
            "operation": self._operation,
        }
        if kwargs:
            extra["exelook_extra"] = kwargs
        self._logger.log(
            level, msg, *args,
            exc_info=exc_info, stack_info=stack_info, extra=extra, stacklevel=3,
        )

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, args, kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, args, kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, args, kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, args, kwargs)
