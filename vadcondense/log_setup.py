"""Logging configuration for VadCondense, and scoped silencing of model libraries."""

import contextvars
import logging
import os
import sys
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from typing import Iterable, Iterator, Optional, Tuple

from .utils import ensure_dir_exists

DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Loggers of the model stack that are silenced while a detection runs.
LIBRARY_LOGGERS = ("silero_vad", "torch", "onnxruntime")

# Logger name prefixes silenced in the current context. Empty means nothing is silenced.
_silenced_prefixes: contextvars.ContextVar = contextvars.ContextVar("silenced_prefixes", default=())


def _matches(name: str, prefixes: Tuple[str, ...]) -> bool:
    return any(name == prefix or name.startswith(prefix + ".") for prefix in prefixes)


class LibraryLogFilter(logging.Filter):
    """
    Drops records from silenced loggers and their children.

    Installed on handlers, because a logger's own filters never see records
    propagated up from child loggers such as ``torch.jit``.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        prefixes = _silenced_prefixes.get()
        return not (prefixes and _matches(record.name, prefixes))


def _install_library_filter(handler: logging.Handler) -> None:
    if not any(isinstance(f, LibraryLogFilter) for f in handler.filters):
        handler.addFilter(LibraryLogFilter())


def _handlers_for(logger_names: Iterable[str]):
    seen = list(logging.getLogger().handlers)
    for name in logger_names:
        seen.extend(logging.getLogger(name).handlers)
    return seen


@contextmanager
def suppress_library_logs(logger_names: Iterable[str] = LIBRARY_LOGGERS) -> Iterator[None]:
    """
    Silences the given loggers, children included, for the duration of the block.

    The switch lives in a context variable, so other threads and tasks keep
    logging normally and the previous state is restored however the block exits.
    """
    names = tuple(logger_names)
    for handler in _handlers_for(names):
        _install_library_filter(handler)
    token = _silenced_prefixes.set(_silenced_prefixes.get() + names)
    try:
        yield
    finally:
        _silenced_prefixes.reset(token)


def _console_handler(stream, formatter: logging.Formatter, log_level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    return handler


def _file_handler(log_dir: str, log_file: str, formatter: logging.Formatter,
                  max_bytes: int, backup_count: int) -> logging.Handler:
    ensure_dir_exists(log_dir)
    handler = RotatingFileHandler(
        os.path.join(log_dir, log_file),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding='utf-8'
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[str] = "logs",
    log_file: str = "vadcondense.log",
    log_format: str = DEFAULT_LOG_FORMAT,
    date_format: str = DEFAULT_DATE_FORMAT,
    max_bytes: int = 10 * 1024 * 1024, # 10 MB
    backup_count: int = 5,
    stream=None,
) -> None:
    """
    Configures the root logger, replacing any handlers it already has.

    Console output goes to ``stream`` (stderr by default, so it stays clear of
    the status lines and progress bars on stdout). A rotating file log is
    added when ``log_dir`` is set; if it cannot be opened the error is logged
    to the console and the run continues.
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()
    root.setLevel(log_level)

    formatter = logging.Formatter(log_format, datefmt=date_format)
    console = _console_handler(stream, formatter, log_level)
    _install_library_filter(console)
    root.addHandler(console)

    if log_dir:
        try:
            file_handler = _file_handler(log_dir, log_file, formatter, max_bytes, backup_count)
        except Exception as e:
            root.error(f"Failed to set up file logging handler at {log_dir}/{log_file}: {e}", exc_info=True)
        else:
            _install_library_filter(file_handler)
            root.addHandler(file_handler)
            root.debug(f"Logging initialized. Log file: {file_handler.baseFilename}")

    # Quiet the model stack outside detection as well
    for name in ("torch", "onnxruntime"):
        logging.getLogger(name).setLevel(logging.WARNING)
