"""A small levelled logger writing to a configurable stream."""

from __future__ import annotations

import inspect
import os
import re
import sys
from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum
from typing import IO, Optional

_ESCAPES = re.compile(r"%(%|m)")


class LogLevel(IntEnum):
    OFF = 0
    FATAL = 1
    ERROR = 2
    WARN = 3
    INFO = 4
    DEBUG = 5


_LEVEL_NAMES = ("", "FATAL", "ERROR", "WARN", "INFO", "DEBUG")


def level_name(level: int) -> str:
    """Name shown in log prefixes, or ``INVALID_LEVEL``."""
    if level < LogLevel.OFF or level > LogLevel.DEBUG:
        return "INVALID_LEVEL"
    return _LEVEL_NAMES[level]


def log_time() -> str:
    """Local time as ``YYYY-mm-ddTHH:MM:SS.mmm``."""
    now = datetime.now()
    return f"{now.strftime('%Y-%m-%dT%H:%M:%S')}.{now.microsecond // 1000:03d}"


@dataclass
class LogSink:
    """Where log output goes; an owned stream is closed when replaced."""

    stream: Optional[IO[str]] = None
    file: Optional[str] = None
    owned: bool = False

    def set(self, stream: Optional[IO[str]] = None, file: Optional[str] = None,
            owned: bool = False) -> None:
        if self.owned and self.stream is not None:
            self.stream.close()
        self.stream = stream
        self.file = file
        self.owned = owned

    def close(self) -> None:
        self.set(None, None, False)


def _current_strerror() -> str:
    error = sys.exc_info()[1]
    code = getattr(error, "errno", None) if isinstance(error, OSError) else None
    return os.strerror(code or 0)


def _expand(text: str) -> str:
    message = _current_strerror()
    return _ESCAPES.sub(lambda m: "%" if m.group(1) == "%" else message, text)


def _caller() -> tuple[str, int]:
    frame = inspect.currentframe()
    try:
        target = frame.f_back.f_back if frame and frame.f_back else None
        if target is None:
            return "?", 0
        return target.f_code.co_name, target.f_lineno
    finally:
        del frame


class SimpleLog:
    """Levelled logger; messages above ``level`` are dropped."""

    def __init__(self, level: int = LogLevel.INFO, stream: Optional[IO[str]] = None):
        self.sink = LogSink()
        self.level = level
        if stream is not None:
            self.sink.set(stream)

    @property
    def level(self) -> LogLevel:
        return self._level

    @level.setter
    def level(self, value: int) -> None:
        if value < LogLevel.OFF or value > LogLevel.DEBUG:
            raise ValueError(f"invalid log level: {value}")
        self._level = LogLevel(value)

    def set_log_file(self, path: str) -> None:
        """Send output to ``stdout``, ``stderr`` or a newly created file."""
        if path is None:
            raise ValueError("log file path is required")
        if path == "stdout":
            self.sink.set(sys.stdout, path, False)
        elif path == "stderr":
            self.sink.set(sys.stderr, path, False)
        else:
            stream = open(path, "w", encoding="utf-8")
            self.sink.set(stream, path, True)

    def _enabled(self, level: int) -> bool:
        return level <= self._level and self.sink.stream is not None

    def _emit(self, text: str) -> int:
        stream = self.sink.stream
        stream.write(text)
        stream.flush()
        return len(text)

    def write(self, level: int, text: str) -> int:
        """Write ``text`` at ``level``; ``%m`` becomes the current OS error text.

        Returns the number of characters written (0 when filtered out).
        """
        if level > self._level:
            return 0
        if self.sink.stream is None:
            raise RuntimeError("no log output stream configured")
        return self._emit(_expand(text))

    def _log(self, level: int, message: str, func: str, line: int) -> None:
        if not self._enabled(level):
            return
        prefix = f"[{level_name(level):>5}] [{log_time():>19}] [{func}:{line}] - "
        self._emit(prefix)
        self._emit(_expand(message))

    def log(self, level: int, message: str, func: Optional[str] = None,
            line: Optional[int] = None) -> None:
        """Log ``message`` with a level, time and source-location prefix."""
        if func is None or line is None:
            caller_func, caller_line = _caller()
            func = caller_func if func is None else func
            line = caller_line if line is None else line
        self._log(level, message, func, line)

    def hexdump(self, level: int, title: Optional[str], data: bytes,
                func: Optional[str] = None, line: Optional[int] = None) -> None:
        """Log ``data`` as hex, sixteen bytes per line split into halves."""
        if func is None or line is None:
            caller_func, caller_line = _caller()
            func = caller_func if func is None else func
            line = caller_line if line is None else line
        if not self._enabled(level):
            return
        parts = [f"[{level_name(level):>5}] [{log_time():>10}] [{func}:{line}] {title or ''}: "]
        for i, byte in enumerate(data):
            if i % 16 == 0:
                parts.append("\n\t")
            elif i % 8 == 0:
                parts.append("  ")
            parts.append(f"{byte:02x} ")
        parts.append("\n")
        self._emit("".join(parts))

    def debug(self, message: str) -> None:
        self._log(LogLevel.DEBUG, message, *_caller())

    def info(self, message: str) -> None:
        self._log(LogLevel.INFO, message, *_caller())

    def warn(self, message: str) -> None:
        self._log(LogLevel.WARN, message, *_caller())

    def error(self, message: str) -> None:
        self._log(LogLevel.ERROR, message, *_caller())

    def fatal(self, message: str) -> None:
        self._log(LogLevel.FATAL, message, *_caller())

    def die(self, message: str) -> None:
        """Log at FATAL and exit with status 1."""
        self._log(LogLevel.FATAL, message, *_caller())
        sys.exit(1)