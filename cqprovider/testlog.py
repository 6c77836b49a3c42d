"""A logger for tests that keeps its output instead of printing it."""

from __future__ import annotations

from collections.abc import Callable
from enum import IntEnum
from typing import Any


class Level(IntEnum):
    """Log levels, lowest first."""

    NO_LEVEL = 0
    TRACE = 1
    DEBUG = 2
    INFO = 3
    WARN = 4
    ERROR = 5
    OFF = 6


class CaptureLogger:
    """Logger that records each line in ``lines`` and passes it to ``sink``.

    Useful in tests: output is kept aside and shown only when needed.
    Arguments and names given to ``with_args``, ``named`` and ``reset_named``
    do not change the output; they are only recorded in ``ignored_args`` and
    ``requested_names``.
    """

    name = "testLogger"

    def __init__(
        self, sink: Callable[[str], Any] | None = None, level: Level = Level.DEBUG
    ) -> None:
        self.level = level
        self.lines: list[str] = []
        self.ignored_args: list[Any] = []
        self.requested_names: list[str] = []
        self._sink = sink

    def _emit(self, tag: str, msg: str, args: tuple[Any, ...]) -> None:
        line = " ".join([f"[{tag}] {msg}", *(str(arg) for arg in args)])
        self.lines.append(line)
        if self._sink is not None:
            self._sink(line)

    def log(self, level: Level, msg: str, *args: Any) -> None:
        """Log ``msg`` at ``level``; NO_LEVEL and OFF log nothing."""
        handlers = {
            Level.TRACE: self.trace,
            Level.DEBUG: self.debug,
            Level.INFO: self.info,
            Level.WARN: self.warn,
            Level.ERROR: self.error,
        }
        handler = handlers.get(level)
        if handler is not None:
            handler(msg, *args)

    def trace(self, msg: str, *args: Any) -> None:
        """Log at TRACE; only when the level is exactly TRACE."""
        if self.level == Level.TRACE:
            self._emit("TRACE", msg, args)

    def debug(self, msg: str, *args: Any) -> None:
        if self.is_debug():
            self._emit("DEBUG", msg, args)

    def info(self, msg: str, *args: Any) -> None:
        if self.is_info():
            self._emit("INFO", msg, args)

    def warn(self, msg: str, *args: Any) -> None:
        if self.is_warn():
            self._emit("WARN", msg, args)

    def error(self, msg: str, *args: Any) -> None:
        if self.is_error():
            self._emit("ERROR", msg, args)

    def is_trace(self) -> bool:
        return self.level <= Level.TRACE

    def is_debug(self) -> bool:
        return self.level <= Level.DEBUG

    def is_info(self) -> bool:
        return self.level <= Level.INFO

    def is_warn(self) -> bool:
        return self.level <= Level.WARN

    def is_error(self) -> bool:
        return self.level <= Level.ERROR

    def implied_args(self) -> list[Any]:
        """Key/value pairs added to every line; always empty."""
        return []

    def with_args(self, *args: Any) -> CaptureLogger:
        """Return this logger; the arguments are recorded but not logged."""
        self.ignored_args.extend(args)
        return self

    def named(self, name: str) -> CaptureLogger:
        """Return this logger; the name is recorded but not used."""
        self.requested_names.append(name)
        return self

    def reset_named(self, name: str) -> CaptureLogger:
        """Return this logger; the name is recorded but not used."""
        self.requested_names.append(name)
        return self

    def set_level(self, level: Level) -> None:
        self.level = level