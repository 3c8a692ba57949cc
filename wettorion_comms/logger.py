"""Tagged, levelled line logger."""

from __future__ import annotations

import sys
from typing import TextIO

MAX_MESSAGE_LENGTH = 127


def format_message(tag: str, level: str, fmt: str, *args: object) -> str:
    """Render one log line as "[tag/LEVEL]: message", truncating the message."""
    message = fmt % args if args else fmt
    return f"[{tag}/{level}]: {message[:MAX_MESSAGE_LENGTH]}"


class Logger:
    """Writes formatted log lines to a text stream."""

    def __init__(
        self,
        stream: TextIO | None = None,
        enabled: bool = True,
        debug_enabled: bool = True,
    ) -> None:
        self.stream = stream
        self.enabled = enabled
        self.debug_enabled = debug_enabled

    def _emit(self, tag: str, level: str, fmt: str, args: tuple) -> None:
        if not self.enabled:
            return
        stream = self.stream if self.stream is not None else sys.stdout
        stream.write(format_message(tag, level, fmt, *args) + "\n")
        stream.flush()

    def info(self, tag: str, fmt: str, *args: object) -> None:
        self._emit(tag, "INFO", fmt, args)

    def warn(self, tag: str, fmt: str, *args: object) -> None:
        self._emit(tag, "WARN", fmt, args)

    def error(self, tag: str, fmt: str, *args: object) -> None:
        self._emit(tag, "ERROR", fmt, args)

    def fatal(self, tag: str, fmt: str, *args: object) -> None:
        self._emit(tag, "FATAL", fmt, args)

    def debug(self, tag: str, fmt: str, *args: object) -> None:
        if self.debug_enabled:
            self._emit(tag, "DEBUG", fmt, args)