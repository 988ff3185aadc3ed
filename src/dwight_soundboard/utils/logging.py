"""Console log formatting."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and dims the logger name.

    ``color=None`` decides per record: off when ``NO_COLOR`` is set or the
    stream is not a TTY, on otherwise.
    """

    LEVEL_COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        *,
        color: bool | None = None,
        stream: TextIO | None = None,
    ) -> None:
        super().__init__(fmt, datefmt)
        self._color = color
        self._stream = stream

    def use_color(self) -> bool:
        if self._color is not None:
            return self._color
        if "NO_COLOR" in os.environ:
            return False
        stream = self._stream or sys.stdout
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_color():
            return super().format(record)

        # Copy so other handlers sharing the record see plain text.
        colored = logging.makeLogRecord(record.__dict__)
        level_color = self.LEVEL_COLORS.get(record.levelno, "")
        colored.levelname = f"{level_color}{record.levelname}{self.RESET}"
        colored.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(colored)
