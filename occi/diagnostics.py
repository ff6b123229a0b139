from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, TextIO, Tuple


SEPARATOR = " :: "
ERROR_MARKER = "ERROR"


class DiagnosticLogger:
    """Prefixes every line with the labels of the scopes it was created in.

    Loggers are immutable: ``scope`` and ``child`` hand out a new logger with
    one more label, so leaving a scope never needs an explicit pop.
    """

    def __init__(self, labels: Tuple[str, ...] = (), stream: TextIO | None = None) -> None:
        self._labels = tuple(labels)
        self._stream = stream

    @property
    def labels(self) -> Tuple[str, ...]:
        return self._labels

    def child(self, label: str) -> "DiagnosticLogger":
        return DiagnosticLogger(self._labels + (label,), self._stream)

    @contextmanager
    def scope(self, label: str) -> Iterator["DiagnosticLogger"]:
        yield self.child(label)

    def format(self, *columns: object) -> str:
        return SEPARATOR.join([*self._labels, *(str(column) for column in columns)])

    def log(self, *columns: object) -> str:
        line = self.format(*columns)
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(line + "\n")
        stream.flush()
        logging.debug("diagnostic: %s", line)
        return line

    def error(self, *columns: object) -> str:
        return self.log(ERROR_MARKER, *columns)
