"""
Error taxonomy for the dataset builder.

Every ``DatasetError`` is fatal for the whole run; the CLI turns it into a
non-zero exit status. ``ClassFormatError`` never leaves modifier resolution.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class DatasetError(RuntimeError):
    """Base class for faults that abort the run."""


class TableReadError(DatasetError):
    """A routes or data table is missing, unreadable or malformed."""

    def __init__(self, path: Path, reason: str, line: Optional[int] = None) -> None:
        self.path = path
        self.reason = reason
        self.line = line
        where = f"{path}:{line}" if line is not None else str(path)
        super().__init__(f"{where}: {reason}")


class OrphanRouteError(DatasetError):
    """A routed method id has no entry in the method data table."""

    def __init__(self, subject: str, test_id: str, method_id: str) -> None:
        self.subject = subject
        self.test_id = test_id
        self.method_id = method_id
        super().__init__(
            f"{subject}: test {test_id!r} routes to unknown method id {method_id!r}"
        )


class OutputDirectoryError(DatasetError):
    """The output directory could not be prepared."""


class OutputWriteError(DatasetError):
    """A subject's output table could not be written."""


class ClassFormatError(ValueError):
    """A class file could not be parsed."""
