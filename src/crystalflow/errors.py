"""Exception taxonomy shared by the geometry core, the result parsers and the
command layer.

Batch callers catch :class:`CrystalflowError` per item, log it and move on;
everything else propagates.
"""
from __future__ import annotations

__all__ = [
    "CrystalflowError",
    "EmptyInputError",
    "ParseError",
    "FormatError",
    "DegenerateCellError",
    "RetryLimitExceeded",
]


class CrystalflowError(Exception):
    """Base class for all domain errors raised by crystalflow."""


class EmptyInputError(CrystalflowError, ValueError):
    """No atoms were supplied to a geometry operation."""


class ParseError(CrystalflowError):
    """A result file could not be opened or read."""

    def __init__(self, path, reason: str | None = None):
        self.path = str(path)
        msg = f"Failed to open file: {self.path}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


class FormatError(CrystalflowError, ValueError):
    """A result file is readable but malformed (missing header, short block, ...)."""

    def __init__(self, message: str, source: str | None = None, line: int | None = None):
        self.source = source
        self.line = line
        where = ""
        if source:
            where = f"{source}:{line}: " if line is not None else f"{source}: "
        super().__init__(f"{where}{message}")


class DegenerateCellError(CrystalflowError, ValueError):
    """A padded cell would have an edge of zero or negative length."""


class RetryLimitExceeded(CrystalflowError):
    """An external call kept failing after the configured number of tries."""

    def __init__(self, label: str, tries: int):
        self.label = label
        self.tries = tries
        super().__init__(f"{label}: max try count ({tries}) exceeded")
