"""
Error types raised by the importer.

Nothing in the library recovers from these; the CLI driver stops at the
first one and reports it.
"""
from __future__ import annotations

from typing import Optional, Sequence


class ImporterError(RuntimeError):
    """Base class for every failure raised by the importer."""


class PreconditionError(ImporterError):
    """The caller passed arguments the operation cannot accept."""


class CommandFailedError(ImporterError):
    def __init__(self, cmd: Sequence[str], returncode: Optional[int] = None, reason: Optional[str] = None):
        self.cmd = list(cmd)
        self.returncode = returncode
        if reason is not None:
            message = f"Failed to run {self.cmd}: {reason}"
        else:
            message = f"{self.cmd} failed with exit status {returncode}"
        super().__init__(message)


class ToolNotFoundError(CommandFailedError):
    """The external command could not be spawned."""


class DownloadError(ImporterError):
    pass


class ExtractionError(ImporterError):
    pass


class KmlParseError(ImporterError):
    pass
