"""Exceptions raised by the init pipeline.

Validators report problems through result objects. These exceptions cover
the cases that end a command: unreadable inputs, refused transitions,
refused destructive actions and collaborator failures. The CLI is the only
place that turns them into exit codes.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class InitKitError(Exception):
    """Base class for fatal pipeline errors."""


class JsonReadError(InitKitError):
    """A required JSON document could not be read or parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read JSON: {path}\n{reason}")


class StageTransitionError(InitKitError):
    """A stage approval was attempted out of order or before its gate."""


class GuardRefusal(InitKitError):
    """A destructive action was attempted without its acknowledgement."""


class ArchiveError(InitKitError):
    """Archiving Stage A artifacts failed; cleanup must not proceed."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        joined = "\n- ".join(self.errors)
        super().__init__(f"Archive failed:\n- {joined}")


class WrapperSyncError(InitKitError):
    """The wrapper sync collaborator exited unsuccessfully."""

    def __init__(self, command: str, exit_code: Optional[int], detail: str = ""):
        self.command = command
        self.exit_code = exit_code
        message = f"Wrapper sync failed with exit code {exit_code}: {command}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
