"""
Error types for scanning, copying and folder authorization.

Only AccessDeniedError is ever surfaced to the user. The others are
logged by the component that catches them and the operation continues.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class XferError(Exception):
    """Base class for all errors raised by the core."""
    pass


class AccessDeniedError(XferError):
    """A root folder is missing or unreadable at scan start."""

    def __init__(self, role: str, path: Path | str):
        self.role = role
        self.path = Path(path)
        super().__init__(f"Cannot access {role} folder: {self.path}")


class EnumerationEntryError(XferError):
    """A single entry could not be read during a walk."""

    def __init__(self, path: Path | str, cause: Optional[BaseException] = None):
        self.path = Path(path) if path else Path()
        self.cause = cause
        super().__init__(f"Error enumerating {path}: {cause}")


class CopyItemError(XferError):
    """A single file failed to copy."""

    def __init__(self, source: Path, target: Path, cause: Optional[BaseException] = None):
        self.source = source
        self.target = target
        self.cause = cause
        super().__init__(f"Failed to copy {source} to {target}: {cause}")


class AuthorizationResolutionError(XferError):
    """A persisted grant could not be turned back into a usable root."""

    def __init__(self, role: str, reason: str):
        self.role = role
        self.reason = reason
        super().__init__(f"Cannot resolve {role} grant: {reason}")


class HandleReleasedError(XferError):
    """An access handle was used after it was released."""
    pass
