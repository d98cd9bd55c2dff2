"""
Error taxonomy for pixelveil.

Precondition violations (bad shapes, bit widths out of range, cover/hidden
dimension mismatch) and resource failures (unreadable input, unwritable
output) are the only error kinds. Numeric edge cases such as a constant
channel or a single unique brightness are defined results, not errors.
"""

from typing import Any, Dict, Optional


class PixelVeilError(Exception):
    """Base class for every error raised by pixelveil."""

    exit_code = 1

    def __init__(self, message: str, code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code if code is not None else self.exit_code
        self.details = details or {}

    def __str__(self) -> str:
        base = self.message
        if self.details:
            extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
            base += f" ({extra})"
        return base


class PreconditionError(PixelVeilError):
    """Input violates a documented precondition; the run is aborted."""

    exit_code = 2


class ResourceError(PixelVeilError):
    """An input file could not be read or an output file could not be written."""

    exit_code = 3
