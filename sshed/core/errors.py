"""Exception types shared across the sync pipeline.

Failures inside a reconciliation pass are caught at the block or file
boundary and turned into report entries; only search and filter calls let
store errors propagate to their caller.
"""
from typing import Optional


class SshedError(Exception):
    """Base class for all sshed errors."""


class ConfigError(SshedError):
    """The application config file could not be read or validated."""


class SourceReadError(SshedError):
    """An ssh config source file could not be read."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cannot read {path}{detail}")


class HostParseError(SshedError):
    """A host block violates the ssh config grammar."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class StoreError(SshedError):
    """The entity or relation store could not complete an operation."""
