"""
Error taxonomy for DiskTree.

Structural violations (missing resources, pre-existing targets, type conflicts
and stale snapshots) are raised as DiskTreeError subclasses. Operating system
failures are classified so that transient access problems during a stat read
can be absorbed while everything else propagates unmodified.
"""

import errno
from enum import Enum
from typing import Any, Optional


class ErrorKind(Enum):
    """Classification of an OSError raised while reading the tree."""
    TRANSIENT_ACCESS = "transient_access"
    FATAL = "fatal"


TRANSIENT_ERRNOS = frozenset({
    errno.ENOENT,
    errno.EACCES,
    errno.EBUSY,
    errno.EPERM,
})


def classify_os_error(error: OSError) -> ErrorKind:
    """
    Classify an OSError raised by a stat or listing call.

    Args:
        error: The error raised by the operating system

    Returns:
        TRANSIENT_ACCESS for absence and permission races, FATAL otherwise
    """
    if error.errno in TRANSIENT_ERRNOS:
        return ErrorKind.TRANSIENT_ACCESS
    return ErrorKind.FATAL


class DiskTreeError(Exception):
    """Base class for all filesystem service failures."""

    def __init__(self, message: str, uri: Optional[str] = None):
        super().__init__(message)
        self.uri = uri


class ResourceNotFoundError(DiskTreeError):
    """Raised when an operation requires a resource that does not exist."""
    pass


class ResourceExistsError(DiskTreeError):
    """Raised when a create, move or copy targets an existing resource without overwrite."""
    pass


class TypeConflictError(DiskTreeError):
    """Raised when a file is found where a directory was expected, or vice versa."""
    pass


class StaleStateError(DiskTreeError):
    """
    Raised when an optimistic-concurrency check fails.

    Attributes:
        uri: The resource whose on-disk state changed
        field: Name of the mismatching snapshot field
        expected: Value the caller believed to be current
        actual: Value currently on disk
    """

    def __init__(self, uri: str, field: str, expected: Any, actual: Any):
        super().__init__(
            f"File is out of sync. URI: {uri}. Expected {field}: {expected}. Actual {field}: {actual}.",
            uri=uri,
        )
        self.field = field
        self.expected = expected
        self.actual = actual
