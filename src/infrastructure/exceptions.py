"""Infrastructure layer exceptions."""
import os
from typing import Optional


class InfrastructureError(Exception):
    """Base infrastructure error."""
    pass


class FilesystemError(InfrastructureError):
    """Filesystem operation error carrying the OS error number."""

    def __init__(
        self,
        errno: int,
        message: Optional[str] = None,
        path: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        self.errno = errno
        self.path = path
        self.operation = operation
        self.message = message or os.strerror(errno)
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.operation:
            parts.append(f"{self.operation} failed")
        if self.path is not None:
            parts.append(f"'{self.path}'")
        prefix = " ".join(parts)
        detail = f"{self.message} (errno {self.errno})"
        return f"{prefix}: {detail}" if prefix else detail


class PathExistsError(FilesystemError):
    """Target path already exists."""
    pass


class PathNotFoundError(FilesystemError):
    """Path or one of its ancestors does not exist."""
    pass


class AccessDeniedError(FilesystemError):
    """Permission denied by the OS."""
    pass


class DeadlineExceededError(FilesystemError):
    """Deadline elapsed before the operation completed."""
    pass


class StreamError(InfrastructureError):
    """Stream operation error."""
    pass


class ClosedStreamError(StreamError):
    """I/O attempted on a closed stream.

    ``buffer`` holds whatever content was accumulated before the closed
    stream was detected.
    """

    def __init__(self, buffer: bytes = b"", message: str = "Stream is closed"):
        self.buffer = buffer
        super().__init__(message)
