"""OS error translation module."""
import errno as errno_codes
import io
from contextlib import contextmanager
from typing import Dict, Iterator, Optional, Type

from src.infrastructure.exceptions import (
    AccessDeniedError,
    DeadlineExceededError,
    FilesystemError,
    PathExistsError,
    PathNotFoundError,
)

ERROR_KINDS: Dict[int, Type[FilesystemError]] = {
    errno_codes.EEXIST: PathExistsError,
    errno_codes.ENOENT: PathNotFoundError,
    errno_codes.EACCES: AccessDeniedError,
    errno_codes.EPERM: AccessDeniedError,
    errno_codes.ETIMEDOUT: DeadlineExceededError,
}


def error_from_errno(
    code: int,
    message: Optional[str] = None,
    path: Optional[str] = None,
    operation: Optional[str] = None,
) -> FilesystemError:
    """Build the typed error for an OS error number."""
    error_class = ERROR_KINDS.get(code, FilesystemError)
    return error_class(code, message=message, path=path, operation=operation)


def map_os_error(
    exc: OSError,
    operation: Optional[str] = None,
    path: Optional[str] = None,
) -> FilesystemError:
    """Translate an ``OSError`` raised by the OS layer."""
    if exc.errno is not None:
        code = exc.errno
    elif isinstance(exc, io.UnsupportedOperation):
        # Reading a write-only handle or writing a read-only one
        code = errno_codes.EBADF
    else:
        code = errno_codes.EIO
    if path is None and exc.filename is not None:
        path = str(exc.filename)
    return error_from_errno(
        code,
        message=exc.strerror or str(exc),
        path=path,
        operation=operation,
    )


@contextmanager
def translate_os_errors(
    operation: str,
    path: Optional[str] = None,
) -> Iterator[None]:
    """Re-raise any ``OSError`` from the block as a ``FilesystemError``."""
    try:
        yield
    except OSError as e:
        raise map_os_error(e, operation=operation, path=path) from e
