"""Infrastructure layer for deadline-io."""
from .exceptions import (
    InfrastructureError,
    FilesystemError,
    PathExistsError,
    PathNotFoundError,
    AccessDeniedError,
    DeadlineExceededError,
    StreamError,
    ClosedStreamError
)

__all__ = [
    'InfrastructureError',
    'FilesystemError',
    'PathExistsError',
    'PathNotFoundError',
    'AccessDeniedError',
    'DeadlineExceededError',
    'StreamError',
    'ClosedStreamError'
]
