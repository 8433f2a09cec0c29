"""Open modes for deadline-bounded files."""
import os
from enum import Enum

# Owner read/write, group and other read; umask still applies
FILE_PERMISSIONS = 0o644


class FileMode(Enum):
    """Open intent of a file handle."""

    READ = "read"
    CREATE_WRITE = "create_write"
    TRUNCATE_WRITE = "truncate_write"
    APPEND_WRITE = "append_write"
    READ_WRITE = "read_write"
    CREATE_READ_WRITE = "create_read_write"
    TRUNCATE_READ_WRITE = "truncate_read_write"
    APPEND_READ_WRITE = "append_read_write"

    @property
    def flags(self) -> int:
        """OS open flags for this mode."""
        return _FLAGS[self]

    @property
    def io_mode(self) -> str:
        """Binary mode string for the stdlib io layer.

        The io layer only uses it to decide readability, writability and
        append positioning; the actual open flags come from ``flags``.
        """
        return _IO_MODES[self]

    @property
    def readable(self) -> bool:
        return (self.flags & os.O_ACCMODE) in (os.O_RDONLY, os.O_RDWR)

    @property
    def writable(self) -> bool:
        return (self.flags & os.O_ACCMODE) in (os.O_WRONLY, os.O_RDWR)


_FLAGS = {
    FileMode.READ: os.O_RDONLY,
    FileMode.CREATE_WRITE: os.O_WRONLY | os.O_CREAT | os.O_EXCL,
    FileMode.TRUNCATE_WRITE: os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    FileMode.APPEND_WRITE: os.O_WRONLY | os.O_CREAT | os.O_APPEND,
    FileMode.READ_WRITE: os.O_RDWR,
    FileMode.CREATE_READ_WRITE: os.O_RDWR | os.O_CREAT | os.O_EXCL,
    FileMode.TRUNCATE_READ_WRITE: os.O_RDWR | os.O_CREAT | os.O_TRUNC,
    FileMode.APPEND_READ_WRITE: os.O_RDWR | os.O_CREAT | os.O_APPEND,
}

_IO_MODES = {
    FileMode.READ: "rb",
    FileMode.CREATE_WRITE: "wb",
    FileMode.TRUNCATE_WRITE: "wb",
    FileMode.APPEND_WRITE: "ab",
    FileMode.READ_WRITE: "r+b",
    FileMode.CREATE_READ_WRITE: "r+b",
    FileMode.TRUNCATE_READ_WRITE: "w+b",
    FileMode.APPEND_READ_WRITE: "a+b",
}


def io_mode_for_flags(flags: int) -> str:
    """io mode string matching the status flags of an open descriptor."""
    access = flags & os.O_ACCMODE
    appending = bool(flags & os.O_APPEND)

    if access == os.O_RDONLY:
        return "rb"
    if access == os.O_WRONLY:
        return "ab" if appending else "wb"
    return "a+b" if appending else "r+b"
