"""Deadline-bounded file handle module."""
import errno
import fcntl
import io
import os
from contextlib import suppress
from typing import Optional, Union

import aiofiles.os
from aiofiles.threadpool import wrap

from src.core.config import settings
from src.core.deadline import NEVER
from src.infrastructure.exceptions import ClosedStreamError, FilesystemError
from src.infrastructure.filesystem.error_mapper import error_from_errno
from src.infrastructure.filesystem.executor import (get_executor, run_blocking,
                                                    run_until)
from src.infrastructure.filesystem.file_mode import (FILE_PERMISSIONS,
                                                     FileMode,
                                                     io_mode_for_flags)
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

Buffer = Union[bytes, bytearray, memoryview]

_UNSET = object()


def _buffer_descriptor(fd: int) -> io.BufferedIOBase:
    """Build the buffered object matching the status flags of ``fd``."""
    mode = io_mode_for_flags(fcntl.fcntl(fd, fcntl.F_GETFL))

    # Inspect through a non-owning FileIO so a failure leaves fd open
    with io.FileIO(fd, mode, closefd=False) as view:
        readable, writable = view.readable(), view.writable()
        seekable = view.seekable()

    raw = io.FileIO(fd, mode, closefd=True)
    if readable and writable:
        # BufferedRandom needs a seekable stream; sockets and ttys are not
        return io.BufferedRandom(raw) if seekable else io.BufferedRWPair(raw, raw)
    if readable:
        return io.BufferedReader(raw)
    return io.BufferedWriter(raw)


class DeadlineFile:
    """An open file whose blocking calls are bounded by deadlines.

    Every blocking operation takes a ``deadline`` (see ``src.core.deadline``)
    and defaults to waiting forever. When a deadline elapses the caller gets
    a ``DeadlineExceededError``; the underlying syscall is not aborted and
    may still complete later, so the outcome of a timed-out call is
    indeterminate. The stdlib buffered object underneath serializes access
    to the cursor, which keeps a late completion from corrupting it.

    A handle is not safe for concurrent use by several tasks; callers
    serialize access themselves and must not close a handle another task is
    still using.
    """

    def __init__(
        self,
        file: io.BufferedIOBase,
        path: Optional[str] = None,
        fd: Optional[int] = None
    ):
        self._raw = file
        self._fd = file.fileno() if fd is None else fd
        self._file = wrap(file, executor=get_executor())
        self._closed = False
        self._at_eof = False
        self._file_extension = _UNSET
        self.path = path

    @classmethod
    async def open(
        cls,
        path: str,
        mode: FileMode = FileMode.READ,
        deadline: float = NEVER
    ) -> "DeadlineFile":
        """Open ``path`` with the flags of ``mode``."""
        flags = mode.flags

        def opener(name: str, _flags: int) -> int:
            return os.open(name, flags, FILE_PERMISSIONS)

        raw = await run_blocking(
            io.open,
            path,
            mode.io_mode,
            opener=opener,
            deadline=deadline,
            operation="open",
            path=path,
        )

        logger.debug("file_opened", path=path, mode=mode.value)
        return cls(raw, path=path)

    @classmethod
    async def attach(cls, fd: int, deadline: float = NEVER) -> "DeadlineFile":
        """Take ownership of an already-open descriptor.

        Pipes and sockets are accepted as well as regular files. If
        attaching fails the descriptor stays open and belongs to the caller.
        """
        buffered = await run_blocking(
            _buffer_descriptor, fd, deadline=deadline, operation="attach"
        )

        logger.debug("file_attached", fd=fd, seekable=buffered.seekable())
        return cls(buffered, fd=fd)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def file_extension(self) -> Optional[str]:
        """Text after the last dot of the path, computed once."""
        if self._file_extension is _UNSET:
            self._file_extension = self._extension_of(self.path)
        return self._file_extension

    @staticmethod
    def _extension_of(path: Optional[str]) -> Optional[str]:
        if path is None:
            return None

        _, dot, candidate = path.rpartition('.')

        # A dot in a parent directory is not an extension
        if not dot or not candidate or '/' in candidate:
            return None

        return candidate

    def fileno(self) -> int:
        self._ensure_open()
        return self._fd

    async def read_into(self, buffer: Buffer, deadline: float = NEVER) -> int:
        """Read up to ``len(buffer)`` bytes; 0 means end of file."""
        if memoryview(buffer).nbytes == 0:
            return 0

        self._ensure_open()

        count = await run_until(
            self._file.readinto(buffer),
            deadline=deadline,
            operation="read",
            path=self.path,
        )

        # None: no data available yet on a non-blocking descriptor
        if count is None:
            return 0

        if count == 0:
            self._at_eof = True

        return count

    async def read(self, size: int, deadline: float = NEVER) -> bytes:
        """Read up to ``size`` bytes."""
        buffer = bytearray(size)
        count = await self.read_into(buffer, deadline=deadline)
        return bytes(buffer[:count])

    async def read_all(
        self,
        chunk_size: Optional[int] = None,
        deadline: float = NEVER
    ) -> bytes:
        """Read until end of file in ``chunk_size`` pieces.

        The same deadline applies to every chunk; it is not shared across
        the whole loop.
        """
        chunk_size = chunk_size or settings.read_chunk_size
        contents = bytearray()

        while True:
            try:
                chunk = await self.read(chunk_size, deadline=deadline)
            except ClosedStreamError as e:
                raise ClosedStreamError(bytes(contents)) from e

            if not chunk:
                break

            contents.extend(chunk)

            if await self.cursor_is_at_end_of_file(deadline=deadline):
                break

        return bytes(contents)

    async def write(self, data: Buffer, deadline: float = NEVER) -> None:
        """Write all of ``data``; a short write is an error."""
        requested = memoryview(data).nbytes
        if requested == 0:
            return

        self._ensure_open()

        written = await run_until(
            self._file.write(data),
            deadline=deadline,
            operation="write",
            path=self.path,
        )
        self._at_eof = False

        if written != requested:
            logger.error(
                "short_write",
                path=self.path,
                requested=requested,
                written=written,
            )
            raise error_from_errno(
                errno.EIO,
                message=f"Short write: {written} of {requested} bytes",
                path=self.path,
                operation="write",
            )

    async def seek(self, position: int) -> int:
        """Move the cursor to an absolute position."""
        self._ensure_open()

        if position < 0:
            raise error_from_errno(
                errno.EINVAL,
                message=f"Negative seek position {position}",
                path=self.path,
                operation="seek",
            )

        new_position = await run_until(
            self._file.seek(position), operation="seek", path=self.path
        )
        self._at_eof = False
        return new_position

    async def cursor_position(self) -> int:
        self._ensure_open()
        return await run_until(self._file.tell(), operation="tell", path=self.path)

    async def cursor_is_at_end_of_file(self, deadline: float = NEVER) -> bool:
        self._ensure_open()

        if self._at_eof:
            return True

        try:
            position = await self._file.tell()
        except OSError:
            # Pipes and sockets have no position
            return False

        return position >= await self.length(deadline=deadline)

    async def length(self, deadline: float = NEVER) -> int:
        """Size in bytes; 0 when it cannot be determined.

        Pending writes are flushed first, within ``deadline``. Pipes and
        sockets have no meaningful size and are never flushed here.
        """
        if self._closed:
            return 0

        try:
            if self._raw.seekable() and self._raw.writable():
                await run_until(
                    self._file.flush(),
                    deadline=deadline,
                    operation="flush",
                    path=self.path,
                )
            stat = await aiofiles.os.stat(self._fd, executor=get_executor())
        except (OSError, ValueError, FilesystemError) as e:
            logger.debug("file_length_unavailable", path=self.path, error=str(e))
            return 0

        return stat.st_size

    async def flush(self, deadline: float = NEVER) -> None:
        """Push buffered writes to the OS."""
        self._ensure_open()
        await run_until(
            self._file.flush(),
            deadline=deadline,
            operation="flush",
            path=self.path,
        )

    async def close(self) -> None:
        """Release the descriptor; later calls do nothing."""
        if self._closed:
            return

        self._closed = True
        await run_until(self._file.close(), operation="close", path=self.path)
        logger.debug("file_closed", path=self.path)

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClosedStreamError()

    async def __aenter__(self) -> "DeadlineFile":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def __del__(self):
        if getattr(self, "_closed", True):
            return

        self._closed = True
        with suppress(Exception):
            self._raw.close()
            logger.debug("file_released_on_finalize", path=self.path)

    def __repr__(self) -> str:
        if self._closed:
            return f"<DeadlineFile {self.path or 'fd'} closed>"
        target = self.path if self.path is not None else f"fd={self._fd}"
        return f"<DeadlineFile {target} open>"
