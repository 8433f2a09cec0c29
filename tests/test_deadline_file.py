"""Tests for deadline-bounded file handles"""

import asyncio
import errno
import gc
import os
import socket
import stat
import time
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from src.core import deadline
from src.infrastructure.exceptions import (AccessDeniedError,
                                           ClosedStreamError,
                                           DeadlineExceededError,
                                           FilesystemError, PathExistsError,
                                           PathNotFoundError)
from src.infrastructure.filesystem import DeadlineFile, FileMode


class TestFileMode:
    """Test open mode to flag mapping"""

    @pytest.mark.parametrize("mode,flags", [
        (FileMode.READ, os.O_RDONLY),
        (FileMode.CREATE_WRITE, os.O_WRONLY | os.O_CREAT | os.O_EXCL),
        (FileMode.TRUNCATE_WRITE, os.O_WRONLY | os.O_CREAT | os.O_TRUNC),
        (FileMode.APPEND_WRITE, os.O_WRONLY | os.O_CREAT | os.O_APPEND),
        (FileMode.READ_WRITE, os.O_RDWR),
        (FileMode.CREATE_READ_WRITE, os.O_RDWR | os.O_CREAT | os.O_EXCL),
        (FileMode.TRUNCATE_READ_WRITE, os.O_RDWR | os.O_CREAT | os.O_TRUNC),
        (FileMode.APPEND_READ_WRITE, os.O_RDWR | os.O_CREAT | os.O_APPEND),
    ])
    def test_flags(self, mode, flags):
        assert mode.flags == flags

    def test_access_direction(self):
        assert FileMode.READ.readable and not FileMode.READ.writable
        assert FileMode.APPEND_WRITE.writable and not FileMode.APPEND_WRITE.readable
        assert FileMode.READ_WRITE.readable and FileMode.READ_WRITE.writable


class TestOpen:
    """Test opening files by path"""

    @pytest.mark.asyncio
    async def test_open_existing_for_reading(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))

        assert f.path == str(sample_file)
        assert not f.closed
        assert await f.read_all() == b"Hello, deadline-io!"

        await f.close()

    @pytest.mark.asyncio
    async def test_open_missing_file(self, test_base_dir: Path):
        with pytest.raises(PathNotFoundError) as exc_info:
            await DeadlineFile.open(str(test_base_dir / "missing.txt"))

        assert exc_info.value.errno == errno.ENOENT
        assert exc_info.value.operation == "open"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", [FileMode.CREATE_WRITE, FileMode.CREATE_READ_WRITE])
    async def test_create_fails_when_file_exists(self, sample_file: Path, mode):
        with pytest.raises(PathExistsError) as exc_info:
            await DeadlineFile.open(str(sample_file), mode)

        assert exc_info.value.errno == errno.EEXIST

    @pytest.mark.asyncio
    async def test_create_uses_fixed_permissions(self, test_base_dir: Path, process_umask: int):
        path = test_base_dir / "created.bin"

        f = await DeadlineFile.open(str(path), FileMode.CREATE_WRITE)
        await f.close()

        assert stat.S_IMODE(path.stat().st_mode) == 0o644 & ~process_umask

    @pytest.mark.asyncio
    async def test_create_grants_read_to_group_and_others(self, test_base_dir: Path):
        path = test_base_dir / "shared.bin"

        previous = os.umask(0)
        try:
            f = await DeadlineFile.open(str(path), FileMode.CREATE_WRITE)
            await f.close()
        finally:
            os.umask(previous)

        assert stat.S_IMODE(path.stat().st_mode) == 0o644

    @pytest.mark.asyncio
    async def test_truncate_write_empties_file(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file), FileMode.TRUNCATE_WRITE)
        await f.close()

        assert sample_file.read_bytes() == b""

    @pytest.mark.asyncio
    async def test_append_write_keeps_existing_content(self, sample_file: Path):
        async with await DeadlineFile.open(str(sample_file), FileMode.APPEND_WRITE) as f:
            await f.write(b" More.")

        assert sample_file.read_bytes() == b"Hello, deadline-io! More."

    @pytest.mark.asyncio
    async def test_read_write_requires_existing_file(self, test_base_dir: Path):
        with pytest.raises(PathNotFoundError):
            await DeadlineFile.open(str(test_base_dir / "nope"), FileMode.READ_WRITE)

    @pytest.mark.asyncio
    @pytest.mark.skipif(os.geteuid() == 0, reason="root bypasses permission checks")
    async def test_permission_denied(self, sample_file: Path):
        sample_file.chmod(0)

        with pytest.raises(AccessDeniedError):
            await DeadlineFile.open(str(sample_file))

    @pytest.mark.asyncio
    async def test_open_directory_fails(self, test_base_dir: Path):
        with pytest.raises(FilesystemError) as exc_info:
            await DeadlineFile.open(str(test_base_dir))

        assert exc_info.value.errno == errno.EISDIR


class TestAttach:
    """Test wrapping raw descriptors"""

    @pytest.mark.asyncio
    async def test_attach_pipe(self):
        read_fd, write_fd = os.pipe()
        reader = await DeadlineFile.attach(read_fd)
        writer = await DeadlineFile.attach(write_fd)

        assert reader.path is None
        assert reader.file_extension is None

        await writer.write(b"ping")
        await writer.flush()
        assert await reader.read(4) == b"ping"

        await writer.close()
        assert await reader.read_all() == b""
        assert await reader.cursor_is_at_end_of_file()

        await reader.close()

    @pytest.mark.asyncio
    async def test_attach_regular_file_descriptor(self, sample_file: Path):
        fd = os.open(str(sample_file), os.O_RDONLY)

        async with await DeadlineFile.attach(fd) as f:
            assert f.fileno() == fd
            assert await f.read(5) == b"Hello"

    @pytest.mark.asyncio
    async def test_attach_socket(self):
        ours, peer = socket.socketpair()
        fd = ours.detach()

        f = await DeadlineFile.attach(fd)
        assert f.fileno() == fd

        await f.write(b"ping")
        await f.flush()
        assert peer.recv(4) == b"ping"

        peer.sendall(b"pong")
        assert await f.read(4) == b"pong"
        assert not await f.cursor_is_at_end_of_file()

        await f.close()
        with pytest.raises(OSError):
            os.fstat(fd)

        peer.close()

    @pytest.mark.asyncio
    async def test_failed_attach_leaves_descriptor_open(self, test_base_dir: Path):
        fd = os.open(str(test_base_dir), os.O_RDONLY)

        try:
            with pytest.raises(FilesystemError) as exc_info:
                await DeadlineFile.attach(fd)

            assert exc_info.value.errno == errno.EISDIR
            assert stat.S_ISDIR(os.fstat(fd).st_mode)
        finally:
            os.close(fd)

    @pytest.mark.asyncio
    async def test_attach_invalid_descriptor(self):
        with pytest.raises(FilesystemError) as exc_info:
            await DeadlineFile.attach(999999)

        assert exc_info.value.errno == errno.EBADF


class TestReadWrite:
    """Test bounded reads and writes"""

    @pytest.mark.asyncio
    async def test_round_trip(self, test_base_dir: Path):
        data = os.urandom(3000)
        f = await DeadlineFile.open(str(test_base_dir / "round.bin"), FileMode.TRUNCATE_READ_WRITE)

        await f.write(data)
        assert await f.seek(0) == 0
        assert await f.read(len(data)) == data
        assert await f.cursor_position() == len(data)
        assert await f.cursor_is_at_end_of_file()

        await f.close()

    @pytest.mark.asyncio
    async def test_read_into_buffer(self, sample_file: Path):
        buffer = bytearray(5)

        async with await DeadlineFile.open(str(sample_file)) as f:
            count = await f.read_into(buffer)

        assert count == 5
        assert bytes(buffer) == b"Hello"

    @pytest.mark.asyncio
    async def test_zero_length_read_returns_zero(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))

        assert await f.read_into(bytearray()) == 0
        assert await f.read(0) == b""
        assert await f.cursor_position() == 0

        await f.close()
        # No I/O is attempted for an empty buffer, even once closed
        assert await f.read_into(bytearray()) == 0

    @pytest.mark.asyncio
    async def test_read_at_end_of_file(self, sample_file: Path):
        async with await DeadlineFile.open(str(sample_file)) as f:
            await f.seek(await f.length())
            assert await f.read(10) == b""
            assert await f.cursor_is_at_end_of_file()

    @pytest.mark.asyncio
    async def test_empty_write_is_noop(self, test_base_dir: Path):
        f = await DeadlineFile.open(str(test_base_dir / "empty.bin"), FileMode.TRUNCATE_WRITE)
        await f.write(b"")
        await f.close()

        # Allowed even after close because no I/O happens
        await f.write(b"")
        assert (test_base_dir / "empty.bin").read_bytes() == b""

    @pytest.mark.asyncio
    async def test_short_write_is_an_error(self, test_base_dir: Path):
        f = await DeadlineFile.open(str(test_base_dir / "short.bin"), FileMode.TRUNCATE_WRITE)
        f._file.write = AsyncMock(return_value=2)

        with pytest.raises(FilesystemError) as exc_info:
            await f.write(b"hello")

        assert type(exc_info.value) is FilesystemError
        assert exc_info.value.errno == errno.EIO
        assert "2 of 5" in str(exc_info.value)

        await f.close()

    @pytest.mark.asyncio
    async def test_read_from_write_only_file(self, test_base_dir: Path):
        async with await DeadlineFile.open(str(test_base_dir / "w.bin"), FileMode.TRUNCATE_WRITE) as f:
            with pytest.raises(FilesystemError) as exc_info:
                await f.read(4)

        assert exc_info.value.errno == errno.EBADF

    @pytest.mark.asyncio
    async def test_read_times_out(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))

        async def stalled_readinto(buffer):
            await asyncio.sleep(5)
            return 0

        f._file.readinto = stalled_readinto

        with pytest.raises(DeadlineExceededError) as exc_info:
            await f.read(4, deadline=deadline.after(30))

        assert exc_info.value.path == str(sample_file)
        assert exc_info.value.operation == "read"
        assert not f.closed

        await f.close()

    @pytest.mark.asyncio
    async def test_write_with_future_deadline(self, test_base_dir: Path):
        path = test_base_dir / "bounded.txt"

        async with await DeadlineFile.open(str(path), FileMode.TRUNCATE_WRITE) as f:
            await f.write(b"within time", deadline=deadline.after(5_000))
            await f.flush(deadline=deadline.after(5_000))

        assert path.read_bytes() == b"within time"


class TestReadAll:
    """Test chunked whole-file reads"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size,chunk_size", [
        (5000, 1024),
        (4096, 1024),
        (10, 2048),
        (1, 1),
    ])
    async def test_reads_everything(self, test_base_dir: Path, size, chunk_size):
        data = os.urandom(size)
        path = test_base_dir / "data.bin"
        path.write_bytes(data)

        async with await DeadlineFile.open(str(path)) as f:
            assert await f.read_all(chunk_size=chunk_size) == data
            assert await f.cursor_is_at_end_of_file()

    @pytest.mark.asyncio
    async def test_empty_file(self, test_base_dir: Path):
        path = test_base_dir / "empty.bin"
        path.write_bytes(b"")

        async with await DeadlineFile.open(str(path)) as f:
            assert await f.read_all() == b""

    @pytest.mark.asyncio
    async def test_reads_from_cursor(self, sample_file: Path):
        async with await DeadlineFile.open(str(sample_file)) as f:
            await f.seek(7)
            assert await f.read_all() == b"deadline-io!"

    @pytest.mark.asyncio
    async def test_close_mid_read_keeps_partial_content(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))
        original_read = f.read

        async def read_then_close(size, deadline=deadline.NEVER):
            chunk = await original_read(size, deadline=deadline)
            await f.close()
            return chunk

        f.read = read_then_close
        f.cursor_is_at_end_of_file = AsyncMock(return_value=False)

        with pytest.raises(ClosedStreamError) as exc_info:
            await f.read_all(chunk_size=5)

        assert exc_info.value.buffer == b"Hello"


class TestCursor:
    """Test seeking and cursor queries"""

    @pytest.mark.asyncio
    async def test_seek_and_position(self, sample_file: Path):
        async with await DeadlineFile.open(str(sample_file)) as f:
            assert await f.seek(7) == 7
            assert await f.cursor_position() == 7
            assert await f.read(8) == b"deadline"
            assert await f.cursor_position() == 15
            assert not await f.cursor_is_at_end_of_file()

    @pytest.mark.asyncio
    async def test_negative_seek(self, sample_file: Path):
        async with await DeadlineFile.open(str(sample_file)) as f:
            with pytest.raises(FilesystemError) as exc_info:
                await f.seek(-1)

        assert exc_info.value.errno == errno.EINVAL

    @pytest.mark.asyncio
    async def test_seek_past_end_then_write_extends(self, test_base_dir: Path):
        path = test_base_dir / "sparse.bin"

        async with await DeadlineFile.open(str(path), FileMode.TRUNCATE_READ_WRITE) as f:
            await f.seek(4)
            await f.write(b"x")
            assert await f.length() == 5

        assert path.read_bytes() == b"\x00\x00\x00\x00x"

    @pytest.mark.asyncio
    async def test_length_includes_buffered_writes(self, test_base_dir: Path):
        async with await DeadlineFile.open(str(test_base_dir / "len.bin"), FileMode.TRUNCATE_WRITE) as f:
            await f.write(b"12345")
            assert await f.length() == 5

    @pytest.mark.asyncio
    async def test_length_of_closed_file_is_zero(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))
        assert await f.length() == len(b"Hello, deadline-io!")

        await f.close()
        assert await f.length() == 0

    @pytest.mark.asyncio
    async def test_length_of_pipe_never_flushes(self):
        read_fd, write_fd = os.pipe()
        writer = await DeadlineFile.attach(write_fd)
        writer._file.flush = AsyncMock()

        await writer.write(b"pending")
        assert await writer.length() == 0
        writer._file.flush.assert_not_called()

        await writer.close()
        os.close(read_fd)

    @pytest.mark.asyncio
    async def test_length_flush_is_bounded_by_deadline(self, test_base_dir: Path):
        f = await DeadlineFile.open(str(test_base_dir / "slow.bin"), FileMode.TRUNCATE_WRITE)

        async def stalled_flush():
            await asyncio.sleep(5)

        f._file.flush = stalled_flush

        started = time.monotonic()
        assert await f.length(deadline=deadline.after(30)) == 0
        assert time.monotonic() - started < 2

        await f.close()


class TestClose:
    """Test closing and the closed-stream invariant"""

    @pytest.mark.asyncio
    async def test_close_twice(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))

        await f.close()
        await f.close()

        assert f.closed

    @pytest.mark.asyncio
    async def test_operations_after_close_fail(self, test_base_dir: Path):
        f = await DeadlineFile.open(str(test_base_dir / "c.bin"), FileMode.TRUNCATE_READ_WRITE)
        await f.close()

        with pytest.raises(ClosedStreamError):
            await f.read(1)
        with pytest.raises(ClosedStreamError):
            await f.write(b"x")
        with pytest.raises(ClosedStreamError):
            await f.seek(0)
        with pytest.raises(ClosedStreamError):
            await f.flush()
        with pytest.raises(ClosedStreamError):
            await f.cursor_position()
        with pytest.raises(ClosedStreamError):
            await f.cursor_is_at_end_of_file()
        with pytest.raises(ClosedStreamError):
            f.fileno()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, sample_file: Path):
        async with await DeadlineFile.open(str(sample_file)) as f:
            assert not f.closed

        assert f.closed

    @pytest.mark.asyncio
    async def test_context_manager_closes_on_error(self, sample_file: Path):
        with pytest.raises(RuntimeError):
            async with await DeadlineFile.open(str(sample_file)) as f:
                raise RuntimeError("boom")

        assert f.closed

    @pytest.mark.asyncio
    async def test_unclosed_handle_released_on_collection(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))
        raw = f._raw

        del f
        gc.collect()

        assert raw.closed

    @pytest.mark.asyncio
    async def test_finalizer_after_close_is_silent(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))
        await f.close()

        f.__del__()
        assert f.closed

    @pytest.mark.asyncio
    async def test_repr(self, sample_file: Path):
        f = await DeadlineFile.open(str(sample_file))
        assert repr(f) == f"<DeadlineFile {sample_file} open>"

        await f.close()
        assert repr(f) == f"<DeadlineFile {sample_file} closed>"


class TestFileExtension:
    """Test the memoized file extension"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("relative,expected", [
        ("archive.tar.gz", "gz"),
        ("no_extension", None),
        ("a.b/c", None),
        ("a.b/c.txt", "txt"),
        (".profile", "profile"),
        ("trailing.", None),
    ])
    async def test_extension(self, test_base_dir: Path, relative, expected):
        path = test_base_dir / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"")

        async with await DeadlineFile.open(str(path)) as f:
            assert f.file_extension == expected

    @pytest.mark.asyncio
    async def test_extension_is_computed_once(self, test_base_dir: Path):
        path = test_base_dir / "report.csv"
        path.write_bytes(b"")

        async with await DeadlineFile.open(str(path)) as f:
            assert f.file_extension == "csv"
            f.path = str(test_base_dir / "report.json")
            assert f.file_extension == "csv"
