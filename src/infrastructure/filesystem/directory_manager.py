"""Directory operations management module."""
import errno
import os
import shutil
import stat
from typing import List

import aiofiles.os

from src.infrastructure.exceptions import PathExistsError
from src.infrastructure.filesystem.error_mapper import (error_from_errno,
                                                        translate_os_errors)
from src.infrastructure.filesystem.executor import get_executor, run_blocking
from src.infrastructure.filesystem.path_normalizer import PathNormalizer
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Full access for everyone; umask still applies
DIRECTORY_PERMISSIONS = 0o777

EXCLUDED_ENTRIES = frozenset({".", ".."})


def _list_entries(path: str) -> List[str]:
    with os.scandir(path) as entries:
        return [entry.name for entry in entries if entry.name not in EXCLUDED_ENTRIES]


class DirectoryManager:
    """Handle-less path operations.

    Every failure is raised as a ``FilesystemError`` subclass.
    """

    @staticmethod
    def working_directory() -> str:
        """Absolute path of the process working directory."""
        with translate_os_errors("getcwd"):
            return os.getcwd()

    @staticmethod
    def change_working_directory(path: str) -> None:
        """Change the working directory of the whole process.

        This is process-global state shared by every task; avoid calling it
        while other tasks resolve relative paths.
        """
        with translate_os_errors("chdir", path):
            os.chdir(path)

        logger.info("working_directory_changed", path=path)

    @staticmethod
    async def contents_of_directory(path: str) -> List[str]:
        """Entry names of a directory, excluding '.' and '..', in OS order."""
        return await run_blocking(_list_entries, path, operation="scandir", path=path)

    @staticmethod
    async def file_exists(path: str) -> bool:
        """Check existence without following symlinks."""
        try:
            await aiofiles.os.stat(path, follow_symlinks=False, executor=get_executor())
        except (OSError, ValueError):
            return False
        return True

    @staticmethod
    async def is_directory(path: str) -> bool:
        """Check for a directory, following at most one symlink."""
        try:
            status = await aiofiles.os.stat(
                path, follow_symlinks=False, executor=get_executor()
            )
            if stat.S_ISLNK(status.st_mode):
                status = await aiofiles.os.stat(path, executor=get_executor())
        except (OSError, ValueError):
            return False
        return stat.S_ISDIR(status.st_mode)

    @classmethod
    async def create_directory(
        cls,
        path: str,
        with_intermediate_directories: bool = False
    ) -> None:
        """Create a directory, optionally with its missing ancestors."""
        if not with_intermediate_directories:
            await cls._make_directory(path)
            return

        if await cls.file_exists(path):
            if await cls.is_directory(path):
                return
            raise error_from_errno(errno.EEXIST, path=path, operation="mkdir")

        parent = PathNormalizer.drop_last_path_component(path)
        if parent not in ("", PathNormalizer.SEPARATOR) and not await cls.file_exists(parent):
            await cls.create_directory(parent, with_intermediate_directories=True)

        try:
            await cls._make_directory(path)
        except PathExistsError:
            # Lost a race with a concurrent creator
            if await cls.is_directory(path):
                return
            raise

    @staticmethod
    async def _make_directory(path: str) -> None:
        with translate_os_errors("mkdir", path):
            await aiofiles.os.mkdir(path, DIRECTORY_PERMISSIONS, executor=get_executor())

        logger.debug("directory_created", path=path)

    @staticmethod
    async def remove_file(path: str) -> None:
        """Unlink a single file; directories are refused by the OS."""
        with translate_os_errors("unlink", path):
            await aiofiles.os.unlink(path, executor=get_executor())

        logger.debug("file_removed", path=path)

    @staticmethod
    async def remove_directory(path: str, recursive: bool = False) -> None:
        """Remove an empty directory, or a whole tree when ``recursive``."""
        if recursive:
            await run_blocking(shutil.rmtree, path, operation="rmtree", path=path)
        else:
            with translate_os_errors("rmdir", path):
                await aiofiles.os.rmdir(path, executor=get_executor())

        logger.debug("directory_removed", path=path, recursive=recursive)
