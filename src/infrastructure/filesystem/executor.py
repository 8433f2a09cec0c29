"""Deadline-aware execution of blocking filesystem calls.

Blocking syscalls run on a worker thread pool while the calling task awaits
them. A deadline bounds how long the task waits, not how long the syscall
runs: when the deadline elapses the task gets control back with a
``DeadlineExceededError``, and the syscall may still complete on its worker
thread afterwards.
"""
import asyncio
import errno
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Awaitable, Callable, Optional, TypeVar

from src.core.config import settings
from src.core.deadline import NEVER, remaining
from src.infrastructure.filesystem.error_mapper import (error_from_errno,
                                                        translate_os_errors)
from src.infrastructure.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_executor: Optional[ThreadPoolExecutor] = None


def get_executor() -> Optional[ThreadPoolExecutor]:
    """Shared worker pool, or None to use the event loop's default one."""
    global _executor
    if _executor is None and settings.io_worker_threads:
        _executor = ThreadPoolExecutor(
            max_workers=settings.io_worker_threads,
            thread_name_prefix="deadline-io",
        )
        logger.debug("io_executor_started", workers=settings.io_worker_threads)
    return _executor


def shutdown_executor(wait: bool = True) -> None:
    """Stop the shared worker pool if one was started."""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=wait)
        _executor = None
        logger.debug("io_executor_stopped")


async def run_until(
    awaitable: Awaitable[T],
    deadline: float = NEVER,
    operation: str = "io",
    path: Optional[str] = None,
) -> T:
    """Await ``awaitable`` until it completes or ``deadline`` elapses.

    OS errors are translated into ``FilesystemError`` subclasses.
    """
    timeout = remaining(deadline)

    with translate_os_errors(operation, path):
        if timeout is None:
            return await awaitable

        try:
            return await asyncio.wait_for(awaitable, timeout)
        except asyncio.TimeoutError as e:
            logger.warning(
                "file_operation_timed_out",
                operation=operation,
                path=path,
                deadline=deadline,
            )
            raise error_from_errno(
                errno.ETIMEDOUT,
                message="Deadline elapsed before the operation completed",
                path=path,
                operation=operation,
            ) from e


async def run_blocking(
    func: Callable[..., T],
    *args: Any,
    deadline: float = NEVER,
    operation: str = "io",
    path: Optional[str] = None,
    **kwargs: Any,
) -> T:
    """Run a blocking callable on the worker pool, bounded by ``deadline``."""
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(get_executor(), partial(func, *args, **kwargs))
    return await run_until(future, deadline=deadline, operation=operation, path=path)
