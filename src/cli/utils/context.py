"""CLI context management."""

import asyncio
from dataclasses import dataclass
from typing import Any, Coroutine, Optional, TypeVar

import typer
from rich.console import Console

from src.cli.utils.output import OutputFormatter
from src.core import deadline
from src.core.config import Settings
from src.infrastructure.exceptions import InfrastructureError

T = TypeVar("T")


@dataclass
class CLIContext:
    """Context object passed through CLI commands."""

    debug: bool
    settings: Settings
    formatter: OutputFormatter
    console: Console

    def deadline_for(self, timeout_ms: Optional[float]) -> float:
        """
        Turn a relative timeout into an absolute deadline.

        Args:
            timeout_ms: Timeout in milliseconds; falls back to the configured
                default, and to no deadline when neither is set

        Returns:
            Deadline for the I/O layer
        """
        if timeout_ms is None:
            timeout_ms = self.settings.default_timeout_ms

        if timeout_ms is None:
            return deadline.NEVER

        return deadline.after(timeout_ms)

    def run(self, coroutine: Coroutine[Any, Any, T]) -> T:
        """
        Run an I/O coroutine to completion, reporting failures.

        Args:
            coroutine: Coroutine built from the filesystem layer

        Returns:
            The coroutine's result

        Raises:
            typer.Exit: With code 1 when the layer raised an error
        """
        try:
            return asyncio.run(coroutine)
        except InfrastructureError as e:
            self.formatter.print_error(str(e))
            if self.debug:
                self.console.print_exception()
            raise typer.Exit(1)
