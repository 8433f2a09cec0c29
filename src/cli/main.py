"""deadline-io command-line tool."""

from typing import Optional

import typer
from rich.console import Console

from src.cli import __version__
from src.cli.commands import directories, files, paths
from src.cli.utils.context import CLIContext
from src.cli.utils.output import OutputFormatter
from src.core.config import settings
from src.infrastructure.logging import setup_logging

app = typer.Typer(
    name="deadline-io",
    help="deadline-io CLI - deadline-bounded file and directory operations",
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    pretty_exceptions_enable=False,
)

console = Console()


def version_callback(value: bool):
    """Display version and exit."""
    if value:
        console.print(f"deadline-io CLI v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug output",
    ),
    output_format: str = typer.Option(
        "table",
        "--output",
        "-o",
        help="Output format: table, json, yaml",
    ),
):
    """
    deadline-io CLI

    Every blocking call accepts a timeout so no command can hang forever.
    """
    if debug:
        settings.log_level = "DEBUG"
    setup_logging(force=debug)

    ctx.obj = CLIContext(
        debug=debug,
        settings=settings,
        formatter=OutputFormatter(output_format, console=console),
        console=console,
    )

    if debug:
        console.print("[dim]Debug mode enabled[/dim]")


# Add command groups
app.add_typer(files.app, name="file", help="Read and write files")
app.add_typer(directories.app, name="dir", help="Inspect and manage directories")
app.add_typer(paths.app, name="path", help="Normalize path strings")


if __name__ == "__main__":
    app()
