"""Path commands."""

import typer

from src.cli.utils.context import CLIContext
from src.infrastructure.filesystem import PathNormalizer

app = typer.Typer(help="Normalize path strings")


@app.command("normalize")
def normalize_path(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path string to normalize"),
):
    """
    Show the canonical form of a path with its parent and last component.

    No filesystem access is made.
    """
    cli_ctx: CLIContext = ctx.obj
    cli_ctx.formatter.print_detail(
        {
            "path": PathNormalizer.fix_slashes(path),
            "parent": PathNormalizer.drop_last_path_component(path),
            "last_component": PathNormalizer.last_path_component(path),
        }
    )
