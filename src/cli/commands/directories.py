"""Directory commands."""

import typer

from src.cli.utils.context import CLIContext
from src.infrastructure.filesystem import DirectoryManager

app = typer.Typer(help="Inspect and manage directories")


@app.command("pwd")
def working_directory(ctx: typer.Context):
    """
    Print the working directory.
    """
    typer.echo(DirectoryManager.working_directory())


@app.command("ls")
def list_directory(
    ctx: typer.Context,
    path: str = typer.Argument(".", help="Directory to list"),
):
    """
    List directory entries in the order the OS returns them.
    """
    cli_ctx: CLIContext = ctx.obj
    names = cli_ctx.run(DirectoryManager.contents_of_directory(path))
    cli_ctx.formatter.print_names(names, title=path)


@app.command("mkdir")
def make_directory(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Directory to create"),
    parents: bool = typer.Option(
        False, "--parents", "-p", help="Create missing parents; no error if it exists"
    ),
):
    """
    Create a directory.

    Example:
        deadline-io dir mkdir -p data/2024/01
    """
    cli_ctx: CLIContext = ctx.obj
    cli_ctx.run(
        DirectoryManager.create_directory(path, with_intermediate_directories=parents)
    )
    cli_ctx.formatter.print_success(f"Created '{path}'")


@app.command("rmdir")
def remove_directory(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Directory to remove"),
    recursive: bool = typer.Option(
        False, "--recursive", "-r", help="Remove the directory and everything in it"
    ),
):
    """
    Remove a directory.
    """
    cli_ctx: CLIContext = ctx.obj
    cli_ctx.run(DirectoryManager.remove_directory(path, recursive=recursive))
    cli_ctx.formatter.print_success(f"Removed '{path}'")
