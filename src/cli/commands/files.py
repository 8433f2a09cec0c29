"""File commands."""

from typing import Optional

import typer

from src.cli.utils.context import CLIContext
from src.infrastructure.filesystem import (DeadlineFile, DirectoryManager,
                                           FileMode, PathNormalizer)

app = typer.Typer(help="Read and write files")


@app.command("cat")
def cat_file(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to read"),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Per-chunk timeout in milliseconds"
    ),
    chunk_size: Optional[int] = typer.Option(
        None, "--chunk-size", help="Read chunk size in bytes"
    ),
):
    """
    Print the contents of a file.

    Example:
        deadline-io file cat notes.txt --timeout 500
    """
    cli_ctx: CLIContext = ctx.obj
    deadline = cli_ctx.deadline_for(timeout)

    async def read() -> bytes:
        async with await DeadlineFile.open(path, FileMode.READ, deadline=deadline) as f:
            return await f.read_all(chunk_size=chunk_size, deadline=deadline)

    contents = cli_ctx.run(read())
    typer.echo(contents, nl=False)


@app.command("write")
def write_file(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to write"),
    text: str = typer.Argument(..., help="Text to write"),
    append: bool = typer.Option(False, "--append", "-a", help="Append instead of truncating"),
    exclusive: bool = typer.Option(
        False, "--exclusive", "-x", help="Fail if the file already exists"
    ),
    parents: bool = typer.Option(
        False, "--parents", "-p", help="Create missing parent directories"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", "-t", help="Timeout in milliseconds"
    ),
):
    """
    Write text to a file.

    Example:
        deadline-io file write logs/today.txt "hello" --append --parents
    """
    cli_ctx: CLIContext = ctx.obj

    if append and exclusive:
        cli_ctx.formatter.print_error("--append and --exclusive cannot be combined")
        raise typer.Exit(1)

    if exclusive:
        mode = FileMode.CREATE_WRITE
    elif append:
        mode = FileMode.APPEND_WRITE
    else:
        mode = FileMode.TRUNCATE_WRITE

    deadline = cli_ctx.deadline_for(timeout)

    async def write() -> None:
        if parents:
            parent = PathNormalizer.drop_last_path_component(path)
            if parent:
                await DirectoryManager.create_directory(
                    parent, with_intermediate_directories=True
                )

        async with await DeadlineFile.open(path, mode, deadline=deadline) as f:
            await f.write(text.encode("utf-8"), deadline=deadline)
            await f.flush(deadline=deadline)

    cli_ctx.run(write())
    cli_ctx.formatter.print_success(f"Wrote {len(text.encode('utf-8'))} bytes to '{path}'")


@app.command("info")
def file_info(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path to inspect"),
):
    """
    Show what the filesystem knows about a path.
    """
    cli_ctx: CLIContext = ctx.obj

    async def inspect() -> dict:
        exists = await DirectoryManager.file_exists(path)
        is_directory = await DirectoryManager.is_directory(path)
        info = {
            "path": path,
            "exists": exists,
            "is_directory": is_directory,
            "length": None,
            "extension": None,
        }

        if exists and not is_directory:
            async with await DeadlineFile.open(path, FileMode.READ) as f:
                info["length"] = await f.length()
                info["extension"] = f.file_extension

        return info

    cli_ctx.formatter.print_detail(cli_ctx.run(inspect()), title="Path Info")


@app.command("rm")
def remove_file(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="File to remove"),
):
    """
    Remove a single file.
    """
    cli_ctx: CLIContext = ctx.obj
    cli_ctx.run(DirectoryManager.remove_file(path))
    cli_ctx.formatter.print_success(f"Removed '{path}'")
