from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape

from jcr_rest_client.cli import common
from jcr_rest_client.cli.common import (
    PasswordOption,
    RepoOption,
    ServerOption,
    UsernameOption,
    WorkspaceNameOption,
    console,
)
from jcr_rest_client.models import Status


def find_files(directory: Path) -> list[Path]:
    """Regular files directly inside ``directory``, sorted by name."""
    return sorted(p for p in directory.iterdir() if not p.is_dir())


def _report(status: Status, file: Path, action: str, workspace_path: str, workspace_name: str) -> bool:
    if status.is_error:
        console.print(f"[red]{escape(status.message)}[/red]")
        if status.exception is not None:
            console.print(f"  caused by: {escape(str(status.exception))}")
        return False
    if status.is_info:
        console.print(f"[yellow]{escape(status.message)}[/yellow]")
        return True
    console.print(f"[green]{action}[/green] {file.name} ({workspace_path} in workspace {workspace_name})")
    return True


def publish(
    server: ServerOption,
    repo: RepoOption,
    workspacepath: Annotated[str, typer.Option("--workspacepath", help="Folder path in the workspace.")],
    file: Annotated[Path | None, typer.Option("--file", help="File to publish.")] = None,
    directory: Annotated[Path | None, typer.Option("--dir", help="Publish every file in this directory.")] = None,
    workspacename: WorkspaceNameOption = "default",
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
    unpublish: Annotated[bool, typer.Option("--unpublish", help="Remove the file(s) instead.")] = False,
    versionable: Annotated[bool, typer.Option(help="Publish files as versionable nodes.")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log every request.")] = False,
) -> None:
    """Publish (or unpublish) a file or every file of a directory."""
    common.configure_logging(verbose)
    if file is None and directory is None:
        console.print("[red]Missing option '--file' or '--dir'.[/red]")
        raise typer.Exit(2)
    if file is None and directory is not None and not directory.is_dir():
        console.print(f"[red]'{directory}' is not a directory.[/red]")
        raise typer.Exit(2)

    files = [file] if file is not None else find_files(directory)  # type: ignore[arg-type]
    failures = 0
    with common.get_client() as client:
        workspace = common.open_workspace(client, server, username, pwd, repo, workspacename)
        for f in files:
            if unpublish:
                status = client.unpublish(workspace, workspacepath, f)
                ok = _report(status, f, "Unpublished", workspacepath, workspacename)
            else:
                status = client.publish(workspace, workspacepath, f, versionable)
                ok = _report(status, f, "Published", workspacepath, workspacename)
            if not ok:
                failures += 1

    if failures:
        console.print(f"[red]{failures} of {len(files)} file(s) failed.[/red]")
        raise typer.Exit(1)


def mark_area(
    server: ServerOption,
    repo: RepoOption,
    workspacepath: Annotated[str, typer.Option("--workspacepath", help="Folder to mark.")],
    title: Annotated[str | None, typer.Option(help="Publish area title.")] = None,
    description: Annotated[str | None, typer.Option(help="Publish area description.")] = None,
    workspacename: WorkspaceNameOption = "default",
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """Mark a folder as a publish area, creating it if needed."""
    with common.get_client() as client:
        workspace = common.open_workspace(client, server, username, pwd, repo, workspacename)
        status = client.mark_as_publish_area(workspace, workspacepath, title, description)
    _finish(status, f"Marked {workspacepath} as a publish area")


def unmark_area(
    server: ServerOption,
    repo: RepoOption,
    workspacepath: Annotated[str, typer.Option("--workspacepath", help="Folder to unmark.")],
    workspacename: WorkspaceNameOption = "default",
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """Remove the publish area marker from a folder."""
    with common.get_client() as client:
        workspace = common.open_workspace(client, server, username, pwd, repo, workspacename)
        status = client.unmark_as_publish_area(workspace, workspacepath)
    _finish(status, f"Unmarked {workspacepath} as a publish area")


def _finish(status: Status, success: str) -> None:
    if status.is_error:
        console.print(f"[red]{escape(status.message)}[/red]")
        if status.exception is not None:
            console.print(f"  caused by: {escape(str(status.exception))}")
        raise typer.Exit(1)
    console.print(f"[green]{success}[/green]")
