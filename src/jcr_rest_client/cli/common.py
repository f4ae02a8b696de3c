"""Options and helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from jcr_rest_client.client import RestClient
from jcr_rest_client.errors import JcrRestClientError
from jcr_rest_client.models import Repository, Server, Workspace

console = Console()

ServerOption = Annotated[
    str, typer.Option("--server", envvar="JCR_SERVER_URL", help="Base URL of the repository server.")
]
RepoOption = Annotated[str, typer.Option("--repo", help="Repository name.")]
WorkspaceNameOption = Annotated[str, typer.Option("--workspacename", help="Workspace name.")]
UsernameOption = Annotated[str, typer.Option("--username", envvar="JCR_USERNAME", help="User name.")]
PasswordOption = Annotated[str, typer.Option("--pwd", envvar="JCR_PASSWORD", help="Password.")]


def get_client() -> RestClient:
    from jcr_rest_client.transport.settings import get_transport

    return RestClient(get_transport())


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING)


def connect_server(client: RestClient, url: str, username: str, password: str) -> Server:
    """Validate the server, printing the cause and exiting non-zero on failure."""
    try:
        return client.validate(Server(url=url, user=username, password=password))
    except JcrRestClientError as err:
        console.print(f"[red]Unable to connect to {escape(url)}:[/red] {escape(str(err))}")
        raise typer.Exit(1) from err


def open_workspace(
    client: RestClient,
    url: str,
    username: str,
    password: str,
    repository: str,
    workspace: str,
) -> Workspace:
    server = connect_server(client, url, username, password)
    return Workspace(name=workspace, repository=Repository(name=repository, server=server))


def render_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> None:
    table = Table(show_lines=False)
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*(str(v) for v in row))
    console.print(table)
    console.print(f"({len(rows)} rows)")
