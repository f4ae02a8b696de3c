from typing import Annotated

import typer
from rich.markup import escape

from jcr_rest_client.cli import common
from jcr_rest_client.cli.common import PasswordOption, RepoOption, ServerOption, UsernameOption, console
from jcr_rest_client.errors import JcrRestClientError
from jcr_rest_client.models import Repository

repo_app = typer.Typer(help="Inspect repositories, workspaces and node types.")


@repo_app.command("list")
def repositories(
    server: ServerOption,
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """List the repositories of a server."""
    with common.get_client() as client:
        validated = common.connect_server(client, server, username, pwd)
        try:
            rows = client.get_repositories(validated)
        except JcrRestClientError as err:
            console.print(f"[red]{escape(str(err))}[/red]")
            raise typer.Exit(1) from err
    common.render_table(["repository"], [(r.name,) for r in rows])


@repo_app.command("workspaces")
def workspaces(
    server: ServerOption,
    repo: RepoOption,
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """List the workspaces of a repository."""
    with common.get_client() as client:
        validated = common.connect_server(client, server, username, pwd)
        try:
            rows = client.get_workspaces(Repository(name=repo, server=validated))
        except JcrRestClientError as err:
            console.print(f"[red]{escape(str(err))}[/red]")
            raise typer.Exit(1) from err
    common.render_table(["workspace"], [(w.name,) for w in rows])


@repo_app.command("node-types")
def node_types(
    server: ServerOption,
    repo: RepoOption,
    mixins: Annotated[bool, typer.Option(help="Only list mixin types.")] = False,
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """List the node types registered in a repository."""
    with common.get_client() as client:
        validated = common.connect_server(client, server, username, pwd)
        try:
            types = client.get_node_types(Repository(name=repo, server=validated))
        except JcrRestClientError as err:
            console.print(f"[red]{escape(str(err))}[/red]")
            raise typer.Exit(1) from err
    rows = [
        (t.name, ", ".join(t.supertypes), "yes" if t.mixin else "no", "yes" if t.abstract else "no")
        for t in sorted(types.values(), key=lambda t: t.name)
        if t.mixin or not mixins
    ]
    common.render_table(["name", "supertypes", "mixin", "abstract"], rows)
