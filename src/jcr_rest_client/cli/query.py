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
from jcr_rest_client.errors import JcrRestClientError
from jcr_rest_client.models import QueryRow

query_app = typer.Typer(help="Run queries against a workspace.")

LanguageOption = Annotated[str, typer.Option("--language", "-l", help="xpath, sql, JCR-SQL2 or Search.")]
OffsetOption = Annotated[int, typer.Option(help="Number of rows to skip.")]
LimitOption = Annotated[int, typer.Option(help="Max rows to return (negative for no limit).")]
VarOption = Annotated[list[str] | None, typer.Option("--var", help="Bound variable as NAME=VALUE.")]


def parse_variables(values: list[str] | None) -> dict[str, str]:
    variables: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep:
            raise typer.BadParameter(f"Expected NAME=VALUE, got '{item}'", param_hint="--var")
        variables[name.strip()] = value
    return variables


def _cell(value: str | bytes | None) -> str:
    if isinstance(value, bytes):
        return f"<{len(value)} bytes>"
    return "" if value is None else value


def _columns(rows: list[QueryRow]) -> list[str]:
    headers: list[str] = list(rows[0].column_types) if rows else []
    for row in rows:
        for column in row.columns():
            if column not in headers:
                headers.append(column)
    return headers


@query_app.command("run")
def run(
    statement: Annotated[str, typer.Argument(help="Query statement.")],
    server: ServerOption,
    repo: RepoOption,
    workspacename: WorkspaceNameOption = "default",
    language: LanguageOption = "JCR-SQL2",
    offset: OffsetOption = 0,
    limit: LimitOption = -1,
    var: VarOption = None,
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """Execute a query and print the rows."""
    variables = parse_variables(var)
    with common.get_client() as client:
        workspace = common.open_workspace(client, server, username, pwd, repo, workspacename)
        try:
            rows = client.query(workspace, language, statement, offset, limit, variables)
        except JcrRestClientError as err:
            console.print(f"[red]{escape(str(err))}[/red]")
            raise typer.Exit(1) from err
    if not rows:
        console.print("(0 rows)")
        return
    headers = _columns(rows)
    common.render_table(headers, [[_cell(row.get_value(h)) for h in headers] for row in rows])


@query_app.command("plan")
def plan(
    statement: Annotated[str, typer.Argument(help="Query statement.")],
    server: ServerOption,
    repo: RepoOption,
    workspacename: WorkspaceNameOption = "default",
    language: LanguageOption = "JCR-SQL2",
    offset: OffsetOption = 0,
    limit: LimitOption = -1,
    var: VarOption = None,
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
) -> None:
    """Print the server's execution plan for a query."""
    variables = parse_variables(var)
    with common.get_client() as client:
        workspace = common.open_workspace(client, server, username, pwd, repo, workspacename)
        try:
            text = client.plan_for_query(workspace, language, statement, offset, limit, variables)
        except JcrRestClientError as err:
            console.print(f"[red]{escape(str(err))}[/red]")
            raise typer.Exit(1) from err
    console.print(text, markup=False, highlight=False)
