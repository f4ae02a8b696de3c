import typer

from jcr_rest_client.cli import common
from jcr_rest_client.cli.common import (
    PasswordOption,
    RepoOption,
    ServerOption,
    UsernameOption,
    WorkspaceNameOption,
    console,
)

serve_app = typer.Typer(help="Start servers.")


@serve_app.command("mcp")
def mcp(
    server: ServerOption,
    repo: RepoOption,
    workspacename: WorkspaceNameOption = "default",
    username: UsernameOption = "admin",
    pwd: PasswordOption = "admin",
    transport: str = "stdio",
) -> None:
    """Start the MCP server bound to one workspace."""
    from jcr_rest_client.mcp.server import create_mcp_server

    client = common.get_client()
    workspace = common.open_workspace(client, server, username, pwd, repo, workspacename)
    mcp_server = create_mcp_server(client, workspace)
    console.print(f"[green]Starting MCP server (transport: {transport})[/green]")
    try:
        mcp_server.run(transport=transport)  # type: ignore[arg-type]
    finally:
        client.close()
