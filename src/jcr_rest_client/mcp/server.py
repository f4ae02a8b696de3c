"""FastMCP server exposing publishing and query tools for one workspace."""

from __future__ import annotations

import base64

from fastmcp import FastMCP

from jcr_rest_client.client import RestClient
from jcr_rest_client.models import QueryRow, Status, Workspace


def status_text(status: Status) -> str:
    if status.is_error:
        cause = f": {status.exception}" if status.exception is not None else ""
        return f"Error: {status.message}{cause}"
    return status.message or "OK"


def row_to_dict(row: QueryRow) -> dict[str, str]:
    """Binary cells are returned base64-encoded."""
    return {
        name: base64.b64encode(value).decode("ascii") if isinstance(value, bytes) else value
        for name, value in row.values.items()
    }


def create_mcp_server(client: RestClient, workspace: Workspace) -> FastMCP:
    """Create a FastMCP server wired to the given client and workspace."""

    mcp = FastMCP(
        "jcr-rest-client",
        instructions=f"Publish files to and query workspace '{workspace.name}' of repository "
        f"'{workspace.repository.name}'.",
    )

    @mcp.tool()
    def publish(path: str, file: str, versionable: bool = False) -> str:
        """Publish a local file into the folder at ``path``."""
        return status_text(client.publish(workspace, path, file, versionable))

    @mcp.tool()
    def unpublish(path: str, file: str) -> str:
        """Remove a published file from the folder at ``path``."""
        return status_text(client.unpublish(workspace, path, file))

    @mcp.tool()
    def mark_publish_area(path: str, title: str | None = None, description: str | None = None) -> str:
        """Mark a folder as a publish area."""
        return status_text(client.mark_as_publish_area(workspace, path, title, description))

    @mcp.tool()
    def unmark_publish_area(path: str) -> str:
        """Remove the publish area marker from a folder."""
        return status_text(client.unmark_as_publish_area(workspace, path))

    @mcp.tool()
    def query(
        statement: str,
        language: str = "JCR-SQL2",
        offset: int = 0,
        limit: int = -1,
        variables: dict[str, str] | None = None,
    ) -> list[dict[str, str]]:
        """Run a query and return its rows."""
        rows = client.query(workspace, language, statement, offset, limit, variables)
        return [row_to_dict(row) for row in rows]

    @mcp.tool()
    def plan(statement: str, language: str = "JCR-SQL2") -> str:
        """Return the execution plan of a query."""
        return client.plan_for_query(workspace, language, statement)

    @mcp.tool()
    def workspaces() -> list[str]:
        """List the workspaces of the repository."""
        return [ws.name for ws in client.get_workspaces(workspace.repository)]

    return mcp
