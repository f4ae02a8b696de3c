from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from types import TracebackType

from jcr_rest_client.core import discovery, publish, query
from jcr_rest_client.core.nodes import FileNode
from jcr_rest_client.core.ports.transport import Transport
from jcr_rest_client.core.query import QueryLanguage
from jcr_rest_client.models import NodeType, QueryRow, Repository, Server, Status, Workspace


class RestClient:
    """Publish files, manage publish areas and run queries against a repository server.

    Publishing operations report failures through the returned ``Status``;
    discovery and query operations raise.
    """

    def __init__(self, transport: Transport) -> None:
        self.transport = transport

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> RestClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    # -- discovery --------------------------------------------------------

    def validate(self, server: Server) -> Server:
        return discovery.validate(self.transport, server)

    def get_repositories(self, server: Server) -> list[Repository]:
        return discovery.get_repositories(self.transport, server)

    def get_workspaces(self, repository: Repository) -> list[Workspace]:
        return discovery.get_workspaces(self.transport, repository)

    def get_node_types(self, repository: Repository) -> dict[str, NodeType]:
        return discovery.get_node_types(self.transport, repository)

    # -- files ------------------------------------------------------------

    def get_url(self, file: str | Path, path: str, workspace: Workspace) -> str:
        if Path(file).is_dir():
            raise ValueError(f"'{file}' is a directory")
        return FileNode(workspace, path, file).url()

    def file_exists(self, file: str | Path, workspace: Workspace, path: str) -> bool:
        return publish.file_exists(self.transport, workspace, path, file)

    def get_file_contents(self, workspace: Workspace, path: str, file: str | Path) -> bytes | None:
        return publish.get_file_contents(self.transport, workspace, path, file)

    def publish(self, workspace: Workspace, path: str, file: str | Path, versionable: bool = False) -> Status:
        return publish.publish(self.transport, workspace, path, file, versionable)

    def unpublish(self, workspace: Workspace, path: str, file: str | Path) -> Status:
        return publish.unpublish(self.transport, workspace, path, file)

    def mark_as_publish_area(
        self,
        workspace: Workspace,
        path: str,
        title: str | None = None,
        description: str | None = None,
    ) -> Status:
        return publish.mark_as_publish_area(self.transport, workspace, path, title, description)

    def unmark_as_publish_area(self, workspace: Workspace, path: str) -> Status:
        return publish.unmark_as_publish_area(self.transport, workspace, path)

    # -- queries ----------------------------------------------------------

    def query(
        self,
        workspace: Workspace,
        language: str | QueryLanguage,
        statement: str,
        offset: int = 0,
        limit: int = -1,
        variables: Mapping[str, str] | None = None,
    ) -> list[QueryRow]:
        return query.query(self.transport, workspace, language, statement, offset, limit, variables)

    def plan_for_query(
        self,
        workspace: Workspace,
        language: str | QueryLanguage,
        statement: str,
        offset: int = 0,
        limit: int = -1,
        variables: Mapping[str, str] | None = None,
    ) -> str:
        return query.plan_for_query(self.transport, workspace, language, statement, offset, limit, variables)
