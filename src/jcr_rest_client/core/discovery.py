"""Server validation, protocol version detection and repository discovery."""

from __future__ import annotations

import logging

from jcr_rest_client.core.codec import (
    ProtocolVersion,
    decode_node_types,
    decode_repositories,
    decode_workspaces,
    determine_version,
)
from jcr_rest_client.core.nodes import NodeTypeNode, RepositoryNode, ServerNode
from jcr_rest_client.core.ports.transport import RequestMethod, Transport
from jcr_rest_client.errors import RemoteOperationError, ServerValidationError, TransportError
from jcr_rest_client.models import NodeType, Repository, Server, Workspace

logger = logging.getLogger(__name__)

# Version 2 servers only expose the node publishing protocol under this sub-path.
LEGACY_API_SEGMENT = "v1"
DEFAULT_WORKSPACE = "default"
SYSTEM_WORKSPACE = "system"


def legacy_api_url(url: str) -> str:
    base = url.strip()
    if not base.endswith("/"):
        base += "/"
    return base + LEGACY_API_SEGMENT


def validate(transport: Transport, server: Server) -> Server:
    """Check that ``server`` answers discovery requests and return it with its effective base URL."""
    logger.debug("validate: server=%s", server.url)
    url = ServerNode(server).find_repositories_url()
    try:
        with transport.connect(server, url, RequestMethod.GET) as connection:
            status = connection.response_status()
            if status != 200:
                logger.error("Unexpected response code %s during %s", status, "validate")
                raise ServerValidationError(server.url, status)
            body = connection.read()
    except TransportError as err:
        raise ServerValidationError(server.url, message=f"Unable to reach server '{server.url}': {err}") from err

    version = determine_version(body)
    if version is ProtocolVersion.V2:
        logger.debug("validate: found version 2 server at %s", server.url)
        return server.as_validated(legacy_api_url(server.url))
    logger.debug("validate: found version 1 server at %s", server.url)
    return server.as_validated(server.url)


def get_repositories(transport: Transport, server: Server) -> list[Repository]:
    logger.debug("get_repositories: server=%s", server.url)
    url = ServerNode(server).find_repositories_url()
    with transport.connect(server, url, RequestMethod.GET) as connection:
        status = connection.response_status()
        if status == 200:
            return decode_repositories(connection.read(), server)
    logger.error("Unexpected response code %s during %s", status, "get_repositories")
    raise RemoteOperationError(
        f"Unable to get the repositories of server '{server.name}' (HTTP response code {status})", status
    )


def get_workspaces(transport: Transport, repository: Repository) -> list[Workspace]:
    logger.debug("get_workspaces: repository=%s", repository.name)
    url = RepositoryNode(repository).url()
    with transport.connect(repository.server, url, RequestMethod.GET) as connection:
        status = connection.response_status()
        if status == 200:
            return decode_workspaces(connection.read(), repository)
    logger.error("Unexpected response code %s during %s", status, "get_workspaces")
    raise RemoteOperationError(
        f"Unable to get the workspaces of repository '{repository.name}' on server "
        f"'{repository.server.name}' (HTTP response code {status})",
        status,
    )


def select_node_type_workspace(workspaces: list[Workspace]) -> Workspace:
    """Prefer ``default``, then the first workspace other than ``system``, then ``system``."""
    chosen: Workspace | None = None
    system: Workspace | None = None
    for ws in workspaces:
        name = ws.name.lower()
        if name == DEFAULT_WORKSPACE:
            return ws
        if name == SYSTEM_WORKSPACE:
            system = ws
        elif chosen is None:
            chosen = ws
    if chosen is not None:
        return chosen
    if system is not None:
        return system
    raise RemoteOperationError("The repository has no workspaces")


def get_node_types(transport: Transport, repository: Repository) -> dict[str, NodeType]:
    logger.debug("get_node_types: repository=%s", repository.name)
    workspace = select_node_type_workspace(get_workspaces(transport, repository))
    node = NodeTypeNode(workspace)
    url = node.url()
    with transport.connect(workspace.server, url, RequestMethod.GET) as connection:
        status = connection.response_status()
        if status == 200:
            return decode_node_types(connection.read())
    logger.error("Unexpected response code %s during %s", status, "get_node_types")
    raise RemoteOperationError(f"Unable to get the node types at '{url}' (HTTP response code {status})", status)
