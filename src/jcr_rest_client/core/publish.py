"""Create, update and delete folder and file nodes on the remote repository.

Every remote call opens one connection and releases it before returning.
Multi-step operations re-check remote state before acting, so an interrupted
run can simply be retried.
"""

from __future__ import annotations

import logging
from pathlib import Path

from jcr_rest_client.core.codec import decode_file_contents
from jcr_rest_client.core.nodes import FileNode, FolderNode, file_contents_url, file_url, path_segments
from jcr_rest_client.core.ports.transport import RequestMethod, Transport
from jcr_rest_client.errors import RemoteOperationError
from jcr_rest_client.models import Server, Severity, Status, Workspace

logger = logging.getLogger(__name__)


def _unexpected(status: int, operation: str, message: str) -> RemoteOperationError:
    logger.error("Unexpected response code %s during %s", status, operation)
    return RemoteOperationError(f"{message} (HTTP response code {status})", status)


def _send(
    transport: Transport,
    server: Server,
    url: str,
    method: RequestMethod,
    body: bytes,
) -> int:
    with transport.connect(server, url, method) as connection:
        connection.write(body)
        return connection.response_status()


def path_exists(transport: Transport, server: Server, url: str) -> bool:
    with transport.connect(server, url, RequestMethod.GET) as connection:
        status = connection.response_status()
    logger.debug("path_exists: url=%s, status=%s", url, status)
    return status == 200


def file_exists(transport: Transport, workspace: Workspace, path: str, file: str | Path) -> bool:
    return path_exists(transport, workspace.server, file_url(workspace, path, Path(file).name))


# ---------------------------------------------------------------------------
# Node creation and update
# ---------------------------------------------------------------------------


def create_folder_node(transport: Transport, workspace: Workspace, folder: FolderNode) -> None:
    logger.debug("create_folder_node: %r", folder)
    status = _send(transport, workspace.server, folder.url(), RequestMethod.POST, folder.content())
    if status != 201:
        raise _unexpected(
            status,
            "create_folder_node",
            f"Unable to create folder '{folder.path}' in workspace '{workspace.name}'",
        )


def update_folder_node(transport: Transport, workspace: Workspace, folder: FolderNode) -> None:
    logger.debug("update_folder_node: %r", folder)
    status = _send(transport, workspace.server, folder.url(), RequestMethod.PUT, folder.content())
    if status != 200:
        raise _unexpected(
            status,
            "update_folder_node",
            f"Unable to update folder '{folder.path}' in workspace '{workspace.name}'",
        )


def create_file_node(transport: Transport, workspace: Workspace, node: FileNode) -> None:
    logger.debug("create_file_node: %r", node)
    status = _send(transport, workspace.server, node.terse_url(), RequestMethod.POST, node.content())
    if status != 201:
        raise _unexpected(
            status,
            "create_file_node",
            f"Unable to create file '{node.name}' at '{node.path}' in workspace '{workspace.name}'",
        )


def update_file_node(transport: Transport, workspace: Workspace, node: FileNode) -> None:
    logger.debug("update_file_node: %r", node)
    status = _send(transport, workspace.server, node.terse_url(), RequestMethod.PUT, node.content())
    if status != 200:
        raise _unexpected(
            status,
            "update_file_node",
            f"Unable to update file '{node.name}' at '{node.path}' in workspace '{workspace.name}'",
        )


def ensure_folder_exists(transport: Transport, workspace: Workspace, folder_path: str) -> None:
    """Create every missing folder of ``folder_path``, parents before children.

    The full path is checked first. When it is missing, each ancestor is checked
    root-to-leaf; once one ancestor had to be created, its descendants are known
    to be missing and are created without further checks.
    """
    logger.debug("ensure_folder_exists: workspace=%s, path=%s", workspace.name, folder_path)
    segments = path_segments(folder_path)
    if not segments:
        return
    if path_exists(transport, workspace.server, FolderNode(workspace, folder_path).url()):
        return

    current = ""
    missing = False
    for index, segment in enumerate(segments):
        current = f"{current}/{segment}"
        folder = FolderNode(workspace, current)
        is_leaf = index == len(segments) - 1
        if missing or is_leaf or not path_exists(transport, workspace.server, folder.url()):
            create_folder_node(transport, workspace, folder)
            missing = True


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


def publish(
    transport: Transport,
    workspace: Workspace,
    path: str,
    file: str | Path,
    versionable: bool = False,
) -> Status:
    """Create or overwrite ``file`` below the folder at ``path``. Never raises."""
    logger.debug("publish: workspace=%s, path=%s, file=%s", workspace.name, path, file)
    try:
        node = FileNode(workspace, path, file, versionable)
        if path_exists(transport, workspace.server, node.url()):
            update_file_node(transport, workspace, node)
        else:
            ensure_folder_exists(transport, workspace, path)
            create_file_node(transport, workspace, node)
    except Exception as err:
        return Status(
            Severity.ERROR,
            f"Publishing '{file}' to '{path}' in workspace '{workspace.name}' failed",
            err,
        )
    return Status.OK


def unpublish(transport: Transport, workspace: Workspace, path: str, file: str | Path) -> Status:
    """Delete the published copy of ``file``. A file that was never published yields an INFO status."""
    logger.debug("unpublish: workspace=%s, path=%s, file=%s", workspace.name, path, file)
    failure = f"Unpublishing '{file}' from '{path}' in workspace '{workspace.name}' failed"
    try:
        url = file_url(workspace, path, Path(file).name)
        with transport.connect(workspace.server, url, RequestMethod.DELETE) as connection:
            status = connection.response_status()
        if status == 204:
            return Status.OK
        if not path_exists(transport, workspace.server, url):
            return Status(
                Severity.INFO,
                f"'{Path(file).name}' was never published to '{path}' in workspace '{workspace.name}'",
            )
        raise _unexpected(status, "unpublish", failure)
    except Exception as err:
        return Status(Severity.ERROR, failure, err)


def mark_as_publish_area(
    transport: Transport,
    workspace: Workspace,
    path: str,
    title: str | None = None,
    description: str | None = None,
) -> Status:
    logger.debug(
        "mark_as_publish_area: workspace=%s, path=%s, title=%s, description=%s",
        workspace.name,
        path,
        title,
        description,
    )
    if path.endswith("/"):
        path = path[: path.rindex("/")]
    try:
        parent = path.rpartition("/")[0]
        if parent:
            ensure_folder_exists(transport, workspace, parent)

        area = FolderNode(workspace, path)
        area.mark_as_publish_area(title, description)
        if path_exists(transport, workspace.server, area.url()):
            update_folder_node(transport, workspace, area)
        else:
            create_folder_node(transport, workspace, area)
    except Exception as err:
        return Status(
            Severity.ERROR,
            f"Unable to mark '{path}' in workspace '{workspace.name}' as a publish area",
            err,
        )
    return Status.OK


def unmark_as_publish_area(transport: Transport, workspace: Workspace, path: str) -> Status:
    logger.debug("unmark_as_publish_area: workspace=%s, path=%s", workspace.name, path)
    try:
        area = FolderNode(workspace, path)
        if not path_exists(transport, workspace.server, area.url()):
            return Status.OK
        area.unmark_as_publish_area()
        update_folder_node(transport, workspace, area)
    except Exception as err:
        return Status(
            Severity.ERROR,
            f"Unable to unmark '{path}' in workspace '{workspace.name}' as a publish area",
            err,
        )
    return Status.OK


def get_file_contents(transport: Transport, workspace: Workspace, path: str, file: str | Path) -> bytes | None:
    """Fetch the published bytes of ``file``, or ``None`` when it is not published."""
    url = file_contents_url(workspace, path, Path(file).name)
    with transport.connect(workspace.server, url, RequestMethod.GET) as connection:
        status = connection.response_status()
        if status != 200:
            return None
        return decode_file_contents(connection.read())
