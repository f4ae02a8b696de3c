"""Addressable remote nodes: URLs and the JSON documents describing their desired state."""

from __future__ import annotations

import base64
import mimetypes
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

from jcr_rest_client.core.codec import (
    CHILDREN_KEY,
    CONTENT_PROPERTY,
    DATA_PROPERTY,
    DESCRIPTION_PROPERTY,
    FILE_NODE_TYPE,
    FOLDER_NODE_TYPE,
    LAST_MODIFIED,
    MIME_TYPE,
    MIXIN_TYPES_PROPERTY,
    PRIMARY_TYPE_PROPERTY,
    PUBLISH_AREA_NODE_TYPE,
    RESOURCE_NODE_TYPE,
    TITLE_PROPERTY,
    VERSIONABLE_NODE_TYPE,
    encode_document,
    format_timestamp,
    to_json_bytes,
)
from jcr_rest_client.errors import LocalIOError
from jcr_rest_client.models import Repository, Server, Workspace

ITEMS_SEGMENT = "items"
QUERY_SEGMENT = "query"
QUERY_PLAN_SEGMENT = "queryPlan"
NODE_TYPES_PATH = "/jcr:system/jcr:nodeTypes"
NODE_TYPES_DEPTH = -1
TERSE_RESPONSE_FLAG = "mode:includeNode=false"
DEFAULT_MIME_TYPE = "application/octet-stream"


def encode_segment(segment: str) -> str:
    return quote(segment, safe="")


def path_segments(path: str) -> list[str]:
    return [s for s in path.split("/") if s]


def encode_path(path: str) -> str:
    """Percent-encode each segment of ``path``; separators are kept. The root encodes to ``""``."""
    return "".join("/" + encode_segment(s) for s in path_segments(path))


def _base_url(server: Server) -> str:
    return server.url.rstrip("/")


class JsonNode(Protocol):
    def url(self) -> str: ...

    def to_document(self) -> dict[str, Any]: ...


@dataclass
class NodeDocument:
    """Properties and embedded child documents of one node."""

    primary_type: str
    mixins: list[str] | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    children: dict[str, dict[str, Any]] = field(default_factory=dict)

    def with_mixin(self, mixin: str) -> None:
        if self.mixins is None:
            self.mixins = []
        if mixin not in self.mixins:
            self.mixins.append(mixin)

    def render(self) -> dict[str, Any]:
        props: dict[str, Any] = {PRIMARY_TYPE_PROPERTY: self.primary_type}
        if self.mixins is not None:
            props[MIXIN_TYPES_PROPERTY] = list(self.mixins)
        props.update(self.properties)
        return encode_document(props, self.children)


# ---------------------------------------------------------------------------
# Descriptor nodes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerNode:
    server: Server

    def url(self) -> str:
        return self.server.url

    def find_repositories_url(self) -> str:
        return self.url()

    def to_document(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class RepositoryNode:
    repository: Repository

    def url(self) -> str:
        return f"{_base_url(self.repository.server)}/{encode_segment(self.repository.name)}"

    def to_document(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class WorkspaceNode:
    workspace: Workspace

    def url(self) -> str:
        return f"{RepositoryNode(self.workspace.repository).url()}/{encode_segment(self.workspace.name)}"

    def items_url(self) -> str:
        return f"{self.url()}/{ITEMS_SEGMENT}"

    def query_url(self) -> str:
        return f"{self.url()}/{QUERY_SEGMENT}"

    def query_plan_url(self) -> str:
        return f"{self.url()}/{QUERY_PLAN_SEGMENT}"

    def to_document(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class NodeTypeNode:
    workspace: Workspace

    def url(self) -> str:
        items = WorkspaceNode(self.workspace).items_url()
        return f"{items}{NODE_TYPES_PATH}?mode:depth={NODE_TYPES_DEPTH}"

    def to_document(self) -> dict[str, Any]:
        return {}


# ---------------------------------------------------------------------------
# Folder and file nodes
# ---------------------------------------------------------------------------


class FolderNode:
    def __init__(self, workspace: Workspace, path: str, primary_type: str = FOLDER_NODE_TYPE) -> None:
        self.workspace = workspace
        self.path = path
        self.document = NodeDocument(primary_type)

    def url(self) -> str:
        return WorkspaceNode(self.workspace).items_url() + encode_path(self.path)

    def mark_as_publish_area(self, title: str | None, description: str | None) -> None:
        self.document.with_mixin(PUBLISH_AREA_NODE_TYPE)
        self.document.properties[TITLE_PROPERTY] = title
        self.document.properties[DESCRIPTION_PROPERTY] = description

    def unmark_as_publish_area(self) -> None:
        # An explicit empty mixin list removes the marker on update.
        self.document.mixins = []
        self.document.properties[TITLE_PROPERTY] = None
        self.document.properties[DESCRIPTION_PROPERTY] = None

    def to_document(self) -> dict[str, Any]:
        return self.document.render()

    def content(self) -> bytes:
        return to_json_bytes(self.to_document())

    def __repr__(self) -> str:
        return f"FolderNode(workspace={self.workspace.name!r}, path={self.path!r})"


class FileNode:
    """A local file published as an ``nt:file`` node below the folder at ``path``.

    Construction only inspects file metadata. The file bytes are read and
    base64-encoded by ``content()``, which is the only place the ``jcr:data``
    property is attached.
    """

    def __init__(self, workspace: Workspace, path: str, file: str | Path, versionable: bool = False) -> None:
        self.workspace = workspace
        self.path = path
        self.file = Path(file)

        if not self.file.is_file():
            raise LocalIOError(f"File '{self.file}' does not exist or is not a regular file")
        if not os.access(self.file, os.R_OK):
            raise LocalIOError(f"File '{self.file}' is not readable")
        try:
            last_modified = self.file.stat().st_mtime
        except OSError as err:
            raise LocalIOError(f"Unable to read metadata of '{self.file}'") from err

        self.document = NodeDocument(FILE_NODE_TYPE)
        if versionable:
            self.document.with_mixin(VERSIONABLE_NODE_TYPE)
        self._resource_properties: dict[str, Any] = {
            PRIMARY_TYPE_PROPERTY: RESOURCE_NODE_TYPE,
            LAST_MODIFIED: format_timestamp(last_modified),
            MIME_TYPE: guess_mime_type(self.file),
        }

    @property
    def name(self) -> str:
        return self.file.name

    def url(self) -> str:
        return file_url(self.workspace, self.path, self.name)

    def terse_url(self) -> str:
        return f"{self.url()}?{TERSE_RESPONSE_FLAG}"

    def file_contents_url(self) -> str:
        return file_contents_url(self.workspace, self.path, self.name)

    def read_file(self) -> str:
        try:
            data = self.file.read_bytes()
        except OSError as err:
            raise LocalIOError(f"Unable to read '{self.file}'") from err
        return base64.b64encode(data).decode("ascii")

    def to_document(self, include_data: bool = False) -> dict[str, Any]:
        resource = dict(self._resource_properties)
        if include_data:
            resource[DATA_PROPERTY] = self.read_file()
        doc = self.document.render()
        doc.setdefault(CHILDREN_KEY, {})[CONTENT_PROPERTY] = encode_document(resource)
        return doc

    def content(self) -> bytes:
        """Materialize the full request body, including the file bytes."""
        return to_json_bytes(self.to_document(include_data=True))

    def __repr__(self) -> str:
        return f"FileNode(workspace={self.workspace.name!r}, path={self.path!r}, file={str(self.file)!r})"


def guess_mime_type(file: Path) -> str:
    mime_type, _ = mimetypes.guess_type(file.name)
    return mime_type or DEFAULT_MIME_TYPE


def file_url(workspace: Workspace, path: str, name: str) -> str:
    return f"{FolderNode(workspace, path).url()}/{encode_segment(name)}"


def file_contents_url(workspace: Workspace, path: str, name: str) -> str:
    return f"{file_url(workspace, path, name)}/{CONTENT_PROPERTY}"
