"""An in-process stand-in for a repository server, used by tests and dry runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

from jcr_rest_client.core.codec import CHILDREN_KEY, CONTENT_PROPERTY, ProtocolVersion
from jcr_rest_client.core.discovery import LEGACY_API_SEGMENT
from jcr_rest_client.core.nodes import ITEMS_SEGMENT, NODE_TYPES_PATH, QUERY_PLAN_SEGMENT, QUERY_SEGMENT
from jcr_rest_client.core.ports.transport import RequestMethod
from jcr_rest_client.models import Server
from jcr_rest_client.transport.base import BufferedConnection


@dataclass(frozen=True)
class RecordedRequest:
    method: RequestMethod
    url: str
    body: bytes
    content_type: str | None


@dataclass
class InMemoryWorkspace:
    nodes: dict[str, dict[str, Any]] = field(default_factory=lambda: {"/": {}})


class InMemoryConnection(BufferedConnection):
    def __init__(self, transport: InMemoryTransport, server: Server, url: str, method: RequestMethod) -> None:
        super().__init__(server, url, method)
        self._transport = transport

    def _send(self, body: bytes, content_type: str | None) -> tuple[int, str]:
        return self._transport.handle(self.method, self.url, body, content_type)

    def disconnect(self) -> None:
        if not self._closed:
            self._transport.open_connections -= 1
        super().disconnect()


class InMemoryTransport:
    """Serve the repository protocol from dictionaries.

    Implements the ``Transport`` protocol. Every request is recorded in
    ``requests`` and every created node path in ``created``.
    ``overrides`` maps ``(method, node path)`` to a status code returned instead
    of performing the operation.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:8080/resources",
        repositories: dict[str, list[str]] | None = None,
        version: ProtocolVersion = ProtocolVersion.V1,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.version = version
        layout = repositories if repositories is not None else {"repo": ["default", "system"]}
        self.repositories: dict[str, dict[str, InMemoryWorkspace]] = {
            repo: {ws: InMemoryWorkspace() for ws in workspaces} for repo, workspaces in layout.items()
        }
        self.requests: list[RecordedRequest] = []
        self.created: list[str] = []
        self.overrides: dict[tuple[RequestMethod, str], int] = {}
        self.query_response = json.dumps({"types": {}, "rows": []})
        self.plan_response = "plan"
        self.node_types_response = json.dumps({"children": {}})
        self.discovery_status = 200
        self.open_connections = 0
        self.closed = False

    def connect(self, server: Server, url: str, method: RequestMethod) -> InMemoryConnection:
        self.open_connections += 1
        return InMemoryConnection(self, server, url, method)

    def close(self) -> None:
        self.closed = True

    # -- fixtures ---------------------------------------------------------

    def workspace(self, repository: str = "repo", workspace: str = "default") -> InMemoryWorkspace:
        return self.repositories[repository][workspace]

    def add_node(
        self,
        path: str,
        document: dict[str, Any] | None = None,
        repository: str = "repo",
        workspace: str = "default",
    ) -> None:
        self.workspace(repository, workspace).nodes[_normalize(path)] = document or {}

    def has_node(self, path: str, repository: str = "repo", workspace: str = "default") -> bool:
        return _normalize(path) in self.workspace(repository, workspace).nodes

    def node(self, path: str, repository: str = "repo", workspace: str = "default") -> dict[str, Any]:
        return self.workspace(repository, workspace).nodes[_normalize(path)]

    def methods(self) -> list[RequestMethod]:
        return [r.method for r in self.requests]

    # -- request handling -------------------------------------------------

    def handle(self, method: RequestMethod, url: str, body: bytes, content_type: str | None) -> tuple[int, str]:
        self.requests.append(RecordedRequest(method, url, body, content_type))
        address = url.split("?", 1)[0].rstrip("/")

        if address == self.base_url:
            return self._discovery(method)

        root = self.base_url
        if self.version is ProtocolVersion.V2:
            root = f"{self.base_url}/{LEGACY_API_SEGMENT}"
            if address == root:
                return self._discovery(method, flat=True)
        if not address.startswith(root + "/"):
            return 404, ""

        parts = [unquote(p) for p in address[len(root) + 1 :].split("/")]
        repo = self.repositories.get(parts[0])
        if repo is None:
            return 404, ""
        if len(parts) == 1:
            if method is not RequestMethod.GET:
                return 405, ""
            return 200, json.dumps({name: {"resources": {}} for name in repo})

        ws = repo.get(parts[1])
        if ws is None:
            return 404, ""
        if len(parts) == 3 and parts[2] == QUERY_SEGMENT and method is RequestMethod.POST:
            return 200, self.query_response
        if len(parts) == 3 and parts[2] == QUERY_PLAN_SEGMENT and method is RequestMethod.POST:
            return 200, self.plan_response
        if len(parts) < 3 or parts[2] != ITEMS_SEGMENT:
            return 404, ""

        path = _normalize("/".join(parts[3:]))
        override = self.overrides.get((method, path))
        if override is not None:
            return override, ""
        return self._item(ws, method, path, body)

    def _discovery(self, method: RequestMethod, flat: bool = False) -> tuple[int, str]:
        if method is not RequestMethod.GET:
            return 405, ""
        if self.discovery_status != 200:
            return self.discovery_status, ""
        if self.version is ProtocolVersion.V2 and not flat:
            return 200, json.dumps({"repositories": [{"name": name} for name in self.repositories]})
        return 200, json.dumps({name: {"resources": {}} for name in self.repositories})

    def _item(self, ws: InMemoryWorkspace, method: RequestMethod, path: str, body: bytes) -> tuple[int, str]:
        nodes = ws.nodes
        if method is RequestMethod.GET:
            if path == NODE_TYPES_PATH:
                return 200, self.node_types_response
            if path in nodes:
                return 200, json.dumps(nodes[path])
            parent, _, name = path.rpartition("/")
            if name == CONTENT_PROPERTY and (parent or "/") in nodes:
                child = nodes[parent or "/"].get(CHILDREN_KEY, {}).get(CONTENT_PROPERTY)
                if child is not None:
                    return 200, json.dumps(child)
            return 404, ""

        if method is RequestMethod.POST:
            if path in nodes:
                return 409, ""
            if _parent(path) not in nodes:
                return 404, ""
            nodes[path] = json.loads(body) if body else {}
            self.created.append(path)
            return 201, ""

        if method is RequestMethod.PUT:
            if path not in nodes:
                return 404, ""
            nodes[path] = json.loads(body) if body else {}
            return 200, ""

        if method is RequestMethod.DELETE:
            if path not in nodes or path == "/":
                return 404, ""
            for key in [k for k in nodes if k == path or k.startswith(path + "/")]:
                del nodes[key]
            return 204, ""

        return 405, ""


def _normalize(path: str) -> str:
    return "/" + "/".join(s for s in path.split("/") if s)


def _parent(path: str) -> str:
    parent = path.rpartition("/")[0]
    return parent or "/"
