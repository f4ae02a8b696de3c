"""Tests for node URLs and JSON documents."""

from __future__ import annotations

import base64
import json
import os
from pathlib import Path

import pytest

from jcr_rest_client.core.nodes import (
    FileNode,
    FolderNode,
    NodeTypeNode,
    RepositoryNode,
    ServerNode,
    WorkspaceNode,
    encode_path,
    guess_mime_type,
)
from jcr_rest_client.errors import LocalIOError
from jcr_rest_client.models import Workspace

BASE = "http://localhost:8080/resources"


class TestEncodePath:
    def test_root_encodes_to_empty(self) -> None:
        assert encode_path("/") == ""
        assert encode_path("") == ""

    def test_segments_are_encoded_individually(self) -> None:
        assert encode_path("/my docs/a&b") == "/my%20docs/a%26b"

    def test_duplicate_and_trailing_separators_are_collapsed(self) -> None:
        assert encode_path("a//b/") == "/a/b"


class TestDescriptorNodes:
    def test_server_node_uses_server_url(self, workspace: Workspace) -> None:
        assert ServerNode(workspace.server).find_repositories_url() == BASE

    def test_repository_and_workspace_urls(self, workspace: Workspace) -> None:
        assert RepositoryNode(workspace.repository).url() == f"{BASE}/repo"
        node = WorkspaceNode(workspace)
        assert node.url() == f"{BASE}/repo/default"
        assert node.items_url() == f"{BASE}/repo/default/items"
        assert node.query_url() == f"{BASE}/repo/default/query"
        assert node.query_plan_url() == f"{BASE}/repo/default/queryPlan"

    def test_node_type_url(self, workspace: Workspace) -> None:
        assert NodeTypeNode(workspace).url() == f"{BASE}/repo/default/items/jcr:system/jcr:nodeTypes?mode:depth=-1"

    def test_trailing_slash_on_server_url_is_ignored(self, workspace: Workspace) -> None:
        server = workspace.server.model_copy(update={"url": BASE + "/"})
        ws = workspace.model_copy(update={"repository": workspace.repository.model_copy(update={"server": server})})
        assert FolderNode(ws, "/a").url() == f"{BASE}/repo/default/items/a"


class TestFolderNode:
    def test_url(self, workspace: Workspace) -> None:
        assert FolderNode(workspace, "/docs/2024 reports").url() == f"{BASE}/repo/default/items/docs/2024%20reports"

    def test_document(self, workspace: Workspace) -> None:
        assert FolderNode(workspace, "/docs").to_document() == {"properties": {"jcr:primaryType": "nt:folder"}}

    def test_publish_area_document(self, workspace: Workspace) -> None:
        folder = FolderNode(workspace, "/site")
        folder.mark_as_publish_area("Site", "Public pages")
        assert folder.to_document() == {
            "properties": {
                "jcr:primaryType": "nt:folder",
                "jcr:mixinTypes": ["mode:publishArea"],
                "jcr:title": "Site",
                "jcr:description": "Public pages",
            }
        }

    def test_unmarked_publish_area_clears_marker(self, workspace: Workspace) -> None:
        folder = FolderNode(workspace, "/site")
        folder.unmark_as_publish_area()
        props = folder.to_document()["properties"]
        assert props["jcr:mixinTypes"] == []
        assert props["jcr:title"] is None
        assert props["jcr:description"] is None

    def test_content_is_json(self, workspace: Workspace) -> None:
        folder = FolderNode(workspace, "/docs")
        assert json.loads(folder.content()) == folder.to_document()


class TestFileNode:
    def test_url_is_folder_url_plus_encoded_name(self, workspace: Workspace, tmp_path: Path) -> None:
        file_path = tmp_path / "my file.txt"
        file_path.write_text("x")
        node = FileNode(workspace, "/docs", file_path)
        assert node.url() == f"{BASE}/repo/default/items/docs/my%20file.txt"
        assert node.terse_url() == f"{BASE}/repo/default/items/docs/my%20file.txt?mode:includeNode=false"
        assert node.file_contents_url() == f"{BASE}/repo/default/items/docs/my%20file.txt/jcr:content"

    def test_file_at_root(self, workspace: Workspace, sample_file: Path) -> None:
        assert FileNode(workspace, "/", sample_file).url() == f"{BASE}/repo/default/items/notes.txt"

    def test_document_without_content(self, workspace: Workspace, sample_file: Path) -> None:
        os.utime(sample_file, ns=(0, 1_700_000_000_123_000_000))
        doc = FileNode(workspace, "/docs", sample_file).to_document()
        assert doc["properties"] == {"jcr:primaryType": "nt:file"}
        content = doc["children"]["jcr:content"]["properties"]
        assert content == {
            "jcr:primaryType": "nt:resource",
            "jcr:lastModified": "2023-11-14T22:13:20.123Z",
            "jcr:mimeType": "text/plain",
        }

    def test_versionable_adds_mixin(self, workspace: Workspace, sample_file: Path) -> None:
        doc = FileNode(workspace, "/docs", sample_file, versionable=True).to_document()
        assert doc["properties"]["jcr:mixinTypes"] == ["mix:versionable"]

    def test_document_is_stable_until_content_requested(self, workspace: Workspace, sample_file: Path) -> None:
        node = FileNode(workspace, "/docs", sample_file)
        first_url, first_doc = node.url(), node.to_document()
        assert node.url() == first_url
        assert node.to_document() == first_doc
        assert "jcr:data" not in first_doc["children"]["jcr:content"]["properties"]

    def test_content_carries_base64_payload(self, workspace: Workspace, sample_file: Path) -> None:
        node = FileNode(workspace, "/docs", sample_file)
        body = json.loads(node.content())
        data = body["children"]["jcr:content"]["properties"]["jcr:data"]
        assert base64.b64decode(data) == sample_file.read_bytes()
        assert "jcr:data" not in node.to_document()["children"]["jcr:content"]["properties"]

    def test_binary_payload_round_trips(self, workspace: Workspace, tmp_path: Path) -> None:
        payload = bytes(range(256)) * 4
        file_path = tmp_path / "blob.bin"
        file_path.write_bytes(payload)
        node = FileNode(workspace, "/bin", file_path)
        encoded = node.to_document(include_data=True)["children"]["jcr:content"]["properties"]["jcr:data"]
        assert encoded == node.read_file()
        assert base64.b64decode(encoded) == payload

    def test_missing_file_fails_at_construction(self, workspace: Workspace, tmp_path: Path) -> None:
        with pytest.raises(LocalIOError):
            FileNode(workspace, "/docs", tmp_path / "missing.txt")

    def test_directory_is_rejected(self, workspace: Workspace, tmp_path: Path) -> None:
        with pytest.raises(LocalIOError):
            FileNode(workspace, "/docs", tmp_path)

    def test_construction_does_not_read_bytes(self, workspace: Workspace, sample_file: Path) -> None:
        node = FileNode(workspace, "/docs", sample_file)
        sample_file.unlink()
        assert node.url().endswith("/notes.txt")
        with pytest.raises(LocalIOError):
            node.content()


class TestGuessMimeType:
    def test_known_extension(self) -> None:
        assert guess_mime_type(Path("page.html")) == "text/html"

    def test_unknown_extension_defaults(self) -> None:
        assert guess_mime_type(Path("data.unknownext")) == "application/octet-stream"
