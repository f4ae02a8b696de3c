"""Tests for JSON encoding and decoding of protocol documents."""

from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest

from jcr_rest_client.core.codec import (
    ProtocolVersion,
    decode_file_contents,
    decode_node_types,
    decode_query_result,
    decode_repositories,
    decode_workspaces,
    determine_version,
    encode_document,
    format_timestamp,
)
from jcr_rest_client.errors import ProtocolDecodeError
from jcr_rest_client.models import Repository, Server


@pytest.fixture
def plain_server() -> Server:
    return Server(url="http://localhost:8080/resources")


class TestFormatTimestamp:
    def test_posix_timestamp(self) -> None:
        assert format_timestamp(0) == "1970-01-01T00:00:00.000Z"

    def test_milliseconds_are_kept(self) -> None:
        assert format_timestamp(1.5) == "1970-01-01T00:00:01.500Z"

    def test_aware_datetime_is_converted_to_utc(self) -> None:
        dt = datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(dt) == "2024-01-01T10:00:00.000Z"


class TestEncodeDocument:
    def test_children_omitted_when_empty(self) -> None:
        assert encode_document({"jcr:primaryType": "nt:folder"}) == {"properties": {"jcr:primaryType": "nt:folder"}}

    def test_bytes_are_base64(self) -> None:
        doc = encode_document({"jcr:data": b"abc"})
        assert doc["properties"]["jcr:data"] == "YWJj"


class TestDetermineVersion:
    def test_v2_lists_repositories(self) -> None:
        assert determine_version('{"repositories": [{"name": "repo"}]}') is ProtocolVersion.V2

    def test_v1_is_flat(self) -> None:
        assert determine_version('{"repo": {"resources": {}}}') is ProtocolVersion.V1

    def test_invalid_json(self) -> None:
        with pytest.raises(ProtocolDecodeError):
            determine_version("<html>")


class TestDecodeRepositories:
    def test_v2_form(self, plain_server: Server) -> None:
        repos = decode_repositories('{"repositories": [{"name": "a"}, {"name": "b"}]}', plain_server)
        assert [r.name for r in repos] == ["a", "b"]
        assert all(r.server is plain_server for r in repos)

    def test_v1_form(self, plain_server: Server) -> None:
        repos = decode_repositories('{"a": {"resources": {}}, "b": {}}', plain_server)
        assert [r.name for r in repos] == ["a", "b"]

    def test_empty(self, plain_server: Server) -> None:
        assert decode_repositories("{}", plain_server) == []

    def test_malformed_entry(self, plain_server: Server) -> None:
        with pytest.raises(ProtocolDecodeError):
            decode_repositories('{"repositories": [{"title": "a"}]}', plain_server)

    def test_not_an_object(self, plain_server: Server) -> None:
        with pytest.raises(ProtocolDecodeError):
            decode_repositories("[1, 2]", plain_server)


class TestDecodeWorkspaces:
    def test_flat_form(self, plain_server: Server) -> None:
        repo = Repository(name="repo", server=plain_server)
        workspaces = decode_workspaces('{"default": {}, "system": {}}', repo)
        assert [w.name for w in workspaces] == ["default", "system"]
        assert workspaces[0].repository is repo

    def test_list_form(self, plain_server: Server) -> None:
        repo = Repository(name="repo", server=plain_server)
        workspaces = decode_workspaces('{"workspaces": [{"name": "default"}]}', repo)
        assert [w.name for w in workspaces] == ["default"]


class TestDecodeQueryResult:
    def test_rows_share_column_types(self) -> None:
        body = json.dumps(
            {
                "types": {"x": "STRING", "y": "BINARY"},
                "rows": [{"x": "hello", "y_base64": "AAEC"}, {"x": "world"}],
            }
        )
        rows = decode_query_result(body)
        assert len(rows) == 2
        assert rows[0].get_value("x") == "hello"
        assert rows[0].get_value("y") == b"\x00\x01\x02"
        assert "y_base64" not in rows[0]
        assert rows[1].get_value("y") is None
        assert rows[0].column_types is rows[1].column_types
        assert rows[0].get_column_type("y") == "BINARY"

    def test_binary_suffix_is_stripped(self) -> None:
        body = '{"types": {"x": "STRING", "y": "BINARY"}, "rows": [{"x": "hello", "y_base64": "aGk="}]}'
        rows = decode_query_result(body)
        assert rows[0].values == {"x": "hello", "y": b"hi"}
        assert dict(rows[0].column_types) == {"x": "STRING", "y": "BINARY"}

    def test_column_types_are_read_only(self) -> None:
        rows = decode_query_result('{"types": {"x": "STRING"}, "rows": [{"x": "1"}]}')
        with pytest.raises(TypeError):
            rows[0].column_types["x"] = "LONG"  # type: ignore[index]

    def test_non_string_values_are_rendered_as_json(self) -> None:
        rows = decode_query_result('{"types": {}, "rows": [{"n": 3, "b": true, "list": [1, 2]}]}')
        assert rows[0]["n"] == "3"
        assert rows[0]["b"] == "true"
        assert rows[0]["list"] == "[1, 2]"

    def test_empty_rows(self) -> None:
        assert decode_query_result('{"types": {}, "rows": []}') == []

    def test_missing_types_is_allowed(self) -> None:
        rows = decode_query_result('{"rows": [{"x": "1"}]}')
        assert rows[0].get_column_type("x") is None

    def test_missing_rows(self) -> None:
        with pytest.raises(ProtocolDecodeError):
            decode_query_result('{"types": {}}')

    def test_invalid_base64(self) -> None:
        with pytest.raises(ProtocolDecodeError):
            decode_query_result('{"types": {}, "rows": [{"y_base64": "not base64!"}]}')

    def test_error_keeps_body(self) -> None:
        with pytest.raises(ProtocolDecodeError) as excinfo:
            decode_query_result("nope")
        assert excinfo.value.body == "nope"


class TestDecodeNodeTypes:
    def test_decodes_definitions(self) -> None:
        body = json.dumps(
            {
                "children": {
                    "nt:file": {
                        "properties": {
                            "jcr:nodeTypeName": "nt:file",
                            "jcr:supertypes": ["nt:hierarchyNode"],
                            "jcr:isMixin": False,
                            "jcr:isAbstract": "false",
                            "jcr:primaryItemName": "jcr:content",
                        },
                        "children": {
                            "jcr:childNodeDefinition": {"properties": {"jcr:name": "jcr:content"}},
                        },
                    },
                    "mix:versionable": {
                        "properties": {"jcr:supertypes": "mix:referenceable", "jcr:isMixin": "true"},
                        "children": {
                            "jcr:propertyDefinition": {"properties": {"jcr:name": "jcr:versionHistory"}},
                            "jcr:propertyDefinition[2]": {"properties": {"jcr:name": "jcr:baseVersion"}},
                        },
                    },
                }
            }
        )
        types = decode_node_types(body)
        file_type = types["nt:file"]
        assert file_type.supertypes == ("nt:hierarchyNode",)
        assert not file_type.mixin
        assert not file_type.abstract
        assert file_type.queryable
        assert file_type.primary_item_name == "jcr:content"
        assert file_type.child_node_definitions == ("jcr:content",)

        versionable = types["mix:versionable"]
        assert versionable.mixin
        assert versionable.supertypes == ("mix:referenceable",)
        assert versionable.property_definitions == ("jcr:versionHistory", "jcr:baseVersion")

    def test_no_children(self) -> None:
        assert decode_node_types("{}") == {}


class TestDecodeFileContents:
    def test_returns_bytes(self) -> None:
        data = base64.b64encode(b"payload").decode("ascii")
        assert decode_file_contents(json.dumps({"properties": {"jcr:data": data}})) == b"payload"

    def test_missing_data(self) -> None:
        with pytest.raises(ProtocolDecodeError):
            decode_file_contents('{"properties": {}}')

    def test_missing_properties(self) -> None:
        with pytest.raises(ProtocolDecodeError):
            decode_file_contents("{}")
