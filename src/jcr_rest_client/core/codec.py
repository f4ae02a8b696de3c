"""Mapping between domain objects and the JSON documents exchanged with the server."""

from __future__ import annotations

import base64
import binascii
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from jcr_rest_client.errors import ProtocolDecodeError
from jcr_rest_client.models import NodeType, QueryRow, Repository, Server, Workspace

PROPERTIES_KEY = "properties"
CHILDREN_KEY = "children"
REPOSITORIES_KEY = "repositories"
WORKSPACES_KEY = "workspaces"
NAME_KEY = "name"
TYPES_KEY = "types"
ROWS_KEY = "rows"

# Wire column names carrying base64 binary values end with this marker.
BASE64_SUFFIX = "_base64"

PRIMARY_TYPE_PROPERTY = "jcr:primaryType"
MIXIN_TYPES_PROPERTY = "jcr:mixinTypes"
CONTENT_PROPERTY = "jcr:content"
DATA_PROPERTY = "jcr:data"
LAST_MODIFIED = "jcr:lastModified"
MIME_TYPE = "jcr:mimeType"
TITLE_PROPERTY = "jcr:title"
DESCRIPTION_PROPERTY = "jcr:description"

FOLDER_NODE_TYPE = "nt:folder"
FILE_NODE_TYPE = "nt:file"
RESOURCE_NODE_TYPE = "nt:resource"
VERSIONABLE_NODE_TYPE = "mix:versionable"
PUBLISH_AREA_NODE_TYPE = "mode:publishArea"

NODE_TYPE_NAME = "jcr:nodeTypeName"
SUPERTYPES = "jcr:supertypes"
IS_MIXIN = "jcr:isMixin"
IS_ABSTRACT = "jcr:isAbstract"
IS_QUERYABLE = "jcr:isQueryable"
PRIMARY_ITEM_NAME = "jcr:primaryItemName"
PROPERTY_DEFINITION = "jcr:propertyDefinition"
CHILD_NODE_DEFINITION = "jcr:childNodeDefinition"
DEFINITION_NAME = "jcr:name"


class ProtocolVersion(Enum):
    V1 = 1
    V2 = 2


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def format_timestamp(value: datetime | float) -> str:
    """Format a datetime or POSIX timestamp as ``yyyy-MM-ddTHH:mm:ss.SSSZ`` in UTC."""
    if isinstance(value, datetime):
        dt = value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    else:
        dt = datetime.fromtimestamp(value, tz=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def encode_value(value: Any) -> Any:
    if isinstance(value, bytes | bytearray):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, list | tuple):
        return [encode_value(v) for v in value]
    return value


def encode_document(
    properties: Mapping[str, Any],
    children: Mapping[str, Mapping[str, Any]] | None = None,
) -> dict[str, Any]:
    doc: dict[str, Any] = {PROPERTIES_KEY: {k: encode_value(v) for k, v in properties.items()}}
    if children:
        doc[CHILDREN_KEY] = {name: dict(child) for name, child in children.items()}
    return doc


def to_json_bytes(document: Mapping[str, Any]) -> bytes:
    return json.dumps(document).encode("utf-8")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def parse_json(body: str) -> Any:
    try:
        return json.loads(body)
    except (json.JSONDecodeError, TypeError) as err:
        raise ProtocolDecodeError("Response body is not valid JSON", body) from err


def _expect_object(value: Any, body: str, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ProtocolDecodeError(f"Expected a JSON object for {what}", body)
    return value


def determine_version(body: str) -> ProtocolVersion:
    doc = _expect_object(parse_json(body), body, "the repository listing")
    if isinstance(doc.get(REPOSITORIES_KEY), list):
        return ProtocolVersion.V2
    return ProtocolVersion.V1


def _names_from(doc: dict[str, Any], collection_key: str, body: str) -> list[str]:
    """Entry names from either ``{key: [{"name": ...}]}`` or a flat ``{name: {...}}`` document."""
    entries = doc.get(collection_key)
    if isinstance(entries, list):
        names: list[str] = []
        for entry in entries:
            if isinstance(entry, dict) and isinstance(entry.get(NAME_KEY), str):
                names.append(entry[NAME_KEY])
            elif isinstance(entry, str):
                names.append(entry)
            else:
                raise ProtocolDecodeError(f"Malformed entry in '{collection_key}'", body)
        return names
    return list(doc)


def decode_repositories(body: str, server: Server) -> list[Repository]:
    doc = _expect_object(parse_json(body), body, "the repository listing")
    return [Repository(name=name, server=server) for name in _names_from(doc, REPOSITORIES_KEY, body)]


def decode_workspaces(body: str, repository: Repository) -> list[Workspace]:
    doc = _expect_object(parse_json(body), body, "the workspace listing")
    return [Workspace(name=name, repository=repository) for name in _names_from(doc, WORKSPACES_KEY, body)]


def _cell_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


def decode_query_result(body: str) -> list[QueryRow]:
    result = _expect_object(parse_json(body), body, "the query result")

    raw_types = result.get(TYPES_KEY, {})
    if not isinstance(raw_types, dict):
        raise ProtocolDecodeError("Expected an object under 'types'", body)
    column_types: Mapping[str, str] = MappingProxyType({name: str(t) for name, t in raw_types.items()})

    if ROWS_KEY not in result:
        raise ProtocolDecodeError("Query result has no 'rows'", body)
    rows = result[ROWS_KEY]
    if not isinstance(rows, list):
        raise ProtocolDecodeError("Expected an array under 'rows'", body)

    query_rows: list[QueryRow] = []
    for row in rows:
        row = _expect_object(row, body, "a query row")
        values: dict[str, str | bytes] = {}
        for name, value in row.items():
            if name.endswith(BASE64_SUFFIX):
                try:
                    data = base64.b64decode(_cell_text(value), validate=True)
                except (binascii.Error, ValueError) as err:
                    raise ProtocolDecodeError(f"Column '{name}' is not valid base64", body) from err
                values[name[: -len(BASE64_SUFFIX)]] = data
            else:
                values[name] = _cell_text(value)
        query_rows.append(QueryRow(column_types=column_types, values=values))
    return query_rows


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _as_names(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, list):
        return tuple(str(v) for v in value)
    return (str(value),)


def _decode_node_type(key: str, node: dict[str, Any], body: str) -> NodeType:
    props = _expect_object(node.get(PROPERTIES_KEY, {}), body, f"the properties of node type '{key}'")
    children = _expect_object(node.get(CHILDREN_KEY, {}), body, f"the children of node type '{key}'")

    property_definitions: list[str] = []
    child_node_definitions: list[str] = []
    for child_key, child in children.items():
        child_props = _expect_object(child, body, f"definition '{child_key}'").get(PROPERTIES_KEY, {})
        name = str(child_props.get(DEFINITION_NAME, "*"))
        if child_key.startswith(PROPERTY_DEFINITION):
            property_definitions.append(name)
        elif child_key.startswith(CHILD_NODE_DEFINITION):
            child_node_definitions.append(name)

    primary_item = props.get(PRIMARY_ITEM_NAME)
    return NodeType(
        name=str(props.get(NODE_TYPE_NAME, key)),
        supertypes=_as_names(props.get(SUPERTYPES)),
        mixin=_as_bool(props.get(IS_MIXIN), False),
        abstract=_as_bool(props.get(IS_ABSTRACT), False),
        queryable=_as_bool(props.get(IS_QUERYABLE), True),
        primary_item_name=str(primary_item) if primary_item else None,
        property_definitions=tuple(property_definitions),
        child_node_definitions=tuple(child_node_definitions),
    )


def decode_node_types(body: str) -> dict[str, NodeType]:
    """Decode the ``jcr:nodeTypes`` subtree into node types keyed by name."""
    doc = _expect_object(parse_json(body), body, "the node type tree")
    children = _expect_object(doc.get(CHILDREN_KEY, {}), body, "the node type children")
    node_types: dict[str, NodeType] = {}
    for key, node in children.items():
        node_type = _decode_node_type(key, _expect_object(node, body, f"node type '{key}'"), body)
        node_types[node_type.name] = node_type
    return node_types


def decode_file_contents(body: str) -> bytes:
    """Return the binary payload of a ``jcr:content`` node document."""
    doc = _expect_object(parse_json(body), body, "the content node")
    props = _expect_object(doc.get(PROPERTIES_KEY), body, "the content node properties")
    if DATA_PROPERTY not in props:
        raise ProtocolDecodeError(f"Content node has no '{DATA_PROPERTY}' property", body)
    try:
        return base64.b64decode(str(props[DATA_PROPERTY]), validate=True)
    except (binascii.Error, ValueError) as err:
        raise ProtocolDecodeError(f"'{DATA_PROPERTY}' is not valid base64", body) from err
