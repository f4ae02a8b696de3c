from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field


class Server(BaseModel):
    """A remote repository server and the credentials used to reach it."""

    model_config = ConfigDict(frozen=True)

    url: str
    user: str = "admin"
    password: str = Field(default="admin", repr=False)
    validated: bool = False

    @property
    def name(self) -> str:
        return self.url

    def as_validated(self, url: str) -> Server:
        """Return a copy marked as validated, using ``url`` as the effective base URL."""
        return self.model_copy(update={"url": url, "validated": True})


class Repository(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    server: Server


class Workspace(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    repository: Repository

    @property
    def server(self) -> Server:
        return self.repository.server


class NodeType(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    supertypes: tuple[str, ...] = ()
    mixin: bool = False
    abstract: bool = False
    queryable: bool = True
    primary_item_name: str | None = None
    property_definitions: tuple[str, ...] = ()
    child_node_definitions: tuple[str, ...] = ()


@dataclass(frozen=True)
class QueryRow:
    """One row of a query result.

    ``column_types`` is the same mapping object for every row of a result set.
    Values are ``str`` for textual columns and ``bytes`` for binary ones.
    """

    column_types: Mapping[str, str]
    values: Mapping[str, str | bytes] = field(default_factory=dict)

    def columns(self) -> list[str]:
        return list(self.values)

    def get_value(self, column: str) -> str | bytes | None:
        return self.values.get(column)

    def get_column_type(self, column: str) -> str | None:
        return self.column_types.get(column)

    def __getitem__(self, column: str) -> str | bytes:
        return self.values[column]

    def __contains__(self, column: object) -> bool:
        return column in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)


class Severity(str, Enum):
    OK = "ok"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Status:
    """Outcome of a publish, unpublish or publish-area operation."""

    severity: Severity
    message: str = ""
    exception: BaseException | None = None

    OK: ClassVar[Status]

    @property
    def is_ok(self) -> bool:
        return self.severity is Severity.OK

    @property
    def is_info(self) -> bool:
        return self.severity is Severity.INFO

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR


Status.OK = Status(Severity.OK)
