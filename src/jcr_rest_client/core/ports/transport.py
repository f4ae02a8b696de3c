from enum import Enum
from types import TracebackType
from typing import Protocol

from jcr_rest_client.models import Server


class RequestMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


class Connection(Protocol):
    def write(self, data: bytes) -> None: ...

    def read(self) -> str: ...

    def response_status(self) -> int: ...

    def set_content_type(self, content_type: str) -> None: ...

    def disconnect(self) -> None: ...

    def __enter__(self) -> "Connection": ...

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None: ...


class Transport(Protocol):
    def connect(self, server: Server, url: str, method: RequestMethod) -> Connection: ...

    def close(self) -> None: ...
