from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from types import TracebackType

from jcr_rest_client.core.ports.transport import RequestMethod
from jcr_rest_client.models import Server

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class BufferedConnection(ABC):
    """A single request/response exchange.

    The request body is buffered by ``write``; the request is sent on the first
    call to ``response_status`` or ``read`` and the response is kept until
    ``disconnect``.
    """

    def __init__(self, server: Server, url: str, method: RequestMethod) -> None:
        self.server = server
        self.url = url
        self.method = method
        self.content_type: str | None = None
        self._body = bytearray()
        self._response: tuple[int, str] | None = None
        self._closed = False

    def write(self, data: bytes) -> None:
        if self._response is not None:
            raise RuntimeError("Cannot write to a connection after the request was sent")
        self._body.extend(data)

    def set_content_type(self, content_type: str) -> None:
        self.content_type = content_type

    def response_status(self) -> int:
        return self._exchange()[0]

    def read(self) -> str:
        return self._exchange()[1]

    def disconnect(self) -> None:
        self._closed = True
        self._body.clear()

    def __enter__(self) -> BufferedConnection:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.disconnect()

    def _exchange(self) -> tuple[int, str]:
        if self._response is None:
            if self._closed:
                raise RuntimeError("Connection already disconnected")
            content_type = self.content_type
            if content_type is None and self._body:
                content_type = JSON_CONTENT_TYPE
            logger.debug("%s %s (%d bytes)", self.method.value, self.url, len(self._body))
            self._response = self._send(bytes(self._body), content_type)
            logger.debug("%s %s -> %s", self.method.value, self.url, self._response[0])
        return self._response

    @abstractmethod
    def _send(self, body: bytes, content_type: str | None) -> tuple[int, str]: ...
