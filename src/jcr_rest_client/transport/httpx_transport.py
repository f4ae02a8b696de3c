from __future__ import annotations

import httpx

from jcr_rest_client.core.ports.transport import RequestMethod
from jcr_rest_client.errors import TransportError
from jcr_rest_client.models import Server
from jcr_rest_client.transport.base import JSON_CONTENT_TYPE, BufferedConnection


class HttpxConnection(BufferedConnection):
    def __init__(self, client: httpx.Client, server: Server, url: str, method: RequestMethod) -> None:
        super().__init__(server, url, method)
        self._client = client

    def _send(self, body: bytes, content_type: str | None) -> tuple[int, str]:
        headers = {"Accept": JSON_CONTENT_TYPE}
        if content_type is not None:
            headers["Content-Type"] = content_type
        try:
            response = self._client.request(
                self.method.value,
                self.url,
                content=body or None,
                headers=headers,
                auth=httpx.BasicAuth(self.server.user, self.server.password),
            )
        except httpx.HTTPError as err:
            raise TransportError(f"{self.method.value} {self.url} failed: {err}") from err
        return response.status_code, response.text


class HttpxTransport:
    """Transport backed by a shared ``httpx.Client``.

    Implements the ``Transport`` protocol.
    """

    def __init__(self, timeout: float = 30.0, client: httpx.Client | None = None) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout), follow_redirects=True)

    def connect(self, server: Server, url: str, method: RequestMethod) -> HttpxConnection:
        return HttpxConnection(self._client, server, url, method)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
