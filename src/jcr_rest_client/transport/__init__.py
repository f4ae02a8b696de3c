from jcr_rest_client.transport.base import BufferedConnection
from jcr_rest_client.transport.httpx_transport import HttpxConnection, HttpxTransport
from jcr_rest_client.transport.memory import InMemoryConnection, InMemoryTransport, RecordedRequest
from jcr_rest_client.transport.settings import Settings, get_transport, load_settings

__all__ = [
    "BufferedConnection",
    "HttpxConnection",
    "HttpxTransport",
    "InMemoryConnection",
    "InMemoryTransport",
    "RecordedRequest",
    "Settings",
    "get_transport",
    "load_settings",
]
