import os
from dataclasses import dataclass

from jcr_rest_client.transport.httpx_transport import HttpxTransport

DEFAULT_SERVER_URL = "http://localhost:8080/resources"
DEFAULT_USERNAME = "admin"
DEFAULT_PASSWORD = "admin"
DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    server_url: str
    username: str
    password: str
    timeout: float


def load_settings() -> Settings:
    timeout = os.getenv("JCR_TIMEOUT")
    return Settings(
        server_url=os.getenv("JCR_SERVER_URL", DEFAULT_SERVER_URL),
        username=os.getenv("JCR_USERNAME", DEFAULT_USERNAME),
        password=os.getenv("JCR_PASSWORD", DEFAULT_PASSWORD),
        timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
    )


def get_transport(settings: Settings | None = None) -> HttpxTransport:
    settings = settings or load_settings()
    return HttpxTransport(timeout=settings.timeout)
