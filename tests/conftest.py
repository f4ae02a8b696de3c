"""Shared fixtures and helpers for tests."""

from pathlib import Path

import pytest

from jcr_rest_client.models import Repository, Server, Workspace
from jcr_rest_client.transport import InMemoryTransport

_REPO_ROOT = Path(__file__).parent.parent

BASE_URL = "http://localhost:8080/resources"


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_transport() -> InMemoryTransport:
    """An in-memory server with repository ``repo`` and workspaces ``default`` and ``system``."""
    return InMemoryTransport(BASE_URL)


@pytest.fixture
def server() -> Server:
    return Server(url=BASE_URL, user="admin", password="admin").as_validated(BASE_URL)


@pytest.fixture
def repository(server: Server) -> Repository:
    return Repository(name="repo", server=server)


@pytest.fixture
def workspace(repository: Repository) -> Workspace:
    return Workspace(name="default", repository=repository)


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    """A small text file with fixed content."""
    file_path = tmp_path / "notes.txt"
    file_path.write_bytes(b"hello repository\n")
    return file_path
