import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from tasklist.main import app  # noqa: E402
from tasklist.repositories import (  # noqa: E402
    InMemoryRepository,
    InMemoryTagRepository,
    get_repository,
    get_tag_repository,
)
from tasklist.storage import FileStorage, get_file_storage  # noqa: E402


@pytest.fixture
def todo_repo():
    return InMemoryRepository()


@pytest.fixture
def tag_repo():
    return InMemoryTagRepository()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(str(tmp_path / "uploads"), max_bytes=1024)


@pytest.fixture
def client(todo_repo, tag_repo, storage):
    app.dependency_overrides[get_repository] = lambda: todo_repo
    app.dependency_overrides[get_tag_repository] = lambda: tag_repo
    app.dependency_overrides[get_file_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
