"""Pytest configuration and fixtures."""

import tempfile
import threading
from pathlib import Path
from typing import Any, Generator

import pytest

from artifactory_cleaner.core.exceptions import RemoteStoreError
from artifactory_cleaner.store.resilient import ResilientStore, RetryPolicy


class FakeClient:
    """
    In-memory stand-in for ArtifactoryClient.

    AQL responses are selected by the first registered fragment found in
    the rendered query. Folders are keyed by ``(repo, path)``.
    """

    base_url = "https://artifactory.example.com/artifactory"

    def __init__(self) -> None:
        self.aql: list[tuple[str, list[dict[str, Any]]]] = []
        self.folders: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.images: dict[str, list[str]] = {}
        self.tags: dict[tuple[str, str], list[str]] = {}
        self.queries: list[str] = []
        self.deleted: list[tuple[str, str]] = []
        self.calls: dict[str, int] = {}
        # method name -> number of leading calls that fail
        self.failures: dict[str, int] = {}
        self.fail_paths: set[str] = set()
        self._lock = threading.Lock()

    def add_aql(self, fragment: str, results: list[dict[str, Any]]) -> None:
        self.aql.append((fragment, results))

    def add_folder(self, repo: str, path: str, children: list[tuple[str, bool]]) -> None:
        self.folders[(repo, path)] = [
            {"uri": f"/{name}", "folder": is_folder} for name, is_folder in children
        ]

    def _enter(self, method: str) -> None:
        with self._lock:
            count = self.calls.get(method, 0) + 1
            self.calls[method] = count
            if count <= self.failures.get(method, 0):
                raise RemoteStoreError(f"{method} failed", method=method, status_code=503)

    def search_aql(self, query: str) -> list[dict[str, Any]]:
        self._enter("search_aql")
        with self._lock:
            self.queries.append(query)
        for fragment, results in self.aql:
            if fragment in query:
                return results
        return []

    def list_folder(self, repo: str, path: str) -> list[dict[str, Any]]:
        self._enter("list_folder")
        return self.folders.get((repo, path.strip("/")), [])

    def list_docker_images(self, repo: str) -> list[str]:
        self._enter("list_docker_images")
        return self.images.get(repo, [])

    def list_docker_tags(self, repo: str, image: str) -> list[str]:
        self._enter("list_docker_tags")
        return self.tags.get((repo, image), [])

    def delete(self, repo: str, path: str) -> None:
        self._enter("delete")
        if path in self.fail_paths:
            raise RemoteStoreError(f"cannot delete {path}", method="DELETE", status_code=500)
        with self._lock:
            self.deleted.append((repo, path))

    def system_version(self) -> dict[str, Any]:
        self._enter("system_version")
        return {"version": "7.77.3", "revision": "77703900"}

    def close(self) -> None:
        pass


def item(path: str, repo: str = "repo", name: str = "x.pom", **fields: Any) -> dict[str, Any]:
    """Build a raw AQL result item."""
    return {"repo": repo, "path": path, "name": name, **fields}


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def sleeps() -> list[float]:
    """Delays requested by the retry policy, recorded instead of slept."""
    return []


@pytest.fixture
def retry_policy(sleeps: list[float]) -> RetryPolicy:
    return RetryPolicy(max_attempts=3, delay_seconds=0.5, sleep=sleeps.append)


@pytest.fixture
def store(client: FakeClient, retry_policy: RetryPolicy) -> ResilientStore:
    return ResilientStore(client, retry_policy)
