"""Tests for the retry-guarded store."""

import logging

import pytest

from artifactory_cleaner.core.exceptions import MalformedDataError, RemoteStoreError
from artifactory_cleaner.core.models import ArtifactDescriptor, StorageNode
from artifactory_cleaner.store.query import AqlQuery, equals
from artifactory_cleaner.store.resilient import ResilientStore, RetryPolicy

from conftest import FakeClient, item


class TestRetryPolicy:
    """Tests for RetryPolicy."""

    def test_defaults(self) -> None:
        policy = RetryPolicy()
        assert policy.max_attempts == 12
        assert policy.delay_seconds == 15

    def test_rejects_zero_attempts(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)

    def test_rejects_negative_delay(self) -> None:
        with pytest.raises(ValueError):
            RetryPolicy(delay_seconds=-1)

    def test_call_returns_value(self, retry_policy: RetryPolicy) -> None:
        assert retry_policy.call(lambda x: x * 2, 21) == 42


class TestResilientStoreRetries:
    """Retry behaviour of ResilientStore."""

    def test_recovers_after_transient_failures(
        self, client: FakeClient, store: ResilientStore, sleeps: list[float]
    ) -> None:
        """A call succeeding on its last allowed attempt returns normally."""
        client.failures["delete"] = 2
        store.delete("repo", "lib/1.0")

        assert client.calls["delete"] == 3
        assert client.deleted == [("repo", "lib/1.0")]
        assert sleeps == [0.5, 0.5]

    def test_exhaustion_raises_last_error(
        self, client: FakeClient, store: ResilientStore, sleeps: list[float]
    ) -> None:
        """After max_attempts failures the error reaches the caller."""
        client.failures["delete"] = 100

        with pytest.raises(RemoteStoreError):
            store.delete("repo", "lib/1.0")

        assert client.calls["delete"] == 3
        assert client.deleted == []
        assert len(sleeps) == 2

    def test_single_attempt_never_sleeps(self, client: FakeClient) -> None:
        sleeps: list[float] = []
        store = ResilientStore(client, RetryPolicy(max_attempts=1, sleep=sleeps.append))
        client.failures["search_aql"] = 1

        with pytest.raises(RemoteStoreError):
            store.query("items.find({})", ArtifactDescriptor.from_item)

        assert client.calls["search_aql"] == 1
        assert sleeps == []

    def test_logs_each_retry(
        self, client: FakeClient, store: ResilientStore, caplog: pytest.LogCaptureFixture
    ) -> None:
        client.failures["list_folder"] = 2

        with caplog.at_level(logging.WARNING):
            store.list_folder("repo", "org")

        messages = [r.getMessage() for r in caplog.records]
        assert messages == ["Retry attempt: #1", "Retry attempt: #2"]

    def test_malformed_result_is_not_retried(
        self, client: FakeClient, store: ResilientStore
    ) -> None:
        """Deserialization errors surface at once, without a second query."""
        client.add_aql("items.find", [{"repo": "repo", "path": "no-slash"}])

        with pytest.raises(MalformedDataError):
            store.query(AqlQuery([equals("repo", "repo")]), ArtifactDescriptor.from_item)

        assert client.calls["search_aql"] == 1


class TestResilientStoreOperations:
    """Pass-through operations of ResilientStore."""

    def test_query_accepts_aql_query(self, client: FakeClient, store: ResilientStore) -> None:
        client.add_aql('"repo": "libs"', [item("org/lib/1.0", repo="libs")])

        result = store.query(AqlQuery([equals("repo", "libs")]), ArtifactDescriptor.from_item)

        assert result == [ArtifactDescriptor("org/lib", "1.0", repo="libs")]
        assert client.queries == ['items.find({"repo": "libs"}).include("repo","path","name")']

    def test_list_folder_returns_nodes(self, client: FakeClient, store: ResilientStore) -> None:
        client.add_folder("repo", "org", [("lib", True), ("readme.txt", False)])

        assert store.list_folder("repo", "org") == [
            StorageNode("/lib", True),
            StorageNode("/readme.txt", False),
        ]

    def test_docker_listing(self, client: FakeClient, store: ResilientStore) -> None:
        client.images["docker"] = ["app"]
        client.tags[("docker", "app")] = ["1.0", "latest"]

        assert store.list_docker_images("docker") == ["app"]
        assert store.list_docker_tags("docker", "app") == ["1.0", "latest"]

    def test_system_version(self, store: ResilientStore) -> None:
        assert store.system_version()["version"] == "7.77.3"

    def test_dry_run_skips_deletes(self, client: FakeClient, retry_policy: RetryPolicy) -> None:
        store = ResilientStore(client, retry_policy, dry_run=True)

        store.delete("repo", "lib/1.0")

        assert client.deleted == []
        assert "delete" not in client.calls
