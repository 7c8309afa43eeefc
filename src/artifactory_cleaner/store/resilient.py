"""
Resilient store - bounded retries around every remote call.

Each call is attempted up to ``max_attempts`` times with a fixed delay
between attempts. Only RemoteStoreError is retried; once attempts are
exhausted the last failure is re-raised to the caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from artifactory_cleaner.core.exceptions import is_retriable_error
from artifactory_cleaner.core.models import StorageNode
from artifactory_cleaner.store.client import ArtifactoryClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Retry attempt: #%d",
        retry_state.attempt_number,
        exc_info=error,
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed-delay retry settings."""

    max_attempts: int = 12
    delay_seconds: float = 15
    sleep: Callable[[float], None] = time.sleep

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    def retrying(self) -> Retrying:
        """Build a fresh tenacity controller for one call."""
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.delay_seconds),
            retry=retry_if_exception(is_retriable_error),
            before_sleep=_log_retry,
            sleep=self.sleep,
            reraise=True,
        )

    def call(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Invoke ``fn`` under this policy."""
        return self.retrying()(fn, *args, **kwargs)


class ResilientStore:
    """
    Retry-guarded access to the artifact store.

    All remote calls made by retention policies go through this class.
    With ``dry_run`` set, deletions are logged instead of performed.
    """

    def __init__(
        self,
        client: ArtifactoryClient,
        retry_policy: RetryPolicy | None = None,
        dry_run: bool = False,
    ):
        self._client = client
        self._retry = retry_policy or RetryPolicy()
        self.dry_run = dry_run

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def query(self, query: Any, factory: Callable[[dict[str, Any]], T]) -> list[T]:
        """
        Run an AQL query and deserialize each result item.

        Args:
            query: An AqlQuery or an already rendered AQL string
            factory: Builds one result object from a raw item; its errors
                are not retried

        Returns:
            One object per result item
        """
        text = query if isinstance(query, str) else query.render()
        items = self._retry.call(self._client.search_aql, text)
        return [factory(item) for item in items]

    def delete(self, repo: str, path: str) -> None:
        """Delete one item or folder from ``repo``."""
        if self.dry_run:
            logger.info("Dry run, not deleting %s/%s", repo, path)
            return
        self._retry.call(self._client.delete, repo, path)

    def list_folder(self, repo: str, path: str) -> list[StorageNode]:
        children = self._retry.call(self._client.list_folder, repo, path)
        return [StorageNode.from_child(child) for child in children]

    def list_docker_images(self, repo: str) -> list[str]:
        return self._retry.call(self._client.list_docker_images, repo)

    def list_docker_tags(self, repo: str, image: str) -> list[str]:
        return self._retry.call(self._client.list_docker_tags, repo, image)

    def system_version(self) -> dict[str, Any]:
        return self._retry.call(self._client.system_version)
