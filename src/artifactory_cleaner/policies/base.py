"""
Base class for retention policies.

Every policy exposes ``execute()``; the orchestrator runs them
uniformly and records failures without stopping the others.
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Iterable

from artifactory_cleaner.store.resilient import ResilientStore


class RetentionPolicy(ABC):
    """
    Abstract base class for retention policies.

    All policies must implement:
    - execute(): Decide what is obsolete and delete it
    - describe(): One-line summary of the policy's settings
    """

    policy_type: str = "base"

    def __init__(self, store: ResilientStore):
        """
        Initialize the policy.

        Args:
            store: Retry-guarded store used for every remote call
        """
        self.store = store

    @abstractmethod
    def execute(self) -> None:
        """Run the policy once, to completion."""

    @abstractmethod
    def describe(self) -> str:
        """Return a short human-readable description."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.describe()})"


def wait_all(futures: Iterable[Future]) -> None:
    """Wait for every future, re-raising the first failure in submit order."""
    for future in list(futures):
        future.result()


def make_executor(workers: int, name: str) -> ThreadPoolExecutor:
    return ThreadPoolExecutor(max_workers=max(1, workers), thread_name_prefix=name)
