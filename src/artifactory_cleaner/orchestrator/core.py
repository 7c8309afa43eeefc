"""
Orchestrator Core - runs retention policies independently.

A failing policy is recorded and the run moves on to the next one;
the report tells which policies failed.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Callable

from artifactory_cleaner.config import CleanerConfig, DockerStrategy, SnapshotStrategy
from artifactory_cleaner.core.exceptions import CleanupRunError, format_exception
from artifactory_cleaner.policies.base import RetentionPolicy
from artifactory_cleaner.policies.docker import DockerCatalogPolicy, DockerQueryPolicy
from artifactory_cleaner.policies.releases import ReleaseRetentionPolicy
from artifactory_cleaner.policies.snapshots import (
    SnapshotQueryPolicy,
    SnapshotTreeWalkPolicy,
)
from artifactory_cleaner.store.resilient import ResilientStore

logger = logging.getLogger(__name__)


class PolicyKind(Enum):
    """Families of retention policies, used for selection."""

    SNAPSHOT = "snapshot"
    DOCKER = "docker"
    RELEASE = "release"


class PolicyStatus(Enum):
    """Outcome of one policy run."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class NamedPolicy:
    """
    A policy factory with the name it is reported under.

    Construction is deferred so that a configuration error (a bad
    release line, an unreadable filter file) fails only this policy.
    """

    name: str
    kind: PolicyKind
    factory: Callable[[], RetentionPolicy]

    def build(self) -> RetentionPolicy:
        return self.factory()


@dataclass
class PolicyOutcome:
    """Result of running one policy."""

    name: str
    status: PolicyStatus
    error: str | None = None
    error_type: str | None = None
    duration_ms: float | None = None

    def is_success(self) -> bool:
        return self.status == PolicyStatus.COMPLETED


@dataclass
class CleanupReport:
    """Outcomes of a whole cleanup run."""

    outcomes: list[PolicyOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[PolicyOutcome]:
        return [o for o in self.outcomes if not o.is_success()]

    @property
    def succeeded(self) -> list[PolicyOutcome]:
        return [o for o in self.outcomes if o.is_success()]

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        """Generate a human-readable summary of the run."""
        lines = [f"Policies: {len(self.succeeded)}/{len(self.outcomes)} completed"]
        for outcome in self.outcomes:
            status_symbol = "✓" if outcome.is_success() else "✗"
            lines.append(f"  {status_symbol} {outcome.name}: {outcome.status.value}")
            if outcome.error:
                lines.append(f"      Error: {outcome.error}")
        return "\n".join(lines)

    def raise_for_failures(self) -> None:
        """Raise CleanupRunError naming every failed policy."""
        if self.failed:
            raise CleanupRunError(failed_policies=[o.name for o in self.failed])


def build_policies(
    config: CleanerConfig,
    store: ResilientStore,
    release_store: ResilientStore | None = None,
    only: set[PolicyKind] | None = None,
) -> list[NamedPolicy]:
    """
    Instantiate the policies enabled by configuration.

    Args:
        config: Loaded configuration
        store: Store for snapshot and docker policies
        release_store: Store for release policies, defaults to ``store``
        only: Restrict to these policy kinds

    Returns:
        Named policies in run order: snapshot, docker, releases
    """
    release_store = release_store or store
    policies: list[NamedPolicy] = []

    def wanted(kind: PolicyKind) -> bool:
        return only is None or kind in only

    if wanted(PolicyKind.SNAPSHOT) and config.snapshot_enabled:
        snapshot = config.snapshot

        def snapshot_policy() -> RetentionPolicy:
            if snapshot.strategy == SnapshotStrategy.TREE:
                return SnapshotTreeWalkPolicy(
                    store,
                    snapshot.repo,
                    snapshot.release_repo,
                    root=snapshot.root,
                    workers=config.workers,
                )
            return SnapshotQueryPolicy(store, snapshot.repo, snapshot.release_repo)

        policies.append(NamedPolicy("snapshot", PolicyKind.SNAPSHOT, snapshot_policy))

    if wanted(PolicyKind.DOCKER) and config.docker_enabled:
        docker = config.docker

        def docker_policy() -> RetentionPolicy:
            if docker.strategy == DockerStrategy.CATALOG:
                return DockerCatalogPolicy(store, docker.repo, workers=config.workers)
            return DockerQueryPolicy.from_filter_file(
                store,
                docker.repo,
                tags_to_keep=docker.tags_to_keep,
                filter_file=docker.filter_file,
            )

        policies.append(NamedPolicy("docker", PolicyKind.DOCKER, docker_policy))

    if wanted(PolicyKind.RELEASE):
        for line in config.releases:
            policies.append(
                NamedPolicy(
                    f"release:{line}",
                    PolicyKind.RELEASE,
                    partial(ReleaseRetentionPolicy.from_config_line, release_store, line),
                )
            )

    return policies


class CleanupOrchestrator:
    """
    Runs retention policies one after another.

    Each policy runs to completion or failure; failures are logged
    with their traceback and recorded, never propagated.
    """

    def __init__(self, policies: list[NamedPolicy]):
        self._policies = policies

    @property
    def policies(self) -> list[NamedPolicy]:
        return list(self._policies)

    def run(
        self,
        on_policy_complete: Callable[[PolicyOutcome], None] | None = None,
    ) -> CleanupReport:
        """
        Execute every policy.

        Args:
            on_policy_complete: Optional callback after each policy

        Returns:
            CleanupReport with one outcome per policy
        """
        report = CleanupReport()

        for named in self._policies:
            start = time.monotonic()
            try:
                policy = named.build()
                logger.info(
                    "Running %s (%s): %s", named.name, policy.policy_type, policy.describe()
                )
                policy.execute()
            except Exception as e:
                logger.error("Policy %s failed", named.name, exc_info=e)
                outcome = PolicyOutcome(
                    name=named.name,
                    status=PolicyStatus.FAILED,
                    error=format_exception(e),
                    error_type=type(e).__name__,
                )
            else:
                outcome = PolicyOutcome(name=named.name, status=PolicyStatus.COMPLETED)
            outcome.duration_ms = (time.monotonic() - start) * 1000

            report.outcomes.append(outcome)
            if on_policy_complete:
                on_policy_complete(outcome)

        return report
