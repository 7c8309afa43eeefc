"""
Release retention.

Cleans old released versions below one root path. The most recent
versions and anything younger than the age cutoff are always kept; the
rest is deleted, at most ``max_deletions_per_run`` versions per run.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Callable

from artifactory_cleaner.core.models import ArtifactDescriptor, ReleaseModuleConfig
from artifactory_cleaner.core.versioning import ComparableVersion
from artifactory_cleaner.policies.base import RetentionPolicy
from artifactory_cleaner.store import query as aql
from artifactory_cleaner.store.resilient import ResilientStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleaseVersion:
    """One released version, possibly spanning several modules."""

    scope: str
    version: str
    created_at: datetime | None = None


def version_scope(descriptor: ArtifactDescriptor, root: str) -> str:
    """
    Folder whose sub-folders hold every module of the descriptor's release.

    That is the parent of the logical path while it still lies under
    ``root``, otherwise ``root`` itself.
    """
    parent = descriptor.parent_path
    if parent == root or parent.startswith(f"{root}/"):
        return parent
    return root


def _later(left: datetime | None, right: datetime | None) -> datetime | None:
    if left is None or right is None:
        return left or right
    return max(left, right)


def collect_versions(
    descriptors: list[ArtifactDescriptor], root: str
) -> list[ReleaseVersion]:
    """Collapse module POMs into versions sorted ascending by version."""
    versions: dict[tuple[str, str], ReleaseVersion] = {}
    for descriptor in descriptors:
        key = (version_scope(descriptor, root), descriptor.version)
        current = versions.get(key)
        if current is None:
            versions[key] = ReleaseVersion(key[0], key[1], descriptor.created_at)
        else:
            # a release is as young as its youngest module
            versions[key] = replace(
                current, created_at=_later(current.created_at, descriptor.created_at)
            )

    return sorted(versions.values(), key=lambda v: ComparableVersion(v.version))


def select_release_candidates(
    versions: list[ReleaseVersion],
    module: ReleaseModuleConfig,
    now: datetime,
) -> list[ReleaseVersion]:
    """
    Apply the retention rules to versions sorted ascending.

    Args:
        versions: Versions in ascending order
        module: Retention settings
        now: Current time, timezone-aware

    Returns:
        Versions to delete, capped at ``max_deletions_per_run``
    """
    keep = module.min_retained_count
    candidates = versions[:-keep] if keep else list(versions)

    cutoff = now - timedelta(days=module.min_age_days)
    candidates = [
        v for v in candidates if v.created_at is not None and v.created_at <= cutoff
    ]

    return candidates[: module.max_deletions_per_run]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReleaseRetentionPolicy(RetentionPolicy):
    """Clean old released artifacts below one root path."""

    policy_type = "release"

    def __init__(
        self,
        store: ResilientStore,
        module: ReleaseModuleConfig,
        clock: Callable[[], datetime] = _utc_now,
    ):
        super().__init__(store)
        self.module = module
        self._clock = clock

    @classmethod
    def from_config_line(
        cls, store: ResilientStore, line: str
    ) -> "ReleaseRetentionPolicy":
        return cls(store, ReleaseModuleConfig.parse(line))

    def describe(self) -> str:
        return f"releases in {self.module}"

    def plan(self) -> list[ReleaseVersion]:
        """Return the versions to delete, without deleting."""
        module = self.module
        query = aql.release_poms(module.repo, module.root_path)
        logger.info("Finding versions items with query: %s", query)

        versions = collect_versions(
            aql.fetch_descriptors(self.store, query), module.root_path
        )
        return select_release_candidates(versions, module, self._clock())

    def execute(self) -> None:
        module = self.module
        candidates = self.plan()

        if not candidates:
            logger.info(
                "There are no matching versions to remove for %s/%s",
                module.repo,
                module.root_path,
            )
            return

        logger.info(
            "%d versions for deleting for: %s,%s",
            len(candidates),
            module.repo,
            module.root_path,
        )
        for version in candidates:
            self._delete_version(version)

    def _delete_version(self, version: ReleaseVersion) -> None:
        repo = self.module.repo
        logger.info(
            "Delete items from %s/%s for version %s created at %s",
            repo,
            version.scope,
            version.version,
            version.created_at,
        )

        query = aql.release_version_files(repo, version.scope, version.version)
        logger.info("Finding items with query: %s", query)

        # each hit is a module's POM; its folder holds jar, sources, classifiers
        paths = set()
        for hit in aql.fetch_descriptors(self.store, query):
            if (
                hit.version != version.version
                or version_scope(hit, self.module.root_path) != version.scope
            ):
                logger.debug("Skip %s, not part of this release", hit.full_path)
                continue
            paths.add(hit.full_path)

        for path in sorted(paths):
            logger.info("Delete %s/%s", repo, path)
            self.store.delete(repo, path)
