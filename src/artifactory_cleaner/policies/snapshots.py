"""
Snapshot retention.

Two interchangeable strategies remove Maven snapshot versions that have
been superseded by a release:

- SnapshotQueryPolicy queries every POM once and deletes snapshots lower
  than the newest release of the same artifact.
- SnapshotTreeWalkPolicy walks the snapshot repository folder by folder
  and deletes a ``X-SNAPSHOT`` folder when the release repository has a
  non-empty ``X`` folder at the same place.
"""

import logging
from concurrent.futures import Future

from artifactory_cleaner.core.models import ArtifactDescriptor, group_by_logical_path
from artifactory_cleaner.core.versioning import (
    SNAPSHOT_SUFFIX,
    ComparableVersion,
    is_snapshot,
)
from artifactory_cleaner.policies.base import RetentionPolicy, make_executor, wait_all
from artifactory_cleaner.store import query as aql
from artifactory_cleaner.store.resilient import ResilientStore

logger = logging.getLogger(__name__)


def snapshots_to_delete(versions: list[str]) -> list[str]:
    """
    Pick the snapshot versions older than the newest release.

    Args:
        versions: All versions of one artifact, snapshots and releases mixed

    Returns:
        Snapshot versions strictly lower than the newest release, in input
        order; empty when there is no release
    """
    releases = [ComparableVersion(v) for v in versions if not is_snapshot(v)]
    if not releases:
        return []

    newest = max(releases)
    return [
        v for v in versions if is_snapshot(v) and ComparableVersion(v) < newest
    ]


class SnapshotQueryPolicy(RetentionPolicy):
    """Delete superseded snapshots found through a single AQL query."""

    policy_type = "snapshot-query"

    def __init__(self, store: ResilientStore, snapshot_repo: str, release_repo: str):
        super().__init__(store)
        self.snapshot_repo = snapshot_repo
        self.release_repo = release_repo

    def describe(self) -> str:
        return f"snapshots in {self.snapshot_repo} released to {self.release_repo}"

    def plan(self) -> list[ArtifactDescriptor]:
        """Return the snapshot descriptors to delete, without deleting."""
        query = aql.snapshot_poms(self.snapshot_repo, self.release_repo)
        logger.info("Finding maven items with query: %s", query)

        groups = group_by_logical_path(aql.fetch_descriptors(self.store, query))

        decision: list[ArtifactDescriptor] = []
        for path, descriptors in groups.items():
            doomed = set(snapshots_to_delete([d.version for d in descriptors]))
            seen: set[str] = set()
            for descriptor in descriptors:
                if descriptor.version in doomed and descriptor.version not in seen:
                    seen.add(descriptor.version)
                    decision.append(descriptor)
        return decision

    def execute(self) -> None:
        for descriptor in self.plan():
            logger.info("Delete: %s/%s", self.snapshot_repo, descriptor.full_path)
            self.store.delete(self.snapshot_repo, descriptor.full_path)


class SnapshotTreeWalkPolicy(RetentionPolicy):
    """Walk the snapshot repository and delete folders already released."""

    policy_type = "snapshot-tree"

    def __init__(
        self,
        store: ResilientStore,
        snapshot_repo: str,
        release_repo: str,
        root: str = "",
        workers: int = 4,
    ):
        super().__init__(store)
        self.snapshot_repo = snapshot_repo
        self.release_repo = release_repo
        self.root = root.strip("/")
        self.workers = workers

    def describe(self) -> str:
        return (
            f"snapshots in {self.snapshot_repo}/{self.root} "
            f"released to {self.release_repo} (tree walk)"
        )

    def _check_and_delete(self, snapshot_path: str) -> bool:
        release_path = snapshot_path[: -len(SNAPSHOT_SUFFIX)]
        if not self.store.list_folder(self.release_repo, release_path):
            logger.debug("No release for %s", snapshot_path)
            return False

        logger.info("Delete: %s/%s", self.snapshot_repo, snapshot_path)
        self.store.delete(self.snapshot_repo, snapshot_path)
        return True

    def execute(self) -> None:
        # explicit worklist instead of recursion, depth is unbounded
        pending = [self.root]
        futures: list[Future] = []

        with make_executor(self.workers, "snapshot-walk") as executor:
            while pending:
                folder = pending.pop()
                logger.debug("Listing %s/%s", self.snapshot_repo, folder)
                children = self.store.list_folder(self.snapshot_repo, folder)

                subfolders = []
                for child in children:
                    if not child.is_folder:
                        continue
                    path = f"{folder}/{child.name}" if folder else child.name
                    if child.name.endswith(SNAPSHOT_SUFFIX):
                        futures.append(executor.submit(self._check_and_delete, path))
                    else:
                        subfolders.append(path)

                # snapshot checks of this level are dispatched before descending
                pending.extend(reversed(subfolders))

            wait_all(futures)
