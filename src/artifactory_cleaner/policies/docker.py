"""
Docker tag retention.

- DockerQueryPolicy keeps the N most recently modified tags of every
  image and deletes the rest, unless a filter pattern protects them.
- DockerCatalogPolicy walks the registry catalog and deletes ``X-SNAPSHOT``
  tags for which a release tag ``X`` exists.
"""

import logging
import re
from concurrent.futures import Future
from pathlib import Path
from typing import Iterable, Sequence

from artifactory_cleaner.core.exceptions import ConfigurationError, MalformedDataError
from artifactory_cleaner.core.models import ArtifactDescriptor, group_by_logical_path
from artifactory_cleaner.core.versioning import is_snapshot, strip_snapshot
from artifactory_cleaner.policies.base import RetentionPolicy, make_executor, wait_all
from artifactory_cleaner.store import query as aql
from artifactory_cleaner.store.resilient import ResilientStore

logger = logging.getLogger(__name__)


def load_filters(filter_file: str | Path) -> list[re.Pattern]:
    """
    Load tag filter patterns, one regular expression per line.

    Blank lines and lines starting with ``#`` are ignored.

    Args:
        filter_file: Path to the filter file

    Returns:
        Compiled patterns in file order

    Raises:
        ConfigurationError: If the file cannot be read or a line is not a
            valid regular expression (the line number is reported)
    """
    path = Path(filter_file)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read docker filter file: {e}",
            config_file=str(path),
            config_key="docker.filter_file",
        ) from e

    filters = []
    for number, line in enumerate(lines, start=1):
        if not line.strip() or line.startswith("#"):
            continue
        try:
            filters.append(re.compile(line))
        except re.error as e:
            raise ConfigurationError(
                f"Invalid filter pattern {line!r}: {e}",
                config_file=str(path),
                line_number=number,
            ) from e

    return filters


def is_filtered(path: str, filters: Sequence[re.Pattern]) -> bool:
    """Return True if any pattern matches the whole ``image/tag`` path."""
    return any(pattern.fullmatch(path) for pattern in filters)


def _modified(descriptor: ArtifactDescriptor):
    if descriptor.modified_at is None:
        raise MalformedDataError(
            f"Manifest without modification time: {descriptor.full_path}",
            value=descriptor.full_path,
        )
    return descriptor.modified_at


def newest_first(group: Iterable[ArtifactDescriptor]) -> list[ArtifactDescriptor]:
    """Sort one image's manifests by modification time, newest first."""
    return sorted(group, key=_modified, reverse=True)


def tags_to_delete(
    group: Iterable[ArtifactDescriptor],
    tags_to_keep: int,
    filters: Sequence[re.Pattern] = (),
) -> list[ArtifactDescriptor]:
    """
    Decide which tags of one image to delete.

    Args:
        group: Manifests of one image
        tags_to_keep: Number of most recently modified tags always kept
        filters: Patterns protecting matching ``image/tag`` paths

    Returns:
        Descriptors to delete, newest first
    """
    ranked = newest_first(group)
    return [d for d in ranked[tags_to_keep:] if not is_filtered(d.full_path, filters)]


def snapshot_tags_to_delete(tags: Iterable[str]) -> list[str]:
    """Snapshot tags whose release tag also exists."""
    tags = list(tags)
    released = set(tags)
    return [t for t in tags if is_snapshot(t) and strip_snapshot(t) in released]


class DockerQueryPolicy(RetentionPolicy):
    """Keep the newest tags of every image in a Docker repository."""

    policy_type = "docker-query"

    def __init__(
        self,
        store: ResilientStore,
        repo: str,
        tags_to_keep: int = 5,
        filters: Sequence[re.Pattern] = (),
    ):
        super().__init__(store)
        if tags_to_keep < 0:
            raise ConfigurationError(
                "tags_to_keep must not be negative",
                config_key="docker.tags_to_keep",
            )
        self.repo = repo
        self.tags_to_keep = tags_to_keep
        self.filters = list(filters)
        logger.info("Acting upon %s repo and keeping %d newest tags", repo, tags_to_keep)
        if self.filters:
            logger.info("Loaded %d filters", len(self.filters))

    @classmethod
    def from_filter_file(
        cls,
        store: ResilientStore,
        repo: str,
        tags_to_keep: int = 5,
        filter_file: str | Path | None = None,
    ) -> "DockerQueryPolicy":
        filters: list[re.Pattern] = []
        if filter_file is not None:
            logger.info("Using filter file %s", filter_file)
            filters = load_filters(filter_file)
        return cls(store, repo, tags_to_keep, filters)

    def describe(self) -> str:
        return f"docker tags in {self.repo}, keeping {self.tags_to_keep} newest"

    def execute(self) -> None:
        query = aql.docker_manifests(self.repo)
        logger.info("Finding docker items with query: %s", query)

        groups = group_by_logical_path(aql.fetch_descriptors(self.store, query))

        for image, manifests in groups.items():
            ranked = newest_first(manifests)
            doomed = tags_to_delete(ranked, self.tags_to_keep, self.filters)
            logger.info("Processing image %s", image)
            logger.info(
                "Newest tags: %s",
                " ".join(d.version for d in ranked[: self.tags_to_keep]),
            )

            doomed_set = set(doomed)
            for descriptor in ranked[self.tags_to_keep :]:
                if descriptor not in doomed_set:
                    logger.info("Filtered %s", descriptor.version)

            for descriptor in doomed:
                logger.info("Delete tag %s", descriptor.full_path)
                self.store.delete(self.repo, descriptor.full_path)


class DockerCatalogPolicy(RetentionPolicy):
    """Delete snapshot tags that have a matching release tag."""

    policy_type = "docker-catalog"

    def __init__(self, store: ResilientStore, repo: str, workers: int = 4):
        super().__init__(store)
        self.repo = repo
        self.workers = workers

    def describe(self) -> str:
        return f"released snapshot tags in {self.repo} (catalog walk)"

    def _delete_tag(self, image: str, tag: str) -> None:
        logger.info("Delete tag %s/%s", image, tag)
        self.store.delete(self.repo, f"{image}/{tag}")

    def execute(self) -> None:
        images = self.store.list_docker_images(self.repo)
        logger.info("Found %d images in %s", len(images), self.repo)

        with make_executor(self.workers, "docker-tags") as executor:
            for image in images:
                tags = self.store.list_docker_tags(self.repo, image)
                futures: list[Future] = [
                    executor.submit(self._delete_tag, image, tag)
                    for tag in snapshot_tags_to_delete(tags)
                ]
                wait_all(futures)
