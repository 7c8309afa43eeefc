"""
Core data models for Artifactory Cleaner.

Descriptors are built fresh from each remote response and discarded
after the policy run that requested them.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable

from artifactory_cleaner.core.exceptions import ConfigurationError, MalformedDataError

# Format of the "modified" and "created" fields returned by AQL,
# e.g. 2001-05-05T16:44:30.629+02:00
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an AQL timestamp.

    Args:
        value: Timestamp such as ``2001-05-05T16:44:30.629+02:00``

    Returns:
        Timezone-aware datetime

    Raises:
        MalformedDataError: If the value does not match the expected format
    """
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as e:
        raise MalformedDataError(
            f"Unparseable timestamp: {e}",
            value=str(value),
        ) from e


def split_path(path: str) -> tuple[str, str]:
    """Split an item path into (logical path, version) on its last '/'."""
    last = path.rfind("/")
    if last == -1:
        raise MalformedDataError(f"No slash character in path {path}", value=path)
    return path[:last], path[last + 1 :]


@dataclass(frozen=True)
class ArtifactDescriptor:
    """One versioned artifact: a logical path plus its final version segment."""

    logical_path: str
    version: str
    repo: str | None = None
    modified_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def full_path(self) -> str:
        return f"{self.logical_path}/{self.version}"

    @property
    def parent_path(self) -> str:
        """Logical path without its last segment (itself if it has none)."""
        last = self.logical_path.rfind("/")
        if last == -1:
            return self.logical_path
        return self.logical_path[:last]

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "ArtifactDescriptor":
        """
        Build a descriptor from a raw AQL result item.

        The item's ``path`` field is split on its last '/'. Timestamps are
        parsed only when the field is present.

        Raises:
            MalformedDataError: For a path without '/' or a bad timestamp
        """
        path = item.get("path")
        if not isinstance(path, str):
            raise MalformedDataError("AQL item has no path", value=str(item))

        logical_path, version = split_path(path)
        modified = item.get("modified")
        created = item.get("created")

        return cls(
            logical_path=logical_path,
            version=version,
            repo=item.get("repo"),
            modified_at=parse_timestamp(modified) if modified is not None else None,
            created_at=parse_timestamp(created) if created is not None else None,
        )


@dataclass(frozen=True, order=True)
class ItemPath:
    """Path-only view of an AQL item."""

    path: str
    repo: str | None = None
    name: str | None = None

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "ItemPath":
        path = item.get("path")
        if not isinstance(path, str):
            raise MalformedDataError("AQL item has no path", value=str(item))
        return cls(path=path, repo=item.get("repo"), name=item.get("name"))


@dataclass(frozen=True)
class StorageNode:
    """One child entry of a storage folder listing."""

    uri: str
    is_folder: bool

    @property
    def name(self) -> str:
        return self.uri.lstrip("/")

    @classmethod
    def from_child(cls, child: dict[str, Any]) -> "StorageNode":
        return cls(uri=child["uri"], is_folder=bool(child.get("folder", False)))


def group_by_logical_path(
    descriptors: Iterable[ArtifactDescriptor],
) -> dict[str, list[ArtifactDescriptor]]:
    """Group descriptors into retention groups keyed by logical path."""
    groups: dict[str, list[ArtifactDescriptor]] = {}
    for descriptor in descriptors:
        groups.setdefault(descriptor.logical_path, []).append(descriptor)
    return groups


@dataclass(frozen=True)
class ReleaseModuleConfig:
    """Retention settings for the releases under one root path."""

    repo: str
    root_path: str
    min_age_days: int = 365
    min_retained_count: int = 3
    max_deletions_per_run: int = 128

    @classmethod
    def parse(cls, line: str) -> "ReleaseModuleConfig":
        """
        Parse ``repo:root[:minAgeDays[:minRetainedCount[:maxDeletionsPerRun]]]``.

        Raises:
            ConfigurationError: On a wrong field count, an empty repo or root,
                or a non-integer / negative number
        """
        fields = line.strip().split(":")
        if not 2 <= len(fields) <= 5:
            raise ConfigurationError(
                f"Release clean config must have 2 to 5 ':'-separated fields: {line!r}",
                config_key="releases",
            )

        repo, root = fields[0].strip(), fields[1].strip().strip("/")
        if not repo or not root:
            raise ConfigurationError(
                f"Release clean config needs a repo and a root path: {line!r}",
                config_key="releases",
            )

        numbers = []
        for name, raw in zip(
            ("min_age_days", "min_retained_count", "max_deletions_per_run"),
            fields[2:],
        ):
            try:
                value = int(raw)
            except ValueError:
                raise ConfigurationError(
                    f"{name} must be an integer, got {raw!r} in {line!r}",
                    config_key="releases",
                ) from None
            if value < 0:
                raise ConfigurationError(
                    f"{name} must not be negative in {line!r}",
                    config_key="releases",
                )
            numbers.append(value)

        return cls(repo, root, *numbers)

    def __str__(self) -> str:
        return (
            f"{self.repo}:{self.root_path}:{self.min_age_days}"
            f":{self.min_retained_count}:{self.max_deletions_per_run}"
        )
