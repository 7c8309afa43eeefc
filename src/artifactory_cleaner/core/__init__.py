"""
Artifactory Cleaner Core Module.

Provides the data model, version ordering and error types shared by
the store layer and the retention policies.
"""

__all__ = [
    "ArtifactDescriptor",
    "ItemPath",
    "StorageNode",
    "ReleaseModuleConfig",
    "group_by_logical_path",
    "parse_timestamp",
    "ComparableVersion",
    "compare_versions",
    "is_snapshot",
    "SNAPSHOT_SUFFIX",
    # Exceptions
    "CleanerError",
    "RemoteStoreError",
    "MalformedDataError",
    "ConfigurationError",
    "CleanupRunError",
]

from artifactory_cleaner.core.exceptions import (
    CleanerError,
    CleanupRunError,
    ConfigurationError,
    MalformedDataError,
    RemoteStoreError,
)
from artifactory_cleaner.core.models import (
    ArtifactDescriptor,
    ItemPath,
    ReleaseModuleConfig,
    StorageNode,
    group_by_logical_path,
    parse_timestamp,
)
from artifactory_cleaner.core.versioning import (
    SNAPSHOT_SUFFIX,
    ComparableVersion,
    compare_versions,
    is_snapshot,
)
