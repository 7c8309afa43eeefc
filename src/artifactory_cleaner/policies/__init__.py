"""
Retention policies.

Each policy implements RetentionPolicy.execute(). Snapshot and Docker
retention each come in two interchangeable strategies.
"""

__all__ = [
    "RetentionPolicy",
    "SnapshotQueryPolicy",
    "SnapshotTreeWalkPolicy",
    "DockerQueryPolicy",
    "DockerCatalogPolicy",
    "ReleaseRetentionPolicy",
    "load_filters",
]

from artifactory_cleaner.policies.base import RetentionPolicy
from artifactory_cleaner.policies.docker import (
    DockerCatalogPolicy,
    DockerQueryPolicy,
    load_filters,
)
from artifactory_cleaner.policies.releases import ReleaseRetentionPolicy
from artifactory_cleaner.policies.snapshots import (
    SnapshotQueryPolicy,
    SnapshotTreeWalkPolicy,
)
