"""
Artifactory Cleaner Store Module.

Raw HTTP client, retry-guarded store and AQL query construction.
"""

__all__ = [
    "ArtifactoryClient",
    "ArtifactoryClientConfig",
    "ResilientStore",
    "RetryPolicy",
    "AqlQuery",
]

from artifactory_cleaner.store.client import ArtifactoryClient, ArtifactoryClientConfig
from artifactory_cleaner.store.query import AqlQuery
from artifactory_cleaner.store.resilient import ResilientStore, RetryPolicy
