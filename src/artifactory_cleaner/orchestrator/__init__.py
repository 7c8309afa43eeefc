"""
Artifactory Cleaner Orchestrator Module.

Builds policies from configuration and runs them independently.
"""

__all__ = [
    "CleanupOrchestrator",
    "CleanupReport",
    "PolicyKind",
    "PolicyOutcome",
    "build_policies",
]

from artifactory_cleaner.orchestrator.core import (
    CleanupOrchestrator,
    CleanupReport,
    PolicyKind,
    PolicyOutcome,
    build_policies,
)
