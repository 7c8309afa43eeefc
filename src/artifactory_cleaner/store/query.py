"""
Catalog queries - AQL construction and result deserialization.

Queries are built as plain criteria dicts and rendered with ``json`` so
that repository names and patterns are always correctly quoted.
"""

import json
from dataclasses import dataclass
from typing import Any

from artifactory_cleaner.core.models import ArtifactDescriptor, ItemPath
from artifactory_cleaner.store.resilient import ResilientStore

Criterion = dict[str, Any]

DEFAULT_FIELDS = ("repo", "path", "name")


def equals(field_name: str, value: str) -> Criterion:
    """Field equality, e.g. ``{"repo": "libs"}``."""
    return {field_name: value}


def matches(field_name: str, pattern: str) -> Criterion:
    """Glob match, e.g. ``{"name": {"$match": "*.pom"}}``."""
    return {field_name: {"$match": pattern}}


def any_of(*criteria: Criterion) -> Criterion:
    return {"$or": list(criteria)}


def all_of(*criteria: Criterion) -> Criterion:
    return {"$and": list(criteria)}


def repo_criterion(*repos: str) -> Criterion:
    """Equality on one repo, or an OR across several distinct repos."""
    unique = list(dict.fromkeys(repos))
    if len(unique) == 1:
        return equals("repo", unique[0])
    return any_of(*(equals("repo", repo) for repo in unique))


@dataclass
class AqlQuery:
    """An ``items.find`` query with an explicit field selection."""

    criteria: list[Criterion]
    include: tuple[str, ...] = DEFAULT_FIELDS
    domain: str = "items"

    def render(self) -> str:
        if len(self.criteria) == 1:
            find = self.criteria[0]
        else:
            find = all_of(*self.criteria)
        fields = ",".join(json.dumps(name) for name in self.include)
        return f"{self.domain}.find({json.dumps(find)}).include({fields})"

    def __str__(self) -> str:
        return self.render()


def snapshot_poms(snapshot_repo: str, release_repo: str) -> AqlQuery:
    """All POMs of the snapshot and release repositories."""
    return AqlQuery(
        criteria=[repo_criterion(snapshot_repo, release_repo), matches("name", "*.pom")],
    )


def docker_manifests(repo: str) -> AqlQuery:
    """All image manifests of a Docker repository, with modification time."""
    return AqlQuery(
        criteria=[equals("repo", repo), equals("name", "manifest.json")],
        include=("repo", "path", "name", "modified"),
    )


def release_poms(repo: str, root: str) -> AqlQuery:
    """All POMs below ``root``, with creation time."""
    return AqlQuery(
        criteria=[
            equals("repo", repo),
            matches("path", f"{root}/*"),
            matches("name", "*.pom"),
        ],
        include=("repo", "path", "name", "created"),
    )


def release_version_files(repo: str, scope: str, version: str) -> AqlQuery:
    """POMs of exactly one version below ``scope``; one hit per module."""
    return AqlQuery(
        criteria=[
            equals("repo", repo),
            matches("path", f"{scope}/*"),
            matches("name", f"*-{version}.pom"),
        ],
        include=("repo", "path", "name", "created"),
    )


def fetch_descriptors(store: ResilientStore, query: AqlQuery) -> list[ArtifactDescriptor]:
    """Run a query and split each item path into logical path and version."""
    return store.query(query, ArtifactDescriptor.from_item)


def fetch_paths(store: ResilientStore, query: AqlQuery) -> list[ItemPath]:
    """Run a query keeping item paths whole."""
    return store.query(query, ItemPath.from_item)
