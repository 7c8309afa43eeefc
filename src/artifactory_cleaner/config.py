"""
Cleaner configuration.

Settings come from a YAML file, with credentials overridable from the
environment:

- ARTIFACTORY_CLEANER_CONFIG: Path to the YAML file
- ARTIFACTORY_URL, ARTIFACTORY_USER, ARTIFACTORY_PASSWORD: Main client
- ARTIFACTORY_RELEASE_USER, ARTIFACTORY_RELEASE_PASSWORD: Release cleanup
"""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from artifactory_cleaner.core.exceptions import ConfigurationError
from artifactory_cleaner.core.models import ReleaseModuleConfig
from artifactory_cleaner.store.client import ArtifactoryClientConfig
from artifactory_cleaner.store.resilient import RetryPolicy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("artifactory-cleaner.yaml")
CONFIG_PATH_ENV = "ARTIFACTORY_CLEANER_CONFIG"

_ENV_OVERRIDES = {
    "ARTIFACTORY_URL": "url",
    "ARTIFACTORY_USER": "user",
    "ARTIFACTORY_PASSWORD": "password",
    "ARTIFACTORY_RELEASE_USER": "release_user",
    "ARTIFACTORY_RELEASE_PASSWORD": "release_password",
}


class SnapshotStrategy(Enum):
    """How snapshot candidates are found."""

    QUERY = "query"
    TREE = "tree"


class DockerStrategy(Enum):
    """How docker tag candidates are found."""

    QUERY = "query"
    CATALOG = "catalog"


class ArtifactorySettings(BaseModel):
    url: str | None = None
    user: str | None = None
    password: str | None = None
    release_user: str | None = None
    release_password: str | None = None
    timeout_seconds: int = Field(default=60, gt=0)


class RetrySettings(BaseModel):
    count: int = Field(default=12, ge=1, description="Maximum attempts per call")
    sleep: float = Field(default=15, ge=0, description="Seconds between attempts")


class SnapshotSettings(BaseModel):
    repo: str | None = None
    release_repo: str | None = None
    strategy: SnapshotStrategy = SnapshotStrategy.QUERY
    root: str = ""


class DockerSettings(BaseModel):
    repo: str | None = None
    tags_to_keep: int = Field(default=5, ge=0)
    filter_file: Path | None = None
    strategy: DockerStrategy = DockerStrategy.QUERY


class CleanerConfig(BaseModel):
    """Complete cleaner configuration."""

    artifactory: ArtifactorySettings = Field(default_factory=ArtifactorySettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    snapshot: SnapshotSettings = Field(default_factory=SnapshotSettings)
    docker: DockerSettings = Field(default_factory=DockerSettings)
    releases: list[str] = Field(default_factory=list)
    workers: int = Field(default=4, ge=1)
    dry_run: bool = False

    model_config = {"extra": "forbid"}

    @property
    def snapshot_enabled(self) -> bool:
        return bool(self.snapshot.repo and self.snapshot.release_repo)

    @property
    def docker_enabled(self) -> bool:
        return bool(self.docker.repo)

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry.count,
            delay_seconds=self.retry.sleep,
        )

    def release_modules(self) -> list[ReleaseModuleConfig]:
        """Parse every release clean line."""
        return [ReleaseModuleConfig.parse(line) for line in self.releases]

    def client_config(self, release: bool = False) -> ArtifactoryClientConfig:
        """
        Build connection settings for the main or the release client.

        The release client falls back to the main credentials.

        Raises:
            ConfigurationError: If url, user or password is missing
        """
        settings = self.artifactory
        user, password = settings.user, settings.password
        if release and settings.release_user:
            user = settings.release_user
            password = settings.release_password or password

        for key, value in (("url", settings.url), ("user", user), ("password", password)):
            if not value:
                raise ConfigurationError(
                    f"configuration property: artifactory.{key} must be defined",
                    config_key=f"artifactory.{key}",
                )

        return ArtifactoryClientConfig(
            url=settings.url,
            user=user,
            password=password,
            timeout_seconds=settings.timeout_seconds,
        )

    def has_release_credentials(self) -> bool:
        return bool(self.artifactory.release_user)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Malformed configuration file: {e}",
            config_file=str(path),
        ) from e
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read configuration file: {e}",
            config_file=str(path),
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Configuration file must contain a mapping",
            config_file=str(path),
        )
    return data


def load_config(
    path: Path | None = None,
    environ: dict[str, str] | None = None,
) -> CleanerConfig:
    """
    Load configuration from a YAML file and the environment.

    A missing file is not an error: the configuration then comes from
    the environment only.

    Args:
        path: Explicit file path; defaults to $ARTIFACTORY_CLEANER_CONFIG
            or ./artifactory-cleaner.yaml
        environ: Environment mapping, defaults to os.environ

    Returns:
        Validated CleanerConfig

    Raises:
        ConfigurationError: If the file is malformed or fails validation
    """
    environ = os.environ if environ is None else environ
    if path is None:
        path = Path(environ.get(CONFIG_PATH_ENV, str(DEFAULT_CONFIG_PATH)))

    data: dict[str, Any] = {}
    if path.is_file():
        data = _read_yaml(path)
    else:
        logger.warning("File %s not found, configuration from environment", path)

    # empty YAML sections load as None
    data = {key: value for key, value in data.items() if value is not None}

    artifactory = dict(data.get("artifactory") or {})
    for env_var, key in _ENV_OVERRIDES.items():
        if environ.get(env_var):
            artifactory[key] = environ[env_var]
    data["artifactory"] = artifactory

    try:
        config = CleanerConfig.model_validate(data)
    except PydanticValidationError as e:
        raise ConfigurationError(
            "Invalid configuration",
            config_file=str(path),
            details={"validation_errors": [err["msg"] for err in e.errors()]},
        ) from e

    logger.info("Config loaded")
    return config
