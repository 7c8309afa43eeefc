"""
Artifactory Client - raw HTTP access to an Artifactory instance.

Covers the endpoints the retention policies need: AQL search, storage
folder listing, the Docker registry catalog, item deletion and the
system version. No retries happen here; see ResilientStore.
"""

import logging
from typing import Any

import httpx
from pydantic import BaseModel

from artifactory_cleaner.core.exceptions import RemoteStoreError

logger = logging.getLogger(__name__)


class ArtifactoryClientConfig(BaseModel):
    """Connection settings for one Artifactory instance."""

    url: str
    user: str
    password: str
    timeout_seconds: int = 60


class ArtifactoryClient:
    """
    Thin synchronous client for the Artifactory REST API.

    Every ``httpx.HTTPError`` is converted to RemoteStoreError so that
    callers only deal with the cleaner's error taxonomy. The underlying
    ``httpx.Client`` is safe to share across worker threads.
    """

    def __init__(
        self,
        config: ArtifactoryClientConfig,
        http_client: httpx.Client | None = None,
    ):
        """
        Initialize the client.

        Args:
            config: Connection settings
            http_client: Pre-built client, mainly for tests
        """
        self._config = config
        self._base_url = config.url.rstrip("/")
        self._client = http_client or httpx.Client(
            auth=(config.user, config.password),
            timeout=config.timeout_seconds,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            raise RemoteStoreError(
                f"HTTP error from Artifactory: {e.response.status_code}",
                method=method,
                url=url,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise RemoteStoreError(
                f"HTTP error during Artifactory request: {e}",
                method=method,
                url=url,
            ) from e

    def _json(self, response: httpx.Response, method: str, url: str) -> dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise RemoteStoreError(
                f"Invalid JSON in Artifactory response: {e}",
                method=method,
                url=url,
                status_code=response.status_code,
            ) from e

    def search_aql(self, query: str) -> list[dict[str, Any]]:
        """
        Run an AQL query.

        Args:
            query: Rendered AQL text, e.g. ``items.find({...}).include(...)``

        Returns:
            The raw ``results`` list
        """
        url = f"{self._base_url}/api/search/aql"
        response = self._request(
            "POST",
            url,
            content=query.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        return self._json(response, "POST", url).get("results", [])

    def list_folder(self, repo: str, path: str) -> list[dict[str, Any]]:
        """
        List the immediate children of a storage folder.

        A missing folder yields an empty list.
        """
        path = path.strip("/")
        url = f"{self._base_url}/api/storage/{repo}/{path}" if path else (
            f"{self._base_url}/api/storage/{repo}"
        )
        try:
            response = self._request("GET", url)
        except RemoteStoreError as e:
            if e.status_code == 404:
                return []
            raise
        return self._json(response, "GET", url).get("children", [])

    def list_docker_images(self, repo: str) -> list[str]:
        """List image names in a Docker repository."""
        url = f"{self._base_url}/api/docker/{repo}/v2/_catalog"
        response = self._request("GET", url)
        return self._json(response, "GET", url).get("repositories", []) or []

    def list_docker_tags(self, repo: str, image: str) -> list[str]:
        """List tag names of one image."""
        url = f"{self._base_url}/api/docker/{repo}/v2/{image}/tags/list"
        try:
            response = self._request("GET", url)
        except RemoteStoreError as e:
            if e.status_code == 404:
                return []
            raise
        return self._json(response, "GET", url).get("tags", []) or []

    def delete(self, repo: str, path: str) -> None:
        """
        Delete an item or folder.

        Deleting a path that is already gone is not an error.
        """
        url = f"{self._base_url}/{repo}/{path.strip('/')}"
        try:
            self._request("DELETE", url)
        except RemoteStoreError as e:
            if e.status_code == 404:
                logger.debug("Already absent: %s/%s", repo, path)
                return
            raise

    def system_version(self) -> dict[str, Any]:
        """Return the server's version, revision and addons."""
        url = f"{self._base_url}/api/system/version"
        response = self._request("GET", url)
        return self._json(response, "GET", url)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, *args):
        """Context manager exit."""
        self.close()
