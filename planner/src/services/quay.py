"""
Image registry API client (Quay v1 endpoints).
"""

import logging
from enum import Enum
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

class RegistryAuthorizationError(Exception):
    """Raised when the registry refuses our credentials."""
    pass

class RepositoryStatus(str, Enum):
    CREATED = "created"
    EXISTS = "exists"
    SKIPPED = "skipped"

class QuayClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client = httpx.Client(
            base_url=base_url.rstrip("/") + "/api/v1",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self):
        self.client.close()

    def create_repository(
        self,
        namespace: str,
        repository: str,
        visibility: str = "public",
        description: str = "",
    ) -> str:
        """
        Create a repository, treating an existing one as success.

        Authorization failures are raised. Any other failure is logged and
        ignored, the following push reports problems that matter.
        """
        body = {
            "namespace": namespace,
            "repository": repository,
            "visibility": visibility,
            "description": description,
        }
        try:
            response = self.client.post("/repository", json=body)
        except httpx.TransportError as e:
            logger.warning(f"Could not create repository {namespace}/{repository}: {e}")
            return RepositoryStatus.SKIPPED

        if response.is_success:
            logger.info(f"Created repository {namespace}/{repository}")
            return RepositoryStatus.CREATED

        if response.status_code in (401, 403):
            raise RegistryAuthorizationError(
                f"Registry refused to create {namespace}/{repository}: HTTP {response.status_code}"
            )

        # the registry answers 400 both for an existing repository and for a bad request
        if response.status_code == 409 or (
            response.status_code == 400 and "already exists" in response.text.lower()
        ):
            logger.info(f"Repository {namespace}/{repository} already exists")
            return RepositoryStatus.EXISTS

        logger.warning(
            f"Repository creation for {namespace}/{repository} returned HTTP {response.status_code}, ignoring"
        )
        return RepositoryStatus.SKIPPED

    def update_description(self, namespace: str, repository: str, payload: str):
        """PUT an already JSON-encoded `{"description": ...}` document."""
        response = self.client.put(
            f"/repository/{namespace}/{repository}",
            content=payload,
            headers={"Content-Type": "application/json"},
        )
        response.raise_for_status()
        logger.info(f"Updated description of {namespace}/{repository}")
