"""
GitHub contents API client for the documentation repository.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

class StaleContentError(Exception):
    """Raised when a file changed since its sha was fetched."""
    pass

class GitHubClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        headers = {"Accept": "application/vnd.github.v3+json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self):
        self.client.close()

    def list_directory(self, repository: str, path: str, branch: Optional[str] = None) -> List[Dict[str, Any]]:
        """List entries (name, sha, ...) of a directory in the repository."""
        params = {"ref": branch} if branch else None
        response = self.client.get(f"/repos/{repository}/contents/{path}", params=params)
        if response.status_code == 404:
            return []
        response.raise_for_status()
        return response.json()

    def file_sha(self, repository: str, path: str, filename: str, branch: Optional[str] = None) -> Optional[str]:
        """Current content hash of `path/filename`, or None if it does not exist."""
        for entry in self.list_directory(repository, path, branch):
            if entry.get("name") == filename:
                return entry.get("sha")
        return None

    def update_file(self, repository: str, file_path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        PUT new file contents.
        The payload's `sha` must match the file's current state.
        """
        response = self.client.put(f"/repos/{repository}/contents/{file_path}", json=payload)
        if response.status_code == 409 or (response.status_code == 422 and "sha" in response.text):
            raise StaleContentError(
                f"{repository}/{file_path} changed since sha {payload.get('sha')} was fetched"
            )
        response.raise_for_status()
        return response.json()

def encode_content(text: str) -> str:
    return base64.b64encode(text.encode()).decode()
