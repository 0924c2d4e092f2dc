# GitHub repository access - PR files, file content, report comments
import base64
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from config.settings import Settings, get_settings
from schemas.webhook import PullRequestFile
from services.github_auth import github_headers
from utils.errors import FetchError

logger = logging.getLogger(__name__)

MAX_FILE_PAGES = 30  # GitHub caps the PR file listing at 3000 entries


class GitHubRepository:
    """Thin GitHub REST client; every call takes the installation token"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.settings = settings or get_settings()
        self.api_url = self.settings.github_api_url
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.github_timeout_seconds, transport=self.transport)

    async def list_pull_request_files(self, owner: str, repo: str, pr_number: int, token: str) -> List[PullRequestFile]:
        """Get the files changed by a pull request"""
        files = []
        page = 1

        async with self._client() as client:
            while True:
                try:
                    response = await client.get(
                        f"{self.api_url}/repos/{owner}/{repo}/pulls/{pr_number}/files",
                        params={"per_page": 100, "page": page},
                        headers=github_headers(token)
                    )
                except httpx.HTTPError as e:
                    raise FetchError(f"Failed to list PR files: {e}")

                if response.status_code != 200:
                    raise FetchError(f"Failed to list PR files: {response.status_code} - {response.text}")

                page_files = response.json()
                files.extend(PullRequestFile.model_validate(f) for f in page_files)

                if len(page_files) < 100:
                    break
                page += 1
                if page > MAX_FILE_PAGES:  # Safety limit
                    break

        return files

    async def get_file_content(self, owner: str, repo: str, path: str, ref: str, token: str) -> Optional[str]:
        """Get a file's decoded content at a ref, or None if it can't be fetched"""
        try:
            async with self._client() as client:
                response = await client.get(
                    f"{self.api_url}/repos/{owner}/{repo}/contents/{quote(path, safe='/')}",
                    params={"ref": ref},
                    headers=github_headers(token)
                )

            if response.status_code != 200:
                logger.warning(f"Could not fetch {path}@{ref}: {response.status_code}")
                return None

            content = response.json().get("content")
            if not content:
                return None
            return base64.b64decode(content).decode("utf-8", errors="replace")

        except Exception as e:
            logger.warning(f"Error fetching {path}@{ref}: {e}")
            return None

    async def create_comment(self, owner: str, repo: str, pr_number: int, body: str, token: str) -> Dict[str, Any]:
        """Post a comment on the pull request's conversation"""
        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.api_url}/repos/{owner}/{repo}/issues/{pr_number}/comments",
                    headers=github_headers(token),
                    json={"body": body}
                )
        except httpx.HTTPError as e:
            raise FetchError(f"PR comment post failed: {e}")

        if response.status_code != 201:
            raise FetchError(f"PR comment post failed: {response.status_code} - {response.text}")

        logger.info(f"Posted report comment on {owner}/{repo}#{pr_number}")
        return response.json()
