# GitHub webhook handling - signature check, PR fan-out, consolidated report
import asyncio
import json
import logging
from typing import List, Optional, Tuple

from fastapi import BackgroundTasks
from pydantic import ValidationError

from config.settings import Settings, get_settings
from schemas.scan import Scan
from schemas.webhook import PullRequestEvent, PullRequestFile
from services.github_auth import GitHubAuth
from services.github_service import GitHubRepository
from services.report_service import format_pr_comment
from services.scanner_service import ScannerService, detect_language, is_scannable
from utils.crypto import verify_github_signature
from utils.errors import AuthError, ParseError

logger = logging.getLogger(__name__)

SCAN_ACTIONS = frozenset({'opened', 'synchronize'})


class WebhookService:
    """Turns GitHub deliveries into PR scans

    Every delivery is answered with 200 (or the configured reject status for bad
    signatures) right away; the scan itself runs after the reply and its
    failures are only logged.
    """

    def __init__(
        self,
        scanner: ScannerService,
        github_auth: GitHubAuth,
        github_repo: GitHubRepository,
        settings: Optional[Settings] = None
    ):
        self.scanner = scanner
        self.github_auth = github_auth
        self.github_repo = github_repo
        self.settings = settings or get_settings()

    def verify_signature(self, body: bytes, signature: Optional[str]) -> bool:
        if not self.settings.github_webhook_secret:
            logger.error("GITHUB_WEBHOOK_SECRET is not configured; rejecting webhook")
            return False
        if not signature:
            logger.warning("Missing X-Hub-Signature-256 header")
            return False
        return verify_github_signature(body, signature, self.settings.github_webhook_secret)

    def parse_event(self, body: bytes) -> PullRequestEvent:
        try:
            return PullRequestEvent.model_validate(json.loads(body))
        except (ValueError, ValidationError) as e:
            raise ParseError(f"Invalid pull_request payload: {e}")

    async def handle_delivery(
        self,
        body: bytes,
        signature: Optional[str],
        event: Optional[str],
        background_tasks: BackgroundTasks
    ) -> Tuple[int, str]:
        """Returns (status_code, message) for the HTTP reply

        PR scans are queued on background_tasks so the reply goes out before
        any file is fetched or sent to a provider.
        """
        logger.info(f"GitHub webhook received: event={event}")

        if not self.verify_signature(body, signature):
            logger.warning("Invalid webhook signature")
            return self.settings.webhook_reject_status, "Ignored"

        if event != "pull_request":
            logger.info(f"Ignoring event: {event}")
            return 200, "OK"

        try:
            payload = self.parse_event(body)
        except ParseError as e:
            logger.error(f"Payload parse failed: {e}")
            return 200, "Invalid payload"

        if payload.action not in SCAN_ACTIONS:
            logger.info(f"Skipping action: {payload.action}")
            return 200, "OK"

        background_tasks.add_task(self.run_pull_request, payload)
        return 200, "Accepted"

    async def run_pull_request(self, payload: PullRequestEvent) -> List[Scan]:
        """Background entry point; failures are logged, never raised"""
        try:
            return await self.handle_pull_request(payload)
        except Exception as e:
            logger.exception(f"PR handler failed: {e}")
            return []

    async def handle_pull_request(self, payload: PullRequestEvent) -> List[Scan]:
        if payload.action not in SCAN_ACTIONS:
            logger.info(f"Skipping action: {payload.action}")
            return []

        if not payload.installation:
            raise AuthError("Missing installation ID")

        owner = payload.repository.owner.login
        repo = payload.repository.name
        repo_full_name = payload.repository.full_name
        pr_number = payload.pull_request.number
        ref = payload.pull_request.head.sha

        logger.info(f"Scanning PR {repo_full_name}#{pr_number} at {ref[:7]}")

        token = await self.github_auth.get_installation_token(payload.installation.id)
        files = await self.github_repo.list_pull_request_files(owner, repo, pr_number, token)

        scannable = [f for f in files if f.status != "removed" and is_scannable(f.filename)]
        if not scannable:
            logger.info(f"No scannable source files in {repo_full_name}#{pr_number} ({len(files)} changed)")
            return []

        logger.info(f"Found {len(scannable)} scannable files out of {len(files)}")

        semaphore = asyncio.Semaphore(max(1, self.settings.scan_concurrency))

        async def bounded(file: PullRequestFile) -> Optional[Scan]:
            async with semaphore:
                return await self._scan_file(file, owner, repo, repo_full_name, pr_number, ref, token)

        results = await asyncio.gather(*(bounded(f) for f in scannable))
        scans = [scan for scan in results if scan is not None]

        try:
            await self.github_repo.create_comment(owner, repo, pr_number, format_pr_comment(scans), token)
        except Exception as e:
            logger.error(f"Comment failed for {repo_full_name}#{pr_number}: {e}")

        return scans

    async def _scan_file(
        self,
        file: PullRequestFile,
        owner: str,
        repo: str,
        repo_full_name: str,
        pr_number: int,
        ref: str,
        token: str
    ) -> Optional[Scan]:
        try:
            content = await self.github_repo.get_file_content(owner, repo, file.filename, ref, token)
            if not content:
                logger.info(f"Skipping {file.filename}: no content")
                return None

            return await self.scanner.scan_code(
                content,
                file.filename,
                repo_full_name,
                pr_number,
                detect_language(file.filename)
            )
        except Exception as e:
            logger.error(f"File scan failed: {file.filename}: {e}")
            return None
