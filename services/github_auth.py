# GitHub App authentication - App JWTs and cached installation tokens
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Optional

import httpx
import jwt

from config.settings import Settings, get_settings
from utils.errors import AuthError

logger = logging.getLogger(__name__)

JWT_CLOCK_SKEW_SECONDS = 60
JWT_LIFETIME_SECONDS = 600
TOKEN_REFRESH_MARGIN_SECONDS = 300
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


def github_headers(token: str, scheme: str = 'Bearer') -> dict:
    """Standard headers for GitHub API requests"""
    return {
        "Authorization": f"{scheme} {token}",
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28"
    }


@dataclass
class InstallationToken:
    token: str
    expires_at: float  # epoch seconds, already shortened by the refresh margin


class TokenCache:
    """Installation tokens keyed by installation id

    Each installation has its own lock so concurrent requests for the same
    installation share a single token exchange.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._tokens: Dict[int, InstallationToken] = {}
        self._locks: Dict[int, asyncio.Lock] = {}
        self._clock = clock

    def lock_for(self, installation_id: int) -> asyncio.Lock:
        return self._locks.setdefault(installation_id, asyncio.Lock())

    def get(self, installation_id: int) -> Optional[str]:
        cached = self._tokens.get(installation_id)
        if cached and self._clock() < cached.expires_at:
            return cached.token
        if cached:
            del self._tokens[installation_id]
        return None

    def put(self, installation_id: int, token: str, expires_at: float):
        self._tokens[installation_id] = InstallationToken(token=token, expires_at=expires_at)

    def invalidate(self, installation_id: int):
        self._tokens.pop(installation_id, None)

    def __len__(self) -> int:
        return len(self._tokens)


class GitHubAuth:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[TokenCache] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time
    ):
        self.settings = settings or get_settings()
        self.clock = clock
        self.cache = cache or TokenCache(clock=clock)
        self.transport = transport

    def generate_app_jwt(self) -> str:
        """Generate a JWT for GitHub App authentication

        GitHub Apps authenticate using JWTs signed with the app's private key.
        The JWT is valid for max 10 minutes and is backdated a minute to absorb
        clock skew.
        """
        if not self.settings.github_app_id or not self.settings.github_private_key:
            raise AuthError("GitHub App ID or Private Key not configured")

        now = int(self.clock())
        payload = {
            "iat": now - JWT_CLOCK_SKEW_SECONDS,
            "exp": now + JWT_LIFETIME_SECONDS,
            "iss": self.settings.github_app_id
        }

        try:
            return jwt.encode(payload, self.settings.github_private_key_pem, algorithm="RS256")
        except Exception as e:
            raise AuthError(f"Failed to generate GitHub App JWT: {e}")

    async def get_installation_token(self, installation_id: int) -> str:
        """Return a valid installation token, exchanging a fresh App JWT if needed"""
        if not installation_id:
            raise AuthError("installation_id is required")

        async with self.cache.lock_for(installation_id):
            token = self.cache.get(installation_id)
            if token:
                return token

            token, expires_in = await self._exchange(installation_id)
            self.cache.put(
                installation_id,
                token,
                self.clock() + expires_in - TOKEN_REFRESH_MARGIN_SECONDS
            )
            logger.info(f"Installation token refreshed for installation {installation_id}")
            return token

    async def _exchange(self, installation_id: int):
        app_jwt = self.generate_app_jwt()

        try:
            async with httpx.AsyncClient(timeout=self.settings.github_timeout_seconds, transport=self.transport) as client:
                response = await client.post(
                    f"{self.settings.github_api_url}/app/installations/{installation_id}/access_tokens",
                    headers=github_headers(app_jwt)
                )
        except httpx.HTTPError as e:
            raise AuthError(f"Error getting installation access token: {e}")

        if response.status_code != 201:
            raise AuthError(f"Failed to get installation token: {response.status_code} - {response.text}")

        token_data = response.json()
        token = token_data.get("token")
        if not token:
            raise AuthError("Installation token response did not include a token")

        return token, self._token_lifetime(token_data)

    def _token_lifetime(self, token_data: dict) -> int:
        # The REST API sends expires_at; some proxies send expires_in
        if token_data.get("expires_in"):
            return int(token_data["expires_in"])

        expires_at = token_data.get("expires_at")
        if expires_at:
            try:
                expiry = datetime.fromisoformat(expires_at.replace("Z", "+00:00"))
                return int(expiry.timestamp() - self.clock())
            except ValueError:
                logger.warning(f"Unparseable token expiry: {expires_at}")

        return DEFAULT_TOKEN_LIFETIME_SECONDS
