"""
Authentication handling for the Auth0 Management API.
Uses the OAuth 2.0 client credentials flow of a machine-to-machine application.
"""

import logging
import aiohttp
from datetime import datetime, timedelta
from typing import Dict, Optional

from ..errors import RenderError

logger = logging.getLogger(__name__)


class Auth0Authenticator:
    """Handles authentication for Management API requests."""

    def __init__(self, domain: str, session: aiohttp.ClientSession):
        self.domain = domain
        self.session = session

        # Credentials
        self.client_id: Optional[str] = None
        self.client_secret: Optional[str] = None

        # OAuth state
        self.access_token: Optional[str] = None
        self.token_expires_at: Optional[datetime] = None

    @property
    def token_url(self) -> str:
        return f"https://{self.domain}/oauth/token"

    @property
    def audience(self) -> str:
        return f"https://{self.domain}/api/v2/"

    def set_client_credentials(self, client_id: str, client_secret: str):
        """Set OAuth 2.0 client credentials."""
        self.client_id = client_id
        self.client_secret = client_secret

    async def fetch_access_token(self) -> str:
        """Fetch a Management API bearer token using client credentials flow."""
        if not self.client_id or not self.client_secret:
            raise RenderError(f"No client credentials configured for {self.domain}")

        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
        }

        try:
            async with self.session.post(self.token_url, json=payload) as response:
                logger.debug(f"Token request for {self.domain} -> Status: {response.status}")
                if response.status != 200:
                    error_text = await response.text()
                    raise RenderError(
                        f"Failed to get Management API token for {self.domain}: {response.status} - {error_text}",
                        status=response.status,
                    )
                token_data = await response.json()
        except aiohttp.ClientError as e:
            raise RenderError(f"Token request for {self.domain} failed: {e}") from e

        access_token = token_data.get("access_token")
        if not access_token:
            raise RenderError(f"Token response for {self.domain} carried no access_token")

        expires_in = token_data.get("expires_in", 86400)
        # Refresh 5 minutes early
        self.token_expires_at = datetime.now() + timedelta(seconds=max(expires_in - 300, 0))
        return access_token

    async def ensure_valid_token(self):
        """Ensure we have a valid access token, refresh if needed."""
        if self.access_token and self.token_expires_at and datetime.now() < self.token_expires_at:
            return
        self.access_token = await self.fetch_access_token()

    async def get_headers(self) -> Dict[str, str]:
        """Get current authentication headers, refreshing the token if needed."""
        await self.ensure_valid_token()
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }
