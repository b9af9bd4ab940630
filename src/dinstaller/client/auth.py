"""Session authentication against the session gateway (Cockpit style login)."""

import base64
import logging
from typing import Optional

import httpx

from dinstaller.errors import AuthenticationError, TransportError


class SessionAuthenticator:
    """Establishes and queries an authenticated gateway session."""

    def __init__(
        self,
        gateway_url: str = "http://localhost:9090",
        login_path: str = "/cockpit/login",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the authenticator.

        Args:
            gateway_url: Base URL of the session gateway
            login_path: Login endpoint (credentials and session probing)
            timeout: Request timeout in seconds
            client: Pre-built httpx client sharing the session cookies
        """
        self.logger = logging.getLogger("dinstaller.client.auth")
        self.gateway_url = gateway_url
        self.login_path = login_path
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=gateway_url, timeout=timeout)

    async def authorize(self, username: str, secret: str) -> None:
        """Log in with basic credentials, requesting administrative privileges.

        Raises:
            AuthenticationError: Gateway rejected the credentials (reason is
                the gateway's status text)
            TransportError: Gateway could not be reached
        """
        credentials = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("ascii")
        headers = {"Authorization": f"Basic {credentials}", "X-Superuser": "any"}

        try:
            response = await self._client.post(self.login_path, headers=headers)
        except httpx.HTTPError as e:
            raise TransportError(f"Login request failed: {e}") from e

        if not response.is_success:
            self.logger.info(f"Login rejected for {username}: {response.status_code}")
            raise AuthenticationError(response.reason_phrase)

        self.logger.info(f"User {username} logged in")

    async def is_logged_in(self) -> bool:
        """Probe the login endpoint without credentials.

        Returns:
            True if an existing session is valid, False otherwise
        """
        try:
            response = await self._client.get(self.login_path)
        except httpx.HTTPError as e:
            self.logger.warning(f"Session probe failed: {e}")
            return False
        return response.is_success

    async def current_user(self) -> str:
        """Name of the logged in user, from the gateway's session info."""
        response = await self._client.get(self.login_path)
        response.raise_for_status()
        return response.json()["user"]

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
