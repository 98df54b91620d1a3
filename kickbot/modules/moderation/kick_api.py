"""Kick public API client for chat moderation endpoints.

Provides message deletion, user timeouts and bans.
"""

from typing import Optional, Any

import httpx

from kickbot.core.config import settings


class KickAPIError(Exception):
    """Exception raised for Kick API errors."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class KickModerationClient:
    """Client for the Kick moderation endpoints.

    Each call opens its own ``httpx.AsyncClient`` unless a shared client is
    injected.
    """

    def __init__(
        self,
        access_token: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize client with access token.

        Args:
            access_token: OAuth2 access token of the broadcaster/bot account
            base_url: API base URL (defaults to settings.KICK_API_BASE)
            timeout: Request timeout in seconds
            http_client: Optional shared AsyncClient
        """
        self.access_token = access_token
        self.base_url = (base_url or settings.KICK_API_BASE).rstrip("/")
        self.timeout = timeout or settings.KICK_API_TIMEOUT_SECONDS
        self._http_client = http_client
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        }

    @classmethod
    def from_settings(
        cls,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "KickModerationClient":
        """Create a client from KICK_ACCESS_TOKEN and KICK_API_BASE.

        Raises:
            KickAPIError: If no access token is configured
        """
        if not settings.KICK_ACCESS_TOKEN:
            raise KickAPIError("KICK_ACCESS_TOKEN is not configured")
        return cls(settings.KICK_ACCESS_TOKEN, http_client=http_client)

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            if self._http_client is not None:
                response = await self._http_client.request(
                    method, url, json=json, headers=self.headers, timeout=self.timeout
                )
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.request(
                        method, url, json=json, headers=self.headers, timeout=self.timeout
                    )
        except httpx.HTTPError as e:
            raise KickAPIError(f"Request to {path} failed: {e}") from e

        if not response.is_success:
            raise KickAPIError(
                f"HTTP {response.status_code}: {response.text}",
                status_code=response.status_code,
                details={"path": path},
            )

        return response

    async def delete_message(self, message_id: str) -> None:
        """Delete a chat message.

        Raises:
            KickAPIError: If API call fails
        """
        await self._request("DELETE", f"/chat/messages/{message_id}")

    async def timeout_user(
        self,
        user_id: int,
        duration: int,
        reason: Optional[str] = None,
    ) -> None:
        """Timeout a user.

        Args:
            user_id: Kick user ID
            duration: Timeout duration in seconds
            reason: Reason shown to moderators

        Raises:
            KickAPIError: If API call fails
        """
        await self._request(
            "POST",
            "/channels/timeouts",
            json={
                "banned_user_id": user_id,
                "duration": duration,
                "reason": reason or "Moderation action",
            },
        )

    async def ban_user(self, user_id: int, reason: Optional[str] = None) -> None:
        """Ban a user permanently.

        Raises:
            KickAPIError: If API call fails
        """
        await self._request(
            "POST",
            "/channels/bans",
            json={
                "banned_user_id": user_id,
                "reason": reason or "Banned",
            },
        )
