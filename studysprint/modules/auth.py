"""
Resolve Supabase access tokens to users.

Sign-up, sign-in and session refresh stay with the hosted auth
service; this module only asks it who a bearer token belongs to.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str] = None


class AuthError(Exception):
    """Raised when the token is missing, expired or rejected."""

    pass


class SupabaseAuthClient:
    """Thin client for the hosted auth ``/user`` endpoint."""

    def __init__(
        self,
        auth_url: str,
        api_key: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0
    ):
        self.auth_url = auth_url.rstrip("/")
        self.api_key = api_key
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def get_user(self, access_token: str) -> AuthenticatedUser:
        """
        Look up the user owning an access token.

        Raises:
            AuthError: If the token is rejected or the service fails
        """
        try:
            response = await self.client.get(
                f"{self.auth_url}/user",
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {access_token}"
                }
            )
        except httpx.HTTPError as e:
            logger.error(f"Auth service request failed: {e}")
            raise AuthError("Authentication service unavailable") from e

        if response.status_code in (401, 403):
            raise AuthError("Invalid authentication token")
        if response.is_error:
            logger.error(f"Auth service returned {response.status_code}")
            raise AuthError("Authentication service unavailable")

        try:
            data = response.json()
            return AuthenticatedUser(id=data["id"], email=data.get("email"))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Auth service returned an unreadable user: {e!r}")
            raise AuthError("Authentication service unavailable") from e

    async def aclose(self) -> None:
        await self.client.aclose()
