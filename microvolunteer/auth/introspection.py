"""
Token Introspection Client

Verifies bearer tokens against the identity provider's OAuth 2.0 token
introspection endpoint (RFC 7662). Only active tokens come back as claims.
"""

from typing import Any

import httpx
import structlog

logger = structlog.get_logger()


class TokenVerificationError(Exception):
    """Token is inactive, expired or malformed"""


class IdentityProviderUnavailableError(Exception):
    """Identity provider could not be reached or answered with an error"""


class TokenIntrospectionClient:
    """OAuth 2.0 Token Introspection Client"""

    def __init__(
        self,
        introspection_url: str,
        client_id: str,
        client_secret: str | None = None,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.introspection_url = introspection_url
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self._transport = transport

    def _auth(self) -> httpx.BasicAuth | None:
        if self.client_secret is None:
            return None
        return httpx.BasicAuth(self.client_id, self.client_secret)

    async def introspect(self, token: str) -> dict[str, Any]:
        """
        Introspect a bearer token

        Args:
            token: Raw access token

        Returns:
            Claims of the active token

        Raises:
            TokenVerificationError: If the token is not active
            IdentityProviderUnavailableError: If the endpoint cannot be used
        """
        if not token:
            raise TokenVerificationError("Empty bearer token")

        data = {"token": token, "token_type_hint": "access_token"}
        if self.client_secret is None:
            data["client_id"] = self.client_id

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport, trust_env=False
            ) as client:
                response = await client.post(
                    self.introspection_url,
                    data=data,
                    auth=self._auth(),
                    headers={"Accept": "application/json"},
                )
        except httpx.RequestError as e:
            logger.error("token_introspection_error", error=str(e))
            raise IdentityProviderUnavailableError(str(e)) from e

        if response.status_code != 200:
            logger.warning("token_introspection_failed", status_code=response.status_code)
            raise IdentityProviderUnavailableError(
                f"Introspection endpoint returned {response.status_code}"
            )

        try:
            claims = response.json()
        except ValueError as e:
            raise IdentityProviderUnavailableError("Introspection response is not JSON") from e

        if not isinstance(claims, dict) or claims.get("active") is not True:
            logger.info("token_inactive")
            raise TokenVerificationError("Token is not active")

        return claims
