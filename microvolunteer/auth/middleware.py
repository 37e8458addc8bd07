"""
MicroVolunteer Auth Middleware

Bearer token → introspection → Principal, as a FastAPI dependency.
"""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.entities import Principal
from ..core.exceptions import InvalidIdentityException
from .claims import ClaimsResolver
from .introspection import (
    IdentityProviderUnavailableError,
    TokenIntrospectionClient,
    TokenVerificationError,
)

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)

# Set by init_auth() at application startup
_introspection_client: TokenIntrospectionClient | None = None
_claims_resolver: ClaimsResolver | None = None


def init_auth(
    introspection_client: TokenIntrospectionClient,
    claims_resolver: ClaimsResolver,
) -> None:
    """Register the collaborators used by get_principal"""
    global _introspection_client, _claims_resolver
    _introspection_client = introspection_client
    _claims_resolver = claims_resolver


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Principal:
    """Resolve the calling Principal from the Authorization header"""
    if credentials is None:
        raise _unauthorized("Missing bearer token")
    if _introspection_client is None or _claims_resolver is None:
        raise RuntimeError("Auth not initialized")

    try:
        claims = await _introspection_client.introspect(credentials.credentials)
    except TokenVerificationError as e:
        raise _unauthorized(str(e)) from e
    except IdentityProviderUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity provider unavailable",
        ) from e

    try:
        principal = _claims_resolver.resolve(claims)
    except InvalidIdentityException as e:
        logger.warning("invalid_identity", error=e.message)
        raise _unauthorized(e.message) from e

    logger.debug(
        "principal_resolved",
        principal_id=principal.external_id,
        roles=sorted(r.value for r in principal.roles),
    )
    return principal


__all__ = ["bearer_scheme", "get_principal", "init_auth"]
