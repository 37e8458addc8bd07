"""Authentication: token introspection and claims → Principal resolution."""

from .claims import ClaimsResolver, RoleMapping, normalize_role
from .introspection import (
    IdentityProviderUnavailableError,
    TokenIntrospectionClient,
    TokenVerificationError,
)
from .middleware import get_principal, init_auth

__all__ = [
    "ClaimsResolver",
    "IdentityProviderUnavailableError",
    "RoleMapping",
    "TokenIntrospectionClient",
    "TokenVerificationError",
    "get_principal",
    "init_auth",
    "normalize_role",
]
