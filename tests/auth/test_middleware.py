"""Unit Tests for the get_principal dependency"""

from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from microvolunteer.auth import middleware
from microvolunteer.auth.claims import ClaimsResolver, RoleMapping
from microvolunteer.auth.introspection import (
    IdentityProviderUnavailableError,
    TokenIntrospectionClient,
    TokenVerificationError,
)
from microvolunteer.config import DEFAULT_ROLE_MAPPING
from microvolunteer.core.entities import Role


@pytest.fixture
def mock_introspection():
    client = AsyncMock(spec=TokenIntrospectionClient)
    middleware.init_auth(client, ClaimsResolver(RoleMapping(DEFAULT_ROLE_MAPPING)))
    return client


def _bearer(token: str = "tok") -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetPrincipal:
    async def test_resolves_principal(self, mock_introspection):
        mock_introspection.introspect.return_value = {
            "active": True,
            "sub": "u-1",
            "realm_access": {"roles": ["organizer"]},
        }

        principal = await middleware.get_principal(_bearer())

        assert principal.external_id == "u-1"
        assert principal.roles == frozenset({Role.ORGANIZER})
        mock_introspection.introspect.assert_awaited_once_with("tok")

    async def test_missing_header_is_401(self, mock_introspection):
        with pytest.raises(HTTPException) as exc_info:
            await middleware.get_principal(None)
        assert exc_info.value.status_code == 401
        mock_introspection.introspect.assert_not_awaited()

    async def test_inactive_token_is_401(self, mock_introspection):
        mock_introspection.introspect.side_effect = TokenVerificationError("Token is not active")
        with pytest.raises(HTTPException) as exc_info:
            await middleware.get_principal(_bearer())
        assert exc_info.value.status_code == 401

    async def test_missing_subject_is_401(self, mock_introspection):
        mock_introspection.introspect.return_value = {"active": True}
        with pytest.raises(HTTPException) as exc_info:
            await middleware.get_principal(_bearer())
        assert exc_info.value.status_code == 401

    async def test_identity_provider_down_is_503(self, mock_introspection):
        mock_introspection.introspect.side_effect = IdentityProviderUnavailableError("down")
        with pytest.raises(HTTPException) as exc_info:
            await middleware.get_principal(_bearer())
        assert exc_info.value.status_code == 503
