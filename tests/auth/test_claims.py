"""Unit Tests for RoleMapping and ClaimsResolver"""

import pytest

from microvolunteer.auth.claims import ClaimsResolver, RoleMapping, normalize_role
from microvolunteer.config import DEFAULT_ROLE_MAPPING, Settings
from microvolunteer.core.entities import Role
from microvolunteer.core.exceptions import InvalidIdentityException


@pytest.fixture
def resolver() -> ClaimsResolver:
    return ClaimsResolver(RoleMapping(DEFAULT_ROLE_MAPPING))


# ============================================================================
# Normalization & Mapping
# ============================================================================


class TestNormalizeRole:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("organizer", "organizer"),
            (" ORGANIZER ", "organizer"),
            ("ROLE_ADMIN", "admin"),
            ("Affected-Person", "affected_person"),
            ("affected person", "affected_person"),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_role(raw) == expected


class TestRoleMapping:
    def test_lookup_is_normalized(self):
        mapping = RoleMapping({"Organizer": "ORGANIZER"})
        assert mapping.lookup("ROLE_organizer") == Role.ORGANIZER
        assert "organizer" in mapping
        assert mapping.lookup("volunteer") is None

    def test_accepts_role_members(self):
        mapping = RoleMapping({"helper": Role.VOLUNTEER})
        assert mapping.lookup("helper") == Role.VOLUNTEER

    def test_unknown_target_rejected(self):
        with pytest.raises(ValueError, match="unknown role"):
            RoleMapping({"boss": "SUPERUSER"})

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            RoleMapping({"  ": "ADMIN"})

    def test_default_table(self):
        mapping = RoleMapping(DEFAULT_ROLE_MAPPING)
        assert len(mapping) == len(DEFAULT_ROLE_MAPPING)
        assert mapping.lookup("user") == Role.VOLUNTEER
        assert mapping.lookup("sensitive") == Role.AFFECTED_PERSON


# ============================================================================
# Role Resolution
# ============================================================================


class TestResolveRoles:
    def test_realm_roles_with_housekeeping_dropped(self, resolver):
        principal = resolver.resolve(
            {
                "sub": "u-1",
                "realm_access": {
                    "roles": ["organizer", "offline_access", "uma_authorization", "default-roles-mv"]
                },
            }
        )
        assert principal.roles == frozenset({Role.ORGANIZER})

    def test_configured_client_roles(self, resolver):
        principal = resolver.resolve(
            {
                "sub": "u-1",
                "resource_access": {
                    "microvolunteer": {"roles": ["admin"]},
                    "account": {"roles": ["manage-account"]},
                    "other-client": {"roles": ["organizer"]},
                },
            }
        )
        assert principal.roles == frozenset({Role.ADMIN})

    def test_sources_are_merged_and_deduplicated(self, resolver):
        principal = resolver.resolve(
            {
                "sub": "u-1",
                "realm_access": {"roles": ["volunteer", "ROLE_ORGANIZER"]},
                "resource_access": {"microvolunteer": {"roles": ["volunteer"]}},
                "roles": ["Affected-Person"],
            }
        )
        assert principal.roles == frozenset({Role.VOLUNTEER, Role.ORGANIZER, Role.AFFECTED_PERSON})

    def test_no_roles_gives_exactly_the_default(self, resolver):
        principal = resolver.resolve({"sub": "u-1"})
        assert principal.roles == frozenset({Role.VOLUNTEER})

    def test_only_unknown_roles_gives_default(self, resolver):
        principal = resolver.resolve({"sub": "u-1", "roles": ["wizard", 42, None]})
        assert principal.roles == frozenset({Role.VOLUNTEER})

    def test_malformed_role_claims_ignored(self, resolver):
        principal = resolver.resolve(
            {"sub": "u-1", "realm_access": "admin", "resource_access": ["admin"], "roles": "admin"}
        )
        assert principal.roles == frozenset({Role.VOLUNTEER})

    def test_configurable_default_and_client_ids(self):
        resolver = ClaimsResolver(
            RoleMapping(DEFAULT_ROLE_MAPPING),
            client_ids=["other-client"],
            default_role=Role.AFFECTED_PERSON,
        )
        assert resolver.resolve({"sub": "u-1"}).roles == frozenset({Role.AFFECTED_PERSON})
        principal = resolver.resolve(
            {"sub": "u-1", "resource_access": {"other-client": {"roles": ["organizer"]}}}
        )
        assert principal.roles == frozenset({Role.ORGANIZER})

    def test_invalid_default_role_rejected(self):
        with pytest.raises(ValueError, match="default_role"):
            ClaimsResolver(RoleMapping(DEFAULT_ROLE_MAPPING), default_role="nobody")

    def test_prefixed_default_role_resolves(self):
        resolver = ClaimsResolver(RoleMapping({}), default_role="ROLE_ORGANIZER")
        assert resolver.default_role == Role.ORGANIZER

    def test_from_settings(self):
        settings = Settings(
            role_mapping={"helper": "VOLUNTEER", "lead": "ORGANIZER"},
            default_role="helper",
            role_client_ids=["mv"],
        )
        resolver = ClaimsResolver.from_settings(settings)
        principal = resolver.resolve({"sub": "u-1", "resource_access": {"mv": {"roles": ["lead"]}}})
        assert principal.roles == frozenset({Role.ORGANIZER})
        assert resolver.default_role == Role.VOLUNTEER


# ============================================================================
# Identity
# ============================================================================


class TestResolveIdentity:
    @pytest.mark.parametrize("claims", [{}, {"sub": ""}, {"sub": "   "}, {"sub": 123}])
    def test_missing_subject_is_invalid_identity(self, resolver, claims):
        with pytest.raises(InvalidIdentityException):
            resolver.resolve(claims)

    def test_informational_fields(self, resolver):
        principal = resolver.resolve(
            {
                "sub": "u-1",
                "preferred_username": "jdoe",
                "email": "jdoe@example.org",
                "given_name": "Jane",
                "family_name": "Doe",
            }
        )
        assert principal.external_id == "u-1"
        assert principal.username == "jdoe"
        assert principal.email == "jdoe@example.org"
        assert principal.full_name == "Jane Doe"

    def test_name_fallbacks(self, resolver):
        principal = resolver.resolve({"sub": "u-1", "name": "J. Doe"})
        assert principal.username == "u-1"
        assert principal.full_name == "J. Doe"

        bare = resolver.resolve({"sub": "u-2", "username": "bare"})
        assert bare.username == "bare"
        assert bare.full_name == "bare"
        assert bare.email is None
