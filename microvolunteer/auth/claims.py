"""
Claims Resolution

Turns the claims of an already-verified identity token into a Principal.
Role strings come from several places in a Keycloak-style token and are
normalized through a declarative RoleMapping; anything that does not map is
ignored, and a principal always ends up with at least one role.
"""

import re
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

import structlog

from ..config import Settings
from ..core.entities import Principal, Role
from ..core.exceptions import InvalidIdentityException

logger = structlog.get_logger()

DEFAULT_CLIENT_IDS = ("microvolunteer", "account")
DEFAULT_IGNORED_ROLES = ("offline_access", "uma_authorization")
_DEFAULT_ROLES_PREFIX = "default-roles-"


def normalize_role(raw: str) -> str:
    """
    Canonical form of an external role string

    " ROLE_Affected-Person " -> "affected_person"
    """
    value = raw.strip().lower()
    if value.startswith("role_"):
        value = value[len("role_") :]
    return re.sub(r"[\s\-]+", "_", value)


class RoleMapping:
    """
    Declarative table {external role string → Role}

    Keys are normalized on construction, so "Organizer", "ROLE_ORGANIZER" and
    "organizer" all hit the same entry. Every target must name a Role.
    """

    def __init__(self, table: Mapping[str, str | Role]):
        entries: dict[str, Role] = {}
        for external, target in table.items():
            key = normalize_role(external)
            if not key:
                raise ValueError("role_mapping contains an empty role name")
            entries[key] = self._to_role(external, target)
        self._entries = entries

    @staticmethod
    def _to_role(external: str, target: str | Role) -> Role:
        if isinstance(target, Role):
            return target
        try:
            return Role[str(target).strip().upper()]
        except KeyError:
            raise ValueError(
                f"role_mapping entry '{external}' targets unknown role '{target}'"
            ) from None

    @classmethod
    def from_settings(cls, settings: Settings) -> "RoleMapping":
        return cls(settings.role_mapping)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, raw: object) -> bool:
        return isinstance(raw, str) and normalize_role(raw) in self._entries

    def lookup(self, raw: str) -> Role | None:
        """Map an external role string, or None when it is unknown"""
        return self._entries.get(normalize_role(raw))


class ClaimsResolver:
    """Verified claims → Principal"""

    def __init__(
        self,
        mapping: RoleMapping,
        client_ids: Iterable[str] = DEFAULT_CLIENT_IDS,
        default_role: str | Role = "USER",
        ignored_roles: Iterable[str] = DEFAULT_IGNORED_ROLES,
    ):
        self.mapping = mapping
        self.client_ids = tuple(client_ids)
        self.ignored_roles = frozenset(normalize_role(r) for r in ignored_roles)
        self.default_role = self._resolve_default(default_role)

    def _resolve_default(self, default_role: str | Role) -> Role:
        if isinstance(default_role, Role):
            return default_role
        role = self.mapping.lookup(default_role)
        if role is None:
            try:
                role = Role[normalize_role(default_role).upper()]
            except KeyError:
                raise ValueError(
                    f"default_role '{default_role}' does not resolve to a role"
                ) from None
        return role

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClaimsResolver":
        return cls(
            mapping=RoleMapping.from_settings(settings),
            client_ids=settings.role_client_ids,
            default_role=settings.default_role,
            ignored_roles=settings.ignored_roles,
        )

    # ========== Role collection ==========

    def _raw_roles(self, claims: Mapping[str, Any]) -> Iterator[str]:
        realm_access = claims.get("realm_access")
        if isinstance(realm_access, Mapping):
            yield from _string_list(realm_access.get("roles"))

        resource_access = claims.get("resource_access")
        if isinstance(resource_access, Mapping):
            for client_id in self.client_ids:
                client = resource_access.get(client_id)
                if isinstance(client, Mapping):
                    yield from _string_list(client.get("roles"))

        yield from _string_list(claims.get("roles"))

    def _is_ignored(self, raw: str) -> bool:
        if raw.strip().lower().startswith(_DEFAULT_ROLES_PREFIX):
            return True
        return normalize_role(raw) in self.ignored_roles

    def resolve_roles(self, claims: Mapping[str, Any]) -> frozenset[Role]:
        """Collect, filter and map the role strings in claims"""
        seen: set[str] = set()
        roles: set[Role] = set()
        for raw in self._raw_roles(claims):
            if raw in seen:
                continue
            seen.add(raw)
            if self._is_ignored(raw):
                continue
            role = self.mapping.lookup(raw)
            if role is None:
                logger.debug("unmapped_role_ignored", role=raw)
                continue
            roles.add(role)

        if not roles:
            return frozenset({self.default_role})
        return frozenset(roles)

    # ========== Principal ==========

    def resolve(self, claims: Mapping[str, Any]) -> Principal:
        """
        Build the Principal for verified claims

        Raises:
            InvalidIdentityException: If the subject claim is missing or blank
        """
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject.strip():
            raise InvalidIdentityException("Token has no subject claim")
        subject = subject.strip()

        username = _first_str(claims, "preferred_username", "username") or subject
        return Principal(
            external_id=subject,
            roles=self.resolve_roles(claims),
            username=username,
            email=_first_str(claims, "email"),
            full_name=_full_name(claims) or username,
        )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list | tuple):
        return []
    return [v for v in value if isinstance(v, str) and v.strip()]


def _first_str(claims: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = claims.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _full_name(claims: Mapping[str, Any]) -> str | None:
    parts = [p for p in (_first_str(claims, "given_name"), _first_str(claims, "family_name")) if p]
    if parts:
        return " ".join(parts)
    return _first_str(claims, "name")
