"""Principal Domain Entity

The caller's normalized identity, derived per request from verified token claims.
"""

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Application role vocabulary"""

    VOLUNTEER = "VOLUNTEER"
    ORGANIZER = "ORGANIZER"
    AFFECTED_PERSON = "AFFECTED_PERSON"
    ADMIN = "ADMIN"


# Roles allowed to post new tasks
TASK_CREATOR_ROLES = frozenset({Role.ORGANIZER, Role.AFFECTED_PERSON, Role.ADMIN})


@dataclass(frozen=True)
class Principal:
    """
    Authenticated caller

    Not persisted; rebuilt from the identity token on every request.
    """

    external_id: str
    roles: frozenset[Role] = field(default_factory=frozenset)
    username: str | None = None
    email: str | None = None
    full_name: str | None = None

    def __post_init__(self):
        if not self.external_id:
            raise ValueError("external_id cannot be empty")

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def has_any_role(self, *roles: Role) -> bool:
        return any(role in self.roles for role in roles)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles
