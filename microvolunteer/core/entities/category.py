"""Category Domain Entity

Labels that group tasks (shopping, transport, tutoring, ...). Categories are
managed by administrators; deactivated categories stay attached to existing
tasks but cannot be given to new ones.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass
class Category:
    """Category Domain Entity"""

    category_id: str
    name: str
    description: str = ""
    active: bool = True

    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def __post_init__(self):
        if not self.category_id:
            raise ValueError("category_id cannot be empty")
        self.name = (self.name or "").strip()
        if not self.name:
            raise ValueError("Category name cannot be empty")
        if len(self.name) > MAX_NAME_LENGTH:
            raise ValueError(f"Category name cannot exceed {MAX_NAME_LENGTH} characters")
        self.description = self.description or ""
        if len(self.description) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")

    @staticmethod
    def new_id() -> str:
        return str(uuid4())

    def deactivate(self, at: datetime | None = None) -> None:
        self.active = False
        self.updated_at = at or _now()

    def to_dict(self) -> dict:
        return {
            "category_id": self.category_id,
            "name": self.name,
            "description": self.description,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }
