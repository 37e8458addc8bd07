"""
MicroVolunteer Configuration

Settings for the MicroVolunteer service
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.entities.principal import Role

DEFAULT_ROLE_MAPPING: dict[str, str] = {
    "user": "VOLUNTEER",
    "volunteer": "VOLUNTEER",
    "organizer": "ORGANIZER",
    "organiser": "ORGANIZER",
    "affected_person": "AFFECTED_PERSON",
    "sensitive": "AFFECTED_PERSON",
    "vulnerable": "AFFECTED_PERSON",
    "admin": "ADMIN",
    "administrator": "ADMIN",
}


class Settings(BaseSettings):
    """MicroVolunteer Settings"""

    # Service
    service_name: str = "MicroVolunteer"
    service_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8000

    # Persistence (no database_url → in-memory store)
    database_url: str | None = None
    database_echo: bool = False
    database_create_schema: bool = False
    lock_timeout_seconds: float = 5.0

    # Identity provider (token introspection, RFC 7662)
    identity_introspection_url: str = (
        "http://localhost:8080/realms/microvolunteer/protocol/openid-connect/token/introspect"
    )
    identity_client_id: str = "microvolunteer"
    identity_client_secret: str | None = None
    identity_timeout: float = 5.0

    # Role resolution
    role_client_ids: list[str] = ["microvolunteer", "account"]
    role_mapping: dict[str, str] = DEFAULT_ROLE_MAPPING
    default_role: str = "USER"
    ignored_roles: list[str] = ["offline_access", "uma_authorization"]

    # CORS
    cors_origins: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"  # console or json

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("role_mapping")
    @classmethod
    def role_mapping_targets_must_be_roles(cls, v: dict[str, str]) -> dict[str, str]:
        unknown = {target for target in v.values() if target.upper() not in Role.__members__}
        if unknown:
            raise ValueError(f"role_mapping targets unknown roles: {sorted(unknown)}")
        return v

    @field_validator("log_format")
    @classmethod
    def log_format_must_be_known(cls, v: str) -> str:
        if v not in ("console", "json"):
            raise ValueError("log_format must be 'console' or 'json'")
        return v

    @model_validator(mode="after")
    def default_role_must_resolve(self) -> "Settings":
        # Resolved the same way tokens are, so "ROLE_USER" or " Organizer " pass
        from .auth.claims import ClaimsResolver, RoleMapping

        ClaimsResolver(RoleMapping(self.role_mapping), default_role=self.default_role)
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
