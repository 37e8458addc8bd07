"""Core domain: entities, exceptions and repository ports."""
