"""MicroVolunteer API Routes

Modular routing structure for better maintainability.
"""

from . import categories, dependencies, participations, tasks

__all__ = [
    "categories",
    "dependencies",
    "participations",
    "tasks",
]
