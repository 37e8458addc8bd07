"""Infrastructure: persistence adapters and per-task locking."""

from .locks import TaskLockRegistry

__all__ = ["TaskLockRegistry"]
