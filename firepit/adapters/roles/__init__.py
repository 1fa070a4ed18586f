"""Role storage adapters."""

from firepit.adapters.roles.base import AbstractRoleStore
from firepit.adapters.roles.in_memory import InMemoryRoleStore

__all__ = [
    "AbstractRoleStore",
    "InMemoryRoleStore",
]
