"""
Kernel Layer

- Key/value store abstraction (in-memory by default)
- Identity Core (password hashing, JWT issuance and verification)
- User Directory

Invariants:
- The token manager stores nothing; verification is pure
- Credentials are only ever compared through bcrypt verify
"""

from luna.kernel.store import InMemoryStore, KeyValueStore
from luna.kernel.directory import UserAlreadyExistsError, UserDirectory

__all__ = [
    "KeyValueStore",
    "InMemoryStore",
    "UserDirectory",
    "UserAlreadyExistsError",
]
