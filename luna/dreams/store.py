"""
Dream persistence over the key/value store.
"""

from typing import List, Optional

from luna.kernel.models.dream import Dream
from luna.kernel.store import KeyValueStore

DREAM_PREFIX = "dream:"


class DreamStore:
    """Saved interpretations, keyed by dream id."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def save_dream(self, dream: Dream) -> str:
        self.store.set(f"{DREAM_PREFIX}{dream.id}", dream.model_copy(deep=True))
        return dream.id

    async def get_dream_by_id(self, dream_id: str) -> Optional[Dream]:
        dream = self.store.get(f"{DREAM_PREFIX}{dream_id}")
        return dream.model_copy(deep=True) if dream is not None else None

    async def get_history_by_user_id(self, user_id: str) -> List[Dream]:
        """A user's dreams, oldest first."""
        dreams = [
            d.model_copy(deep=True)
            for _, d in self.store.scan(DREAM_PREFIX)
            if d.user_id == user_id
        ]
        return sorted(dreams, key=lambda d: d.timestamp)

    async def delete_user_dreams(self, user_id: str) -> int:
        doomed = [k for k, d in self.store.scan(DREAM_PREFIX) if d.user_id == user_id]
        for key in doomed:
            self.store.delete(key)
        return len(doomed)
