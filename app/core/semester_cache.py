"""In-memory entry for the current semester id."""

import time
from typing import Optional

from app.core.config import settings


class CurrentSemesterCache:
    """
    Single cached value with a TTL. Any write that changes the current semester
    must call set() (or invalidate()) before reporting success.

    Readers that load the id from the database store it with set_if_unchanged(),
    passing the generation they saw before querying. A write that landed in
    between bumps the generation, so the older read is dropped instead of
    overwriting the fresher value.
    """

    def __init__(self, ttl_seconds: int) -> None:
        self.ttl_seconds = ttl_seconds
        self._semester_id: Optional[int] = None
        self._expires_at: float = 0.0
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def get(self) -> Optional[int]:
        if self._semester_id is None or time.monotonic() >= self._expires_at:
            return None
        return self._semester_id

    def set(self, semester_id: int) -> None:
        self._generation += 1
        self._store(semester_id)

    def set_if_unchanged(self, semester_id: int, generation: int) -> bool:
        """Store semester_id only if no set()/invalidate() happened since `generation` was read."""
        if generation != self._generation:
            return False
        self._store(semester_id)
        return True

    def invalidate(self) -> None:
        self._generation += 1
        self._semester_id = None
        self._expires_at = 0.0

    def _store(self, semester_id: int) -> None:
        self._semester_id = semester_id
        self._expires_at = time.monotonic() + self.ttl_seconds


current_semester_cache = CurrentSemesterCache(settings.current_semester_cache_ttl_seconds)
