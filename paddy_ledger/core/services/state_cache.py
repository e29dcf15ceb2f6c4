"""In-process cache of replayed location states."""

from collections import OrderedDict
from collections.abc import Iterable
from typing import Any

from paddy_ledger.config import get_logger
from paddy_ledger.core.entities.stock import LocationState

logger = get_logger(__name__)


class LocationStateCache:
    """
    Current-state cache keyed by location id.

    Entries are never refreshed implicitly: the approval workflow must call
    ``invalidate`` for every location it touched once its transaction commits.
    Only current states (no ``as_of``) are cached.

    Each location carries a generation bumped by ``invalidate``. A reader that
    captured a generation before replaying passes it to ``set``; the write is
    dropped when an invalidation happened in between.
    """

    def __init__(self, max_entries: int = 10000, enabled: bool = True) -> None:
        self.max_entries = max_entries
        self.enabled = enabled
        self._entries: OrderedDict[int, LocationState] = OrderedDict()
        self._generations: dict[int, int] = {}
        self._counter = 0
        self._cleared_at = 0
        self._stats = {"hits": 0, "misses": 0, "sets": 0, "stale_sets": 0, "invalidations": 0}

    def get(self, location_id: int) -> LocationState | None:
        """Get a cached state, or None on miss."""
        if not self.enabled:
            return None
        state = self._entries.get(location_id)
        if state is None:
            self._stats["misses"] += 1
            return None
        self._entries.move_to_end(location_id)
        self._stats["hits"] += 1
        return state

    def generation(self, location_id: int) -> int:
        """Current invalidation generation of a location."""
        return max(self._generations.get(location_id, 0), self._cleared_at)

    def set(self, state: LocationState, generation: int | None = None) -> bool:
        """
        Cache a current state.

        Args:
            state: Replayed current state
            generation: Generation captured before the replay started

        Returns:
            True if the state was stored
        """
        if not self.enabled or state.as_of is not None:
            return False
        if generation is not None and generation != self.generation(state.location_id):
            self._stats["stale_sets"] += 1
            logger.debug(
                "location_state_set_dropped",
                location_id=state.location_id,
                generation=generation,
            )
            return False
        self._entries[state.location_id] = state
        self._entries.move_to_end(state.location_id)
        self._stats["sets"] += 1
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return True

    def invalidate(self, location_ids: Iterable[int]) -> None:
        """Drop cached states for the given locations."""
        dropped = []
        for location_id in location_ids:
            self._counter += 1
            self._generations[location_id] = self._counter
            if self._entries.pop(location_id, None) is not None:
                dropped.append(location_id)
            self._stats["invalidations"] += 1
        if dropped:
            logger.debug("location_state_invalidated", location_ids=dropped)

    def clear(self) -> None:
        """Drop every cached state."""
        self._counter += 1
        self._cleared_at = self._counter
        self._entries.clear()

    def __contains__(self, location_id: int) -> bool:
        return location_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {**self._stats, "size": len(self._entries), "enabled": self.enabled}
