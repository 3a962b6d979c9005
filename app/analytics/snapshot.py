"""Last fetched response collection behind the dashboard"""
import logging
from datetime import datetime
from typing import List, Optional

from app.surveys.exceptions import DataFetchError
from app.utils.timezone import utc_now

logger = logging.getLogger(__name__)


class DashboardSnapshot:
    """
    Holds the most recent response collection the dashboard computes from.

    Insert notifications only mark the snapshot stale; the next read
    refetches. Only a fetch started after the latest insert clears the stale
    mark, and a fetch that started before the held collection was fetched
    never replaces it. When a fetch fails, the last good collection (or an
    empty one) stays in place and the failure is recorded.
    """

    def __init__(self):
        self._responses: List = []
        self._held_generation = -1
        self._next_generation = 0
        self._fresh_from = 0
        self._stale = True
        self.fetched_at: Optional[datetime] = None
        self.last_error: Optional[DataFetchError] = None

    @property
    def is_loaded(self) -> bool:
        return self._held_generation >= 0

    @property
    def is_stale(self) -> bool:
        return self._stale

    @property
    def responses(self) -> List:
        return list(self._responses)

    def invalidate(self, *_) -> None:
        """Insert callback: the held collection no longer matches the store."""
        self._stale = True
        # Fetches already running may predate the insert
        self._fresh_from = self._next_generation

    async def refresh(self, store) -> List:
        """Refetch from the store; keep the last good collection on failure."""
        generation = self._next_generation
        self._next_generation += 1
        try:
            responses = await store.fetch_all(ascending=True)
        except DataFetchError as e:
            self.last_error = e
            logger.error(f"Dashboard refresh failed, keeping {len(self._responses)} held responses: {e}")
            return self.responses

        if generation > self._held_generation:
            self._responses = list(responses)
            self._held_generation = generation
            if generation >= self._fresh_from:
                self._stale = False
            self.fetched_at = utc_now()
            self.last_error = None
            logger.info(f"Dashboard snapshot refreshed with {len(self._responses)} responses")
        else:
            logger.info(f"Discarding superseded dashboard fetch {generation}")
        return self.responses

    async def current(self, store) -> List:
        """Held collection, refetched first when stale."""
        if self._stale:
            return await self.refresh(store)
        return self.responses
