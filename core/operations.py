"""Counter mutation rules layered on top of the store.

- names must not be empty or whitespace-only (otherwise the action is ignored)
- new detail counters start at 0 or at the step count, per settings
- stepping is by ``settings.step_count`` and stays within [0, 99999]
- delete-by-position resolves every position against the list the user saw
  before anything is deleted
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence, Union

from core.errors import NotFoundError
from core.models import MAX_COUNT, MIN_COUNT, Counter, CounterDetail, Settings
from core.store import CounterStore


logger = logging.getLogger(__name__)

Entity = Union[Counter, CounterDetail, str]


def is_valid_name(name: str | None) -> bool:
    return bool(name and name.strip())


def clamp_count(count: int) -> int:
    return max(MIN_COUNT, min(MAX_COUNT, int(count)))


def resolve_positions(view: Sequence[Entity], positions: Iterable[int]) -> list[str]:
    """Map UI positions to the ids shown at those positions.

    *view* holds entities or bare ids in the order the user saw them.

    Raises IndexError (before anything is touched) for a position outside
    *view*. Duplicate positions resolve once.
    """
    resolved: list[str] = []
    for pos in positions:
        if pos < 0 or pos >= len(view):
            raise IndexError(f"Position {pos} is out of range for a list of {len(view)}")
        entity = view[pos]
        entity_id = entity if isinstance(entity, str) else entity.id
        if entity_id not in resolved:
            resolved.append(entity_id)
    return resolved


class CounterOperations:
    def __init__(self, store: CounterStore, settings: Settings | None = None) -> None:
        self.store = store
        self.settings = settings or Settings()

    # ── Create ────────────────────────────────────────────────

    def create_counter(self, name: str) -> Counter | None:
        """Create a counter, or return None when *name* is blank."""
        if not is_valid_name(name):
            return None
        return self.store.create_counter(name)

    def create_counter_detail(self, counter: Counter | str, name: str) -> CounterDetail | None:
        """Create a detail counter under *counter*, or return None when *name* is blank."""
        if not is_valid_name(name):
            return None
        return self.store.create_counter_detail(
            counter, name, start_count=self.settings.initial_count
        )

    # ── Counting ──────────────────────────────────────────────

    def increment(self, detail: CounterDetail | str) -> CounterDetail:
        current = self.store.get_counter_detail(detail)
        return self.store.set_count(current, clamp_count(current.count + self.settings.step_count))

    def decrement(self, detail: CounterDetail | str) -> CounterDetail:
        current = self.store.get_counter_detail(detail)
        return self.store.set_count(current, clamp_count(current.count - self.settings.step_count))

    def set_count(self, detail: CounterDetail | str, count: int) -> CounterDetail:
        return self.store.set_count(detail, clamp_count(count))

    # ── Delete by position ────────────────────────────────────

    def delete_counters_at(
        self,
        positions: Iterable[int],
        view: Sequence[Entity] | None = None,
    ) -> list[Counter]:
        """Delete the counters shown at *positions* in *view*.

        *view* is the ordered list the positions refer to; it defaults to the
        current ``list_counters()`` order. Counters already gone are skipped.
        Returns the counters actually deleted.
        """
        if view is None:
            view = self.store.list_counters()
        targets = resolve_positions(view, positions)
        deleted = []
        with self.store.transaction():
            for counter_id in targets:
                try:
                    counter = self.store.get_counter(counter_id)
                except NotFoundError:
                    logger.debug("Counter %s already deleted", counter_id)
                    continue
                self.store.delete_counter(counter)
                deleted.append(counter)
        return deleted

    def delete_counter_details_at(
        self,
        counter: Counter | str,
        positions: Iterable[int],
        view: Sequence[Entity] | None = None,
    ) -> list[CounterDetail]:
        """Delete the details shown at *positions* in *view* (default: current order)."""
        owner = self.store.get_counter(counter)
        if view is None:
            view = self.store.list_counter_details(owner)
        targets = resolve_positions(view, positions)
        deleted = []
        with self.store.transaction():
            for detail_id in targets:
                try:
                    detail = self.store.get_counter_detail(detail_id)
                except NotFoundError:
                    logger.debug("Detail counter %s already deleted", detail_id)
                    continue
                if detail.counter_id != owner.id:
                    continue
                self.store.delete_counter_detail(detail)
                deleted.append(detail)
        return deleted
