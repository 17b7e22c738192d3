"""Counter store: persistence, cascade delete, ordered queries and observers.

The store keeps every Counter and CounterDetail in memory and mirrors them
to ``data/counters.json``. Mutations run inside a transaction; when the
outermost transaction ends the state is written atomically and observers
are notified. If the write fails the in-memory state is rolled back to the
last committed snapshot, so memory and disk never disagree.

With ``autosave=False`` mutations stay pending until :meth:`CounterStore.save`.
"""

from __future__ import annotations

import copy
import logging
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from core.errors import NotFoundError, StoreError
from core.fileio import read_json, write_json_atomic
from core.models import Counter, CounterDetail, StoreData
from core.workspace import now_utc, store_path


logger = logging.getLogger(__name__)


# ── Change notifications ──────────────────────────────────────


COUNTER_CREATED = "counter_created"
COUNTER_DELETED = "counter_deleted"
DETAIL_CREATED = "detail_created"
DETAIL_UPDATED = "detail_updated"
DETAIL_DELETED = "detail_deleted"


@dataclass(frozen=True)
class StoreChange:
    kind: str
    id: str
    counter_id: str = ""


Observer = Callable[[tuple[StoreChange, ...]], None]


class Subscription:
    """Handle returned by :meth:`CounterStore.subscribe`."""

    def __init__(self, store: CounterStore, callback: Observer) -> None:
        self._store = store
        self._callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._store._unsubscribe(self._callback)
            self.active = False


# ── Store ─────────────────────────────────────────────────────


def _revert(live, saved):
    if live is None:
        return saved
    vars(live).update(vars(saved))
    return live


class CounterStore:
    def __init__(
        self,
        path: Path,
        data: StoreData | None = None,
        autosave: bool = True,
    ) -> None:
        self.path = path
        self.autosave = autosave
        data = data or StoreData()
        self._counters: dict[str, Counter] = {c.id: c for c in data.counters}
        self._details: dict[str, CounterDetail] = {d.id: d for d in data.details}
        self._committed = self._snapshot()
        self._pending: list[StoreChange] = []
        self._observers: list[Observer] = []
        self._depth = 0

    @classmethod
    def open(
        cls,
        path: Path | None = None,
        autosave: bool = True,
        root: Path | None = None,
    ) -> CounterStore:
        """Load the store from *path* (default: the workspace store file)."""
        if path is None:
            path = store_path(root)
        try:
            data = read_json(path)
        except (OSError, ValueError) as e:
            raise StoreError(f"Could not read counters from {path}: {e}") from e
        store = cls(path, StoreData.from_dict(data), autosave=autosave)
        logger.debug(
            "Opened store %s (%d counters, %d details)",
            path, len(store._counters), len(store._details),
        )
        return store

    # ── Observers ─────────────────────────────────────────────

    def subscribe(self, callback: Observer) -> Subscription:
        """Register *callback* to run after every commit."""
        self._observers.append(callback)
        return Subscription(self, callback)

    def _unsubscribe(self, callback: Observer) -> None:
        try:
            self._observers.remove(callback)
        except ValueError:
            pass

    def _notify(self, changes: tuple[StoreChange, ...]) -> None:
        for callback in list(self._observers):
            try:
                callback(changes)
            except Exception:
                # The commit already happened; a broken observer cannot undo it.
                logger.exception("Store observer %r failed", callback)

    # ── Transactions ──────────────────────────────────────────

    def _snapshot(self) -> tuple[dict[str, Counter], dict[str, CounterDetail]]:
        return copy.deepcopy(self._counters), copy.deepcopy(self._details)

    def _restore(self, snapshot: tuple[dict[str, Counter], dict[str, CounterDetail]]) -> None:
        """Roll back to *snapshot*.

        Entities that still exist are reset in place, so objects callers
        already hold show the restored values too.
        """
        counters, details = copy.deepcopy(snapshot)
        self._counters = {k: _revert(self._counters.get(k), v) for k, v in counters.items()}
        self._details = {k: _revert(self._details.get(k), v) for k, v in details.items()}

    @property
    def has_pending_changes(self) -> bool:
        return bool(self._pending)

    @contextmanager
    def transaction(self) -> Iterator[CounterStore]:
        """Group mutations into a single commit.

        An exception inside the block undoes every mutation made in it.
        Nested transactions join the outermost one.
        """
        outermost = self._depth == 0
        if outermost:
            start = self._snapshot()
            pending_before = len(self._pending)
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if outermost:
                self._restore(start)
                del self._pending[pending_before:]
            raise
        self._depth -= 1
        if outermost and self.autosave:
            self.save()

    def save(self) -> None:
        """Write the current state to disk and notify observers.

        On failure the in-memory state is rolled back to the last committed
        snapshot, pending changes are discarded and StoreError is raised.
        """
        if self._depth:
            raise StoreError("Cannot save while a transaction is open")
        data = StoreData(
            counters=list(self._counters.values()),
            details=list(self._details.values()),
        )
        try:
            write_json_atomic(self.path, data.to_dict())
        except OSError as e:
            logger.error("Saving counters to %s failed: %s", self.path, e)
            discarded = len(self._pending)
            self._restore(self._committed)
            self._pending.clear()
            raise StoreError(
                f"Could not save counters ({discarded} change(s) discarded): {e}"
            ) from e
        self._committed = self._snapshot()
        changes = tuple(self._pending)
        self._pending.clear()
        logger.debug("Committed %d change(s) to %s", len(changes), self.path)
        if changes:
            self._notify(changes)

    def _record(self, kind: str, id: str, counter_id: str = "") -> None:
        self._pending.append(StoreChange(kind=kind, id=id, counter_id=counter_id))

    # ── Lookups ───────────────────────────────────────────────

    def get_counter(self, counter: Counter | str) -> Counter:
        counter_id = counter.id if isinstance(counter, Counter) else counter
        try:
            return self._counters[counter_id]
        except KeyError:
            raise NotFoundError(f"Counter not found: {counter_id}") from None

    def get_counter_detail(self, detail: CounterDetail | str) -> CounterDetail:
        detail_id = detail.id if isinstance(detail, CounterDetail) else detail
        try:
            return self._details[detail_id]
        except KeyError:
            raise NotFoundError(f"Detail counter not found: {detail_id}") from None

    def list_counters(self) -> list[Counter]:
        """All counters, oldest first. Ties keep insertion order."""
        return sorted(self._counters.values(), key=lambda c: c.timestamp)

    def list_counter_details(self, counter: Counter | str) -> list[CounterDetail]:
        """Details owned by *counter*, ordered by name."""
        owner = self.get_counter(counter)
        details = [d for d in self._details.values() if d.counter_id == owner.id]
        return sorted(details, key=lambda d: d.name)

    # ── Mutations ─────────────────────────────────────────────

    def create_counter(self, name: str) -> Counter:
        counter = Counter(id=uuid.uuid4().hex, name=name, timestamp=now_utc())
        with self.transaction():
            self._counters[counter.id] = counter
            self._record(COUNTER_CREATED, counter.id, counter.id)
        return self._counters[counter.id]

    def create_counter_detail(
        self,
        counter: Counter | str,
        name: str,
        start_count: int = 0,
    ) -> CounterDetail:
        owner = self.get_counter(counter)
        detail = CounterDetail(
            id=uuid.uuid4().hex,
            name=name,
            counter_id=owner.id,
            count=int(start_count),
        )
        with self.transaction():
            self._details[detail.id] = detail
            self._record(DETAIL_CREATED, detail.id, owner.id)
        return self._details[detail.id]

    def set_count(self, detail: CounterDetail | str, count: int) -> CounterDetail:
        """Overwrite a detail's count. No range checks at this layer."""
        target = self.get_counter_detail(detail)
        with self.transaction():
            target.count = int(count)
            self._record(DETAIL_UPDATED, target.id, target.counter_id)
        return self._details[target.id]

    def delete_counter_detail(self, detail: CounterDetail | str) -> None:
        target = self.get_counter_detail(detail)
        with self.transaction():
            del self._details[target.id]
            self._record(DETAIL_DELETED, target.id, target.counter_id)

    def delete_counter(self, counter: Counter | str) -> None:
        """Delete a counter together with all of its details."""
        owner = self.get_counter(counter)
        with self.transaction():
            children = [d.id for d in self._details.values() if d.counter_id == owner.id]
            for detail_id in children:
                del self._details[detail_id]
                self._record(DETAIL_DELETED, detail_id, owner.id)
            del self._counters[owner.id]
            self._record(COUNTER_DELETED, owner.id, owner.id)
        logger.info("Deleted counter %s with %d detail(s)", owner.id, len(children))
