"""Typed dataclasses for EasyCount data model.

All models use from_dict/to_dict for JSON/YAML serialization.
camelCase on disk is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


PLACEHOLDER_NAME = "Unknown"

MIN_COUNT = 0
MAX_COUNT = 99999

MIN_STEP_COUNT = 0
MAX_STEP_COUNT = 100

MIN_LIST_PADDING = 1
MAX_LIST_PADDING = 15


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def parse_bool(raw: Any) -> bool:
    """Accept real booleans and the strings true/false, yes/no, 1/0."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    raise ValueError(f"Not a boolean: {raw!r}")


def _parse_timestamp(raw: Any) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    if isinstance(raw, datetime):
        ts = raw
    else:
        try:
            ts = datetime.fromisoformat(str(raw))
        except ValueError:
            ts = datetime.fromtimestamp(0, timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


# ── Entities ──────────────────────────────────────────────────


@dataclass
class Counter:
    """A named, timestamped group of detail counters."""

    id: str
    name: str
    timestamp: datetime

    @property
    def display_name(self) -> str:
        return self.name if self.name.strip() else PLACEHOLDER_NAME

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Counter:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name") or ""),
            timestamp=_parse_timestamp(d.get("timestamp", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CounterDetail:
    """A named integer tally owned by one counter."""

    id: str
    name: str
    counter_id: str
    count: int = 0

    @property
    def display_name(self) -> str:
        return self.name if self.name.strip() else PLACEHOLDER_NAME

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CounterDetail:
        try:
            count = int(d.get("count", 0) or 0)
        except (TypeError, ValueError):
            count = 0
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name") or ""),
            counter_id=str(d.get("counterId", d.get("counter_id", ""))),
            count=count,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "count": self.count,
            "counterId": self.counter_id,
        }


# ── Store file ────────────────────────────────────────────────


STORE_VERSION = 1


@dataclass
class StoreData:
    """Everything persisted in counters.json."""

    counters: list[Counter] = field(default_factory=list)
    details: list[CounterDetail] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> StoreData:
        if not d or not isinstance(d, dict):
            return cls()
        counters = [
            Counter.from_dict(c) for c in (d.get("counters") or []) if isinstance(c, dict)
        ]
        known = {c.id for c in counters}
        # Orphaned details have no owner to be listed under; drop them.
        details = [
            cd
            for cd in (
                CounterDetail.from_dict(x) for x in (d.get("details") or []) if isinstance(x, dict)
            )
            if cd.counter_id in known
        ]
        return cls(counters=counters, details=details)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": STORE_VERSION,
            "counters": [c.to_dict() for c in self.counters],
            "details": [cd.to_dict() for cd in self.details],
        }


# ── Settings ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Settings:
    """User preferences read by the mutation operations and the UIs."""

    step_count: int = 1
    start_counting_at_zero: bool = True
    list_padding: int = 5

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "step_count", _clamp(int(self.step_count), MIN_STEP_COUNT, MAX_STEP_COUNT)
        )
        object.__setattr__(
            self, "list_padding", _clamp(int(self.list_padding), MIN_LIST_PADDING, MAX_LIST_PADDING)
        )
        object.__setattr__(self, "start_counting_at_zero", bool(self.start_counting_at_zero))

    @property
    def initial_count(self) -> int:
        """Count given to a newly created detail counter."""
        return 0 if self.start_counting_at_zero else self.step_count

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        defaults = cls()
        try:
            step = int(d.get("stepCount", defaults.step_count))
        except (TypeError, ValueError):
            step = defaults.step_count
        try:
            padding = int(d.get("listPadding", defaults.list_padding))
        except (TypeError, ValueError):
            padding = defaults.list_padding
        try:
            at_zero = parse_bool(d.get("startCountingAtZero", defaults.start_counting_at_zero))
        except ValueError:
            at_zero = defaults.start_counting_at_zero
        return cls(
            step_count=step,
            start_counting_at_zero=at_zero,
            list_padding=padding,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "stepCount": self.step_count,
            "startCountingAtZero": self.start_counting_at_zero,
            "listPadding": self.list_padding,
        }
