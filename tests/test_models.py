"""Tests for core/models.py — dataclass serialization and defaults."""

from datetime import datetime, timezone

from core.models import (
    Counter,
    CounterDetail,
    Settings,
    StoreData,
    PLACEHOLDER_NAME,
)


def test_counter_from_dict():
    c = Counter.from_dict({"id": "a", "name": "Birds", "timestamp": "2026-02-10T09:00:00+00:00"})
    assert c.id == "a"
    assert c.name == "Birds"
    assert c.timestamp == datetime(2026, 2, 10, 9, 0, tzinfo=timezone.utc)


def test_counter_naive_timestamp_is_utc():
    c = Counter.from_dict({"id": "a", "name": "x", "timestamp": "2026-02-10T09:00:00"})
    assert c.timestamp.tzinfo is not None
    assert c.timestamp.utcoffset().total_seconds() == 0


def test_counter_round_trip():
    c = Counter(id="a", name="Birds", timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc))
    assert Counter.from_dict(c.to_dict()) == c


def test_display_name_falls_back_for_empty_names():
    assert Counter.from_dict({"id": "a"}).display_name == PLACEHOLDER_NAME
    assert CounterDetail(id="d", name="   ", counter_id="a").display_name == PLACEHOLDER_NAME
    assert CounterDetail(id="d", name="Sparrow", counter_id="a").display_name == "Sparrow"


def test_counter_detail_from_dict_camel_case():
    d = CounterDetail.from_dict({"id": "d", "name": "Sparrow", "count": 4, "counterId": "a"})
    assert d.counter_id == "a"
    assert d.count == 4
    assert d.to_dict()["counterId"] == "a"


def test_counter_detail_bad_count_defaults_to_zero():
    d = CounterDetail.from_dict({"id": "d", "name": "x", "count": "lots", "counterId": "a"})
    assert d.count == 0


def test_store_data_drops_orphan_details():
    data = StoreData.from_dict({
        "counters": [{"id": "a", "name": "A", "timestamp": "2026-01-01T00:00:00+00:00"}],
        "details": [
            {"id": "d1", "name": "kept", "counterId": "a"},
            {"id": "d2", "name": "orphan", "counterId": "gone"},
        ],
    })
    assert [d.id for d in data.details] == ["d1"]


def test_store_data_empty():
    data = StoreData.from_dict({})
    assert data.counters == []
    assert data.to_dict()["version"] == 1


def test_settings_defaults():
    s = Settings()
    assert s.step_count == 1
    assert s.start_counting_at_zero is True
    assert s.initial_count == 0


def test_settings_clamped():
    s = Settings(step_count=500, list_padding=0)
    assert s.step_count == 100
    assert s.list_padding == 1
    assert Settings(step_count=-3).step_count == 0


def test_settings_initial_count_uses_step():
    assert Settings(step_count=5, start_counting_at_zero=False).initial_count == 5
    assert Settings(step_count=5, start_counting_at_zero=True).initial_count == 0


def test_settings_from_dict():
    s = Settings.from_dict({"stepCount": 3, "startCountingAtZero": False, "listPadding": 9, "extra": 1})
    assert s == Settings(step_count=3, start_counting_at_zero=False, list_padding=9)
    assert Settings.from_dict({"stepCount": "abc"}).step_count == 1


def test_settings_from_dict_string_booleans():
    assert Settings.from_dict({"startCountingAtZero": "false"}).start_counting_at_zero is False
    assert Settings.from_dict({"startCountingAtZero": "True"}).start_counting_at_zero is True
    assert Settings.from_dict({"startCountingAtZero": "maybe"}).start_counting_at_zero is True
