"""Tests for core/export.py — CSV rendering and atomic export."""

import csv
import io

import pytest

from core.errors import ExportError
from core.export import export_counter_csv, export_filename, render_csv
from core.models import Counter, CounterDetail


def _fail_fsync(fd):
    raise OSError("disk full")


def test_export_round_trip(empty_store, tmp_path):
    counter = empty_store.create_counter("Letters")
    empty_store.create_counter_detail(counter, "B", start_count=7)
    empty_store.create_counter_detail(counter, "A", start_count=3)

    path = export_counter_csv(empty_store, counter, tmp_path / "out")
    with path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [["Name", "Count"], ["A", "3"], ["B", "7"]]


def test_export_defaults_to_workspace_exports(store, workspace):
    path = export_counter_csv(store, "birds")
    assert path == workspace / "exports" / "bird-count.csv"
    assert path.read_text(encoding="utf-8") == "Name,Count\nBlackbird,3\nSparrow,7\n"


def test_render_csv_quotes_special_characters():
    details = [
        CounterDetail(id="1", name='Say "hi"', counter_id="c", count=1),
        CounterDetail(id="2", name="a,b", counter_id="c", count=2),
        CounterDetail(id="3", name="line\nbreak", counter_id="c", count=3),
    ]
    text = render_csv(details)
    assert text.startswith("Name,Count\n")
    assert '"Say ""hi""",1\n' in text
    assert '"a,b",2\n' in text
    rows = list(csv.reader(text.splitlines(keepends=True)))
    assert rows[1:] == [['Say "hi"', "1"], ["a,b", "2"], ["line\nbreak", "3"]]


def test_render_csv_quotes_carriage_return():
    details = [
        CounterDetail(id="1", name="a\rb", counter_id="c", count=1),
        CounterDetail(id="2", name="crlf\r\nname", counter_id="c", count=2),
    ]
    text = render_csv(details)
    assert '"a\rb",1\n' in text
    with io.StringIO(text, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[1:] == [["a\rb", "1"], ["crlf\r\nname", "2"]]


def test_render_csv_blank_name_uses_placeholder():
    details = [CounterDetail(id="1", name="  ", counter_id="c", count=4)]
    assert render_csv(details) == "Name,Count\nUnknown,4\n"


def test_render_csv_empty():
    assert render_csv([]) == "Name,Count\n"


def test_export_filename():
    ts = Counter.from_dict({}).timestamp
    assert export_filename(Counter(id="x", name="Bird count", timestamp=ts)) == "bird-count.csv"
    assert export_filename(Counter(id="x", name="../../etc", timestamp=ts)) == "etc.csv"
    assert export_filename(Counter(id="x", name="", timestamp=ts)) == "counter.csv"


def test_export_unknown_counter(store, tmp_path):
    with pytest.raises(KeyError):
        export_counter_csv(store, "missing", tmp_path)


def test_export_unwritable_directory(store, tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(ExportError, match="Bird count"):
        export_counter_csv(store, "birds", blocker)


def test_failed_export_leaves_no_partial_file(store, tmp_path, monkeypatch):
    out = tmp_path / "out"
    out.mkdir()

    monkeypatch.setattr("core.fileio.os.fsync", _fail_fsync)
    with pytest.raises(ExportError, match="disk full"):
        export_counter_csv(store, "birds", out)
    assert list(out.iterdir()) == []


def test_failed_export_keeps_previous_export(store, tmp_path, monkeypatch):
    out = tmp_path / "out"
    first = export_counter_csv(store, "birds", out)
    previous = first.read_text(encoding="utf-8")

    store.set_count("sparrow", 100)
    monkeypatch.setattr("core.fileio.os.fsync", _fail_fsync)
    with pytest.raises(ExportError):
        export_counter_csv(store, "birds", out)
    assert first.read_text(encoding="utf-8") == previous
