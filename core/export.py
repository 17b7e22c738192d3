"""CSV export of a counter's detail list."""

from __future__ import annotations

import csv
import io
import logging
import re
from pathlib import Path
from typing import Iterable

from core.errors import ExportError
from core.fileio import write_text_atomic
from core.models import Counter, CounterDetail
from core.store import CounterStore
from core.workspace import exports_dir


logger = logging.getLogger(__name__)

CSV_HEADER = ("Name", "Count")


def render_csv(details: Iterable[CounterDetail]) -> str:
    """Render details as CSV text: ``Name,Count`` header, one row per detail."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    # With a "\n" terminator QUOTE_MINIMAL can leave a bare "\r" unquoted.
    quoted = csv.writer(buf, lineterminator="\n", quoting=csv.QUOTE_NONNUMERIC)
    writer.writerow(CSV_HEADER)
    for detail in details:
        name = detail.display_name
        (quoted if "\r" in name else writer).writerow((name, detail.count))
    return buf.getvalue()


def export_filename(counter: Counter) -> str:
    """File name derived from the counter name, e.g. ``Bird count`` -> ``bird-count.csv``."""
    slug = re.sub(r"[^\w]+", "-", counter.name.strip().lower()).strip("-_")
    return f"{slug or 'counter'}.csv"


def export_counter_csv(
    store: CounterStore,
    counter: Counter | str,
    directory: Path | None = None,
) -> Path:
    """Write *counter*'s details to a CSV file and return its path.

    Rows follow ``list_counter_details`` order. The file is written to a
    temp file and renamed into place, so a failed export never leaves a
    truncated CSV behind. Existing exports with the same name are replaced.
    """
    owner = store.get_counter(counter)
    if directory is None:
        directory = exports_dir()
    path = directory / export_filename(owner)
    content = render_csv(store.list_counter_details(owner))
    try:
        write_text_atomic(path, content, suffix=".csv")
    except OSError as e:
        logger.error("CSV export of counter %s to %s failed: %s", owner.id, path, e)
        raise ExportError(f"Could not export '{owner.display_name}' to {path}: {e}") from e
    logger.info("Exported counter %s to %s", owner.id, path)
    return path
