#!/usr/bin/env python3
"""EasyCount TUI — interactive terminal counters powered by Textual."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import (
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
)

from core import (
    EasyCountError,
    Counter,
    CounterDetail,
    CounterOperations,
    CounterStore,
    Settings,
    StoreChange,
    StoreError,
    export_counter_csv,
    exports_dir,
    load_settings,
    log_path,
    save_settings,
    update_settings,
    workspace_root,
)


logger = logging.getLogger("easycount")


CSS = """
Screen {
    layout: vertical;
}

.section-title {
    text-style: bold;
    padding: 1 1 0 1;
}

DataTable {
    height: 1fr;
}

.new-row {
    height: auto;
    padding: 0 1;
}

.new-row Input {
    width: 1fr;
}

#prefs {
    padding: 1 2;
    height: auto;
}

.pref-row {
    height: auto;
    margin-bottom: 1;
}

.pref-row Label {
    width: 28;
    padding: 1 0;
}

.pref-row Input {
    width: 12;
}

#prefs-hint {
    color: $text-muted;
}
"""


# ── Screens ────────────────────────────────────────────────────


class CounterListScreen(Screen):
    """All counters, oldest first."""

    BINDINGS = [
        Binding("n", "focus_new", "New"),
        Binding("delete", "delete_counter", "Delete"),
        Binding("p", "preferences", "Preferences"),
        Binding("escape", "blur_focus", "Back", show=False),
        Binding("q", "quit_app", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._shown: list[Counter] = []
        self._rows_ready = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label("Counters", classes="section-title")
        yield DataTable(id="counters-table", cursor_type="row")
        yield Horizontal(
            Input(placeholder="Enter a new counter name", id="new-counter"),
            classes="new-row",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#counters-table", DataTable)
        table.add_columns("Name", "Created", "Details")
        self._rows_ready = True
        self.refresh_rows()
        table.focus()

    def on_screen_resume(self) -> None:
        if self._rows_ready:
            self.refresh_rows()

    def refresh_rows(self) -> None:
        table = self.query_one("#counters-table", DataTable)
        table.cell_padding = self.app.settings.list_padding
        row = table.cursor_row
        table.clear()
        store = self.app.store
        self._shown = store.list_counters()
        for counter in self._shown:
            created = counter.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S")
            table.add_row(
                counter.display_name,
                created,
                str(len(store.list_counter_details(counter))),
                key=counter.id,
            )
        if self._shown:
            table.move_cursor(row=min(row, len(self._shown) - 1))

    @on(Input.Submitted, "#new-counter")
    def _on_new_counter(self, event: Input.Submitted) -> None:
        try:
            created = self.app.ops.create_counter(event.value)
        except EasyCountError as e:
            self.app.report_error("Could not create counter", e)
            return
        if created is not None:
            event.input.value = ""

    @on(DataTable.RowSelected, "#counters-table")
    def _on_counter_selected(self, event: DataTable.RowSelected) -> None:
        pos = event.cursor_row
        if 0 <= pos < len(self._shown):
            self.app.push_screen(CounterDetailScreen(self._shown[pos].id))

    def action_focus_new(self) -> None:
        self.query_one("#new-counter", Input).focus()

    def action_blur_focus(self) -> None:
        self.query_one("#counters-table", DataTable).focus()

    def action_delete_counter(self) -> None:
        table = self.query_one("#counters-table", DataTable)
        if not self._shown:
            return
        try:
            self.app.ops.delete_counters_at([table.cursor_row], view=self._shown)
        except (EasyCountError, IndexError) as e:
            self.app.report_error("Could not delete counter", e)

    def action_preferences(self) -> None:
        self.app.push_screen(PreferencesScreen())

    def action_quit_app(self) -> None:
        self.app.exit()


class CounterDetailScreen(Screen):
    """Detail counters of one counter, ordered by name."""

    BINDINGS = [
        Binding("plus,equals_sign", "increment", "+Step"),
        Binding("minus", "decrement", "-Step"),
        Binding("n", "focus_new", "New"),
        Binding("delete", "delete_detail", "Delete"),
        Binding("x", "export_csv", "Export CSV"),
        Binding("escape", "back", "Back"),
    ]

    def __init__(self, counter_id: str) -> None:
        super().__init__()
        self.counter_id = counter_id
        self._shown: list[CounterDetail] = []
        self._rows_ready = False

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label("", id="detail-title", classes="section-title")
        yield DataTable(id="details-table", cursor_type="row")
        yield Horizontal(
            Input(placeholder="Enter a counter name", id="new-detail"),
            classes="new-row",
        )
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#details-table", DataTable)
        table.add_columns("Name", "Count")
        self._rows_ready = True
        self.refresh_rows()
        table.focus()

    def on_screen_resume(self) -> None:
        if self._rows_ready:
            self.refresh_rows()

    def refresh_rows(self) -> None:
        store = self.app.store
        try:
            counter = store.get_counter(self.counter_id)
        except KeyError:
            # Deleted elsewhere (e.g. through the web API).
            self.app.pop_screen()
            return
        self.query_one("#detail-title", Label).update(counter.display_name)
        table = self.query_one("#details-table", DataTable)
        table.cell_padding = self.app.settings.list_padding
        row = table.cursor_row
        table.clear()
        self._shown = store.list_counter_details(counter)
        for detail in self._shown:
            table.add_row(detail.display_name, str(detail.count), key=detail.id)
        if self._shown:
            table.move_cursor(row=min(row, len(self._shown) - 1))

    def _selected_detail(self) -> CounterDetail | None:
        table = self.query_one("#details-table", DataTable)
        pos = table.cursor_row
        if 0 <= pos < len(self._shown):
            return self._shown[pos]
        return None

    @on(Input.Submitted, "#new-detail")
    def _on_new_detail(self, event: Input.Submitted) -> None:
        try:
            created = self.app.ops.create_counter_detail(self.counter_id, event.value)
        except EasyCountError as e:
            self.app.report_error("Could not create detail counter", e)
            return
        if created is not None:
            event.input.value = ""

    def action_increment(self) -> None:
        detail = self._selected_detail()
        if detail is None:
            return
        try:
            self.app.ops.increment(detail.id)
        except EasyCountError as e:
            self.app.report_error("Could not update count", e)

    def action_decrement(self) -> None:
        detail = self._selected_detail()
        if detail is None:
            return
        try:
            self.app.ops.decrement(detail.id)
        except EasyCountError as e:
            self.app.report_error("Could not update count", e)

    def action_focus_new(self) -> None:
        self.query_one("#new-detail", Input).focus()

    def action_delete_detail(self) -> None:
        if not self._shown:
            return
        table = self.query_one("#details-table", DataTable)
        try:
            self.app.ops.delete_counter_details_at(
                self.counter_id, [table.cursor_row], view=self._shown
            )
        except (EasyCountError, IndexError) as e:
            self.app.report_error("Could not delete detail counter", e)

    def action_export_csv(self) -> None:
        try:
            path = export_counter_csv(self.app.store, self.counter_id, exports_dir(self.app.workspace))
        except EasyCountError as e:
            self.app.report_error("An error has occurred during CSV export", e)
            return
        self.notify(f"Saved to {path}", title="CSV exported")

    def action_back(self) -> None:
        if isinstance(self.focused, Input):
            self.query_one("#details-table", DataTable).focus()
            return
        self.app.pop_screen()


class PreferencesScreen(Screen):
    """Step count, starting count policy and list padding."""

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        settings = self.app.settings
        yield Header()
        yield Vertical(
            Label("Counter settings", classes="section-title"),
            Horizontal(
                Label("Step counter per tap (0-100)"),
                Input(str(settings.step_count), id="step-count", type="integer"),
                classes="pref-row",
            ),
            Checkbox(
                "Start counting at 0",
                value=settings.start_counting_at_zero,
                id="start-at-zero",
            ),
            Label("List padding", classes="section-title"),
            Horizontal(
                Label("Padding (1-15)"),
                Input(str(settings.list_padding), id="list-padding", type="integer"),
                classes="pref-row",
            ),
            Static("ctrl+s to save, escape to cancel", id="prefs-hint"),
            id="prefs",
        )
        yield Footer()

    def action_save(self) -> None:
        updates = {
            "stepCount": self.query_one("#step-count", Input).value or 0,
            "startCountingAtZero": self.query_one("#start-at-zero", Checkbox).value,
            "listPadding": self.query_one("#list-padding", Input).value or 1,
        }
        try:
            settings = update_settings(self.app.settings, updates)
        except ValueError as e:
            self.app.report_error("Invalid preferences", e)
            return
        try:
            save_settings(settings, self.app.workspace)
        except OSError as e:
            self.app.report_error("Could not save preferences", e)
            return
        self.app.apply_settings(settings)
        self.app.pop_screen()

    def action_cancel(self) -> None:
        self.app.pop_screen()


# ── Main app ───────────────────────────────────────────────────


class EasyCountApp(App):
    """EasyCount — named counters with stepped tallies."""

    TITLE = "EasyCount"
    CSS = CSS

    def __init__(self, root: Path, store: CounterStore, settings: Settings) -> None:
        super().__init__()
        self.workspace = root
        self.store = store
        self.settings = settings
        self.ops = CounterOperations(store, settings)
        # Only the latest error is kept; a new one replaces it.
        self.error_text = ""
        self._subscription = store.subscribe(self._on_store_change)

    def on_mount(self) -> None:
        self.push_screen(CounterListScreen())

    def on_unmount(self) -> None:
        self._subscription.cancel()

    def _on_store_change(self, changes: tuple[StoreChange, ...]) -> None:
        logger.debug("Store changed: %s", [c.kind for c in changes])
        self._refresh_screen()

    def _refresh_screen(self) -> None:
        refresh = getattr(self.screen, "refresh_rows", None)
        if refresh is not None:
            refresh()

    def apply_settings(self, settings: Settings) -> None:
        self.settings = settings
        self.ops = CounterOperations(self.store, settings)
        self.sub_title = f"step {settings.step_count}"
        self._refresh_screen()

    def report_error(self, title: str, error: Exception) -> None:
        self.error_text = str(error)
        logger.error("%s: %s", title, error)
        self.notify(self.error_text, title=title, severity="error")


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    root.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=str(log_path(root)),
        level=os.environ.get("EASYCOUNT_LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        store = CounterStore.open(root=root)
    except StoreError as e:
        print(f"Cannot open counters: {e}")
        sys.exit(1)

    settings = load_settings(root)
    app = EasyCountApp(root, store, settings)
    app.sub_title = f"step {settings.step_count}"
    app.run()


if __name__ == "__main__":
    main()
