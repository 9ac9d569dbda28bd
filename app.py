#!/usr/bin/env python3
"""
Roster Dashboard - Main Application

A terminal dashboard for a student roster stored in a Supabase table.

Usage:
    python app.py

Keys:
    r - Refresh
    e - Edit selected student
    n - Edit notes of selected student
    x - Export displayed students to CSV
    c - Configuration
    q - Quit
"""

import asyncio
import locale
import logging
import os
from pathlib import Path
from typing import Any, Callable, Optional

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, Static

from services.config import BackendConfig, ConfigStore, default_state_dir
from services.coordinator import RosterCoordinator
from services.errors import ConfigurationError, DashboardError, MutationError
from services.models import SortState, StudentRecord
from services.remote import RemoteTable
from services.roster import export_csv, export_filename
from services.state import AppState, StateManager
from widgets.config_form import ConfigForm
from widgets.edit_form import EditRecordForm
from widgets.filter_bar import FilterBar
from widgets.notes_pane import NotesPane
from widgets.roster_table import RosterTable
from widgets.stats_bar import StatsBar


logger = logging.getLogger(__name__)


class Dashboard(Screen):
    """
    Main dashboard screen.

    Shows the filtered roster with actions:
    - r Refresh
    - e Edit selected
    - n Edit notes
    - x Export CSV
    - c Configuration
    - q Quit
    """

    DEFAULT_CSS = """
    Dashboard {
        height: 1fr;
        width: 1fr;
        background: #1e1e2e; /* Catppuccin Mocha Base */
        color: #cdd6f4;      /* Catppuccin Mocha Text */
    }

    Dashboard .header {
        height: 1;
        background: #89b4fa; /* Catppuccin Blue */
        color: #11111b;
        padding: 0 1;
        text-style: bold;
    }

    Dashboard .status-bar {
        height: 1;
        background: #313244;
        padding: 0 1;
        color: #a6adc8;
    }

    Dashboard .status-bar.connected {
        color: #a6e3a1;
    }

    Dashboard .status-bar.connecting {
        color: #f9e2af;
    }

    Dashboard .status-bar.error {
        color: #f38ba8;
    }

    Dashboard #main-container {
        height: 1fr;
        width: 1fr;
    }

    Dashboard .table-container {
        height: 1fr;
        width: 1fr;
    }

    Dashboard .error-panel {
        height: auto;
        margin: 1 2;
        padding: 1 2;
        border: thick #f38ba8;
        display: none;
    }
    """

    # Single-key bindings must not land in the search box
    AUTO_FOCUS = "#roster-data-table"

    BINDINGS = [
        Binding("r", "refresh", "Refresh"),
        Binding("e", "edit_record", "Edit"),
        Binding("n", "edit_notes", "Notes"),
        Binding("x", "export", "Export"),
        Binding("c", "configure", "Config"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._selected_id: Optional[Any] = None
        self._unsubscribe = None

    @property
    def state_manager(self) -> StateManager:
        return self.app.state_manager

    @property
    def coordinator(self) -> RosterCoordinator:
        return self.app.coordinator

    @property
    def config_store(self) -> ConfigStore:
        return self.app.config_store

    def compose(self) -> ComposeResult:
        yield Header()

        with Container(classes="header"):
            yield Label("Student Roster")

        with Container(classes="status-bar", id="status-bar"):
            yield Label("Not connected", id="status-label")

        yield StatsBar(id="stats-bar")
        yield FilterBar(sort_state=self.state_manager.state.sort_state, id="filter-bar")

        with Horizontal(id="main-container"):
            with Vertical(classes="table-container"):
                yield Static("", id="error-panel", classes="error-panel")
                yield RosterTable(id="roster-table")

            yield NotesPane(id="notes-pane")

        yield Footer()

    def on_mount(self) -> None:
        """Render current state and connect with the saved configuration."""
        self._unsubscribe = self.state_manager.subscribe(self._on_state_changed)
        self._on_state_changed(self.state_manager.state)

        config = self.config_store.load_backend_config()
        if not config.is_complete:
            self.action_configure()
            return
        asyncio.create_task(self._connect(config))

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()

    # === Rendering ===

    def _on_state_changed(self, state: AppState) -> None:
        """Re-render every widget from the state."""
        try:
            self._render_status(state)
            self.query_one("#stats-bar", StatsBar).stats = state.stats
            self.query_one("#roster-table", RosterTable).records = state.display_view
            self._render_error(state.last_error)
            self._render_notes(state)
        except Exception as e:
            logger.exception("Render failed: %s", e)

    def _render_status(self, state: AppState) -> None:
        bar = self.query_one("#status-bar")
        bar.set_classes(f"status-bar {state.connection_status}")
        self.query_one("#status-label", Label).update(state.connection_text)

    def _render_error(self, error: Optional[DashboardError]) -> None:
        panel = self.query_one("#error-panel", Static)
        if error is None:
            panel.display = False
            return

        text = Text()
        text.append(f"{error.title}\n", style="bold #f38ba8")
        text.append(f"{error.message}\n")
        if error.guidance and error.guidance != error.message:
            text.append(f"\n{error.guidance}\n")
        text.append("\nPress c to update the configuration, r to retry.", style="dim")
        panel.update(text)
        panel.display = True

    def _render_notes(self, state: AppState) -> None:
        record = self.state_manager.get_record(self._selected_id) if self._selected_id is not None else None
        pane = self.query_one("#notes-pane", NotesPane)
        if record is None:
            pane.show(None)
            return
        pane.show(
            record,
            draft=self.state_manager.get_notes_draft(record.id),
            saving=self.state_manager.is_saving(record.id),
        )

    def _selected_record(self) -> Optional[StudentRecord]:
        if self._selected_id is None:
            return None
        return self.state_manager.get_record(self._selected_id)

    # === Connection ===

    async def _connect(self, config: BackendConfig) -> None:
        try:
            await self.coordinator.connect(config)
        except ConfigurationError:
            self.action_configure()
        except DashboardError:
            # Already recorded in state and shown in the error panel
            pass

    # === Actions ===

    def action_refresh(self) -> None:
        """Reload the roster from the backend."""
        if not self.coordinator.is_connected:
            config = self.config_store.load_backend_config()
            if not config.is_complete:
                self.action_configure()
                return
            asyncio.create_task(self._connect(config))
            return

        async def do_refresh():
            try:
                roster = await self.coordinator.refresh()
            except DashboardError:
                return
            self.notify(f"Loaded {len(roster)} students")

        asyncio.create_task(do_refresh())

    def action_edit_record(self) -> None:
        """Open the edit form for the selected student."""
        record = self._selected_record()
        if record is None:
            self.notify("No student selected", severity="warning")
            return
        if self.state_manager.is_saving(record.id):
            self.notify("A save for this student is still running", severity="warning")
            return
        self.app.push_screen(EditRecordForm(record=record, coordinator=self.coordinator))

    def action_edit_notes(self) -> None:
        """Start an inline notes edit for the selected student."""
        record = self._selected_record()
        if record is None:
            self.notify("No student selected", severity="warning")
            return
        self.state_manager.begin_notes_edit(record.id)

    def action_export(self) -> None:
        """Write the displayed students to a dated CSV file."""
        view = self.state_manager.state.display_view
        config = self.coordinator.config or self.config_store.load_backend_config()
        path = Path(config.export_dir) / export_filename()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(export_csv(view), encoding="utf-8")
        except OSError as e:
            logger.error("Export to %s failed: %s", path, e)
            self.notify(f"Export failed: {e}", severity="error")
            return
        logger.info("Exported %d students to %s", len(view), path)
        self.notify(f"Exported {len(view)} students to {path}")

    def action_configure(self) -> None:
        """Open the configuration form."""
        form = ConfigForm(config=self.config_store.load_backend_config())

        def handle_config(config: Optional[BackendConfig]) -> None:
            if config is None:
                return
            self.config_store.save_backend_config(config)
            asyncio.create_task(self._connect(config))

        self.app.push_screen(form, handle_config)

    # === Event handlers ===

    def on_roster_table_record_highlighted(self, event: RosterTable.RecordHighlighted) -> None:
        self._selected_id = event.record.id
        self._render_notes(self.state_manager.state)

    def on_roster_table_edit_requested(self, event: RosterTable.EditRequested) -> None:
        self._selected_id = event.record.id
        self.action_edit_record()

    def on_filter_bar_filter_changed(self, event: FilterBar.FilterChanged) -> None:
        self.state_manager.set_filter(event.filter_state)

    def on_filter_bar_sort_changed(self, event: FilterBar.SortChanged) -> None:
        self.state_manager.set_sort(event.sort_state)
        self.config_store.set_last_sort(event.sort_state.key)

    def on_notes_pane_edit_requested(self, event: NotesPane.EditRequested) -> None:
        self.state_manager.begin_notes_edit(event.record_id)

    def on_notes_pane_cancel_requested(self, event: NotesPane.CancelRequested) -> None:
        self.state_manager.cancel_notes_edit(event.record_id)

    def on_notes_pane_draft_changed(self, event: NotesPane.DraftChanged) -> None:
        self.state_manager.update_notes_draft(event.record_id, event.text)

    def on_notes_pane_save_requested(self, event: NotesPane.SaveRequested) -> None:
        if self.state_manager.is_saving(event.record_id):
            return
        self.state_manager.update_notes_draft(event.record_id, event.text)

        async def do_save():
            try:
                await self.coordinator.save_notes(event.record_id, event.text)
            except MutationError as e:
                self.notify(f"Error updating notes: {e.message}", severity="error")
                return
            self.notify("Notes updated successfully!")

        asyncio.create_task(do_save())


class RosterDashboardApp(App):
    """
    Roster Dashboard Application.

    Owns the configuration store, the state manager and the coordinator;
    screens reach them through ``self.app``.
    """

    CSS_PATH = None  # We use DEFAULT_CSS in screens

    TITLE = "Roster Dashboard"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("ctrl+c", "quit", "Quit"),
    ]

    def __init__(
        self,
        config_store: Optional[ConfigStore] = None,
        table_factory: Callable[..., RemoteTable] = RemoteTable,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.config_store = config_store or ConfigStore()
        self.state_manager = StateManager(sort_state=self._initial_sort())
        self.coordinator = RosterCoordinator(self.state_manager, table_factory=table_factory)

    def _initial_sort(self) -> SortState:
        saved = self.config_store.get_last_sort()
        if saved:
            try:
                return SortState.parse(saved)
            except ValueError:
                logger.warning("Ignoring saved sort %r", saved)
        return SortState()

    def on_mount(self) -> None:
        """Mount the dashboard screen."""
        self.push_screen(Dashboard())

    def on_unmount(self) -> None:
        self.coordinator.close()


def configure_logging(state_dir: Path) -> None:
    """Log to a file; the terminal belongs to the UI."""
    state_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=state_dir / "dashboard.log",
        level=os.getenv("ROSTER_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def configure_locale() -> None:
    """Collate names with the user's locale rather than the C default."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logger.warning("Keeping the C collation: %s", e)


def main():
    """Main entry point."""
    configure_logging(default_state_dir())
    configure_locale()
    app = RosterDashboardApp()
    app.run()


if __name__ == "__main__":
    main()
