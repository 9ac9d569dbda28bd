"""
Roster Dashboard - Roster Table Widget

Displays the current display view (filtered and sorted roster).
"""

from typing import Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.css.query import NoMatches
from textual.message import Message
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import DataTable, Static

from services.models import StudentRecord


class RosterTable(Widget):
    """
    Table widget displaying student records.

    Columns:
    - student id
    - full name
    - status
    - grade
    - attendance
    - notes (first line)
    """

    DEFAULT_CSS = """
    RosterTable {
        height: 1fr;
        width: 1fr;
    }

    RosterTable DataTable {
        height: 1fr;
        width: 1fr;
    }

    RosterTable .no-results {
        height: auto;
        width: 1fr;
        text-align: center;
        color: $text-muted;
        margin-top: 2;
        display: none;
    }
    """

    records: reactive[list[StudentRecord]] = reactive([], always_update=True)

    NOTES_PREVIEW_WIDTH = 40

    class RecordHighlighted(Message):
        """Message sent when the cursor moves to a record."""
        def __init__(self, record: StudentRecord) -> None:
            self.record = record
            super().__init__()

    class EditRequested(Message):
        """Message sent when a record is chosen with Enter or a click."""
        def __init__(self, record: StudentRecord) -> None:
            self.record = record
            super().__init__()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._selected_id = None

    def compose(self) -> ComposeResult:
        yield DataTable(
            id="roster-data-table",
            zebra_stripes=True,
            cursor_type="row",
            show_cursor=True,
        )
        yield Static(
            "No students found\nTry adjusting your search criteria",
            id="no-results",
            classes="no-results",
        )

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.add_columns("Student ID", "Full Name", "Status", "Grade", "Attendance", "Notes")
        self._populate_table()

    def watch_records(self, records: list[StudentRecord]) -> None:
        self._populate_table()

    def _populate_table(self) -> None:
        try:
            table = self.query_one(DataTable)
            empty_msg = self.query_one("#no-results", Static)
        except NoMatches:
            return

        table.clear()
        for record in self.records:
            table.add_row(
                record.student_id,
                record.full_name,
                self._get_status_text(record.status),
                record.grade or "-",
                f"{record.attendance}%",
                self._notes_preview(record),
                key=str(record.id),
            )

        empty_msg.display = not self.records
        table.display = bool(self.records)

        # Keep the cursor on the same record across re-renders
        if self._selected_id is not None:
            for index, record in enumerate(self.records):
                if record.id == self._selected_id:
                    table.move_cursor(row=index)
                    break

    def _notes_preview(self, record: StudentRecord) -> Text:
        if not record.has_notes:
            return Text(record.display_notes, style="dim italic")
        first_line = record.notes.splitlines()[0]
        if len(first_line) > self.NOTES_PREVIEW_WIDTH:
            first_line = first_line[: self.NOTES_PREVIEW_WIDTH - 1] + "…"
        return Text(first_line)

    def _get_status_text(self, status: str) -> Text:
        """Get styled status text."""
        status_styles = {
            "active": "green",
            "inactive": "yellow",
            "graduated": "cyan",
            "suspended": "red",
        }
        return Text(f"● {status}", style=status_styles.get(status, "white"))

    def get_selected_record(self) -> Optional[StudentRecord]:
        """Record under the cursor, if any."""
        try:
            table = self.query_one(DataTable)
        except NoMatches:
            return None
        row = table.cursor_row
        if row is None or not table.row_count or row >= len(self.records):
            return None
        return self.records[row]

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        if event.cursor_row is not None and event.cursor_row < len(self.records):
            record = self.records[event.cursor_row]
            self._selected_id = record.id
            self.post_message(self.RecordHighlighted(record))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.cursor_row is not None and event.cursor_row < len(self.records):
            self.post_message(self.EditRequested(self.records[event.cursor_row]))
