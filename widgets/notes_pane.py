"""
Roster Dashboard - Notes Pane (Non-modal)

Side pane with the selected student's details and an inline notes editor.
"""

from typing import Any, Optional

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Button, Label, Static, TextArea

from services.models import StudentRecord


class NotesPane(Widget):
    """
    Side pane showing details and notes for the selected record.

    The pane does not own the draft text; the dashboard passes it in with
    show() and the pane reports edits back through messages.
    """

    DEFAULT_CSS = """
    NotesPane {
        width: 45;
        height: 1fr;
        background: #1e1e2e;
        border-left: solid #313244;
        padding: 1 2;
    }

    NotesPane .title {
        text-style: bold;
        margin-bottom: 1;
        color: #89b4fa;
    }

    NotesPane .section-title {
        text-style: bold;
        color: #89b4fa;
        margin-top: 1;
        border-bottom: solid #313244;
    }

    NotesPane .info-row {
        height: auto;
    }

    NotesPane .label {
        width: 14;
        text-style: bold;
        color: #a6adc8;
    }

    NotesPane .value {
        width: 1fr;
        color: #cdd6f4;
    }

    NotesPane .notes-content {
        height: auto;
        margin-top: 1;
        color: #cdd6f4;
    }

    NotesPane .notes-content.empty {
        color: #6c7086;
        text-style: italic;
    }

    NotesPane TextArea {
        height: 8;
        margin-top: 1;
    }

    NotesPane .saving {
        color: #fab387;
        height: 1;
    }

    NotesPane .no-record {
        text-align: center;
        color: #6c7086;
        margin-top: 5;
    }

    NotesPane .buttons {
        height: 3;
        margin-top: 1;
    }

    NotesPane Button {
        margin-right: 1;
        min-width: 8;
    }
    """

    class EditRequested(Message):
        """Message sent when the user starts editing notes."""
        def __init__(self, record_id: Any) -> None:
            self.record_id = record_id
            super().__init__()

    class CancelRequested(Message):
        """Message sent when the user abandons a notes edit."""
        def __init__(self, record_id: Any) -> None:
            self.record_id = record_id
            super().__init__()

    class SaveRequested(Message):
        """Message sent when the user saves notes."""
        def __init__(self, record_id: Any, text: str) -> None:
            self.record_id = record_id
            self.text = text
            super().__init__()

    class DraftChanged(Message):
        """Message sent as the draft text changes."""
        def __init__(self, record_id: Any, text: str) -> None:
            self.record_id = record_id
            self.text = text
            super().__init__()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._record: Optional[StudentRecord] = None
        self._editing = False

    @property
    def record(self) -> Optional[StudentRecord]:
        return self._record

    def compose(self) -> ComposeResult:
        with Vertical(id="notes-container"):
            yield Label("Select a student to view details", id="no-record-msg", classes="no-record")

            with VerticalScroll(id="notes-scroll"):
                yield Label("", id="details-name", classes="title")
                yield self._create_info_row("Student ID:", "details-student-id")
                yield self._create_info_row("Status:", "details-status")
                yield self._create_info_row("Grade:", "details-grade")
                yield self._create_info_row("Attendance:", "details-attendance")
                yield self._create_info_row("Updated:", "details-updated")

                yield Label("Notes", classes="section-title")
                yield Static("", id="notes-view", classes="notes-content")
                yield TextArea("", id="notes-editor")
                yield Label("Saving...", id="notes-saving", classes="saving")

            with Horizontal(id="notes-buttons", classes="buttons"):
                yield Button("Edit (n)", id="notes-edit-btn", variant="primary")
                yield Button("Save", id="notes-save-btn", variant="success")
                yield Button("Cancel", id="notes-cancel-btn")

    def on_mount(self) -> None:
        self.show(None)

    def _create_info_row(self, label: str, id: str) -> Horizontal:
        return Horizontal(
            Label(label, classes="label"),
            Label("", classes="value"),
            classes="info-row",
            id=id,
        )

    def _set_value(self, row_id: str, value: str) -> None:
        self.query_one(f"#{row_id}").query_one(".value", Label).update(value)

    def show(self, record: Optional[StudentRecord], draft: Optional[str] = None, saving: bool = False) -> None:
        """
        Render a record.

        Args:
            record: Record to show, or None for the empty state
            draft: Notes draft if an inline edit is in progress
            saving: True while a save for this record is in flight
        """
        record_changed = (
            record is None or self._record is None or record.id != self._record.id
        )
        self._record = record

        self.query_one("#no-record-msg").display = record is None
        self.query_one("#notes-scroll").display = record is not None
        self.query_one("#notes-buttons").display = record is not None
        if record is None:
            self._editing = False
            return

        self.query_one("#details-name", Label).update(record.full_name)
        self._set_value("details-student-id", record.student_id)
        self._set_value("details-status", record.status)
        self._set_value("details-grade", record.grade or "Ungraded")
        self._set_value("details-attendance", f"{record.attendance}%")
        updated = record.updated_at or "-"
        if record.last_updated_by:
            updated = f"{updated} by {record.last_updated_by}"
        self._set_value("details-updated", updated)

        notes_view = self.query_one("#notes-view", Static)
        notes_view.update(Text(record.display_notes))
        notes_view.set_class(not record.has_notes, "empty")

        editing = draft is not None
        entering = editing and (record_changed or not self._editing)
        editor = self.query_one("#notes-editor", TextArea)
        if entering:
            # Only load text on entering edit mode so typing is never overwritten
            editor.load_text(draft)
        self._editing = editing

        notes_view.display = not editing
        editor.display = editing and not saving
        self.query_one("#notes-saving").display = saving
        self.query_one("#notes-edit-btn", Button).display = not editing
        self.query_one("#notes-save-btn", Button).display = editing
        self.query_one("#notes-cancel-btn", Button).display = editing
        self.query_one("#notes-save-btn", Button).disabled = saving
        self.query_one("#notes-cancel-btn", Button).disabled = saving
        if entering and not saving:
            editor.focus()

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self._record is not None and self._editing:
            self.post_message(self.DraftChanged(self._record.id, event.text_area.text))

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if self._record is None:
            return
        event.stop()
        record_id = self._record.id
        if event.button.id == "notes-edit-btn":
            self.post_message(self.EditRequested(record_id))
        elif event.button.id == "notes-save-btn":
            text = self.query_one("#notes-editor", TextArea).text
            self.post_message(self.SaveRequested(record_id, text))
        elif event.button.id == "notes-cancel-btn":
            self.post_message(self.CancelRequested(record_id))
