"""
Roster Dashboard - Edit Record Form

Modal form for editing status, grade, attendance and notes of one student.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static

from services.coordinator import RosterCoordinator, build_edit_patch
from services.errors import MutationError
from services.models import GRADE_CHOICES, STATUS_CHOICES, StudentRecord


class EditRecordForm(ModalScreen):
    """
    Modal form for one record.

    Read-only:
    - record id, student id, full name

    Editable:
    - status, grade, attendance %, notes

    Saving happens inside the form: the inputs are locked while the request
    is in flight and unlocked with their values intact if it fails. The form
    dismisses with True after a successful save.
    """

    BINDINGS = [
        Binding("escape", "close", "Back"),
    ]

    DEFAULT_CSS = """
    EditRecordForm {
        align: center middle;
    }

    EditRecordForm > Container {
        width: 70;
        height: auto;
        max-height: 90%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    EditRecordForm .title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    EditRecordForm .record-info {
        padding: 1;
        background: $surface-darken-1;
        height: auto;
    }

    EditRecordForm .field-label {
        margin-top: 1;
    }

    EditRecordForm Input, EditRecordForm Select {
        width: 1fr;
    }

    EditRecordForm #edit-status-msg {
        color: $warning;
        margin-top: 1;
        height: auto;
    }

    EditRecordForm .buttons {
        margin-top: 1;
        align: center middle;
        height: 3;
    }

    EditRecordForm Button {
        margin: 0 1;
        min-width: 12;
    }
    """

    def __init__(self, record: StudentRecord, coordinator: RosterCoordinator, **kwargs):
        super().__init__(**kwargs)
        self._record = record
        self._coordinator = coordinator

    def compose(self) -> ComposeResult:
        record = self._record
        statuses = list(STATUS_CHOICES)
        if record.status not in statuses:
            statuses.append(record.status)

        with Container():
            yield Label("Edit Student", classes="title")

            with Container(classes="record-info"):
                yield Label(f"Record: {record.id}", id="edit-record-id")
                yield Label(f"Student ID: {record.student_id}", id="edit-student-id")
                yield Label(f"Name: {record.full_name}", id="edit-full-name")

            yield Label("Status:", classes="field-label")
            yield Select(
                [(status.title(), status) for status in statuses],
                value=record.status,
                allow_blank=False,
                id="edit-status",
            )

            yield Label("Grade:", classes="field-label")
            current_grade = {"value": record.grade} if record.grade in GRADE_CHOICES else {}
            yield Select(
                [(grade, grade) for grade in GRADE_CHOICES],
                prompt="Ungraded",
                id="edit-grade",
                **current_grade,
            )

            yield Label("Attendance %:", classes="field-label")
            yield Input(
                value=str(record.attendance),
                placeholder="0-100",
                type="integer",
                id="edit-attendance",
            )

            yield Label("Notes:", classes="field-label")
            yield Input(value=record.notes or "", placeholder="Notes", id="edit-notes")

            yield Static("", id="edit-status-msg")

            with Horizontal(classes="buttons"):
                yield Button("Save", id="save-btn", variant="success")
                yield Button("Cancel", id="cancel-btn", variant="error")

    def _read_patch(self) -> dict:
        grade = self.query_one("#edit-grade", Select).value
        return build_edit_patch(
            status=str(self.query_one("#edit-status", Select).value),
            grade=grade if isinstance(grade, str) else None,
            attendance=self.query_one("#edit-attendance", Input).value,
            notes=self.query_one("#edit-notes", Input).value,
        )

    def _set_busy(self, busy: bool) -> None:
        for selector in ("#edit-status", "#edit-grade", "#edit-attendance", "#edit-notes", "#save-btn", "#cancel-btn"):
            self.query_one(selector).disabled = busy

    async def save(self) -> None:
        """Send the update; keep the form open with its values if it fails."""
        status_msg = self.query_one("#edit-status-msg", Static)
        try:
            patch = self._read_patch()
        except MutationError as e:
            status_msg.update(e.message)
            return

        status_msg.update("Saving...")
        self._set_busy(True)
        try:
            await self._coordinator.apply_update(self._record.id, patch)
        except MutationError as e:
            status_msg.update(f"Error updating student: {e.message}")
            self.app.notify(f"Error updating student: {e.message}", severity="error")
            return
        finally:
            self._set_busy(False)

        self.app.notify("Student updated successfully!")
        self.dismiss(True)

    def action_close(self) -> None:
        """Close this modal."""
        self.dismiss(False)

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button presses."""
        if event.button.id == "save-btn":
            await self.save()
        elif event.button.id == "cancel-btn":
            self.dismiss(False)
