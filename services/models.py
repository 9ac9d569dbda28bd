"""
Roster Dashboard - Data Models

Student records plus the filter, sort and summary types derived from them.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, Optional


GRADE_RANK = {"A": 1, "B": 2, "C": 3, "D": 4, "E": 5}
UNGRADED_RANK = 999

GRADE_CHOICES = tuple(GRADE_RANK)
STATUS_CHOICES = ("active", "inactive", "graduated", "suspended")
SORT_FIELDS = ("id", "name", "grade", "attendance")
SORT_ORDERS = ("asc", "desc")

EDITABLE_FIELDS = frozenset({"status", "grade", "attendance_percentage", "notes"})
AUDIT_FIELDS = frozenset({"last_updated_by", "updated_at"})

DEFAULT_STATUS = "active"
NO_NOTES_TEXT = "No notes yet"


@dataclass
class StudentRecord:
    """One row of the roster."""
    id: Any
    student_id: str
    full_name: str
    status: str = DEFAULT_STATUS
    grade: Optional[str] = None
    attendance_percentage: Optional[int] = None
    notes: Optional[str] = None
    last_updated_by: Optional[str] = None
    updated_at: Optional[str] = None
    # Columns the dashboard does not know about, kept for round trips
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "StudentRecord":
        """Build a record from a remote table row."""
        known = {f.name for f in fields(cls)} - {"extra"}
        extra = {k: v for k, v in row.items() if k not in known}
        return cls(
            id=row["id"],
            student_id=str(row.get("student_id") or ""),
            full_name=str(row.get("full_name") or ""),
            status=row.get("status") or DEFAULT_STATUS,
            grade=row.get("grade") or None,
            attendance_percentage=row.get("attendance_percentage"),
            notes=row.get("notes"),
            last_updated_by=row.get("last_updated_by"),
            updated_at=row.get("updated_at"),
            extra=extra,
        )

    @property
    def attendance(self) -> int:
        """Attendance with missing values treated as 0."""
        return self.attendance_percentage or 0

    @property
    def display_notes(self) -> str:
        return self.notes or NO_NOTES_TEXT

    @property
    def has_notes(self) -> bool:
        return bool(self.notes)

    def merged(self, patch: dict[str, Any]) -> "StudentRecord":
        """Return a copy with the patch applied. The record itself is untouched."""
        allowed = EDITABLE_FIELDS | AUDIT_FIELDS
        unknown = set(patch) - allowed
        if unknown:
            raise KeyError(f"Not patchable: {', '.join(sorted(unknown))}")
        return replace(self, extra=dict(self.extra), **patch)


@dataclass(frozen=True)
class FilterState:
    """Current search text and exact-match filters."""
    search_term: str = ""
    status_filter: Optional[str] = None
    grade_filter: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (self.search_term or self.status_filter or self.grade_filter)


@dataclass(frozen=True)
class SortState:
    """Sort field plus direction. A missing order falls back to the field default."""
    field: str = "id"
    order: Optional[str] = None

    def __post_init__(self):
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Unknown sort field: {self.field}")
        if self.order is not None and self.order not in SORT_ORDERS:
            raise ValueError(f"Unknown sort order: {self.order}")

    @property
    def effective_order(self) -> str:
        """Attendance sorts highest first unless ascending is asked for."""
        if self.order:
            return self.order
        return "desc" if self.field == "attendance" else "asc"

    @property
    def descending(self) -> bool:
        return self.effective_order == "desc"

    @property
    def key(self) -> str:
        """Selector value, e.g. ``attendance-desc``."""
        return f"{self.field}-{self.effective_order}"

    @classmethod
    def parse(cls, value: str) -> "SortState":
        """Parse a ``<field>-<order>`` selector value. The order part is optional."""
        sort_field, _, order = value.partition("-")
        return cls(field=sort_field, order=order or None)


@dataclass(frozen=True)
class RosterStats:
    """Summary numbers shown above the roster."""
    total: int = 0
    displayed: int = 0
    active: int = 0
    avg_attendance: int = 0

    @classmethod
    def empty(cls) -> "RosterStats":
        return cls()
