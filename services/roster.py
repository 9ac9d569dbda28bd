"""
Roster Dashboard - Roster Engine

Pure functions over the in-memory roster: filtering, sorting, summary
statistics, patch application and CSV export. Nothing here touches the
network or the screen, and no function mutates its inputs.
"""

import csv
import io
import locale
import math
import unicodedata
from datetime import date
from typing import Any, Iterable, Optional

from services.errors import RecordNotFoundError
from services.models import (
    DEFAULT_STATUS,
    GRADE_RANK,
    UNGRADED_RANK,
    FilterState,
    RosterStats,
    SortState,
    StudentRecord,
)


EXPORT_HEADERS = ("Student ID", "Full Name", "Status", "Grade", "Attendance %", "Notes")


def matches_filters(record: StudentRecord, filter_state: FilterState) -> bool:
    """True if the record satisfies search, status and grade predicates."""
    term = filter_state.search_term.lower()
    if term and term not in record.student_id.lower() and term not in record.full_name.lower():
        return False
    if filter_state.status_filter and record.status != filter_state.status_filter:
        return False
    if filter_state.grade_filter and record.grade != filter_state.grade_filter:
        return False
    return True


def grade_rank(record: StudentRecord) -> int:
    return GRADE_RANK.get(record.grade or "", UNGRADED_RANK)


def _fold(value: str) -> str:
    """Case- and accent-insensitive form: "Élise" becomes "elise"."""
    decomposed = unicodedata.normalize("NFKD", value.casefold())
    return "".join(c for c in decomposed if not unicodedata.combining(c))


def _text_key(value: str) -> tuple[str, str, str]:
    # Base letters first, then accents and case under the active collation,
    # then the raw string so the order is total
    return (locale.strxfrm(_fold(value)), locale.strxfrm(value.casefold()), value)


_SORT_KEYS = {
    "id": lambda r: _text_key(r.student_id),
    "name": lambda r: _text_key(r.full_name),
    "grade": grade_rank,
    "attendance": lambda r: r.attendance,
}


def sort_records(records: Iterable[StudentRecord], sort_state: SortState) -> list[StudentRecord]:
    """Stable sort by the selected field; equal keys keep their input order."""
    return sorted(records, key=_SORT_KEYS[sort_state.field], reverse=sort_state.descending)


def compute_display_view(
    roster: list[StudentRecord],
    filter_state: FilterState,
    sort_state: SortState,
) -> list[StudentRecord]:
    """Filter the roster by the current predicates and order it by the current sort."""
    return sort_records((r for r in roster if matches_filters(r, filter_state)), sort_state)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_stats(roster: list[StudentRecord], display_view: list[StudentRecord]) -> RosterStats:
    """Summary counts for the roster and the currently displayed subset."""
    if not roster:
        return RosterStats(displayed=len(display_view))

    average = sum(r.attendance for r in roster) / len(roster)
    return RosterStats(
        total=len(roster),
        displayed=len(display_view),
        active=sum(1 for r in roster if r.status == DEFAULT_STATUS),
        avg_attendance=_round_half_up(average),
    )


def find_record(roster: list[StudentRecord], record_id: Any) -> Optional[StudentRecord]:
    for record in roster:
        if record.id == record_id:
            return record
    return None


def apply_patch(roster: list[StudentRecord], record_id: Any, patch: dict[str, Any]) -> list[StudentRecord]:
    """
    Return a new roster with one record replaced by its merge with the patch.

    Raises:
        RecordNotFoundError: no record in the roster has ``record_id``.
    """
    if find_record(roster, record_id) is None:
        raise RecordNotFoundError(record_id)
    return [r.merged(patch) if r.id == record_id else r for r in roster]


def export_rows(display_view: list[StudentRecord]) -> list[list[Any]]:
    return [
        [
            r.student_id,
            r.full_name,
            r.status or DEFAULT_STATUS,
            r.grade or "",
            r.attendance,
            r.notes or "",
        ]
        for r in display_view
    ]


def export_csv(display_view: list[StudentRecord]) -> str:
    """Render the displayed records as CSV with every cell quoted."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(export_rows(display_view))
    # Rows are newline-joined, so drop the terminator after the last one
    return buffer.getvalue()[:-1]


def export_filename(today: Optional[date] = None) -> str:
    """File name for an export, stamped with the given (or current) date."""
    today = today or date.today()
    return f"students_{today.isoformat()}.csv"
