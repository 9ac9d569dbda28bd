"""
Roster Dashboard - Filter Bar

Search box, status and grade filters, and the sort selector.
"""

from typing import Optional

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Input, Select

from services.models import GRADE_CHOICES, STATUS_CHOICES, FilterState, SortState


SORT_OPTIONS = [
    ("Student ID (A-Z)", "id-asc"),
    ("Student ID (Z-A)", "id-desc"),
    ("Name (A-Z)", "name-asc"),
    ("Name (Z-A)", "name-desc"),
    ("Grade (A-E)", "grade-asc"),
    ("Grade (E-A)", "grade-desc"),
    ("Attendance (High-Low)", "attendance-desc"),
    ("Attendance (Low-High)", "attendance-asc"),
]


def _selected(value: object) -> Optional[str]:
    # Select reports a blank sentinel when nothing is chosen
    return value if isinstance(value, str) and value else None


class FilterBar(Widget):
    """
    Controls that drive the display view.

    Posts FilterChanged and SortChanged; it holds no roster data itself.
    """

    DEFAULT_CSS = """
    FilterBar {
        height: 3;
        width: 1fr;
    }

    FilterBar #search-input {
        width: 2fr;
    }

    FilterBar Select {
        width: 1fr;
    }
    """

    class FilterChanged(Message):
        """Message sent when search text or a filter changes."""
        def __init__(self, filter_state: FilterState) -> None:
            self.filter_state = filter_state
            super().__init__()

    class SortChanged(Message):
        """Message sent when the sort selection changes."""
        def __init__(self, sort_state: SortState) -> None:
            self.sort_state = sort_state
            super().__init__()

    def __init__(self, sort_state: Optional[SortState] = None, **kwargs):
        super().__init__(**kwargs)
        self._sort_state = sort_state or SortState()

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield Input(placeholder="Search by student ID or name...", id="search-input")
            yield Select(
                [(status.title(), status) for status in STATUS_CHOICES],
                prompt="All statuses",
                id="status-filter",
            )
            yield Select(
                [(f"Grade {grade}", grade) for grade in GRADE_CHOICES],
                prompt="All grades",
                id="grade-filter",
            )
            yield Select(
                SORT_OPTIONS,
                value=self._sort_state.key,
                allow_blank=False,
                id="sort-select",
            )

    def current_filter(self) -> FilterState:
        return FilterState(
            search_term=self.query_one("#search-input", Input).value,
            status_filter=_selected(self.query_one("#status-filter", Select).value),
            grade_filter=_selected(self.query_one("#grade-filter", Select).value),
        )

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "search-input":
            event.stop()
            self.post_message(self.FilterChanged(self.current_filter()))

    def on_select_changed(self, event: Select.Changed) -> None:
        event.stop()
        if event.select.id == "sort-select":
            value = _selected(event.value)
            if value:
                self._sort_state = SortState.parse(value)
                self.post_message(self.SortChanged(self._sort_state))
        else:
            self.post_message(self.FilterChanged(self.current_filter()))
