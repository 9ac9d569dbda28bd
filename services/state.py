"""
Roster Dashboard - State Management Service

Holds the roster and everything derived from it in one AppState owned by a
StateManager. Every transition recomputes the display view and stats from
the roster and then notifies subscribers (the rendering layer).

Does not talk to the network.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from services.errors import DashboardError
from services.models import FilterState, RosterStats, SortState, StudentRecord
from services.roster import compute_display_view, compute_stats, find_record


logger = logging.getLogger(__name__)

Listener = Callable[["AppState"], None]


@dataclass
class AppState:
    """Dashboard state data model."""
    roster: list[StudentRecord] = field(default_factory=list)
    display_view: list[StudentRecord] = field(default_factory=list)
    filter_state: FilterState = field(default_factory=FilterState)
    sort_state: SortState = field(default_factory=SortState)
    stats: RosterStats = field(default_factory=RosterStats)

    connection_status: str = "disconnected"  # disconnected, connecting, connected, error
    connection_text: str = "Not connected"
    is_loading: bool = False
    last_error: Optional[DashboardError] = None
    last_refresh_time: Optional[str] = None

    # Inline notes edits in progress, keyed by record id
    notes_drafts: dict[Any, str] = field(default_factory=dict)
    # Record ids with a save in flight
    saving_ids: set[Any] = field(default_factory=set)


class StateManager:
    """
    Owns the AppState and applies transitions to it.

    The display view and stats are never edited directly; they are always
    recomputed from the roster and the current filter and sort.
    """

    def __init__(self, sort_state: Optional[SortState] = None):
        self._state = AppState(sort_state=sort_state or SortState())
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        """Get current state."""
        return self._state

    # === Subscriptions ===

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    def _recompute(self) -> None:
        state = self._state
        state.display_view = compute_display_view(state.roster, state.filter_state, state.sort_state)
        state.stats = compute_stats(state.roster, state.display_view)

    # === Roster ===

    def set_roster(self, roster: list[StudentRecord]) -> None:
        """Replace the roster wholesale (after a load or a successful update)."""
        self._state.roster = list(roster)
        known_ids = {r.id for r in roster}
        self._state.notes_drafts = {k: v for k, v in self._state.notes_drafts.items() if k in known_ids}
        self._recompute()
        self._notify()

    def reset_roster(self) -> None:
        """Clear the roster so stats never describe stale data."""
        self._state.roster = []
        self._state.display_view = []
        self._state.stats = RosterStats.empty()
        self._state.notes_drafts = {}
        self._notify()

    def get_record(self, record_id: Any) -> Optional[StudentRecord]:
        return find_record(self._state.roster, record_id)

    def mark_refreshed(self) -> None:
        self._state.last_refresh_time = datetime.now(timezone.utc).isoformat()

    # === Filters and sort ===

    def set_filter(self, filter_state: FilterState) -> None:
        self._state.filter_state = filter_state
        self._recompute()
        self._notify()

    def set_search_term(self, term: str) -> None:
        self.set_filter(replace(self._state.filter_state, search_term=term))

    def set_status_filter(self, status: Optional[str]) -> None:
        self.set_filter(replace(self._state.filter_state, status_filter=status or None))

    def set_grade_filter(self, grade: Optional[str]) -> None:
        self.set_filter(replace(self._state.filter_state, grade_filter=grade or None))

    def set_sort(self, sort_state: SortState) -> None:
        self._state.sort_state = sort_state
        self._recompute()
        self._notify()

    # === Connection status and errors ===

    def set_connection_status(self, status: str, text: str) -> None:
        self._state.connection_status = status
        self._state.connection_text = text
        self._notify()

    def set_loading(self, is_loading: bool) -> None:
        self._state.is_loading = is_loading
        self._notify()

    def set_error(self, error: Optional[DashboardError]) -> None:
        """Record the error shown in the main panel (None clears it)."""
        if error is not None:
            logger.error("%s: %s", error.title, error.message)
        self._state.last_error = error
        self._notify()

    # === Notes drafts ===

    def begin_notes_edit(self, record_id: Any) -> str:
        """Start (or resume) an inline notes edit; returns the draft text."""
        if record_id not in self._state.notes_drafts:
            record = self.get_record(record_id)
            self._state.notes_drafts[record_id] = (record.notes or "") if record else ""
            self._notify()
        return self._state.notes_drafts[record_id]

    def update_notes_draft(self, record_id: Any, text: str) -> None:
        # Typing should not trigger a full re-render
        self._state.notes_drafts[record_id] = text

    def get_notes_draft(self, record_id: Any) -> Optional[str]:
        return self._state.notes_drafts.get(record_id)

    def is_editing_notes(self, record_id: Any) -> bool:
        return record_id in self._state.notes_drafts

    def cancel_notes_edit(self, record_id: Any) -> None:
        """Drop the draft; the stored notes are what the view shows again."""
        if self._state.notes_drafts.pop(record_id, None) is not None:
            self._notify()

    # === In-flight saves ===

    def mark_saving(self, record_id: Any) -> None:
        self._state.saving_ids.add(record_id)
        self._notify()

    def clear_saving(self, record_id: Any) -> None:
        self._state.saving_ids.discard(record_id)
        self._notify()

    def is_saving(self, record_id: Any) -> bool:
        return record_id in self._state.saving_ids
