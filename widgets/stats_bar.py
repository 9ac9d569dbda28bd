"""
Roster Dashboard - Stats Bar

Summary numbers for the roster and the displayed subset.
"""

from textual.app import ComposeResult
from textual.css.query import NoMatches
from textual.containers import Horizontal
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Label

from services.models import RosterStats


class StatsBar(Widget):
    """
    Row of stat tiles: total, displayed, active, average attendance.
    """

    DEFAULT_CSS = """
    StatsBar {
        height: 3;
        width: 1fr;
        background: #181825;
    }

    StatsBar Horizontal {
        height: 3;
    }

    StatsBar .stat {
        width: 1fr;
        height: 3;
        content-align: center middle;
        border: round #313244;
        color: #cdd6f4;
    }
    """

    stats: reactive[RosterStats] = reactive(RosterStats.empty)

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield Label("", id="stat-total", classes="stat")
            yield Label("", id="stat-displayed", classes="stat")
            yield Label("", id="stat-active", classes="stat")
            yield Label("", id="stat-attendance", classes="stat")

    def on_mount(self) -> None:
        self._update_labels()

    def watch_stats(self, stats: RosterStats) -> None:
        self._update_labels()

    def _update_labels(self) -> None:
        try:
            self.query_one("#stat-total", Label).update(f"Total: {self.stats.total}")
            self.query_one("#stat-displayed", Label).update(f"Displayed: {self.stats.displayed}")
            self.query_one("#stat-active", Label).update(f"Active: {self.stats.active}")
            self.query_one("#stat-attendance", Label).update(f"Avg Attendance: {self.stats.avg_attendance}%")
        except NoMatches:
            # Not composed yet; on_mount renders the labels
            return
