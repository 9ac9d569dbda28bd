"""
Roster Dashboard - Roster Coordinator

Connects to the remote table, loads the roster and applies single-record
updates. Remote calls are blocking HTTP requests, so each one runs in a
worker thread and the event loop only waits at these I/O boundaries.

Nothing is retried automatically; the user re-triggers the action.
"""

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from services.config import BackendConfig, validate_backend_config
from services.errors import (
    ConfigurationError,
    ConnectionFailedError,
    LoadError,
    MutationError,
    RecordNotFoundError,
)
from services.models import DEFAULT_STATUS, EDITABLE_FIELDS, GRADE_RANK, StudentRecord
from services.remote import RemoteError, RemoteTable
from services.roster import apply_patch
from services.state import StateManager


logger = logging.getLogger(__name__)

LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_edit_patch(status: str, grade: Optional[str], attendance: Any, notes: Optional[str]) -> dict[str, Any]:
    """
    Turn raw edit-form values into a patch.

    Empty grade and empty notes become None. Attendance is read from its
    leading integer ("85.5" is 85, "12abc" is 12, "abc" is 0) and clamped
    to 0..100.

    Raises:
        MutationError: grade is not one of A-E.
    """
    grade = (grade or "").strip().upper() or None
    if grade is not None and grade not in GRADE_RANK:
        raise MutationError(f"Invalid grade: {grade}")

    match = LEADING_INT.match(str(attendance))
    attendance_value = int(match.group(1)) if match else 0

    return {
        "status": (status or "").strip() or DEFAULT_STATUS,
        "grade": grade,
        "attendance_percentage": max(0, min(100, attendance_value)),
        "notes": notes or None,
    }


class RosterCoordinator:
    """
    Drives every remote operation and feeds the results into the StateManager.

    One RemoteTable handle is created per successful configuration and reused.
    """

    def __init__(
        self,
        state: StateManager,
        table_factory: Callable[..., RemoteTable] = RemoteTable,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._state = state
        self._table_factory = table_factory
        self._clock = clock
        self._table: Optional[RemoteTable] = None
        self._config: Optional[BackendConfig] = None
        self._refresh_lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        return self._table is not None

    @property
    def config(self) -> Optional[BackendConfig]:
        return self._config

    # === Connection ===

    async def connect(self, config: BackendConfig) -> list[StudentRecord]:
        """
        Validate credentials, test the connection and load the roster.

        Raises:
            ConfigurationError: credentials missing or invalid.
            ConnectionFailedError: the count query failed.
            LoadError: see load_roster.
        """
        try:
            validate_backend_config(config)
        except ConfigurationError as e:
            self._state.set_connection_status("error", "Not configured")
            self._state.set_error(e)
            raise

        self._state.set_connection_status("connecting", "Connecting...")
        table = self._table_factory(
            config.url,
            config.anon_key,
            table=config.table,
            timeout=config.request_timeout,
        )

        try:
            count = await asyncio.to_thread(table.count)
        except RemoteError as e:
            table.close()
            error = ConnectionFailedError(f"Connection test failed: {e.message}")
            self._state.set_connection_status("error", "Connection failed")
            self._state.set_error(error)
            raise error from e

        logger.info("Connected to %s (%d rows in %s)", config.url, count, config.table)
        if self._table is not None:
            self._table.close()
        self._table = table
        self._config = config
        self._state.set_connection_status("connected", "Connected")
        return await self.load_roster()

    def close(self) -> None:
        if self._table is not None:
            self._table.close()
            self._table = None

    # === Load / refresh ===

    async def load_roster(self) -> list[StudentRecord]:
        """
        Fetch every record ordered by student_id and replace the roster.

        On failure the roster and stats are reset to empty so they never
        describe stale data.

        Raises:
            LoadError: query failed, or the table returned no rows.
        """
        if self._table is None:
            raise ConfigurationError("Not connected to a backend")

        self._state.set_loading(True)
        self._state.set_connection_status("connected", "Loading...")
        try:
            roster = await self._fetch_roster()
        except LoadError as e:
            self._state.reset_roster()
            self._state.set_connection_status("error", "Failed to load data")
            self._state.set_error(e)
            raise
        finally:
            self._state.set_loading(False)

        self._state.set_roster(roster)
        self._state.set_error(None)
        self._state.mark_refreshed()
        self._state.set_connection_status("connected", f"Connected ({len(roster)} students)")
        logger.info("Loaded %d students", len(roster))
        return roster

    async def _fetch_roster(self) -> list[StudentRecord]:
        try:
            rows = await asyncio.to_thread(self._table.select_all, "student_id")
        except RemoteError as e:
            raise LoadError.from_message(e.message) from e

        if not rows:
            raise LoadError.empty()

        try:
            roster = [StudentRecord.from_row(row) for row in rows]
        except (KeyError, TypeError, AttributeError) as e:
            raise LoadError(f"Malformed row in response: {e}") from e

        ids = [r.id for r in roster]
        if len(set(ids)) != len(ids):
            raise LoadError("Duplicate record ids in response")
        return roster

    async def refresh(self) -> list[StudentRecord]:
        """Reload the roster; a refresh already in progress is not repeated."""
        if self._refresh_lock.locked():
            logger.debug("Refresh already running")
            return self._state.state.roster
        async with self._refresh_lock:
            return await self.load_roster()

    # === Mutations ===

    async def apply_update(self, record_id: Any, patch: dict[str, Any]) -> list[StudentRecord]:
        """
        Send a partial update for one record and reconcile the roster.

        The patch is stamped with updated_at and last_updated_by first.
        The roster is only replaced after the remote accepted the update.

        Raises:
            RecordNotFoundError: record_id is not in the roster.
            MutationError: the patch is invalid or the remote rejected it.
        """
        unknown = set(patch) - EDITABLE_FIELDS
        if unknown:
            raise MutationError(f"Fields not editable: {', '.join(sorted(unknown))}", record_id=record_id)
        if self._state.get_record(record_id) is None:
            raise RecordNotFoundError(record_id)
        if self._table is None:
            raise MutationError("Not connected to a backend", record_id=record_id)

        stamped = dict(patch)
        stamped["updated_at"] = self._clock().isoformat()
        stamped["last_updated_by"] = self._config.operator if self._config else "roster-dashboard"

        self._state.mark_saving(record_id)
        try:
            await asyncio.to_thread(self._table.update, record_id, stamped)
        except RemoteError as e:
            logger.error("Updating record %s failed: %s", record_id, e.message)
            raise MutationError(e.message, record_id=record_id) from e
        finally:
            self._state.clear_saving(record_id)

        # Other saves may have landed meanwhile, so merge into the current roster
        if self._state.get_record(record_id) is None:
            # A failed refresh emptied the roster; the write itself went through
            logger.warning("Record %s left the roster while its update was saving", record_id)
            return self._state.state.roster
        roster = apply_patch(self._state.state.roster, record_id, stamped)
        self._state.set_roster(roster)
        logger.info("Updated record %s: %s", record_id, ", ".join(sorted(patch)))
        return roster

    async def save_notes(self, record_id: Any, text: str) -> list[StudentRecord]:
        """Save an inline notes edit. The draft is kept if the save fails."""
        roster = await self.apply_update(record_id, {"notes": text.strip() or None})
        self._state.cancel_notes_edit(record_id)
        return roster
