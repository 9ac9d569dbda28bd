"""
Roster Dashboard - Error Types

Every failure the dashboard can surface, each with guidance text for the user.
"""

from typing import Optional


TROUBLESHOOTING_STEPS = (
    "Verify your Supabase URL is correct (should be https://[project-ref].supabase.co)",
    "Check that your anon key is valid",
    "Ensure your table is named 'students'",
    "Check if Row Level Security (RLS) is enabled and configured properly",
    "Make sure your internet connection is stable",
)

ERROR_CODES_URL = "https://supabase.com/docs/guides/api#error-codes"


class DashboardError(Exception):
    """Base class for errors shown to the user."""

    title = "Error"

    def __init__(self, message: str, guidance: str = ""):
        super().__init__(message)
        self.message = message
        self.guidance = guidance


class ConfigurationError(DashboardError):
    """Missing or invalid backend credentials."""

    title = "Configuration Required"


class ConnectionFailedError(DashboardError):
    """The connection test against the backend failed."""

    title = "Connection Error"

    def __init__(self, message: str):
        super().__init__(
            message,
            guidance="\n".join(f"{i}. {step}" for i, step in enumerate(TROUBLESHOOTING_STEPS, 1)),
        )


class LoadError(DashboardError):
    """Loading the roster failed or returned no rows."""

    title = "Error Loading Students"

    EMPTY = "empty"
    MISSING_TABLE = "missing_table"
    PERMISSION = "permission"
    AUTH = "auth"
    GENERIC = "generic"

    GUIDANCE = {
        EMPTY: "No data found. The table might be empty or you might not have permission to access it.",
        MISSING_TABLE: "Table not found. Make sure you've created the 'students' table in your Supabase database.",
        PERMISSION: "Permission denied. Check your Row Level Security (RLS) policies.",
        AUTH: "Authentication error. Your anon key might be invalid.",
        GENERIC: f"See {ERROR_CODES_URL} for details.",
    }

    def __init__(self, message: str, kind: str = GENERIC):
        super().__init__(message, guidance=self.GUIDANCE.get(kind, self.GUIDANCE[self.GENERIC]))
        self.kind = kind

    @classmethod
    def empty(cls) -> "LoadError":
        return cls(cls.GUIDANCE[cls.EMPTY], kind=cls.EMPTY)

    @classmethod
    def from_message(cls, message: str) -> "LoadError":
        """Classify a remote error message by the substrings it contains."""
        return cls(message, kind=classify_load_error(message))


def classify_load_error(message: str) -> str:
    """Map a remote error message to a LoadError kind."""
    if "relation" in message and "does not exist" in message:
        return LoadError.MISSING_TABLE
    if "permission denied" in message:
        return LoadError.PERMISSION
    if "JWT" in message:
        return LoadError.AUTH
    return LoadError.GENERIC


class MutationError(DashboardError):
    """A single-record update was rejected or could not be sent."""

    title = "Update Failed"

    def __init__(self, message: str, record_id: Optional[object] = None):
        super().__init__(message)
        self.record_id = record_id


class RecordNotFoundError(MutationError):
    """An update targeted a record id that is not in the roster."""

    def __init__(self, record_id: object):
        super().__init__(f"Record {record_id!r} is not in the roster", record_id=record_id)
