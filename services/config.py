"""
Roster Dashboard - Configuration Service

Loads and saves the backend credentials (project URL and anon key) plus a
few dashboard preferences. Values come from a JSON file in the state
directory, with environment variables (and a .env file) filling the gaps.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from services.errors import ConfigurationError


load_dotenv()

logger = logging.getLogger(__name__)

MANAGED_DOMAIN = ".supabase.co"
INVALID_URL_MESSAGE = "Please enter a valid Supabase URL (https://[project-ref].supabase.co)"


def default_state_dir() -> Path:
    """State directory, overridable with ROSTER_STATE_DIR."""
    return Path(os.getenv("ROSTER_STATE_DIR") or Path.home() / ".roster-dashboard")


@dataclass
class BackendConfig:
    """Everything needed to talk to the remote table."""
    url: str = ""
    anon_key: str = ""
    table: str = "students"
    operator: str = "roster-dashboard"
    request_timeout: float = 30.0
    export_dir: str = "."

    @property
    def is_complete(self) -> bool:
        return bool(self.url and self.anon_key)

    @classmethod
    def from_env(cls) -> "BackendConfig":
        """Build from SUPABASE_* and ROSTER_* environment variables."""
        config = cls(
            url=os.getenv("SUPABASE_URL", "").strip(),
            anon_key=os.getenv("SUPABASE_ANON_KEY", "").strip(),
        )
        config.table = os.getenv("ROSTER_TABLE", config.table)
        config.operator = os.getenv("ROSTER_OPERATOR", config.operator)
        config.export_dir = os.getenv("ROSTER_EXPORT_DIR", config.export_dir)

        timeout = os.getenv("ROSTER_REQUEST_TIMEOUT")
        if timeout:
            try:
                config.request_timeout = float(timeout)
            except ValueError:
                logger.warning("Ignoring invalid ROSTER_REQUEST_TIMEOUT=%r", timeout)
        return config


def validate_backend_config(config: BackendConfig) -> None:
    """
    Check credentials before use.

    Raises:
        ConfigurationError: url or key missing, or url is not a Supabase https URL.
    """
    if not config.url or not config.anon_key:
        raise ConfigurationError(
            "Supabase URL and anon key are required",
            guidance="Enter your project URL and anon key to connect.",
        )
    if not config.url.startswith("https://") or MANAGED_DOMAIN not in config.url:
        raise ConfigurationError(INVALID_URL_MESSAGE)


class ConfigStore:
    """
    Persists backend credentials and the last sort selection.

    State is stored in ``<state dir>/config.json``.
    """

    STATE_FILE = "config.json"

    def __init__(self, state_dir: Optional[Path] = None):
        self.state_dir = Path(state_dir) if state_dir else default_state_dir()
        self._data: dict = {}
        self._ensure_state_dir()
        self._load()

    def _ensure_state_dir(self) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.state_dir / self.STATE_FILE

    def _load(self) -> None:
        """Load saved values if the file exists."""
        if not self.path.exists():
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            # Corrupted file: behave as if nothing was saved
            logger.warning("Ignoring unreadable config %s: %s", self.path, e)
            return
        if isinstance(data, dict):
            self._data = data

    def _save(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self._data, f, indent=2)

    # === Backend credentials ===

    def load_backend_config(self) -> BackendConfig:
        """Saved url/key win over the environment; the environment fills gaps."""
        config = BackendConfig.from_env()
        saved = self._data.get("backend") or {}
        if saved.get("url"):
            config.url = saved["url"]
        if saved.get("anon_key"):
            config.anon_key = saved["anon_key"]
        return config

    def save_backend_config(self, config: BackendConfig) -> None:
        """Persist the two credential strings the user submitted."""
        self._data["backend"] = {"url": config.url, "anon_key": config.anon_key}
        self._save()
        logger.info("Saved backend configuration for %s", config.url)

    def has_saved_backend(self) -> bool:
        saved = self._data.get("backend") or {}
        return bool(saved.get("url") and saved.get("anon_key"))

    # === Preferences ===

    def get_last_sort(self) -> Optional[str]:
        return self._data.get("last_sort")

    def set_last_sort(self, sort_key: str) -> None:
        self._data["last_sort"] = sort_key
        self._save()

    def reset(self) -> None:
        """Forget everything saved."""
        self._data = {}
        self._save()
