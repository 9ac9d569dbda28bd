"""
Roster Dashboard - Remote Table Client

Thin wrapper around a Supabase (PostgREST) table over HTTPS.

Only four request shapes are used: count, ordered select of every row,
and partial update of one row by id returning the updated row.
"""

import logging
from typing import Any, Optional

import requests


logger = logging.getLogger(__name__)


class RemoteError(Exception):
    """A request to the remote table failed."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    @classmethod
    def from_response(cls, response: requests.Response) -> "RemoteError":
        """Build from a PostgREST error body, falling back to the raw text."""
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("message"):
            message = body["message"]
            details = body.get("details") or body.get("hint")
            if details:
                message = f"{message} ({details})"
            return cls(message=message, status_code=response.status_code, code=body.get("code"))

        text = response.text.strip() or response.reason or "Request failed"
        return cls(message=text, status_code=response.status_code)


def parse_content_range(header: Optional[str]) -> int:
    """
    Parse the total from a Content-Range header such as ``0-24/573`` or ``*/0``.
    """
    if not header or "/" not in header:
        raise RemoteError(f"Missing row count in response (Content-Range: {header!r})")
    total = header.rsplit("/", 1)[1]
    if not total.isdigit():
        raise RemoteError(f"Unknown row count in response (Content-Range: {header!r})")
    return int(total)


class RemoteTable:
    """
    Client for one table of a hosted Supabase project.

    One instance (and one HTTP session) is created per configuration and
    reused for every request. Every request carries an explicit timeout.
    """

    REST_PATH = "/rest/v1"

    def __init__(
        self,
        url: str,
        anon_key: str,
        table: str = "students",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = f"{url.rstrip('/')}{self.REST_PATH}/{table}"
        self.table = table
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            "apikey": anon_key,
            "Authorization": f"Bearer {anon_key}",
            "Accept": "application/json",
        })

    def _request(self, method: str, params: dict[str, str], **kwargs) -> requests.Response:
        try:
            response = self._session.request(
                method, self.base_url, params=params, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.warning("%s %s failed: %s", method, self.base_url, e)
            raise RemoteError(str(e)) from e

        if not response.ok:
            error = RemoteError.from_response(response)
            logger.warning("%s %s returned %s: %s", method, self.base_url, response.status_code, error)
            raise error
        return response

    def _rows(self, response: requests.Response) -> list[dict[str, Any]]:
        """Decode a JSON array body; anything else is a RemoteError."""
        try:
            rows = response.json()
        except ValueError as e:
            snippet = response.text.strip()[:80]
            logger.warning("%s returned a non-JSON body: %r", self.base_url, snippet)
            raise RemoteError(f"Invalid response body: {snippet or e}", status_code=response.status_code) from e
        if not isinstance(rows, list):
            raise RemoteError(f"Unexpected response shape: {type(rows).__name__}", status_code=response.status_code)
        return rows

    def count(self) -> int:
        """Exact number of rows visible with the current key."""
        response = self._request(
            "HEAD",
            {"select": "*"},
            headers={"Prefer": "count=exact", "Range": "0-0"},
        )
        return parse_content_range(response.headers.get("Content-Range"))

    def select_all(self, order_by: str = "student_id", ascending: bool = True) -> list[dict[str, Any]]:
        """Every row, ordered by one column."""
        direction = "asc" if ascending else "desc"
        response = self._request("GET", {"select": "*", "order": f"{order_by}.{direction}"})
        return self._rows(response)

    def update(self, record_id: Any, patch: dict[str, Any]) -> Optional[dict[str, Any]]:
        """
        Partially update one row by id.

        Returns:
            The updated row, or None if the service returned no row.
        """
        response = self._request(
            "PATCH",
            {"id": f"eq.{record_id}"},
            json=patch,
            headers={"Prefer": "return=representation", "Content-Type": "application/json"},
        )
        rows = self._rows(response) if response.content else []
        return rows[0] if rows else None

    def close(self) -> None:
        self._session.close()
