"""Thin PostgREST (Supabase REST) client bound to one bearer credential.

Only the three calls the goal repository needs: single-row select, insert
and filtered update. Every client is built for exactly one token by
``ScopedClientFactory.build_client``; when the token changes, build a new
client instead of mutating the old one.
"""

import json
from datetime import date, datetime
from typing import Any, Optional

import httpx

from coach.core.constants import NO_ROWS_CODE
from coach.core.time_utils import to_iso


class StoreError(Exception):
    """Error reported by the data store (or raised on the way to it).

    ``code`` is the PostgREST/Postgres condition code when the store answered,
    None for transport failures and timeouts.
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.hint = hint

    @property
    def is_no_rows(self) -> bool:
        return self.code == NO_ROWS_CODE

    def __repr__(self) -> str:
        return f"StoreError(code={self.code!r}, status_code={self.status_code!r}, message={self.message!r})"


def _json_default(value):
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _eq_filters(filters: dict[str, Any]) -> dict[str, str]:
    return {col: f"eq.{val}" for col, val in filters.items()}


class DataClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token
        hdrs = {
            "apikey": api_key,
            # Without a user token PostgREST evaluates policies as the anon role
            "Authorization": f"Bearer {token or api_key}",
        }
        self._client = httpx.Client(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=hdrs,
            transport=transport,
        )

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _request(self, method: str, table: str, **kwargs) -> httpx.Response:
        try:
            r = self._client.request(method, f"/{table}", **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{type(e).__name__}: {e}") from e
        if r.status_code >= 400:
            raise self._error_from(r)
        return r

    @staticmethod
    def _body(r: httpx.Response):
        if not r.content:
            return []
        try:
            return r.json()
        except ValueError as e:
            raise StoreError(
                f"Unreadable response body: {e}",
                status_code=r.status_code,
                details=r.text[:200],
            ) from e

    @staticmethod
    def _error_from(r: httpx.Response) -> StoreError:
        try:
            body = r.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            return StoreError(r.text or r.reason_phrase, status_code=r.status_code)
        return StoreError(
            body.get("message") or r.reason_phrase,
            code=body.get("code"),
            status_code=r.status_code,
            details=body.get("details"),
            hint=body.get("hint"),
        )

    def select_one(self, table: str, columns: str = "*", **filters) -> dict:
        """Fetch exactly one row; zero rows raise StoreError(code=PGRST116)."""
        params = {"select": columns, **_eq_filters(filters)}
        r = self._request(
            "GET",
            table,
            params=params,
            headers={"Accept": "application/vnd.pgrst.object+json"},
        )
        return self._body(r)

    def insert(self, table: str, row: dict) -> list[dict]:
        r = self._request(
            "POST",
            table,
            content=json.dumps(row, default=_json_default),
            headers={"Content-Type": "application/json", "Prefer": "return=representation"},
        )
        return self._body(r)

    def update(self, table: str, values: dict, **filters) -> list[dict]:
        """Update rows matching ``col == value`` filters; returns updated rows."""
        if not filters:
            raise ValueError("update() requires at least one filter")
        r = self._request(
            "PATCH",
            table,
            params=_eq_filters(filters),
            content=json.dumps(values, default=_json_default),
            headers={"Content-Type": "application/json", "Prefer": "return=representation"},
        )
        return self._body(r)


class ScopedClientFactory:
    """Builds a new ``DataClient`` for each credential."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._base_url = base_url
        self._anon_key = anon_key
        self._transport = transport

    def build_client(self, token: Optional[str]) -> DataClient:
        return DataClient(
            self._base_url,
            self._anon_key,
            token=token,
            transport=self._transport,
        )
