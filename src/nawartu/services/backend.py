"""
Backend Client - HTTP access to the hosted platform.

Wraps the three surfaces the client talks to:
- the auto-generated REST API over the database (tables and RPCs)
- serverless functions (translation, checkout)
- object storage (avatars and listing images)

Every failure is raised as BackendError so callers handle one type.
"""

import logging
from typing import Any, Optional

import requests
from requests.exceptions import RequestException

from nawartu.utils import config
from nawartu.utils.errors import NawartuError

logger = logging.getLogger('Nawartu')


class BackendError(NawartuError):
    """A remote call failed (network, validation, auth or server error)."""

    def __init__(self, message: str, code: str = "", status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status


class NotFoundError(BackendError):
    """A single-row query matched no rows."""


# PostgREST code for "JSON object requested, multiple (or no) rows returned"
NO_ROWS_CODE = "PGRST116"


class BackendClient:
    """
    Thin requests-based client for the hosted database, functions and storage.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None
    ):
        """
        Initialize the backend client.

        Args:
            url: Project URL (None = config)
            api_key: Public anon key (None = config)
            access_token: Signed-in user's JWT; the anon key is used when absent
            session: Optional shared requests session
            timeout: Request timeout in seconds (None = config)
        """
        self.url = (url or config.backend_url).rstrip("/")
        self.api_key = api_key if api_key is not None else config.anon_key
        self.timeout = timeout or config.http_timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "apikey": self.api_key,
            "User-Agent": config.user_agent,
        })
        self.set_access_token(access_token)

    def set_access_token(self, access_token: Optional[str]) -> None:
        """Switch the bearer token (sign-in / sign-out)."""
        self.access_token = access_token
        self.session.headers["Authorization"] = f"Bearer {access_token or self.api_key}"

    # ------------------------------------------------------------------
    # Low-level request handling
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
        except RequestException as e:
            logger.error(f"{method} {path} failed: {e}")
            raise BackendError(str(e)) from e

        if response.status_code >= 400:
            raise self._error_from_response(response)
        return response

    @staticmethod
    def _error_from_response(response: requests.Response) -> BackendError:
        code = ""
        message = response.reason or f"HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            code = str(body.get("code") or "")
            message = body.get("message") or body.get("error") or body.get("msg") or message

        if code == NO_ROWS_CODE:
            return NotFoundError(message, code=code, status=response.status_code)
        logger.debug(f"Backend error {response.status_code} ({code}): {message}")
        return BackendError(message, code=code, status=response.status_code)

    @staticmethod
    def _json(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise BackendError(f"Malformed response: {e}", status=response.status_code) from e

    @staticmethod
    def _eq_filters(filters: Optional[dict[str, Any]]) -> dict[str, str]:
        return {column: f"eq.{value}" for column, value in (filters or {}).items()}

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    def rpc(self, function: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Call a stored procedure.

        Args:
            function: Procedure name
            params: Named parameters

        Returns:
            Decoded JSON (row list or scalar)
        """
        logger.debug(f"RPC {function}({params})")
        response = self._request("POST", f"/rest/v1/rpc/{function}", json=params or {})
        return self._json(response)

    def select(
        self,
        table: str,
        filters: Optional[dict[str, Any]] = None,
        columns: str = "*",
        single: bool = False,
        order: Optional[str] = None
    ) -> Any:
        """
        Read rows from a table.

        Args:
            table: Table name
            filters: Column -> value equality filters
            columns: Column list
            single: Expect exactly one row; NotFoundError if there is none
            order: PostgREST order expression, e.g. 'created_at.desc'

        Returns:
            List of rows, or one row when ``single`` is set
        """
        params = {"select": columns, **self._eq_filters(filters)}
        if order:
            params["order"] = order
        headers = {"Accept": "application/vnd.pgrst.object+json"} if single else {}
        response = self._request("GET", f"/rest/v1/{table}", params=params, headers=headers)
        return self._json(response)

    def insert(self, table: str, row: dict[str, Any]) -> list[dict[str, Any]]:
        """Insert a row and return the stored representation."""
        response = self._request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        return self._json(response) or []

    def update(
        self,
        table: str,
        values: dict[str, Any],
        filters: dict[str, Any]
    ) -> list[dict[str, Any]]:
        """Update rows matching ``filters``."""
        if not filters:
            raise ValueError("Refusing to update without filters")
        response = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=self._eq_filters(filters),
            json=values,
            headers={"Prefer": "return=representation"},
        )
        return self._json(response) or []

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    def invoke(self, function: str, body: Optional[dict[str, Any]] = None) -> Any:
        """Invoke a serverless function with a JSON body."""
        logger.debug(f"Invoking function {function}")
        response = self._request("POST", f"/functions/v1/{function}", json=body or {})
        return self._json(response)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def upload(
        self,
        bucket: str,
        path: str,
        data: bytes,
        content_type: str,
        upsert: bool = False,
        cache_control: str = "3600"
    ) -> str:
        """
        Upload an object.

        Returns:
            The stored object key (relative to the bucket)
        """
        self._request(
            "POST",
            f"/storage/v1/object/{bucket}/{path}",
            data=data,
            headers={
                "Content-Type": content_type,
                "Cache-Control": f"max-age={cache_control}",
                "x-upsert": "true" if upsert else "false",
            },
        )
        logger.info(f"Uploaded {bucket}/{path}")
        return path

    def remove(self, bucket: str, paths: list[str]) -> None:
        """Delete objects from a bucket."""
        if not paths:
            return
        self._request("DELETE", f"/storage/v1/object/{bucket}", json={"prefixes": paths})
        logger.info(f"Removed {len(paths)} object(s) from {bucket}")

    def public_url(self, bucket: str, key: str) -> str:
        """Public URL of an object in a public bucket."""
        return f"{self.url}/storage/v1/object/public/{bucket}/{key.lstrip('/')}"

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
