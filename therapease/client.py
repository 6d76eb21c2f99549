"""
Therapease API Client

Thin wrapper over the HTTP API for scripts and server-side callers.

The bearer token lives on an ``AuthContext`` owned by the client instance.
``login`` and ``register`` store it, ``logout`` clears it, and no shared
session defaults are touched, so two clients never see each other's
credentials.
"""

from dataclasses import dataclass
from typing import Any, Optional
from uuid import UUID

import requests
from requests.exceptions import RequestException


@dataclass
class AuthContext:
    """Credential carried by one client instance."""
    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}


class ApiError(Exception):
    """Failure envelope or transport error from the API."""

    def __init__(self, status: int, message: str):
        super().__init__(f"{status}: {message}")
        self.status = status
        self.message = message


class TherapeaseClient:
    """
    Client for the Therapease HTTP API.

    Every method returns the ``data`` member of the success envelope.

    Args:
        base_url: API root, e.g. ``http://localhost:8000``
        auth: Credential holder (a fresh, anonymous one by default)
        session: Optional ``requests.Session`` to reuse
        timeout: Per-request timeout in seconds
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        base_url: str,
        auth: Optional[AuthContext] = None,
        session: Optional[requests.Session] = None,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = auth if auth is not None else AuthContext()
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    # =========================================================================
    # Transport
    # =========================================================================

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = self.session.request(
                method,
                f"{self.base_url}{path}",
                json=json,
                params=params or None,
                headers=self.auth.headers(),
                timeout=self.timeout,
            )
        except RequestException as e:
            raise ApiError(0, f"Request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.status_code >= 400 or not body.get("success", False):
            message = body.get("message") or response.reason or "Request failed"
            raise ApiError(response.status_code, message)

        return body.get("data")

    # =========================================================================
    # Auth
    # =========================================================================

    def register(self, **fields: Any) -> dict:
        """Register a ``user`` (default) or ``therapist`` and keep its token."""
        fields.setdefault("role", "user")
        data = self._request("POST", "/auth/register", json=fields)
        self.auth.token = data["token"]
        return data["account"]

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.auth.token = data["token"]
        return data["account"]

    def logout(self) -> None:
        try:
            self._request("POST", "/auth/logout")
        finally:
            self.auth.token = None

    def me(self) -> dict:
        return self._request("GET", "/auth/me")

    def update_me(self, **fields: Any) -> dict:
        return self._request("PUT", "/auth/me", json=fields)

    # =========================================================================
    # Community board
    # =========================================================================

    def list_posts(self, page: int = 1, limit: int = 10, include_inactive: bool = False) -> dict:
        params = {"page": page, "limit": limit}
        if include_inactive:
            params["include_inactive"] = "true"
        return self._request("GET", "/posts/getAll", params=params)

    def my_posts(self, page: int = 1, limit: int = 10) -> dict:
        return self._request("GET", "/posts/my-posts", params={"page": page, "limit": limit})

    def get_post(self, post_id: UUID) -> dict:
        return self._request("GET", f"/posts/{post_id}")

    def create_post(self, content: str, anonymous: bool = False) -> dict:
        return self._request("POST", "/posts/create", json={"content": content, "anonymous": anonymous})

    def reply(self, post_id: UUID, content: str, anonymous: bool = False) -> dict:
        return self._request(
            "POST",
            f"/posts/reply/{post_id}",
            json={"content": content, "anonymous": anonymous},
        )

    def flag(self, post_id: UUID, reason: Optional[str] = None) -> dict:
        body = {"reason": reason} if reason else None
        return self._request("POST", f"/posts/flag/{post_id}", json=body)

    def delete_post(self, post_id: UUID) -> None:
        self._request("DELETE", f"/posts/{post_id}")

    # =========================================================================
    # Journals
    # =========================================================================

    def create_journal(self, content: str, **fields: Any) -> dict:
        return self._request("POST", "/journals/create", json={"content": content, **fields})

    def list_journals(
        self,
        page: int = 1,
        limit: int = 10,
        mood: Optional[str] = None,
        search: Optional[str] = None,
    ) -> dict:
        return self._request(
            "GET",
            "/journals/",
            params={"page": page, "limit": limit, "mood": mood, "search": search},
        )

    def get_journal(self, journal_id: UUID) -> dict:
        return self._request("GET", f"/journals/{journal_id}")

    def update_journal(self, journal_id: UUID, **fields: Any) -> dict:
        return self._request("PUT", f"/journals/{journal_id}", json=fields)

    def delete_journal(self, journal_id: UUID) -> None:
        self._request("DELETE", f"/journals/{journal_id}")

    def journal_stats(self) -> dict:
        return self._request("GET", "/journals/stats")

    # =========================================================================
    # Therapists
    # =========================================================================

    def list_therapists(self, page: int = 1, limit: int = 10, specialization: Optional[str] = None) -> dict:
        return self._request(
            "GET",
            "/therapists/",
            params={"page": page, "limit": limit, "specialization": specialization},
        )

    def get_therapist(self, therapist_id: UUID) -> dict:
        return self._request("GET", f"/therapists/{therapist_id}")

    def apply_as_therapist(self, application: dict[str, Any]) -> dict:
        return self._request("POST", "/therapists/apply", json=application)

    def contact_therapist(self, therapist_id: UUID, message: str, contact_info: dict[str, Any]) -> dict:
        return self._request(
            "POST",
            f"/therapists/contact/{therapist_id}",
            json={"message": message, "contact_info": contact_info},
        )
