"""Jira REST API client.

Usage:
    client = JiraClient(url="https://jira.example.com", email="me@example.com", token="xxx")
    data   = client.get("/rest/api/2/issue/REQ-1", {"expand": "renderedFields"})
    issues = client.get_paginated("/rest/api/2/search", {"jql": "project = REQ"}, results_key="issues")
"""

import warnings
from typing import Any

import requests

PAGE_SIZE = 100
PAGINATION_WARNING_THRESHOLD = 5_000


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class JiraClientError(Exception):
    """Base exception for all client errors."""


class AuthenticationError(JiraClientError):
    """Raised on HTTP 401/403 — invalid token or missing permission."""


class NotFoundError(JiraClientError):
    """Raised on HTTP 404 — issue, project or resource not found."""


class NetworkError(JiraClientError):
    """Raised on connection timeout, unreachable server or a broken transfer."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class JiraClient:
    """Thin wrapper around the Jira REST API (v2)."""

    def __init__(self, url: str, email: str, token: str, timeout: int = 30) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = requests.Session()
        # Jira Cloud basic auth: account email + API token
        self._session.auth = (email, token)
        self._session.headers.update({"Accept": "application/json"})

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def get(self, endpoint: str, params: dict[str, Any] | None = None) -> dict:
        """Perform a single GET request and return the parsed JSON response.

        Raises:
            AuthenticationError: HTTP 401 / 403
            NotFoundError:       HTTP 404
            JiraClientError:     Any other non-2xx response
            NetworkError:        Timeout or connection failure
        """
        return self._request(endpoint, params or {})

    def get_paginated(
        self,
        endpoint: str,
        params: dict[str, Any],
        results_key: str,
    ) -> list[dict]:
        """Fetch all pages for an endpoint and return a flat list of results.

        Jira paginates via ``startAt`` (offset) and ``maxResults`` (page size).
        The total result count is in ``response["total"]``.

        Emits a warning when total > PAGINATION_WARNING_THRESHOLD because a
        report over that many issues is rarely intended.

        Args:
            endpoint:    API path, e.g. ``/rest/api/2/search``
            params:      Query parameters (do not include ``startAt`` or ``maxResults``)
            results_key: Key in the response JSON that holds the results list
        """
        all_results: list[dict] = []
        start_at = 0
        _warning_emitted = False

        while True:
            page_params = {**params, "maxResults": PAGE_SIZE, "startAt": start_at}
            data = self._request(endpoint, page_params)

            results = data.get(results_key, [])
            all_results.extend(results)

            total: int = data.get("total", len(all_results))

            if total > PAGINATION_WARNING_THRESHOLD and not _warning_emitted:
                warnings.warn(
                    f"Result set exceeds {PAGINATION_WARNING_THRESHOLD} items (total={total}). "
                    "Fetching every page may take a while; "
                    "consider narrowing the JQL query.",
                    UserWarning,
                    stacklevel=2,
                )
                _warning_emitted = True

            # Stop when we've fetched everything
            if len(all_results) >= total or not results:
                break

            start_at += len(results)

        return all_results

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _request(self, endpoint: str, params: dict[str, Any]) -> dict:
        url = f"{self.base_url}{endpoint}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach Jira server at '{self.base_url}'"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkError(f"Request to '{url}' failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthenticationError(
                f"Authentication failed ({response.status_code}) — "
                "check your email and API token."
            )
        if response.status_code == 404:
            raise NotFoundError(
                f"Resource not found: {url}"
            )
        if not response.ok:
            raise JiraClientError(
                f"Unexpected response {response.status_code} from {url}: {response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise JiraClientError(f"Response from {url} is not valid JSON") from exc
