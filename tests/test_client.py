"""Tests for jira_report/client.py"""

import warnings

import pytest

from jira_report.client import (
    AuthenticationError,
    JiraClient,
    JiraClientError,
    NetworkError,
    NotFoundError,
)

BASE = "https://jira.example.com"


@pytest.fixture
def client() -> JiraClient:
    return JiraClient(url=BASE, email="me@example.com", token="tok")


# ---------------------------------------------------------------------------
# get() — happy path
# ---------------------------------------------------------------------------

def test_get_returns_parsed_json(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", json={"key": "REQ-1"})
    data = client.get("/rest/api/2/issue/REQ-1")
    assert data == {"key": "REQ-1"}


def test_get_sends_basic_auth_header(client, requests_mock):
    adapter = requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", json={})
    client.get("/rest/api/2/issue/REQ-1")
    assert adapter.last_request.headers["Authorization"].startswith("Basic ")


def test_trailing_slash_in_url_is_ignored(requests_mock):
    adapter = requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", json={})
    JiraClient(url=f"{BASE}/", email="e", token="t").get("/rest/api/2/issue/REQ-1")
    assert adapter.called


# ---------------------------------------------------------------------------
# get() — HTTP error codes
# ---------------------------------------------------------------------------

def test_get_401_raises_authentication_error(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", status_code=401)
    with pytest.raises(AuthenticationError):
        client.get("/rest/api/2/issue/REQ-1")


def test_get_403_raises_authentication_error(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", status_code=403)
    with pytest.raises(AuthenticationError, match="403"):
        client.get("/rest/api/2/issue/REQ-1")


def test_get_404_raises_not_found_error(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", status_code=404)
    with pytest.raises(NotFoundError):
        client.get("/rest/api/2/issue/REQ-1")


def test_get_500_raises_jira_client_error(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", status_code=500, text="Internal Server Error")
    with pytest.raises(JiraClientError, match="500"):
        client.get("/rest/api/2/issue/REQ-1")


def test_get_invalid_json_raises_jira_client_error(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", text="<html>login</html>")
    with pytest.raises(JiraClientError, match="not valid JSON"):
        client.get("/rest/api/2/issue/REQ-1")


# ---------------------------------------------------------------------------
# get() — network errors
# ---------------------------------------------------------------------------

def test_get_timeout_raises_network_error(client, requests_mock):
    import requests
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", exc=requests.exceptions.Timeout)
    with pytest.raises(NetworkError, match="timed out"):
        client.get("/rest/api/2/issue/REQ-1")


def test_get_connection_error_raises_network_error(client, requests_mock):
    import requests
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", exc=requests.exceptions.ConnectionError)
    with pytest.raises(NetworkError, match="Unable to reach"):
        client.get("/rest/api/2/issue/REQ-1")


@pytest.mark.parametrize("error", ["ChunkedEncodingError", "TooManyRedirects", "InvalidURL"])
def test_get_other_request_failures_raise_network_error(client, requests_mock, error):
    import requests
    requests_mock.get(f"{BASE}/rest/api/2/issue/REQ-1", exc=getattr(requests.exceptions, error))
    with pytest.raises(NetworkError, match="failed"):
        client.get("/rest/api/2/issue/REQ-1")


# ---------------------------------------------------------------------------
# get_paginated() — pagination logic
# ---------------------------------------------------------------------------

def _page(items: list, total: int, start_at: int) -> dict:
    return {"issues": items, "startAt": start_at, "maxResults": 100, "total": total}


def test_paginated_single_page(client, requests_mock):
    requests_mock.get(
        f"{BASE}/rest/api/2/search",
        json=_page([{"key": "REQ-1"}, {"key": "REQ-2"}], total=2, start_at=0),
    )
    results = client.get_paginated("/rest/api/2/search", {}, results_key="issues")
    assert results == [{"key": "REQ-1"}, {"key": "REQ-2"}]


def test_paginated_multiple_pages(client, requests_mock):
    responses = [
        {"json": _page([{"key": f"REQ-{i}"} for i in range(1, 101)], total=150, start_at=0)},
        {"json": _page([{"key": f"REQ-{i}"} for i in range(101, 151)], total=150, start_at=100)},
    ]
    adapter = requests_mock.get(f"{BASE}/rest/api/2/search", responses)
    results = client.get_paginated("/rest/api/2/search", {}, results_key="issues")
    assert len(results) == 150
    assert results[0]["key"] == "REQ-1"
    assert results[-1]["key"] == "REQ-150"
    assert adapter.request_history[1].qs["startat"] == ["100"]


def test_paginated_empty_result(client, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/search", json=_page([], total=0, start_at=0))
    results = client.get_paginated("/rest/api/2/search", {}, results_key="issues")
    assert results == []


def test_paginated_warns_above_threshold(client, requests_mock):
    requests_mock.get(
        f"{BASE}/rest/api/2/search",
        [
            {"json": _page([{"key": "REQ-1"}], total=5_001, start_at=0)},
            {"json": _page([], total=5_001, start_at=1)},
        ],
    )
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        client.get_paginated("/rest/api/2/search", {}, results_key="issues")

    assert any("5000" in str(w.message) for w in caught)
