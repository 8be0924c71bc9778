"""Remote issue fetcher.

    details = IssueFetcher(client).fetch("REQ-12")

Returns the rendered description HTML, the attachment map and the raw typed
link list of a single issue. Errors from the client propagate; the
collector decides how a failed fetch degrades.
"""

from dataclasses import dataclass, field
from typing import Any

from jira_report.client import JiraClient, JiraClientError

_ISSUE_FIELDS = "attachment,issuelinks"


@dataclass
class IssueDetails:
    body_html: str = ""
    attachments: dict[str, str] = field(default_factory=dict)
    links: list[dict[str, Any]] = field(default_factory=list)


class IssueFetcher:
    """Fetches the per-issue sections the report needs, one key at a time."""

    def __init__(self, client: JiraClient) -> None:
        self._client = client

    @property
    def base_url(self) -> str:
        return self._client.base_url

    def fetch(self, key: str) -> IssueDetails:
        """Fetch one issue.

        Raises:
            JiraClientError: the request failed or the payload does not have
                the expected shape.
        """
        data = self._client.get(
            f"/rest/api/2/issue/{key}",
            params={"expand": "renderedFields", "fields": _ISSUE_FIELDS},
        )
        if not isinstance(data, dict):
            raise JiraClientError(f"Unexpected payload for issue {key}")

        rendered = data.get("renderedFields") or {}
        fields = data.get("fields") or {}
        if not isinstance(rendered, dict) or not isinstance(fields, dict):
            raise JiraClientError(f"Unexpected payload for issue {key}: fields are not objects")

        description = rendered.get("description") or ""
        if not isinstance(description, str):
            raise JiraClientError(f"Unexpected payload for issue {key}: description is not text")

        return IssueDetails(
            body_html=description,
            attachments=_attachment_map(_object_list(fields, "attachment", key)),
            links=_object_list(fields, "issuelinks", key),
        )


def _object_list(fields: dict[str, Any], name: str, key: str) -> list[dict[str, Any]]:
    """Return ``fields[name]`` as a list of JSON objects, or raise."""
    raw = fields.get(name) or []
    if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
        raise JiraClientError(f"Unexpected payload for issue {key}: '{name}' is not a list of objects")
    return list(raw)


def _attachment_map(raw: list[dict[str, Any]]) -> dict[str, str]:
    """Map each attachment filename to its content URL."""
    return {
        att["filename"]: att["content"]
        for att in raw
        if isinstance(att.get("filename"), str) and att["filename"]
        and isinstance(att.get("content"), str) and att["content"]
    }
