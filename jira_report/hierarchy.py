"""Issue index construction and hierarchy traversal.

Functions:
    build_issue_index(client, project, related_link_type)  -> IssueIndex
    walk_hierarchy(root_key, index)                        -> iterator of (IssueRecord, depth)
    natural_sort_key(text)                                 -> tuple
"""

import logging
import re
from typing import Any, Iterator

from jira_report.client import JiraClient
from jira_report.config import ProjectConfig
from jira_report.models import IssueIndex, IssueRecord
from jira_report.resolver import extract_related_keys

logger = logging.getLogger(__name__)

_SEARCH_FIELDS = "summary,issuetype,status,issuelinks"
_DIGITS_RE = re.compile(r"(\d+)")


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

def build_issue_index(
    client: JiraClient,
    project: ProjectConfig,
    related_link_type: str,
) -> IssueIndex:
    """Search every issue of *project* and return the populated index.

    Outward links of the project's hierarchy link type (e.g. ``Blocks``) are
    the issue's children. Children are ordered naturally by summary, then key.
    """
    params = {"jql": f'project = "{project.key}"', "fields": _SEARCH_FIELDS}
    raw_issues = client.get_paginated("/rest/api/2/search", params, results_key="issues")

    records = [_to_record(raw, project.link_type, related_link_type) for raw in raw_issues]
    summaries = {r.key: r.summary for r in records}

    index = IssueIndex()
    for record in records:
        ordered = sorted(
            record.children_keys,
            key=lambda k: (natural_sort_key(summaries.get(k, "")), natural_sort_key(k)),
        )
        index.add(IssueRecord(
            key=record.key,
            summary=record.summary,
            type=record.type,
            status=record.status,
            related_keys=record.related_keys,
            children_keys=tuple(ordered),
        ))

    logger.info("Indexed %d issues for project %s", len(index), project.key)
    return index


def _to_record(raw: dict[str, Any], hierarchy_link_type: str, related_link_type: str) -> IssueRecord:
    fields = raw.get("fields") or {}
    links = fields.get("issuelinks") or []
    wanted = hierarchy_link_type.lower()

    children = [
        link["outwardIssue"]["key"]
        for link in links
        if ((link.get("type") or {}).get("name") or "").lower() == wanted
        and (link.get("outwardIssue") or {}).get("key")
    ]

    return IssueRecord(
        key=raw["key"],
        summary=fields.get("summary") or "",
        type=(fields.get("issuetype") or {}).get("name") or "",
        status=(fields.get("status") or {}).get("name") or "",
        related_keys=tuple(extract_related_keys(links, related_link_type)),
        children_keys=tuple(dict.fromkeys(children)),
    )


def natural_sort_key(text: str) -> tuple:
    """Sort key that orders embedded numbers numerically ("REQ-2" < "REQ-10")."""
    return tuple(
        (0, int(part), "") if part.isdigit() else (1, 0, part.lower())
        for part in _DIGITS_RE.split(text)
        if part
    )


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def walk_hierarchy(root_key: str, index: IssueIndex) -> Iterator[tuple[IssueRecord, int]]:
    """Yield ``(issue, depth)`` in pre-order: node first, then its children.

    Keys absent from the index are skipped together with their subtree. A key
    that was already yielded is skipped as well, so cyclic hierarchies
    terminate. Children are only looked up once the caller resumes the
    generator after their parent.
    """
    visited: set[str] = set()
    stack: list[tuple[str, int]] = [(root_key, 0)]

    while stack:
        key, depth = stack.pop()
        issue = index.get(key)
        if issue is None:
            logger.debug("Skipping %s: not in the issue index", key)
            continue
        if key in visited:
            logger.warning("Skipping %s: already visited in this report", key)
            continue
        visited.add(key)

        yield issue, depth

        # Reversed so that the first child is popped first
        for child_key in reversed(index.children_of(key)):
            stack.append((child_key, depth + 1))
