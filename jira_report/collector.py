"""Hierarchical collector.

Walks the hierarchy below a root issue in pre-order and, for every visited
issue, fetches and resolves its body before moving on to the next one.
Fetches are strictly sequential: the order of requests is the traversal
order.
"""

import logging
from dataclasses import replace
from typing import Callable

from jira_report.client import JiraClientError
from jira_report.fetcher import IssueDetails, IssueFetcher
from jira_report.hierarchy import walk_hierarchy
from jira_report.models import FlatNode, IssueIndex
from jira_report.resolver import extract_related_keys, resolve_body

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


def collect_issues(
    root_key: str,
    index: IssueIndex,
    fetcher: IssueFetcher,
    related_link_type: str,
    progress: ProgressCallback | None = None,
) -> list[FlatNode]:
    """Return the visited issues as flat nodes in document order.

    Each node carries a copy of its index record with the fetched rendered
    body and attachment map filled in; the index itself is not modified.

    A root key missing from the index gives an empty list. A failed fetch
    degrades that issue to the placeholder body with no relations; its
    children are still collected.
    """
    nodes: list[FlatNode] = []

    for issue, depth in walk_hierarchy(root_key, index):
        details, related = _fetch_node(fetcher, issue.key, related_link_type)
        record = replace(issue, rendered_body=details.body_html or None, attachments=details.attachments)
        body = resolve_body(record.rendered_body, record.attachments, fetcher.base_url)

        nodes.append(FlatNode(issue=record, depth=depth, body=body, related_keys=related))
        logger.debug("Collected %s at depth %d", issue.key, depth)
        if progress is not None:
            progress(f"Report generation in progress: added {issue.key}")

    return nodes


def _fetch_node(
    fetcher: IssueFetcher, key: str, related_link_type: str
) -> tuple[IssueDetails, tuple[str, ...]]:
    """Fetch one issue and pick out its related keys.

    Any failure is logged and treated as "no data".
    """
    try:
        details = fetcher.fetch(key)
        return details, tuple(extract_related_keys(details.links, related_link_type))
    except (JiraClientError, ValueError) as exc:
        logger.warning("Could not fetch %s, using placeholder body: %s", key, exc)
        return IssueDetails(), ()
