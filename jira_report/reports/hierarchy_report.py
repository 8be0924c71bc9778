"""Hierarchy report generator.

Functions:
    generate_report(fetcher, index, root_key, ...)  -> Path
    build_outline(index, root_key)                  -> dict

``generate_report`` runs the whole pipeline sequentially: collect (fetch and
resolve each issue in traversal order), number, compile, write.
"""

from datetime import datetime, timezone
from pathlib import Path

from jira_report.collector import ProgressCallback, collect_issues
from jira_report.config import DEFAULT_RELATED_LINK_TYPE
from jira_report.fetcher import IssueFetcher
from jira_report.hierarchy import walk_hierarchy
from jira_report.models import FlatNode, IssueIndex
from jira_report.outline import assign_outline_numbers
from jira_report.reports.document import IconLookup, compile_document, write_report


class EmptyReportError(Exception):
    """Raised when the root issue is not in the index, so there is nothing to report."""


def generate_report(
    fetcher: IssueFetcher,
    index: IssueIndex,
    root_key: str,
    output_dir: str | Path,
    *,
    related_link_type: str = DEFAULT_RELATED_LINK_TYPE,
    icons: IconLookup | None = None,
    progress: ProgressCallback | None = None,
) -> Path:
    """Compile the report below *root_key* and write it to *output_dir*.

    Raises:
        EmptyReportError: the root key is not in the index.
        OutlineDepthError: the hierarchy is nested too deeply.
        ReportWriteError: the file could not be written.
    """
    nodes = collect_issues(root_key, index, fetcher, related_link_type, progress)
    if not nodes:
        raise EmptyReportError(f"Issue '{root_key}' is not part of the loaded hierarchy")

    numbered = assign_outline_numbers(nodes)

    if progress is not None:
        progress("Creating HTML report...")
    document = compile_document(numbered, index, icons)
    return write_report(document, output_dir)


def build_outline(index: IssueIndex, root_key: str) -> dict:
    """Return the numbered outline below *root_key* without fetching any body."""
    nodes = [FlatNode(issue=issue, depth=depth) for issue, depth in walk_hierarchy(root_key, index)]
    numbered = assign_outline_numbers(nodes)
    return {
        "report_type":  "outline",
        "root_key":     root_key,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "total":        len(numbered),
        "issues": [
            {
                "number":  node.number,
                "key":     node.key,
                "depth":   node.depth,
                "summary": node.issue.summary,
                "type":    node.issue.type,
                "status":  node.issue.status,
            }
            for node in numbered
        ],
    }
