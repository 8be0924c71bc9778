"""HTML document compiler.

Functions:
    compile_document(nodes, index, icons)     -> ReportDocument
    render_toc(nodes, icons)                  -> str
    render_issue_section(node, ...)           -> str
    write_report(document, output_dir)        -> Path

The compiler needs the complete, numbered node list up front: the table of
contents is emitted before any issue section.
"""

import base64
import html
import os
import tempfile
from pathlib import Path
from typing import Callable, Iterable

from jira_report.models import FlatNode, IssueIndex, ReportDocument
from jira_report.outline import outline_level
from jira_report.resolver import rewrite_issue_anchors

IconLookup = Callable[[str], bytes | None]

STYLESHEET = """\
body { font-family: "IBM Plex Sans", "Segoe UI", Arial, sans-serif; margin: 2em; color: #1f2328; }
h1 { font-size: 1.6em; border-bottom: 2px solid #d0d7de; padding-bottom: .3em; }
nav.toc ul { list-style: none; padding-left: 1.2em; margin: 0; }
nav.toc li { margin: .15em 0; }
nav.toc a { text-decoration: none; color: #0969da; }
details.issue { border-left: 3px solid #d0d7de; padding: .2em .8em; margin: .6em 0; }
details.issue > summary { font-weight: 600; cursor: pointer; }
span.number { color: #57606a; margin-right: .3em; }
span.key { color: #57606a; font-weight: 400; }
section.desc { margin: .5em 0 .5em 1em; }
section.desc img { max-width: 100%; }
section.subsection { margin: .5em 0 .5em 1em; font-size: .95em; }
img.icon { vertical-align: middle; margin-right: 6px; }
"""


class ReportWriteError(Exception):
    """Raised when the report file cannot be written."""


def _escape(text: str | None) -> str:
    return html.escape(text or "", quote=True)


def _icon_img(icons: IconLookup | None, node: FlatNode, size: int) -> str:
    """Inline ``<img>`` with the issue type icon as a data URI, or ""."""
    data = icons(node.key) if icons is not None else None
    if not data:
        return ""
    encoded = base64.b64encode(data).decode("ascii")
    return (
        f"<img class=\"icon\" title=\"{_escape(node.issue.type)}\" "
        f"src=\"data:image/png;base64,{encoded}\" "
        f"style=\"height:{size}px;width:{size}px;\">"
    )


# ---------------------------------------------------------------------------
# Table of contents
# ---------------------------------------------------------------------------

def render_toc(nodes: Iterable[FlatNode], icons: IconLookup | None = None) -> str:
    """Render the nested table of contents in one pass over the numbered nodes.

    Nesting follows the outline number: a deeper level opens one ``<ul>`` per
    level gained, a shallower level closes one per level lost, and whatever
    is still open after the last entry is closed at the end.
    """
    lines = ["<nav id=\"TOC\" class=\"toc\">", "<ul>"]
    previous_level = 0

    for node in nodes:
        level = outline_level(node.number)
        if level > previous_level:
            lines.extend("<ul>" for _ in range(level - previous_level))
        elif level < previous_level:
            lines.extend("</ul>" for _ in range(previous_level - level))

        icon = _icon_img(icons, node, 18)
        type_suffix = f" ({_escape(node.issue.type)})" if node.issue.type else ""
        lines.append(
            f"<li><a href=\"#{_escape(node.anchor)}\">{node.number} {icon}{_escape(node.issue.summary)} "
            f"[{_escape(node.key)}]{type_suffix}</a></li>"
        )
        previous_level = level

    lines.extend("</ul>" for _ in range(previous_level))
    lines.extend(["</ul>", "</nav>"])
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Issue sections
# ---------------------------------------------------------------------------

def _render_related(related_keys: tuple[str, ...], index: IssueIndex, in_report: set[str]) -> str:
    items = []
    for key in related_keys:
        issue = index.get(key)
        if issue is None:
            # Outside the indexed project: no anchor to point at
            items.append(f"<li>{_escape(key)}</li>")
        elif key in in_report:
            items.append(
                f"<li><a href=\"#issue-{_escape(key)}\">{_escape(issue.summary)} [{_escape(key)}]</a></li>"
            )
        else:
            items.append(f"<li>{_escape(issue.summary)} [{_escape(key)}]</li>")

    return "\n".join([
        "<section class=\"subsection\">",
        f"<details><summary>Related Issues ({len(related_keys)})</summary>",
        "<ul>",
        *items,
        "</ul>",
        "</details>",
        "</section>",
    ])


def render_issue_section(
    node: FlatNode,
    index: IssueIndex,
    in_report: set[str],
    icons: IconLookup | None = None,
) -> str:
    """Render one collapsible issue block, open by default."""
    level = outline_level(node.number)
    icon = _icon_img(icons, node, 36)
    body = rewrite_issue_anchors(node.body, in_report)

    parts = [
        f"<details open style=\"margin-left:{level * 2}em;\" id=\"{_escape(node.anchor)}\" class=\"issue\">",
        f"<summary>{icon}<span class=\"number\">{node.number}</span>"
        f"{_escape(node.issue.summary)} <span class=\"key\">[{_escape(node.key)}]</span></summary>",
        f"<section class=\"desc\">{body}</section>",
    ]
    if node.related_keys:
        parts.append(_render_related(node.related_keys, index, in_report))
    parts.append("</details>")
    return "\n".join(parts)


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------

def compile_document(
    nodes: list[FlatNode],
    index: IssueIndex,
    icons: IconLookup | None = None,
) -> ReportDocument:
    """Assemble the full HTML report for already numbered *nodes*.

    Raises:
        ValueError: if *nodes* is empty (there is no root to name the report after).
    """
    if not nodes:
        raise ValueError("Cannot compile a report without any issue")

    root = nodes[0].issue
    title = f"{_escape(root.summary)} [{_escape(root.key)}]"
    in_report = {node.key for node in nodes}

    parts = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        "<meta charset=\"UTF-8\">",
        f"<title>{title}</title>",
        "<style>",
        STYLESHEET,
        "</style>",
        "</head>",
        "<body>",
        f"<h1>{title}</h1>",
        render_toc(nodes, icons),
        "<hr>",
    ]
    parts.extend(render_issue_section(node, index, in_report, icons) for node in nodes)
    parts.append("</body>")
    parts.append("</html>")

    return ReportDocument(root_key=root.key, nodes=nodes, html="\n".join(parts) + "\n")


def write_report(document: ReportDocument, output_dir: str | Path) -> Path:
    """Write *document* as ``{root_key}_Report.html`` inside *output_dir*.

    The file is written to a temporary name first and moved into place, so a
    failed write never leaves a truncated report or a temporary file behind.
    The report gets the same permissions as a file created with ``open()``.

    Raises:
        ReportWriteError: if the directory or the file cannot be written, or
            the HTML cannot be encoded as UTF-8.
    """
    directory = Path(output_dir).expanduser()
    target = directory / document.filename
    tmp_name = None
    try:
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=".", suffix=".html.tmp", dir=directory)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(document.html)
        # mkstemp creates the file as 0600
        os.chmod(tmp_name, 0o666 & ~_current_umask())
        os.replace(tmp_name, target)
        tmp_name = None
    except (OSError, UnicodeError) as exc:
        raise ReportWriteError(f"Could not write report to '{target}': {exc}") from exc
    finally:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)

    return target


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask
