"""Data models for the hierarchy report.

Contains the dataclasses passed between the pipeline stages:
    - IssueRecord     one issue of the index (read-only during a run)
    - IssueIndex      key lookup plus ordered parent -> children mapping
    - FlatNode        one visited issue with its depth, outline number and resolved body
    - ReportDocument  the numbered nodes plus the emitted HTML
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class IssueRecord:
    key: str
    summary: str = ""
    type: str = ""
    status: str = ""
    rendered_body: str | None = None
    attachments: dict[str, str] = field(default_factory=dict)
    related_keys: tuple[str, ...] = ()
    children_keys: tuple[str, ...] = ()


@dataclass
class IssueIndex:
    """In-memory issue index, populated once before compilation."""

    issues: dict[str, IssueRecord] = field(default_factory=dict)
    children: dict[str, list[str]] = field(default_factory=dict)

    def __contains__(self, key: str) -> bool:
        return key in self.issues

    def __len__(self) -> int:
        return len(self.issues)

    def get(self, key: str) -> IssueRecord | None:
        return self.issues.get(key)

    def children_of(self, key: str) -> list[str]:
        return self.children.get(key, [])

    def add(self, issue: IssueRecord) -> None:
        self.issues[issue.key] = issue
        if issue.children_keys:
            self.children[issue.key] = list(issue.children_keys)


@dataclass(frozen=True)
class FlatNode:
    issue: IssueRecord
    depth: int
    body: str = ""
    related_keys: tuple[str, ...] = ()
    number: str = ""

    @property
    def key(self) -> str:
        return self.issue.key

    @property
    def anchor(self) -> str:
        return f"issue-{self.issue.key}"


@dataclass
class ReportDocument:
    root_key: str
    nodes: list[FlatNode]
    html: str

    @property
    def filename(self) -> str:
        return f"{self.root_key}_Report.html"
