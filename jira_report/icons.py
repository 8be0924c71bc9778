"""Issue type icons.

    icons = IconProvider(config, index)
    data  = icons("REQ-12")     # PNG bytes, or None
"""

import logging
from pathlib import Path

from jira_report.config import Config
from jira_report.models import IssueIndex

logger = logging.getLogger(__name__)


class IconProvider:
    """Look up the icon of an issue's type through its project's ``types`` mapping."""

    def __init__(self, config: Config, index: IssueIndex, icons_dir: Path | None = None) -> None:
        self._config = config
        self._index = index
        self._icons_dir = icons_dir if icons_dir is not None else config.icons_path
        self._cache: dict[str, bytes | None] = {}

    def __call__(self, key: str) -> bytes | None:
        issue = self._index.get(key)
        if issue is None or not issue.type:
            return None

        project = self._config.project_for_issue(key)
        if project is None:
            return None

        filename = project.icon_for_type(issue.type)
        if not filename:
            return None
        return self._read(filename)

    def _read(self, filename: str) -> bytes | None:
        if filename not in self._cache:
            path = self._icons_dir / filename
            try:
                self._cache[filename] = path.read_bytes()
            except OSError as exc:
                logger.debug("Icon %s unavailable: %s", path, exc)
                self._cache[filename] = None
        return self._cache[filename]
