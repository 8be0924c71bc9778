"""Configuration loading and validation.

Usage:
    config  = load("jira-config.yaml")          # raises ConfigError on bad config
    project = config.resolve_project("req")     # returns the ProjectConfig for "REQ"
    generate_template("jira-config.yaml")       # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_RELATED_LINK_TYPE = "Relates"
DEFAULT_HIERARCHY_LINK_TYPE = "Blocks"
DEFAULT_OUTPUT_DIR = "~/Documents"
DEFAULT_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


class ProjectNotFoundError(ConfigError):
    """Raised when a project alias is not found in the config."""


# ---------------------------------------------------------------------------
# Config dataclasses
# ---------------------------------------------------------------------------

@dataclass
class ProjectConfig:
    key: str
    root: str = ""
    link_type: str = DEFAULT_HIERARCHY_LINK_TYPE
    types: dict[str, str] = field(default_factory=dict)

    def icon_for_type(self, issue_type: str) -> str | None:
        """Return the icon filename for *issue_type*, matching case-insensitively."""
        if issue_type in self.types:
            return self.types[issue_type]
        wanted = issue_type.lower()
        for name, icon in self.types.items():
            if name.lower() == wanted:
                return icon
        return None


@dataclass
class Config:
    url: str
    email: str
    token: str
    projects: dict[str, ProjectConfig] = field(default_factory=dict)
    related_link_type: str = DEFAULT_RELATED_LINK_TYPE
    output_dir: str = DEFAULT_OUTPUT_DIR
    icons_dir: str = "images"
    timeout: int = DEFAULT_TIMEOUT

    def resolve_project(self, name: str) -> ProjectConfig:
        """Return the project configuration for a given alias.

        Accepts either a configured alias (e.g. "req") or a raw Jira project
        key (e.g. "REQ") as a convenience fallback.
        """
        if name in self.projects:
            return self.projects[name]
        for project in self.projects.values():
            if project.key.lower() == name.lower():
                return project
        available = ", ".join(self.projects.keys()) or "(none configured)"
        raise ProjectNotFoundError(
            f"Project '{name}' not found. Available aliases: {available}"
        )

    def project_for_issue(self, issue_key: str) -> ProjectConfig | None:
        """Return the project whose key prefixes *issue_key* (``REQ-12`` → ``REQ``)."""
        prefix = issue_key.split("-", 1)[0].lower()
        for project in self.projects.values():
            if project.key.lower() == prefix:
                return project
        return None

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir).expanduser()

    @property
    def icons_path(self) -> Path:
        return Path(self.icons_dir).expanduser()


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str = "jira-config.yaml") -> Config:
    """Load and validate configuration from a YAML file.

    Environment variables JIRA_URL, JIRA_EMAIL and JIRA_TOKEN override file
    values.

    Raises:
        ConfigError: if the file is missing, malformed, or required fields
                     are absent.
    """
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `python -m jira_report init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")

    jira = raw.get("jira") or {}
    report = raw.get("report") or {}
    url   = os.environ.get("JIRA_URL")   or jira.get("url",   "")
    email = os.environ.get("JIRA_EMAIL") or jira.get("email", "")
    token = os.environ.get("JIRA_TOKEN") or jira.get("token", "")

    try:
        timeout = int(report.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"'report.timeout' must be an integer: {exc}") from exc

    config = Config(
        url=str(url).strip(),
        email=str(email).strip(),
        token=str(token).strip(),
        projects=_parse_projects(raw.get("projects") or {}),
        related_link_type=str(report.get("related_link_type") or DEFAULT_RELATED_LINK_TYPE),
        output_dir=str(report.get("output_dir") or DEFAULT_OUTPUT_DIR),
        icons_dir=str(report.get("icons_dir") or "images"),
        timeout=timeout,
    )
    _validate(config)
    return config


def _parse_projects(raw: dict) -> dict[str, ProjectConfig]:
    if not isinstance(raw, dict):
        raise ConfigError("'projects' must be a mapping of alias to project settings.")

    projects: dict[str, ProjectConfig] = {}
    for alias, entry in raw.items():
        # Shorthand: `alias: "KEY"`
        if isinstance(entry, str):
            entry = {"key": entry}
        if not isinstance(entry, dict) or not entry.get("key"):
            raise ConfigError(f"Project '{alias}' must define a 'key'.")
        projects[str(alias)] = ProjectConfig(
            key=str(entry["key"]).strip(),
            root=str(entry.get("root") or "").strip(),
            link_type=str(entry.get("link_type") or DEFAULT_HIERARCHY_LINK_TYPE),
            types=dict(entry.get("types") or {}),
        )
    return projects


def _validate(config: Config) -> None:
    """Raise ConfigError if required fields are missing."""
    errors: list[str] = []

    if not config.url:
        errors.append(
            "  - 'jira.url' is missing (or set the JIRA_URL environment variable)"
        )
    if not config.email:
        errors.append(
            "  - 'jira.email' is missing (or set the JIRA_EMAIL environment variable)"
        )
    if not config.token:
        errors.append(
            "  - 'jira.token' is missing (or set the JIRA_TOKEN environment variable)"
        )
    if not config.projects:
        errors.append(
            "  - 'projects' mapping is empty — add at least one project alias"
        )
    if config.timeout <= 0:
        errors.append("  - 'report.timeout' must be a positive number of seconds")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
jira:
  url: "https://your-domain.atlassian.net"
  email: "you@example.com"
  token: "xxxxxxxxxxxx"       # Generate at: https://id.atlassian.com/manage-profile/security/api-tokens

report:
  related_link_type: "Relates"   # Link type rendered as "Related Issues"
  output_dir: "~/Documents"
  icons_dir: "images"
  timeout: 30

projects:
  # Human-readable alias: Jira project settings
  req:
    key: "REQ"
    root: "REQ-1"
    link_type: "Blocks"          # Outward links of this type are children
    types:
      "User Story": "type_userreq.png"
      "Epic": "type_epic.png"
"""


def generate_template(output_path: str = "jira-config.yaml") -> None:
    """Write a template jira-config.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists (to avoid overwriting secrets).
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
