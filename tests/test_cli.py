"""Tests for jira_report/cli.py"""

import json
import textwrap

import pytest
from click.testing import CliRunner

from jira_report.cli import cli

BASE = "https://jira.example.com"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clear_jira_env(monkeypatch):
    for name in ("JIRA_URL", "JIRA_EMAIL", "JIRA_TOKEN"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path):
    p = tmp_path / "jira-config.yaml"
    p.write_text(textwrap.dedent(f"""\
        jira:
          url: "{BASE}"
          email: "me@example.com"
          token: "tok"
        report:
          output_dir: "{tmp_path / 'docs'}"
          icons_dir: "{tmp_path / 'images'}"
        projects:
          req:
            key: "REQ"
            root: "REQ-1"
            link_type: "Blocks"
        """), encoding="utf-8")
    return p


def _mock_search(requests_mock):
    issues = [
        {"key": "REQ-1", "fields": {
            "summary": "Root", "issuetype": {"name": "Epic"}, "status": {"name": "Open"},
            "issuelinks": [{"type": {"name": "Blocks"}, "outwardIssue": {"key": "REQ-2"}}],
        }},
        {"key": "REQ-2", "fields": {
            "summary": "Child", "issuetype": {"name": "Story"}, "status": {"name": "Done"},
            "issuelinks": [{"type": {"name": "Blocks"}, "inwardIssue": {"key": "REQ-1"}}],
        }},
    ]
    requests_mock.get(
        f"{BASE}/rest/api/2/search",
        json={"issues": issues, "startAt": 0, "maxResults": 100, "total": 2},
    )


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

def test_init_writes_template(tmp_path):
    out = tmp_path / "jira-config.yaml"
    result = CliRunner().invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 0
    assert out.exists()


def test_init_refuses_existing_file(tmp_path):
    out = tmp_path / "jira-config.yaml"
    out.write_text("keep me")
    result = CliRunner().invoke(cli, ["init", "--output", str(out)])
    assert result.exit_code == 1
    assert out.read_text() == "keep me"


# ---------------------------------------------------------------------------
# outline
# ---------------------------------------------------------------------------

def test_outline_emits_json(config_file, requests_mock):
    _mock_search(requests_mock)
    result = CliRunner().invoke(cli, ["--config", str(config_file), "outline", "req"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.stdout)
    assert [(i["number"], i["key"]) for i in data["issues"]] == [("1", "REQ-1"), ("1.1", "REQ-2")]


def test_missing_config_exits_with_error(tmp_path):
    result = CliRunner().invoke(cli, ["--config", str(tmp_path / "nope.yaml"), "outline", "req"])
    assert result.exit_code == 1


def test_unknown_project_exits_with_error(config_file, requests_mock):
    result = CliRunner().invoke(cli, ["--config", str(config_file), "outline", "nope"])
    assert result.exit_code == 1
    assert not requests_mock.called


def test_authentication_error_exits_with_error(config_file, requests_mock):
    requests_mock.get(f"{BASE}/rest/api/2/search", status_code=401)
    result = CliRunner().invoke(cli, ["--config", str(config_file), "outline", "req"])
    assert result.exit_code == 1


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

def test_report_writes_html(config_file, requests_mock, tmp_path):
    _mock_search(requests_mock)
    for key in ("REQ-1", "REQ-2"):
        requests_mock.get(
            f"{BASE}/rest/api/2/issue/{key}",
            json={"renderedFields": {"description": f"<p>{key}</p>"}, "fields": {}},
        )

    result = CliRunner().invoke(cli, ["--config", str(config_file), "report", "req"])

    assert result.exit_code == 0, result.output
    report = tmp_path / "docs" / "REQ-1_Report.html"
    assert report.exists()
    assert "<p>REQ-2</p>" in report.read_text(encoding="utf-8")


def test_report_unknown_root_exits_with_error(config_file, requests_mock, tmp_path):
    _mock_search(requests_mock)
    result = CliRunner().invoke(cli, ["--config", str(config_file), "report", "req", "REQ-404"])
    assert result.exit_code == 1
    assert not (tmp_path / "docs").exists()
