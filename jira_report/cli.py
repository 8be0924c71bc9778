"""CLI entry point — command definitions using Click.

Commands:
    init          Generate a template config file
    report        Compile the HTML report below an issue
    outline       Print the numbered outline below an issue as JSON
"""

import json
import logging
import sys
from typing import Any

import click

from jira_report import __version__

logger = logging.getLogger("jira_report")


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _make_client(ctx: click.Context):
    """Load config and return a ready JiraClient. Exits on error."""
    from jira_report.client import JiraClient
    from jira_report.config import ConfigError, load

    obj = ctx.obj
    try:
        config = load(obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    logger.debug("Connecting to %s", config.url)

    client = JiraClient(url=config.url, email=config.email, token=config.token,
                        timeout=config.timeout)
    return config, client


def _load_index(ctx: click.Context, project: str, root_key: str | None):
    """Resolve the project, build its issue index and pick the root key."""
    from jira_report.hierarchy import build_issue_index

    config, client = _make_client(ctx)
    project_config = config.resolve_project(project)
    root = root_key or project_config.root
    if not root:
        click.echo(
            f"No root issue given and project '{project}' has no 'root' configured.",
            err=True,
        )
        sys.exit(1)

    logger.debug("Loading issues of project %s", project_config.key)
    index = build_issue_index(client, project_config, config.related_link_type)
    return config, client, index, root


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Outline written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_client_errors(func):
    """Decorator that catches client and report exceptions and exits cleanly."""
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from jira_report.client import (
            AuthenticationError,
            JiraClientError,
            NetworkError,
            NotFoundError,
        )
        from jira_report.config import ProjectNotFoundError
        from jira_report.outline import OutlineDepthError
        from jira_report.reports.document import ReportWriteError
        from jira_report.reports.hierarchy_report import EmptyReportError

        try:
            return func(*args, **kwargs)
        except ProjectNotFoundError as exc:
            click.echo(f"Project error: {exc}", err=True)
            sys.exit(1)
        except AuthenticationError as exc:
            click.echo(f"Authentication error: {exc}", err=True)
            sys.exit(1)
        except NotFoundError as exc:
            click.echo(f"Not found: {exc}", err=True)
            sys.exit(1)
        except NetworkError as exc:
            click.echo(f"Network error: {exc}", err=True)
            sys.exit(1)
        except JiraClientError as exc:
            click.echo(f"Jira error: {exc}", err=True)
            sys.exit(1)
        except EmptyReportError as exc:
            click.echo(f"Nothing to report: {exc}", err=True)
            sys.exit(1)
        except OutlineDepthError as exc:
            click.echo(f"Hierarchy error: {exc}", err=True)
            sys.exit(1)
        except ReportWriteError as exc:
            click.echo(f"Write error: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default="jira-config.yaml", show_default=True,
              help="Path to the configuration file.")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="jira-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """Jira hierarchy report tool — compile issue trees into one HTML document."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="jira-config.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template jira-config.yaml file."""
    from jira_report.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your Jira URL, credentials and project settings.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

@cli.command("report")
@click.argument("project")
@click.argument("root_key", required=False)
@click.option("--output-dir", "output_dir", default=None,
              help="Directory for the HTML file (overrides config, default ~/Documents).")
@click.pass_context
@_handle_client_errors
def report_command(ctx: click.Context, project: str, root_key: str | None,
                   output_dir: str | None) -> None:
    """Compile the HTML report for ROOT_KEY and all issues below it."""
    from jira_report.fetcher import IssueFetcher
    from jira_report.icons import IconProvider
    from jira_report.reports.hierarchy_report import generate_report

    config, client, index, root = _load_index(ctx, project, root_key)

    def _progress(message: str) -> None:
        if ctx.obj["verbose"]:
            click.echo(f"[verbose] {message}", err=True)

    path = generate_report(
        IssueFetcher(client),
        index,
        root,
        output_dir or config.output_path,
        related_link_type=config.related_link_type,
        icons=IconProvider(config, index),
        progress=_progress,
    )
    click.echo(f"Report written to '{path}'")


# ---------------------------------------------------------------------------
# outline
# ---------------------------------------------------------------------------

@cli.command("outline")
@click.argument("project")
@click.argument("root_key", required=False)
@click.pass_context
@_handle_client_errors
def outline_command(ctx: click.Context, project: str, root_key: str | None) -> None:
    """Numbered outline below ROOT_KEY as JSON (no descriptions fetched)."""
    from jira_report.reports.hierarchy_report import build_outline

    _config, _client, index, root = _load_index(ctx, project, root_key)
    _emit_json(build_outline(index, root), ctx)
