"""CLI application for GemUpdater."""

import logging
import os
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from core.changelog import RubyGemsRegistry
from core.command import CommandRunner
from core.config import load_config
from core.errors import CommandError, ConfigurationError, GemUpdaterError
from core.git import configure_identity
from core.models import ProjectResult, UpdateCandidate
from core.workflow import GemUpdater, update_projects

console = Console()

EXIT_PROJECT_FAILED = 3


def configure_logging(verbose: bool) -> logging.Logger:
    """Route log records through rich; DEBUG when verbose."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    logging.basicConfig(level=level, format="%(message)s", datefmt="[%X]", handlers=[handler], force=True)
    return logging.getLogger("gemupdater")


def format_candidates(title: str, candidates: list[UpdateCandidate]) -> Table:
    """Ranked candidates as a table."""
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column("Gem")
    table.add_column("Severity")
    table.add_column("Magnitude", justify="right")
    for position, candidate in enumerate(candidates, start=1):
        table.add_row(str(position), candidate.package_name, candidate.severity.value, str(candidate.magnitude))
    return table


def format_summary(results: list[ProjectResult]) -> Table:
    """One row per project with its outcome."""
    table = Table(title="GemUpdater run")
    table.add_column("Project")
    table.add_column("Updated")
    table.add_column("Result")
    for result in results:
        name = result.project.repository
        if result.project.path:
            name += f":{result.project.path}"
        updated = ", ".join(candidate.package_name for candidate in result.candidates) or "-"
        if not result.ok:
            outcome = f"[red]failed: {escape(result.error)}[/red]"
        elif result.proposal:
            outcome = result.proposal.url or "pushed, no pull request"
        else:
            outcome = "up to date"
        table.add_row(name, updated, outcome)
    return table


app = typer.Typer(
    name="gemupdater",
    help="GemUpdater - Open pull requests updating the outdated gems of GitHub projects",
    add_completion=False,
)


@app.command()
def update(
    github_token: str | None = typer.Option(None, "--github-token", envvar="GITHUB_TOKEN", help="Token for GitHub"),
    projects: str | None = typer.Option(
        None,
        "--projects",
        envvar=["PROJECTS", "REPOSITORIES"],
        help="Space separated repository[:update_limit[:sub-path[:group,group]]] entries",
    ),
    update_limit: int | None = typer.Option(None, "--update-limit", envvar="UPDATE_LIMIT", help="Default gems per project"),
    workspace: Path | None = typer.Option(None, "--workspace", envvar="GEMUPDATER_WORKSPACE", help="Where repositories are checked out"),
    default_branch: str = typer.Option("master", "--default-branch", help="Branch updates are based on"),
    configure_git: bool = typer.Option(True, "--configure-git/--no-configure-git", help="Set git identity and token credentials"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only show the ranked outdated gems"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every command and its output"),
) -> None:
    """GemUpdater - Update outdated gems and open a pull request per project."""
    verbose = verbose or bool(os.environ.get("DEBUG") or os.environ.get("VERBOSE"))
    logger = configure_logging(verbose)

    try:
        config = load_config(github_token, projects, update_limit, workspace, default_branch)
    except ConfigurationError as e:
        console.print(f"Error: {escape(str(e))}", style="red")
        raise typer.Exit(1)

    runner = CommandRunner(logger)
    registry = RubyGemsRegistry()

    if dry_run:
        failed = False
        for project in config.projects:
            updater = GemUpdater(project, runner, registry, config.workspace, logger=logger, base_branch=config.default_branch)
            try:
                updater.prepare()
                selected = updater.select_candidates()
            except GemUpdaterError as e:
                console.print(f"Error: {project.repository}: {escape(str(e))}", style="red")
                failed = True
                continue
            console.print(format_candidates(f"{project.repository} (updating {len(selected)})", updater.outdated_gems))
        raise typer.Exit(EXIT_PROJECT_FAILED if failed else 0)

    if configure_git:
        try:
            configure_identity(runner, config.github_token)
        except CommandError as e:
            console.print(f"Error: {escape(str(e))}\n{escape(e.output)}", style="red")
            raise typer.Exit(1)

    results = update_projects(config, runner, registry, logger)
    console.print(format_summary(results))

    if not all(result.ok for result in results):
        raise typer.Exit(EXIT_PROJECT_FAILED)


if __name__ == "__main__":
    app()
