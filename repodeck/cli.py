"""
repodeck CLI - open pull requests and editors for your local repositories.

Commands:
    init    - Write a sample repodeck.yml
    repos   - List registered repositories
    prs     - Show your open PRs across all repositories
    auth    - Check the GitHub CLI login
    open    - Open a repository in its editor
    utils   - List and run helper scripts
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click
from dotenv import load_dotenv

# Load .env file from current directory (may set REPODECK_CONFIG)
load_dotenv()

from . import __version__
from .aggregator import PullRequestAggregator
from .config import ConfigError, RepodeckConfig, find_config_path
from .fetcher import PullRequestFetcher
from .github import check_authentication
from .ide import open_in_ide
from .log_setup import setup_logging
from .models import BuildStatus
from .registry import RepoRegistry, UnknownRepositoryError
from .utilities import UtilityRunner


SAMPLE_CONFIG = """\
# repodeck configuration

# Registered repositories. Relative paths are resolved against this file.
# kind: code (VS Code), wsl (VS Code inside WSL), studio (Visual Studio)
repos:
  my-service:
    path: ~/workspace/my-service
    kind: code
  # customer-portal:
  #   path: ~/repos/customer-portal
  #   kind: wsl

# Per-kind behaviour
kinds:
  wsl:
    skip_directory_check: true   # WSL paths are not visible from the host
  # code:
  #   command: code --new-window {path}

commands:
  git: git
  gh: gh
  # timeout: 30        # seconds per git/gh call (default: wait forever)
  # hosts:             # GitHub Enterprise hosts gh is logged in to
  #   - github.acme.io

aggregation:
  concurrency: 1       # repositories fetched at once

wsl_distro: Ubuntu

utilities:
  - name: prune-branches
    description: Delete local branches already merged into main
    command: git branch --merged main | grep -v main | xargs -r git branch -d
    type: bash
    requires_confirmation: true
"""

BUILD_MARKERS = {
    BuildStatus.SUCCESS: click.style("✓", fg="green"),
    BuildStatus.FAILURE: click.style("✗", fg="red"),
    BuildStatus.PENDING: click.style("●", fg="yellow"),
    BuildStatus.UNKNOWN: click.style("?", fg="bright_black"),
}


def _load_config(ctx: click.Context) -> RepodeckConfig:
    try:
        return RepodeckConfig.load(ctx.obj["config_path"])
    except ConfigError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="Path to repodeck.yml")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """repodeck - your open pull requests across local repositories."""
    setup_logging(verbose=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = find_config_path(config_path)


@main.command()
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
@click.pass_context
def init(ctx: click.Context, force: bool):
    """Write a sample repodeck.yml."""
    config_path: Path = ctx.obj["config_path"]
    if config_path.exists() and not force:
        click.echo(f"  Skipped: {config_path} (already exists)")
        return

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(SAMPLE_CONFIG, encoding="utf-8")
    click.echo(f"  Created: {config_path}")
    click.echo("\nNext steps:")
    click.echo("  1. Edit repodeck.yml to register your repositories")
    click.echo("  2. Run: gh auth login")
    click.echo("  3. Run: repodeck prs")


@main.command()
@click.argument("query", required=False)
@click.option("--active", is_flag=True, help="Only repositories whose directory exists")
@click.pass_context
def repos(ctx: click.Context, query: str | None, active: bool):
    """List registered repositories."""
    registry = RepoRegistry.from_config(_load_config(ctx))
    listed = registry.get_filtered_repos(query) if query else registry.get_all_repos()
    if active:
        listed = [repo for repo in listed if repo.has_active_directory]

    if not listed:
        click.echo("No repositories registered.")
        return

    width = max(len(repo.name) for repo in listed)
    for repo in listed:
        marker = click.style("●", fg="green") if repo.has_active_directory else click.style("○", fg="red")
        click.echo(f"{marker} {repo.name:<{width}}  {repo.kind.value:<6}  {repo.path}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--concurrency", type=int, default=None, help="Repositories fetched at once")
@click.pass_context
def prs(ctx: click.Context, as_json: bool, concurrency: int | None):
    """Show your open pull requests across all repositories."""
    config = _load_config(ctx)
    aggregator = PullRequestAggregator(
        registry=RepoRegistry.from_config(config),
        fetcher=PullRequestFetcher(config),
        concurrency=concurrency or config.aggregation.concurrency,
    )
    result = aggregator.collect()

    if as_json:
        click.echo(json.dumps({
            "pull_requests": [pr.to_dict() for pr in result.pull_requests],
            "statuses": [status.to_dict() for status in result.statuses],
        }, indent=2))
        return

    if result.pull_requests:
        click.echo(f"Open PRs ({len(result.pull_requests)}):")
        for pr in result.pull_requests:
            created = pr.created_at.strftime("%Y-%m-%d")
            click.echo(f"  {BUILD_MARKERS[pr.build_status]} {pr.source_repository}#{pr.number} {pr.title}")
            click.echo(f"      {created}  {pr.url}")
    else:
        click.echo("No open PRs.")

    click.echo("\nRepositories:")
    for status in result.statuses:
        color = "green" if status.success else "red"
        click.echo(f"  {click.style(status.repository_name, fg=color)}: {status.message}")


@main.command()
@click.pass_context
def auth(ctx: click.Context):
    """Check that the GitHub CLI is installed and logged in."""
    config = _load_config(ctx)
    if asyncio.run(check_authentication(config.commands)):
        click.echo("GitHub CLI authenticated.")
        return
    click.echo("GitHub CLI not authenticated. Run: gh auth login", err=True)
    ctx.exit(1)


@main.command("open")
@click.argument("name")
@click.pass_context
def open_repo(ctx: click.Context, name: str):
    """Open a repository in the editor for its kind."""
    config = _load_config(ctx)
    try:
        repo = RepoRegistry.from_config(config).require(name)
    except UnknownRepositoryError as e:
        raise click.ClickException(str(e)) from e

    if not open_in_ide(repo, config):
        raise click.ClickException(f"Could not open {repo.name}")
    click.echo(f"Opened {repo.name}")


@main.group()
def utils():
    """Helper scripts from repodeck.yml."""


@utils.command("list")
@click.argument("query", required=False, default="")
@click.pass_context
def utils_list(ctx: click.Context, query: str):
    """List helper scripts."""
    runner = UtilityRunner.from_config(_load_config(ctx))
    utilities = runner.get_filtered(query)
    if not utilities:
        click.echo("No utilities defined.")
        return
    for utility in utilities:
        admin = " [admin]" if utility.requires_admin else ""
        click.echo(f"  {utility.name} ({utility.type}){admin} - {utility.description}")


@utils.command("run")
@click.argument("name")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_context
def utils_run(ctx: click.Context, name: str, yes: bool):
    """Run a helper script."""
    runner = UtilityRunner.from_config(_load_config(ctx))
    utility = runner.get_by_name(name)
    if utility is None:
        raise click.ClickException(f"Utility '{name}' not found. Run: repodeck utils list")

    if utility.requires_confirmation and not yes:
        click.confirm(f"Run '{utility.name}'?", abort=True)

    outcome = runner.execute(utility)
    if outcome.output:
        click.echo(outcome.output.rstrip())
    if outcome.error:
        click.echo(outcome.error.rstrip(), err=True)
    if not outcome.success:
        ctx.exit(1)


if __name__ == "__main__":
    main()
