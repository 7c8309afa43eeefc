"""
Artifactory Cleaner CLI - Command-line interface.

Run the configured retention policies from the terminal.
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from artifactory_cleaner import __version__
from artifactory_cleaner.config import CleanerConfig, load_config
from artifactory_cleaner.core.exceptions import (
    CleanerError,
    CleanupRunError,
    ConfigurationError,
)
from artifactory_cleaner.orchestrator.core import (
    CleanupOrchestrator,
    CleanupReport,
    NamedPolicy,
    PolicyKind,
    build_policies,
)
from artifactory_cleaner.store.client import ArtifactoryClient
from artifactory_cleaner.store.resilient import ResilientStore

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="artifactory-cleaner",
    help="Artifactory Cleaner - retention policies for snapshots, docker tags and releases",
    no_args_is_help=True,
)
console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s - %(message)s"


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def _load(config_path: Optional[Path]) -> CleanerConfig:
    try:
        return load_config(config_path)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e


def _policies_table(policies: List[NamedPolicy]) -> tuple[Table, int]:
    invalid = 0
    table = Table(title=f"Retention Policies ({len(policies)})")
    table.add_column("Name", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Settings")

    for named in policies:
        try:
            settings = named.build().describe()
        except ConfigurationError as e:
            invalid += 1
            settings = f"[red]{e}[/red]"
        table.add_row(named.name, named.kind.value, settings)

    return table, invalid


def _report_table(report: CleanupReport) -> Table:
    table = Table(title="Cleanup Results")
    table.add_column("Policy", style="cyan")
    table.add_column("Status")
    table.add_column("Duration", justify="right")
    table.add_column("Error", style="dim")

    for outcome in report.outcomes:
        status_style = "green" if outcome.is_success() else "red"
        duration = f"{outcome.duration_ms:.0f}ms" if outcome.duration_ms is not None else "-"
        table.add_row(
            outcome.name,
            f"[{status_style}]{outcome.status.value}[/{status_style}]",
            duration,
            outcome.error or "",
        )

    return table


@app.command()
def run(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML configuration file"
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", "-n", help="Log deletions instead of performing them"
    ),
    only: Optional[List[PolicyKind]] = typer.Option(
        None, "--only", "-o", help="Run only these policy kinds"
    ),
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
):
    """Run every configured retention policy."""
    _configure_logging(log_level)
    config = _load(config_path)
    dry_run = dry_run or config.dry_run

    try:
        client = ArtifactoryClient(config.client_config())
        release_client = (
            ArtifactoryClient(config.client_config(release=True))
            if config.has_release_credentials()
            else None
        )
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    retry_policy = config.retry_policy()
    store = ResilientStore(client, retry_policy, dry_run=dry_run)
    release_store = (
        ResilientStore(release_client, retry_policy, dry_run=dry_run)
        if release_client
        else None
    )

    console.print(
        Panel.fit(
            f"[bold blue]Artifactory Cleaner[/bold blue]\n"
            f"Artifactory: {client.base_url}\n"
            f"Mode: {'dry run' if dry_run else 'delete'}",
        )
    )

    try:
        try:
            server_version = store.system_version()
            logger.info("Artifactory version: %s", server_version.get("version"))
        except CleanerError as e:
            console.print(f"[red]Cannot reach Artifactory:[/red] {e}")
            raise typer.Exit(1) from e

        policies = build_policies(
            config, store, release_store, only=set(only) if only else None
        )
        if not policies:
            console.print("[yellow]No retention policies configured[/yellow]")
            return

        report = CleanupOrchestrator(policies).run()
    finally:
        client.close()
        if release_client:
            release_client.close()

    console.print("\n")
    console.print(_report_table(report))
    console.print(report.summary())

    try:
        report.raise_for_failures()
    except CleanupRunError as e:
        console.print(f"\n[red]{e.message}:[/red] {escape(', '.join(e.failed_policies))}")
        raise typer.Exit(1) from e


@app.command("check-config")
def check_config(
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="YAML configuration file"
    ),
):
    """Validate configuration and list the policies it enables."""
    config = _load(config_path)

    try:
        client_config = config.client_config()
        config.release_modules()
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1) from e

    # policies are only described here, never executed
    client = ArtifactoryClient(client_config)
    try:
        store = ResilientStore(client, config.retry_policy(), dry_run=True)
        table, invalid = _policies_table(build_policies(config, store))
    finally:
        client.close()
    console.print(table)

    retry = config.retry_policy()
    console.print(
        f"\nRetries: {retry.max_attempts} attempts, {retry.delay_seconds}s apart"
    )

    if invalid:
        raise typer.Exit(1)


@app.command()
def version():
    """Show the installed version."""
    console.print(f"artifactory-cleaner {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
