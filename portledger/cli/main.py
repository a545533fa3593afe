"""
CLI for verifying and updating per-package version ledgers and the baseline.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from portledger.batch import list_ports, run_add_version, run_verify
from portledger.config import LedgerConfig, parse_exclude, resolve_root
from portledger.core.errors import PortLedgerError
from portledger.vcs import GitBackend

app = typer.Typer(
    name="portledger",
    help="Verify and update package version ledgers and the registry baseline",
    add_completion=False,
    no_args_is_help=True,
)

console = Console(soft_wrap=True)


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def print_problems(problems) -> None:
    for problem in problems:
        console.print(f"[red]{escape(str(problem))}[/]")


@app.callback()
def main():
    """Manage per-package version files and the baseline."""
    pass


@app.command()
def verify(
    root: Optional[Path] = typer.Option(None, "--root", help="Registry root (overrides PORTLEDGER_ROOT env var)"),
    exclude: Optional[str] = typer.Option(None, "--exclude", help="Comma-separated list of ports to skip"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print result for each port instead of just errors"),
    verify_git_trees: bool = typer.Option(
        False,
        "--verify-git-trees",
        help="Verify that each git tree object matches its declared version (this is very slow)",
    ),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Ports to check in parallel"),
):
    """Check every port's versions file against its manifest and the baseline."""
    config = LedgerConfig(
        root=resolve_root(root),
        verbose=verbose,
        verify_content=verify_git_trees,
        exclude=parse_exclude(exclude),
        jobs=jobs,
    )
    setup_logging(config.verbose)

    try:
        report = run_verify(config, GitBackend(config.root))
    except PortLedgerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    if config.verbose:
        for result in report.results:
            if result.is_valid:
                console.print(f"[green]{escape(str(result.confirmation))}[/]")

    if report.failures:
        console.print("[red]Found the following errors:[/]")
        print_problems(report.failures)
        raise typer.Exit(1)

    console.print(f"[green]✓ {len(report.results)} port(s) verified[/]")


@app.command("add-version")
def add_version(
    package: Optional[str] = typer.Argument(None, help="Port to record"),
    root: Optional[Path] = typer.Option(None, "--root", help="Registry root (overrides PORTLEDGER_ROOT env var)"),
    all_ports: bool = typer.Option(False, "--all", help="Process versions for all ports"),
    overwrite_version: bool = typer.Option(
        False, "--overwrite-version", help="Overwrite `git-tree` of an existing version"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print success messages instead of just errors"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Ports to process in parallel"),
):
    """Add the current version of a port (or all ports) to its versions file and the baseline."""
    if bool(package) == all_ports:
        console.print("[red]Pass exactly one of a port name or --all.[/]")
        raise typer.Exit(1)

    config = LedgerConfig(
        root=resolve_root(root),
        verbose=verbose,
        overwrite=overwrite_version,
        keep_going=all_ports,
        jobs=jobs,
    )
    setup_logging(config.verbose)
    packages = list_ports(config) if all_ports else [package]
    if not packages:
        console.print(f"[yellow]No ports found under {escape(str(config.ports_dir))}[/]")
        return

    try:
        report = run_add_version(config, GitBackend(config.root), packages)
    except PortLedgerError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        raise typer.Exit(1)

    for result in report.results:
        if result.ok and config.verbose:
            for line in result.messages:
                console.print(f"[green]{escape(line)}[/]")

    if report.failures or report.aborted:
        print_problems(report.failures)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
