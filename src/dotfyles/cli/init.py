"""Init command for dotfyles CLI."""

from typing import Optional

import typer

from ..errors import (
    AuthorizationDenied,
    DotfylesError,
    RejectedError,
    RemoteNotFoundError,
    SessionExpired,
)
from ..repo import SyncOutcome
from .helpers import build_orchestrator, get_config, is_git_available, logger


def register(app: typer.Typer) -> None:
    """Register the init command with the app."""
    app.command()(init)


def init(
    directory: Optional[str] = typer.Option(
        None, "--dir", "-d", help="Directory to collect dotfiles into"
    ),
    remote_url: Optional[str] = typer.Option(
        None, "--remote-url", "-r", help="Git URL to push to"
    ),
    branch: Optional[str] = typer.Option(
        None, "--branch", "-b", help="Branch to commit and push"
    ),
    name: Optional[str] = typer.Option(None, "--name", help="Commit author name"),
    email: Optional[str] = typer.Option(
        None, "--email", help="Commit author email"
    ),
    message: Optional[str] = typer.Option(
        None, "--message", "-m", help="Commit message"
    ),
    no_input: bool = typer.Option(
        False, "--no-input", help="Never prompt; fail if identity is unknown"
    ),
):
    """Collect your dotfiles, commit them, and push to GitHub.

    Authenticates with GitHub using the device flow, copies config files
    (and symlinks config directories) into the dotfiles directory,
    initializes a git repository there, commits, and pushes.
    """
    if not is_git_available():
        typer.echo("git is not installed or not on PATH.", err=True)
        raise typer.Exit(1)

    config = get_config()

    # Override from CLI
    overrides = {
        "dotfiles.dir": directory,
        "remote.url": remote_url,
        "remote.branch": branch,
        "identity.name": name,
        "identity.email": email,
        "commit.message": message,
    }
    for key, value in overrides.items():
        if value:
            config.set(key, value)

    orchestrator = build_orchestrator(config, interactive=not no_input)

    typer.echo("--- dotfyles init ---")
    try:
        result = orchestrator.run()
    except AuthorizationDenied:
        typer.echo("✗ Authorization was denied.", err=True)
        raise typer.Exit(1)
    except SessionExpired:
        typer.echo("✗ The device code expired. Run 'dotfyles init' again.", err=True)
        raise typer.Exit(1)
    except DotfylesError as e:
        logger.debug("Bootstrap aborted", exc_info=True)
        typer.echo(f"✗ {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"dotfyles directory: {result.dotfiles_dir}")
    report = result.materialized
    if report is not None:
        typer.echo(
            f"✓ {len(report.copied)} copied, {len(report.linked)} linked, "
            f"{len(report.skipped)} already present, "
            f"{len(report.missing)} not found"
        )
        for source, reason in report.failed:
            typer.echo(f"  ✗ {reason}", err=True)

    if not result.ok:
        for error in result.errors:
            typer.echo(f"✗ {error}", err=True)
            if isinstance(error, RejectedError):
                typer.echo(
                    "  The remote has commits this directory lacks. "
                    "Reconcile manually and re-run.",
                    err=True,
                )
            elif isinstance(error, RemoteNotFoundError):
                typer.echo(
                    "  Create the repository on GitHub, or point remote.url "
                    "(or --remote-url) at an existing one.",
                    err=True,
                )
        raise typer.Exit(1)

    if result.sync and result.sync.outcome is SyncOutcome.NOTHING_TO_PUSH:
        typer.echo("✓ No changes to push; repository is up-to-date.")
    elif result.sync:
        typer.echo(f"✓ Pushed {result.sync.commit} to {result.remote_url}")
