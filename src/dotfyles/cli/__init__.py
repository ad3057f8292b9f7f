"""dotfyles CLI - Command-line interface."""

import typer

from ..utils import get_version, setup_logging
from . import init

# Create the main app
app = typer.Typer(
    name="dotfyles",
    help="Collect your dotfiles into a git repository and push it to GitHub.",
    add_completion=True,
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging output.",
    ),
):
    """dotfyles - bootstrap a dotfiles repository."""
    setup_logging(verbose=verbose)


init.register(app)


@app.command()
def version():
    """Show the version of dotfyles."""
    typer.echo(f"dotfyles version {get_version()}")


def main():
    """Main entry point for the dotfyles CLI."""
    app()
