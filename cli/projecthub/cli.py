"""ProjectHub CLI.

Main command-line interface for managing packs and provisioning projects.
"""

import logging
from pathlib import Path
from typing import Optional

import typer

from cli.commands.common import get_service, run, state, unwrap
from cli.projecthub.output import console, print_success
from hub.config import load_config

app = typer.Typer(
    name="projecthub",
    help="ProjectHub - provision projects from reusable template packs",
    no_args_is_help=True,
)

# Cache sub-app
cache_app = typer.Typer(
    name="cache",
    help="Manage the template and library cache.",
    no_args_is_help=True,
)
app.add_typer(cache_app, name="cache")

# Register command sub-apps
from cli.commands.libraries import libraries_app
from cli.commands.marketplace import marketplace_app
from cli.commands.packs import packs_app
from cli.commands.projects import projects_app
from cli.commands.templates import templates_app

app.add_typer(templates_app, name="templates")
app.add_typer(libraries_app, name="libraries")
app.add_typer(packs_app, name="packs")
app.add_typer(projects_app, name="projects")
app.add_typer(marketplace_app, name="marketplace")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to config.toml",
    ),
) -> None:
    """Configure logging and the configuration file for every command."""
    state["config_path"] = config
    level = "DEBUG" if verbose else load_config(config).logging.level
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cache_app.command("clear")
def clear_cache() -> None:
    """Clear cached template and library listings."""
    service = get_service()
    unwrap(run(service.clear_cache()))
    print_success("Cache cleared")


@app.command()
def version() -> None:
    """Show ProjectHub version."""
    from cli.projecthub import __version__

    console.print(f"ProjectHub v{__version__}")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
