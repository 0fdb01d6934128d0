"""Marketplace CLI commands for ProjectHub.

Manage the marketplaces packs are discovered from.
"""

import typer

from cli.commands.common import get_service, run, unwrap
from cli.projecthub.output import print_marketplaces, print_success

marketplace_app = typer.Typer(
    name="marketplace",
    help="Manage pack marketplaces.",
    no_args_is_help=True,
)


@marketplace_app.command("list")
def list_marketplaces() -> None:
    """List configured marketplaces."""
    service = get_service()
    print_marketplaces(unwrap(run(service.list_marketplaces())))


@marketplace_app.command("add")
def add(
    source: str = typer.Argument(..., help="owner/repo or marketplace URL"),
) -> None:
    """Add a marketplace.

    Examples:
        projecthub marketplace add acme/projecthub-packs
        projecthub marketplace add https://example.com/packs-manifest.json
    """
    service = get_service()
    marketplace = unwrap(run(service.add_marketplace(source)))
    print_success(f'Marketplace "{marketplace.name}" added ({marketplace.id}).')


@marketplace_app.command("remove")
def remove(
    marketplace_id: str = typer.Argument(..., help="Marketplace id"),
) -> None:
    """Remove a marketplace."""
    service = get_service()
    unwrap(run(service.remove_marketplace(marketplace_id)))
    print_success(f"Marketplace {marketplace_id} removed.")
