"""Pack CLI commands for ProjectHub.

Install, remove and discover packs.
"""

from typing import Optional

import typer

from cli.commands.common import get_service, run, unwrap
from cli.projecthub.output import (
    confirm_delete,
    print_marketplace_packs,
    print_packs,
    print_success,
    print_warning,
)

packs_app = typer.Typer(
    name="packs",
    help="Install, remove and discover packs.",
    no_args_is_help=True,
)


@packs_app.command("list")
def list_packs() -> None:
    """List installed packs."""
    service = get_service()
    print_packs(unwrap(run(service.list_packs())))


@packs_app.command("install")
def install(
    url: str = typer.Argument(..., help="URL of the pack zip archive"),
    checksum: Optional[str] = typer.Option(
        None,
        "--checksum",
        "-c",
        help="Expected checksum ([algorithm:]hexdigest, sha256 by default)",
    ),
) -> None:
    """Install a pack from a zip archive URL.

    An installed pack with the same name is replaced.

    Examples:
        projecthub packs install https://example.com/react-pack.zip
        projecthub packs install https://example.com/react-pack.zip -c sha256:ab12...
    """
    service = get_service()
    info = unwrap(run(service.install_pack(url, checksum)))
    print_success(f"Installed pack {info['name']} to {info['path']}")


@packs_app.command("remove")
def remove(
    name: str = typer.Argument(..., help="Pack name"),
    path: Optional[str] = typer.Option(None, "--path", help="Known path of the pack"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove an installed pack."""
    service = get_service()
    confirm = None if yes else confirm_delete
    info = unwrap(run(service.remove_pack(name, path, confirm)))
    print_success(f"Removed pack {info['path']}")


@packs_app.command("available")
def available(
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Marketplace URL or owner/repo (default: all configured marketplaces)",
    ),
) -> None:
    """List packs offered by marketplaces."""
    service = get_service()
    if url:
        packs = unwrap(run(service.fetch_pack_list(url)))
        print_marketplace_packs(packs)
        return

    packs, errors = unwrap(run(service.fetch_available_packs()))
    print_marketplace_packs(packs)
    for marketplace_id, message in errors.items():
        print_warning(f"{marketplace_id}: {message}")
