"""Library CLI commands for ProjectHub."""

import typer

from cli.commands.common import get_service, run, unwrap
from cli.projecthub.output import print_descriptors

libraries_app = typer.Typer(
    name="libraries",
    help="Browse libraries from installed packs.",
    no_args_is_help=True,
)


@libraries_app.command("list")
def list_libraries() -> None:
    """List libraries from all installed packs."""
    service = get_service()
    libraries = unwrap(run(service.list_libraries("cli")))
    print_descriptors(libraries, "Libraries")
