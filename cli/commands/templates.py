"""Template CLI commands for ProjectHub."""

from typing import Optional

import typer

from cli.commands.common import get_service, run, unwrap
from cli.projecthub.output import (
    confirm_delete,
    console,
    print_descriptor,
    print_descriptors,
    print_error,
    print_info,
    print_success,
)

templates_app = typer.Typer(
    name="templates",
    help="Browse and manage templates from installed packs.",
    no_args_is_help=True,
)


@templates_app.command("list")
def list_templates(
    category: Optional[str] = typer.Option(
        None,
        "--category",
        "-c",
        help="Only show templates in this category",
    ),
) -> None:
    """List templates from all installed packs.

    Examples:
        projecthub templates list
        projecthub templates list --category configuration
    """
    service = get_service()
    templates = unwrap(run(service.list_templates("cli")))
    if category:
        templates = tuple(t for t in templates if t.category == category)
    print_descriptors(templates, "Templates")


@templates_app.command("categories")
def categories() -> None:
    """List template categories."""
    service = get_service()
    names = unwrap(run(service.list_template_folders()))
    if not names:
        print_info("No templates installed.")
        return
    for name in names:
        console.print(f"  [cyan]{name}[/cyan]")


@templates_app.command("show")
def show(
    reference: str = typer.Argument(..., help="Template id, source path or name"),
    raw: bool = typer.Option(False, "--raw", help="Print the template's metadata.yaml"),
) -> None:
    """Show details of a template."""
    service = get_service()
    template = unwrap(run(service.get_template(reference)))
    print_descriptor(template)

    if raw:
        result = run(service.read_content(template.source_path))
        if result.ok:
            console.print()
            console.print(result.data, markup=False, highlight=False)
        else:
            print_info("No metadata.yaml for this template.")


@templates_app.command("delete")
def delete(
    reference: str = typer.Argument(..., help="Template id, source path or name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a template from its pack."""
    service = get_service()
    template = unwrap(run(service.get_template(reference)))
    if not template.editable:
        print_error(f"Template '{template.id}' is not editable.")
        raise typer.Exit(1)

    if not yes and not confirm_delete(service.packs_root / template.source_path):
        print_info("Aborted.")
        raise typer.Exit(1)

    unwrap(run(service.delete_content(template.source_path)))
    print_success(f"Deleted template {template.id}")
