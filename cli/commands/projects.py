"""Project CLI commands for ProjectHub."""

from pathlib import Path
from typing import Optional

import typer

from cli.commands.common import get_service, run, unwrap
from cli.projecthub.output import (
    confirm_delete,
    console,
    print_error,
    print_info,
    print_projects,
    print_success,
    prompt_conflict,
)
from scaffolding.applier import overwrite_all, skip_all

projects_app = typer.Typer(
    name="projects",
    help="Create and manage projects.",
    no_args_is_help=True,
)


@projects_app.command("list")
def list_projects() -> None:
    """List projects."""
    service = get_service()
    print_projects(unwrap(run(service.list_projects())))


@projects_app.command("create")
def create(
    name: str = typer.Argument(..., help="Project name"),
    destination: Path = typer.Option(
        ...,
        "--dest",
        "-d",
        help="Directory to create the project in",
    ),
    template: list[str] = typer.Option(
        [],
        "--template",
        "-t",
        help="Template id or name (repeatable, applied in order)",
    ),
    library: list[str] = typer.Option(
        [],
        "--library",
        "-l",
        help="Library name to record (repeatable)",
    ),
    version: str = typer.Option("", "--version", help="Project version"),
    description: Optional[str] = typer.Option(None, "--description", help="Project description"),
    overwrite: bool = typer.Option(False, "--overwrite-all", help="Overwrite every existing file"),
    skip: bool = typer.Option(False, "--skip-all", help="Keep every existing file"),
) -> None:
    """Create a project from templates.

    Examples:
        projecthub projects create "My App" -d ./my-app -t demo-workspace -t demo-react-app
        projecthub projects create api -d ./api -t demo-fastapi --overwrite-all
    """
    if overwrite and skip:
        print_error("Use either --overwrite-all or --skip-all, not both.")
        raise typer.Exit(1)
    if not template:
        print_error("At least one --template is required.")
        raise typer.Exit(1)

    resolver = overwrite_all if overwrite else skip_all if skip else prompt_conflict

    service = get_service()
    meta = unwrap(
        run(
            service.create_project(
                name,
                destination,
                list(template),
                libraries=list(library),
                version=version,
                description=description,
                resolver=resolver,
            )
        )
    )

    print_success(f"Created project {meta.name}")
    console.print(f"[dim]Directory: {meta.path}[/dim]")
    console.print(f"[dim]Metadata: {meta.source_path}[/dim]")


@projects_app.command("delete")
def delete(
    relative_path: str = typer.Argument(..., help="Metadata path shown by 'projects list'"),
    folder: Optional[Path] = typer.Option(
        None,
        "--folder",
        help="Also delete this project folder (cannot be undone)",
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete a project from ProjectHub."""
    service = get_service()
    if not yes and not confirm_delete(Path(relative_path)):
        print_info("Aborted.")
        raise typer.Exit(1)

    unwrap(run(service.delete_project(relative_path, folder)))
    print_success(f"Deleted project {relative_path}")
