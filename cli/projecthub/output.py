"""Rich console output utilities for the ProjectHub CLI."""

from pathlib import Path
from typing import Any, Iterable

from rich.console import Console
from rich.prompt import Confirm, Prompt
from rich.table import Table

from scaffolding.applier import ConflictDecision, ConflictResolution
from schemas.content import ContentDescriptor

console = Console()
error_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]✗[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]![/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]→[/blue] {message}")


def print_key_value(key: str, value: Any, key_style: str = "bold") -> None:
    """Print a key-value pair."""
    console.print(f"[{key_style}]{key}:[/{key_style}] {value}")


def _dash(value: Any) -> str:
    return str(value) if value not in (None, "") else "-"


def print_descriptors(descriptors: Iterable[ContentDescriptor], title: str) -> None:
    """Print templates or libraries as a table."""
    rows = list(descriptors)
    if not rows:
        print_info(f"No {title.lower()} found.")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Category", style="green")
    table.add_column("Version")
    table.add_column("Pack")
    table.add_column("Description")

    for item in rows:
        table.add_row(item.id, item.name, item.category, item.version, item.pack, item.description)

    console.print(table)


def print_descriptor(descriptor: ContentDescriptor) -> None:
    """Print one template or library in detail."""
    print_key_value("ID", descriptor.id)
    print_key_value("Name", descriptor.name)
    print_key_value("Type", descriptor.type.value)
    print_key_value("Category", descriptor.category)
    print_key_value("Version", descriptor.version)
    print_key_value("Editable", "yes" if descriptor.editable else "no")
    print_key_value("Pack", descriptor.pack)
    print_key_value("Source", descriptor.source_path)
    print_key_value("Last edited", _dash(descriptor.last_edited))

    if descriptor.files:
        console.print("[bold]Files:[/bold]")
        for source, target in descriptor.files:
            console.print(f"  {source} [dim]→[/dim] {target}")
    elif descriptor.discovered_files:
        console.print("[bold]Files:[/bold]")
        for path in descriptor.discovered_files:
            console.print(f"  {path}")


def print_packs(packs: list[Any]) -> None:
    """Print installed packs as a table."""
    if not packs:
        print_info("No packs installed.")
        return

    table = Table(title="Installed Packs", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Technology")
    table.add_column("License")
    table.add_column("Path", style="dim")

    for pack in packs:
        table.add_row(
            pack.name,
            _dash(pack.version),
            _dash(pack.technology),
            _dash(pack.license),
            pack.path,
        )

    console.print(table)


def print_marketplace_packs(packs: list[Any]) -> None:
    """Print marketplace packs with their install status."""
    if not packs:
        print_info("No packs available.")
        return

    table = Table(title="Available Packs", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Installed")
    table.add_column("Technology")
    table.add_column("Marketplace")
    table.add_column("Status")
    table.add_column("URL", style="dim")

    for pack in packs:
        status = "[green]installed[/green]" if pack.status == "installed" else "[dim]missing[/dim]"
        table.add_row(
            pack.name,
            _dash(pack.version),
            _dash(pack.installed_version),
            _dash(pack.technology),
            _dash(pack.marketplace_name),
            status,
            pack.path,
        )

    console.print(table)


def print_projects(projects: list[Any]) -> None:
    """Print projects as a table."""
    if not projects:
        print_info("No projects found.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Version")
    table.add_column("Templates")
    table.add_column("Last edited")
    table.add_column("Path")
    table.add_column("Metadata", style="dim")

    for project in projects:
        table.add_row(
            project.name,
            _dash(project.version),
            ", ".join(project.template_used) or "-",
            _dash(project.last_edited),
            _dash(project.path),
            _dash(project.source_path),
        )

    console.print(table)


def print_marketplaces(marketplaces: list[Any]) -> None:
    """Print configured marketplaces."""
    table = Table(title="Marketplaces", show_header=True, header_style="bold")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("URL")
    table.add_column("Enabled")

    for marketplace in marketplaces:
        name = marketplace.name + (" [dim](official)[/dim]" if marketplace.is_official else "")
        table.add_row(marketplace.id, name, marketplace.url, "yes" if marketplace.enabled else "no")

    console.print(table)


def prompt_conflict(path: Path) -> ConflictDecision:
    """Ask how to handle an existing file."""
    console.print(f"\n[yellow]File exists:[/yellow] {path}")
    choice = Prompt.ask(
        "Overwrite, skip or cancel",
        choices=["overwrite", "skip", "cancel"],
        default="skip",
    )
    apply_all = False
    if choice != "cancel":
        apply_all = Confirm.ask("Apply to all conflicts?", default=False)
    return ConflictDecision(ConflictResolution(choice), apply_all=apply_all)


def confirm_delete(path: Path) -> bool:
    """Ask before deleting ``path``."""
    return Confirm.ask(f"Delete [bold]{path}[/bold]?", default=False)
