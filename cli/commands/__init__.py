"""CLI command modules for ProjectHub."""

from cli.commands.libraries import libraries_app
from cli.commands.marketplace import marketplace_app
from cli.commands.packs import packs_app
from cli.commands.projects import projects_app
from cli.commands.templates import templates_app

__all__ = ["libraries_app", "marketplace_app", "packs_app", "projects_app", "templates_app"]
