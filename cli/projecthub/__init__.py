"""ProjectHub CLI.

Command-line interface for managing packs, templates and projects.
"""

__version__ = "1.0.0"

from cli.projecthub.cli import app, main

__all__ = ["__version__", "app", "main"]
