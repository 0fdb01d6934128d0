"""Shared helpers for ProjectHub CLI commands."""

import asyncio
from pathlib import Path
from typing import Any, Coroutine, Optional, TypeVar

import typer

from cli.projecthub.output import print_error, print_warning
from hub.config import load_config
from hub.service import ProjectHubService
from schemas.result import OperationResult

T = TypeVar("T")

# Set by the root callback (--config)
state: dict[str, Any] = {"config_path": None}


def get_service() -> ProjectHubService:
    """Build the service from the current configuration."""
    config_path: Optional[Path] = state.get("config_path")
    try:
        return ProjectHubService.from_config(load_config(config_path))
    except OSError as e:
        print_error(f"Cannot prepare ProjectHub directories: {e}")
        raise typer.Exit(1)


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a service coroutine to completion."""
    return asyncio.run(coro)


def unwrap(result: OperationResult[T]) -> T:
    """Return the result's data, or exit with an error message."""
    if result.is_cancelled:
        print_warning("Cancelled.")
        raise typer.Exit(1)
    if not result.ok:
        print_error(result.error or "Unknown error")
        raise typer.Exit(1)
    return result.data
