"""CLI command listing configurations and their resolved packages."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from targetgraph.cli.common import RESOLUTION_FAILED, settings_from_args
from targetgraph.errors import ResolutionError
from targetgraph.graph.configurations import ConfigurationResolver
from targetgraph.runtime.config_loader import load_package

logger = logging.getLogger("targetgraph.cli.configurations")


def configurations_command(args, console=None) -> int:
    """List every configuration of the root package.

    Configurations that fail to resolve are reported in the table; the
    command then exits with the resolution failure status.
    """
    console = console or Console()
    try:
        settings = settings_from_args(args)
        root = load_package(Path(getattr(args, "file", None) or Path.cwd()), settings)
    except (ResolutionError, ValueError) as e:
        logger.error("%s", e)
        return RESOLUTION_FAILED

    resolver = ConfigurationResolver(root.configurations)
    table = Table(title=f"Configurations of {root.project.title or root.name}")
    table.add_column("Name")
    table.add_column("Public")
    table.add_column("Imports")
    table.add_column("Required packages")

    status = 0
    for name in resolver.names:
        configuration = resolver.get(name)
        try:
            packages = ", ".join(resolver.resolve(name))
        except ResolutionError as e:
            packages = f"error: {e}"
            status = RESOLUTION_FAILED
        table.add_row(
            name,
            "yes" if configuration.public else "no",
            ", ".join(configuration.imports),
            packages,
        )

    console.print(table)
    return status
