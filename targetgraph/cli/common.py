"""Shared helpers for CLI commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from targetgraph.config import Settings
from targetgraph.runtime.config_loader import load_package, load_settings
from targetgraph.runtime.context import ResolutionContext

logger = logging.getLogger("targetgraph.cli.common")

DEFAULT_CONFIGURATION = "development"

# Exit status for resolution errors; action failures exit with 1.
RESOLUTION_FAILED = 2


def settings_from_args(args) -> Settings:
    """Load settings and apply command-line overrides."""
    settings = load_settings(getattr(args, "settings", None))
    updates = {}
    jobs = getattr(args, "jobs", None)
    if jobs:
        updates["max_workers"] = jobs
    if getattr(args, "force", False):
        updates["incremental"] = False
    if updates:
        settings = Settings.from_dict({**settings.model_dump(), **updates})
    return settings


def context_from_args(args) -> ResolutionContext:
    """Load the root package and resolve the requested configuration.

    Raises:
        ResolutionError: If declarations or the configuration cannot be resolved.
    """
    settings = settings_from_args(args)
    declaration = Path(getattr(args, "file", None) or Path.cwd())
    root = load_package(declaration, settings)

    configuration: Optional[str] = getattr(args, "configuration", None)
    if configuration is None and DEFAULT_CONFIGURATION in root.configurations:
        configuration = DEFAULT_CONFIGURATION
    logger.debug("Using configuration: %s", configuration or "(none)")

    return ResolutionContext.create(root, configuration=configuration, settings=settings)
