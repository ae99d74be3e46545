"""CLI command to inspect the resolved build graph.

Resolves the requested goals exactly as a build would, then prints the
build order or exports the graph, without executing any action.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from targetgraph.cli.common import RESOLUTION_FAILED, context_from_args
from targetgraph.errors import ResolutionError
from targetgraph.export.dot import export_dot
from targetgraph.export.json import export_json, plan_to_dict
from targetgraph.runtime.display import ReportRenderer
from targetgraph.runtime.orchestrator import Orchestrator

logger = logging.getLogger("targetgraph.cli.graph")


def graph_command(args, renderer=None) -> int:
    """Execute graph inspection command.

    Args:
        args: Parsed command-line arguments.
        renderer: Optional ReportRenderer.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        context = context_from_args(args)
        plan = Orchestrator(context).plan(args.goals)
    except (ResolutionError, ValueError) as e:
        logger.error("%s", e)
        return RESOLUTION_FAILED

    output_format = getattr(args, "format", "text")
    output = getattr(args, "output", None)

    if output_format == "text":
        renderer = renderer or ReportRenderer()
        renderer.render_plan(plan, show_properties=getattr(args, "properties", False))
        return 0

    if output_format == "json":
        if output:
            export_json(plan, Path(output))
        else:
            json.dump(plan_to_dict(plan), sys.stdout, indent=2)
            sys.stdout.write("\n")
        return 0

    if not output:
        logger.error("DOT export requires --output")
        return 1
    return 0 if export_dot(plan, Path(output)) else 1
