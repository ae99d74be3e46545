"""Build, test and run command implementation."""

import logging
import time
from typing import List

from targetgraph.cli.common import RESOLUTION_FAILED, context_from_args
from targetgraph.errors import ResolutionError
from targetgraph.runtime.display import ReportRenderer
from targetgraph.runtime.orchestrator import Orchestrator

logger = logging.getLogger("targetgraph.cli.build")

# Commands whose test and run actions receive arguments given after ``--``.
FORWARDING_COMMANDS = ("test", "run")


def forwarded_arguments(args) -> List[str]:
    arguments = list(getattr(args, "arguments", None) or [])
    if arguments and args.command not in FORWARDING_COMMANDS:
        logger.warning(
            "Ignoring arguments after -- for '%s'; only test and run forward them",
            args.command,
        )
        return []
    return arguments


def build_command(args, renderer=None) -> int:
    """Execute build/test/run commands.

    For ``test`` and ``run``, caller arguments (after ``--``) are forwarded
    verbatim to test and run actions. ``build`` never forwards them.

    Args:
        args: Parsed command-line arguments.
        renderer: Optional ReportRenderer.

    Returns:
        int: Exit code (0 when every requested goal succeeded).
    """
    start_time = time.time()
    renderer = renderer or ReportRenderer()

    try:
        context = context_from_args(args)
        orchestrator = Orchestrator(context)
        report = orchestrator.run(args.goals, arguments=forwarded_arguments(args))
    except (ResolutionError, ValueError) as e:
        logger.error("%s", e)
        return RESOLUTION_FAILED
    except KeyboardInterrupt:
        logger.warning("Build interrupted by user (Ctrl+C)")
        return 130

    renderer.render_report(report)
    logger.info("%s completed in %.2fs", args.command, time.time() - start_time)
    return report.exit_code
