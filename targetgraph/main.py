"""Main CLI entry point for targetgraph.

Provides commands: build, test, run, graph, configurations
"""

import argparse
import logging
import os
import sys
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.logging import RichHandler

from targetgraph.cli.build import build_command
from targetgraph.cli.configurations import configurations_command
from targetgraph.cli.graph import graph_command

logger = logging.getLogger("targetgraph.cli")

CONFIGURATION_ENV = "TARGETGRAPH_CONFIGURATION"


def setup_logging(verbose: bool = False, console: Optional[Console] = None) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=[handler],
        force=True,
    )


def split_forwarded(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split ``argv`` at the first ``--`` into own and forwarded arguments."""
    argv = list(argv)
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="targetgraph",
        description="Targetgraph - Build Target Orchestrator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "-f",
        "--file",
        default=None,
        help=(
            "Declaration file or directory containing one "
            "(default: teapot.toml in the current directory)"
        ),
    )
    parser.add_argument(
        "-c",
        "--configuration",
        default=os.getenv(CONFIGURATION_ENV),
        help=(
            "Configuration to resolve before building. Defaults to "
            f"${CONFIGURATION_ENV}, or 'development' when the project defines it."
        ),
    )
    parser.add_argument(
        "-s",
        "--settings",
        help=(
            "Optional settings. Can be a path to a TOML/JSON file or an inline "
            "TOML/JSON string. When omitted, built-in defaults are used."
        ),
    )
    parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        help="Maximum concurrent targets (overrides settings)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    build_parser_ = subparsers.add_parser("build", help="Build goals and their dependencies")
    build_parser_.add_argument("goals", nargs="+", help="Target or capability names")
    build_parser_.add_argument(
        "--force",
        action="store_true",
        help="Rebuild even when inputs are unchanged",
    )

    test_parser = subparsers.add_parser(
        "test",
        help="Build and run a test goal (arguments after -- are forwarded)",
    )
    test_parser.add_argument("goals", nargs="+", help="Target or capability names")
    test_parser.add_argument("--force", action="store_true", help="Rebuild everything")

    run_parser = subparsers.add_parser(
        "run",
        help="Build and run an executable goal (arguments after -- are forwarded)",
    )
    run_parser.add_argument("goals", nargs="+", help="Target or capability names")
    run_parser.add_argument("--force", action="store_true", help="Rebuild everything")

    graph_parser = subparsers.add_parser(
        "graph",
        help="Resolve goals and show or export the build graph without executing",
    )
    graph_parser.add_argument("goals", nargs="+", help="Target or capability names")
    graph_parser.add_argument(
        "--format",
        choices=["text", "json", "dot"],
        default="text",
        help="Output format (default: text)",
    )
    graph_parser.add_argument("-o", "--output", help="Output file for json/dot formats")
    graph_parser.add_argument(
        "--properties",
        action="store_true",
        help="Include effective properties in text output",
    )

    subparsers.add_parser(
        "configurations",
        help="List configurations and the packages they require",
    )

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    own, forwarded = split_forwarded(sys.argv[1:] if argv is None else argv)

    parser = build_parser()
    args = parser.parse_args(own)
    args.arguments = forwarded

    setup_logging(args.verbose)

    if args.command in ("build", "test", "run"):
        return build_command(args)
    elif args.command == "graph":
        return graph_command(args)
    elif args.command == "configurations":
        return configurations_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
