"""
Orchestrator coordinating one build run.

Stages run in a fixed order:

    Configuration Resolver -> Declaration Model -> Graph Resolver
        -> Property Propagator -> Action Executor

Resolution stages are fatal: any ``ResolutionError`` aborts the run before
the first action executes. Action failures are recovered by the executor and
surfaced in the returned report.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from targetgraph.config import Settings
from targetgraph.graph import EffectivePropertySet, GraphResolver, PropertyPropagator, ResolvedGraph
from targetgraph.model import BuildOutputs, Target
from targetgraph.runtime.actions import ActionRunner, SubprocessActionRunner
from targetgraph.runtime.config_loader import load_package
from targetgraph.runtime.context import ResolutionContext
from targetgraph.runtime.executor import ActionExecutor, ExecutionReport
from targetgraph.runtime.outputs import outputs_for

logger = logging.getLogger("targetgraph.runtime.orchestrator")


@dataclass(frozen=True)
class BuildPlan:
    """Resolved graph and effective properties for a set of goals."""

    resolved: ResolvedGraph
    properties: Dict[str, EffectivePropertySet]


class Orchestrator:
    """
    Coordinates resolution and execution for one context.

    Attributes:
        context: Resolution context (visible targets and settings).
        runner: Action runner; defaults to a subprocess runner built from
            the settings' toolchain.
    """

    def __init__(
        self,
        context: ResolutionContext,
        runner: Optional[ActionRunner] = None,
    ) -> None:
        self.context = context
        settings = context.settings
        self.runner = runner or SubprocessActionRunner(
            toolchain=settings.toolchain,
            timeout=settings.action_timeout,
        )

    def outputs_for(self, target: Target) -> BuildOutputs:
        return outputs_for(target, self.context.build_root)

    def plan(self, goals: Sequence[str]) -> BuildPlan:
        """Resolve goals into an ordered graph with effective properties.

        Raises:
            ResolutionError: On any graph or property resolution error.
        """
        resolved = GraphResolver.from_context(self.context).resolve(goals)
        properties = PropertyPropagator(resolved, self.outputs_for).propagate()
        return BuildPlan(resolved=resolved, properties=properties)

    def run(self, goals: Sequence[str], arguments: Sequence[str] = ()) -> ExecutionReport:
        """Resolve and execute goals.

        Args:
            goals: Target or capability names.
            arguments: Caller arguments forwarded to test and run actions.

        Returns:
            ExecutionReport for the run.
        """
        plan = self.plan(goals)
        settings = self.context.settings
        executor = ActionExecutor(
            runner=self.runner,
            outputs_for=self.outputs_for,
            max_workers=settings.max_workers,
            incremental=settings.incremental,
        )
        report = executor.execute(plan.resolved, plan.properties, arguments)
        if report.success:
            logger.info("All goals succeeded: %s", ", ".join(report.goals))
        else:
            logger.error("Build failed (first failure: %s)", report.first_failure)
        return report


def load_context(
    declaration: Union[str, Path],
    configuration: Optional[str] = None,
    settings: Optional[Settings] = None,
) -> ResolutionContext:
    """Load the root package and build a fresh resolution context."""
    settings = settings or Settings.default()
    root = load_package(declaration, settings)
    return ResolutionContext.create(root, configuration=configuration, settings=settings)
