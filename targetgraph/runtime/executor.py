"""Concurrent action executor.

Each target moves through ``PENDING -> RUNNING -> {SUCCEEDED, FAILED,
SKIPPED}``. A per-target readiness counter tracks dependencies that have not
yet succeeded; a target is submitted to the thread pool the moment its
counter reaches zero. When a target fails, every target depending on it,
directly or transitively, is marked skipped without being launched, while
independent targets keep running.

Each succeeded target's signature is chained into its dependents' input
signatures, so rebuilding a dependency invalidates everything above it.
"""

from __future__ import annotations

import logging
import subprocess
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from targetgraph.errors import ActionExecutionError
from targetgraph.graph.properties import EffectivePropertySet
from targetgraph.graph.resolver import ResolvedGraph
from targetgraph.model import BuildOutputs, Target
from targetgraph.runtime.actions import ActionRequest, ActionRunner
from targetgraph.runtime.outputs import (
    input_signature,
    is_up_to_date,
    record_signature,
    target_signature,
)

logger = logging.getLogger("targetgraph.runtime.executor")

# Failures of the external invocation itself (missing tool, timeout, bad path).
_INVOCATION_ERRORS = (OSError, subprocess.SubprocessError, ValueError)


class TargetState(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"

    def __str__(self) -> str:
        return self.value


@dataclass
class ActionOutcome:
    label: str
    exit_code: int
    output: str = ""
    up_to_date: bool = False
    execution_time: float = 0.0


@dataclass
class TargetOutcome:
    """Outcome of one target.

    Attributes:
        name: Target name.
        state: Final state.
        actions: Outcomes of the actions that ran (or were up to date).
        error: Failure cause for FAILED targets.
        skipped_because: Name of the failed dependency for SKIPPED targets.
        execution_time: Wall time spent running the target's actions.
        signature: Combined input signature of a succeeded target, chained
            into its dependents' signatures.
    """

    name: str
    state: TargetState = TargetState.PENDING
    actions: List[ActionOutcome] = field(default_factory=list)
    error: Optional[Exception] = None
    skipped_because: Optional[str] = None
    execution_time: float = 0.0
    signature: Optional[str] = None

    @property
    def output(self) -> str:
        if isinstance(self.error, ActionExecutionError):
            return self.error.output
        return "\n".join(action.output for action in self.actions if action.output)

    @property
    def up_to_date(self) -> bool:
        return bool(self.actions) and all(action.up_to_date for action in self.actions)


@dataclass
class ExecutionReport:
    """Ordered per-target outcomes plus the first failure.

    Attributes:
        outcomes: Outcomes in resolved build order.
        goals: Target names that were requested.
        first_failure: Name of the first target that failed, if any.
    """

    outcomes: List[TargetOutcome]
    goals: Tuple[str, ...] = ()
    first_failure: Optional[str] = None

    def outcome(self, name: str) -> TargetOutcome:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        raise KeyError(name)

    def states(self) -> Dict[str, TargetState]:
        return {outcome.name: outcome.state for outcome in self.outcomes}

    @property
    def failure(self) -> Optional[TargetOutcome]:
        if self.first_failure is None:
            return None
        return self.outcome(self.first_failure)

    @property
    def success(self) -> bool:
        return all(outcome.state is TargetState.SUCCEEDED for outcome in self.outcomes)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


OutputsFor = Callable[[Target], BuildOutputs]


class ActionExecutor:
    """Execute the actions of a resolved graph.

    Args:
        runner: Action runner performing the external invocations.
        outputs_for: Maps a target to its output locations.
        max_workers: Maximum number of targets running concurrently.
        incremental: Skip build actions whose input signature is unchanged.
    """

    def __init__(
        self,
        runner: ActionRunner,
        outputs_for: OutputsFor,
        max_workers: int = 4,
        incremental: bool = True,
    ) -> None:
        self.runner = runner
        self.outputs_for = outputs_for
        self.max_workers = max_workers
        self.incremental = incremental

    def _run_target(
        self,
        target: Target,
        properties: EffectivePropertySet,
        arguments: Sequence[str],
        upstream: Sequence[str] = (),
    ) -> TargetOutcome:
        outcome = TargetOutcome(name=target.name, state=TargetState.RUNNING)
        outputs = self.outputs_for(target)
        property_values = properties.as_dict()
        start_time = time.time()
        action_signatures: List[str] = []

        logger.info("Running target %s (%d action(s))", target.name, len(target.actions))

        for action in target.actions:
            action_start = time.time()
            action_arguments = tuple(action.arguments)
            if action.kind.forwards_arguments:
                action_arguments += tuple(arguments)

            signature = None
            if action.kind.is_build:
                signature = input_signature(action, property_values, upstream)
                action_signatures.append(signature)
                if self.incremental and is_up_to_date(outputs, action, signature):
                    logger.info("%s %s is up to date", target.name, action.label)
                    outcome.actions.append(
                        ActionOutcome(label=action.label, exit_code=0, up_to_date=True)
                    )
                    continue

            request = ActionRequest(
                target=target.name,
                action=action,
                properties=property_values,
                outputs=outputs,
                arguments=action_arguments,
            )

            try:
                outputs.install_prefix.mkdir(parents=True, exist_ok=True)
                result = self.runner.run(request)
            except _INVOCATION_ERRORS as e:
                logger.error("Target %s: %s failed to start: %s", target.name, action.label, e)
                outcome.actions.append(
                    ActionOutcome(
                        label=action.label,
                        exit_code=-1,
                        output=str(e),
                        execution_time=time.time() - action_start,
                    )
                )
                outcome.error = ActionExecutionError(target.name, action.label, -1, str(e))
                outcome.state = TargetState.FAILED
                break

            outcome.actions.append(
                ActionOutcome(
                    label=action.label,
                    exit_code=result.exit_code,
                    output=result.output,
                    execution_time=time.time() - action_start,
                )
            )

            if not result.success:
                logger.error(
                    "Target %s: %s exited with status %d",
                    target.name,
                    action.label,
                    result.exit_code,
                )
                outcome.error = ActionExecutionError(
                    target.name, action.label, result.exit_code, result.output
                )
                outcome.state = TargetState.FAILED
                break

            if signature is not None:
                record_signature(outputs, action, signature)

        if outcome.state is TargetState.RUNNING:
            outcome.state = TargetState.SUCCEEDED
            outcome.signature = target_signature(action_signatures, upstream)

        outcome.execution_time = time.time() - start_time
        logger.info(
            "Target %s %s in %.2fs", target.name, outcome.state, outcome.execution_time
        )
        return outcome

    def execute(
        self,
        resolved: ResolvedGraph,
        properties: Mapping[str, EffectivePropertySet],
        arguments: Sequence[str] = (),
    ) -> ExecutionReport:
        """Run every target of ``resolved`` once its dependencies succeeded.

        Args:
            resolved: Ordered graph snapshot.
            properties: Effective property set per target name.
            arguments: Caller arguments forwarded to test and run actions.

        Returns:
            ExecutionReport covering every ordered target.
        """
        names = resolved.names
        position = {name: index for index, name in enumerate(names)}
        targets = {target.name: target for target in resolved.order}
        outcomes: Dict[str, TargetOutcome] = {name: TargetOutcome(name=name) for name in names}

        waiting = {name: len(resolved.dependencies(name)) for name in names}
        dependents: Dict[str, List[str]] = {name: [] for name in names}
        for name in names:
            for dependency in resolved.dependencies(name):
                dependents[dependency].append(name)

        first_failure: Optional[str] = None
        ready = [name for name in names if waiting[name] == 0]

        def skip_dependents(failed: str) -> None:
            stack = list(dependents[failed])
            while stack:
                name = stack.pop()
                outcome = outcomes[name]
                if outcome.state is not TargetState.PENDING:
                    continue
                outcome.state = TargetState.SKIPPED
                outcome.skipped_because = failed
                logger.warning("Skipping %s: dependency %s did not succeed", name, failed)
                stack.extend(dependents[name])

        logger.info("Executing %d target(s) with %d worker(s)", len(names), self.max_workers)

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures: Dict[Future, str] = {}

            while ready or futures:
                for name in sorted(ready, key=position.__getitem__):
                    # Every dependency has succeeded, so each carries a signature.
                    upstream = [
                        outcomes[dependency].signature or ""
                        for dependency in resolved.dependencies(name)
                    ]
                    outcomes[name].state = TargetState.RUNNING
                    future = pool.submit(
                        self._run_target,
                        targets[name],
                        properties.get(name, EffectivePropertySet()),
                        arguments,
                        upstream,
                    )
                    futures[future] = name
                ready = []

                if not futures:
                    break

                done, _ = wait(futures.keys(), return_when=FIRST_COMPLETED)
                for future in sorted(done, key=lambda f: position[futures[f]]):
                    name = futures.pop(future)
                    try:
                        outcome = future.result()
                    except Exception as e:
                        logger.error("Target %s failed unexpectedly: %s", name, e, exc_info=True)
                        outcome = TargetOutcome(name=name, state=TargetState.FAILED, error=e)
                    outcomes[name] = outcome

                    if outcome.state is TargetState.SUCCEEDED:
                        for dependent in dependents[name]:
                            waiting[dependent] -= 1
                            if (
                                waiting[dependent] == 0
                                and outcomes[dependent].state is TargetState.PENDING
                            ):
                                ready.append(dependent)
                    else:
                        if first_failure is None:
                            first_failure = name
                        skip_dependents(name)

        report = ExecutionReport(
            outcomes=[outcomes[name] for name in names],
            goals=resolved.goals,
            first_failure=first_failure,
        )
        succeeded = sum(1 for o in report.outcomes if o.state is TargetState.SUCCEEDED)
        logger.info(
            "Execution completed: %d succeeded, %d failed or skipped",
            succeeded,
            len(report.outcomes) - succeeded,
        )
        return report
