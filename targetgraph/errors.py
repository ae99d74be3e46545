"""Error taxonomy for targetgraph.

Resolution errors are fatal: they abort a run before any action executes.
``ActionExecutionError`` is the only error that is recovered locally, by the
executor, and surfaced in the final report instead of being raised.
"""

from typing import Sequence


# =============================================================================
# Base Classes
# =============================================================================

class TargetGraphError(Exception):
    """Base class for all targetgraph errors."""
    pass


class ResolutionError(TargetGraphError):
    """Fatal error raised while resolving configurations, declarations or graph.

    Any subclass aborts the orchestration run before the first action starts.
    """
    pass


# =============================================================================
# Configuration & Declaration Errors
# =============================================================================

class DeclarationError(ResolutionError):
    """Declaration document is malformed or requires an unsupported version."""
    pass


class UnknownConfiguration(ResolutionError):
    """A configuration name (requested or imported) does not exist."""

    def __init__(self, name: str, imported_by: str = "") -> None:
        self.name = name
        self.imported_by = imported_by
        message = f"Unknown configuration '{name}'"
        if imported_by:
            message += f" (imported by '{imported_by}')"
        super().__init__(message)


class CyclicImport(ResolutionError):
    """Configuration imports form a cycle."""

    def __init__(self, path: Sequence[str]) -> None:
        self.path = list(path)
        super().__init__("Cyclic configuration import: " + " → ".join(self.path))


class MissingPackage(ResolutionError):
    """A required package could not be found in any package search path."""

    def __init__(self, name: str, searched: Sequence[str] = ()) -> None:
        self.name = name
        self.searched = list(searched)
        super().__init__(
            f"Package '{name}' not found (searched: {', '.join(self.searched) or 'nothing'})"
        )


class DuplicateTargetName(ResolutionError):
    """Two targets with the same name were declared."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Duplicate target name '{name}'")


# =============================================================================
# Graph Errors
# =============================================================================

class UnresolvedCapability(ResolutionError):
    """No visible target provides the requested capability."""

    def __init__(self, capability: str, required_by: str = "") -> None:
        self.capability = capability
        self.required_by = required_by
        message = f"No target provides '{capability}'"
        if required_by:
            message += f" (required by '{required_by}')"
        super().__init__(message)


class AmbiguousCapability(ResolutionError):
    """More than one visible target provides the same capability."""

    def __init__(self, capability: str, providers: Sequence[str]) -> None:
        self.capability = capability
        self.providers = list(providers)
        super().__init__(
            f"Capability '{capability}' is provided by multiple targets: "
            + ", ".join(self.providers)
        )


class CyclicDependency(ResolutionError):
    """Target dependencies form a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        super().__init__("Cyclic target dependency: " + " -> ".join(self.cycle))


class PropertyContributionError(ResolutionError):
    """A provider's contribution could not be evaluated."""

    def __init__(self, target: str, capability: str, reason: str) -> None:
        self.target = target
        self.capability = capability
        self.reason = reason
        super().__init__(
            f"Contribution of '{capability}' from target '{target}' failed: {reason}"
        )


# =============================================================================
# Execution Errors
# =============================================================================

class ActionExecutionError(TargetGraphError):
    """An external action finished with a non-zero exit status.

    Recorded on the failing target's outcome by the executor.
    """

    def __init__(self, target: str, action: str, exit_code: int, output: str = "") -> None:
        self.target = target
        self.action = action
        self.exit_code = exit_code
        self.output = output
        super().__init__(
            f"Action '{action}' of target '{target}' exited with status {exit_code}"
        )
