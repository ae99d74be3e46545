"""Target graph resolution.

Builds a directed graph over all visible targets (edge ``A -> B`` means
"A depends on B"), rejects cycles, and orders the targets reachable from the
requested goals so that every target follows all of its dependencies.
Targets with no dependency relation keep their declaration order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import networkx as nx

from targetgraph.errors import (
    AmbiguousCapability,
    CyclicDependency,
    UnresolvedCapability,
)
from targetgraph.model import ANY_PLATFORM, DeclarationSet, DependencyEdge, Provision, Target

if TYPE_CHECKING:
    from targetgraph.runtime.context import ResolutionContext

logger = logging.getLogger("targetgraph.graph.resolver")


@dataclass(frozen=True)
class ResolvedEdge:
    """A dependency edge bound to the target and provision that satisfy it."""

    edge: DependencyEdge
    provider: Target
    provision: Provision

    @property
    def is_public(self) -> bool:
        return self.edge.is_public


@dataclass(frozen=True)
class ResolvedGraph:
    """Frozen graph snapshot for one orchestration run.

    Attributes:
        order: Targets required by the goals, dependencies first.
        edges: Resolved dependency edges per target name, in declared order.
        goals: Target names the goals resolved to.
        graph: Dependency graph over all visible targets.
    """

    order: Tuple[Target, ...]
    edges: Mapping[str, Tuple[ResolvedEdge, ...]]
    goals: Tuple[str, ...]
    graph: nx.DiGraph

    @property
    def names(self) -> List[str]:
        return [target.name for target in self.order]

    def dependencies(self, name: str) -> List[str]:
        """Distinct provider names of a target, in declared order."""
        providers: List[str] = []
        for resolved in self.edges.get(name, ()):
            if resolved.provider.name not in providers:
                providers.append(resolved.provider.name)
        return providers

    def dependents(self, name: str) -> List[str]:
        """Names of ordered targets that depend directly on ``name``."""
        return [
            target.name
            for target in self.order
            if name in self.dependencies(target.name)
        ]


class GraphResolver:
    """Resolve dependency edges to providers and order targets for a build.

    Args:
        targets: Visible targets in declaration order.
        platform: Active platform; edges for other platforms are ignored.
    """

    def __init__(self, targets: DeclarationSet, platform: str = ANY_PLATFORM) -> None:
        self.targets = targets
        self.platform = platform
        self._index = {name: position for position, name in enumerate(targets.names)}
        self._providers = self._build_provider_index()

    @classmethod
    def from_context(cls, context: "ResolutionContext") -> "GraphResolver":
        return cls(context.targets, platform=context.platform)

    def _build_provider_index(self) -> Dict[str, List[Tuple[Target, Provision]]]:
        providers: Dict[str, List[Tuple[Target, Provision]]] = {}
        for target in self.targets:
            for provision in target.provisions:
                providers.setdefault(provision.name, []).append((target, provision))
        return providers

    def lookup(self, capability: str, required_by: str = "") -> Tuple[Target, Provision]:
        """Find the single target providing ``capability``, following aliases.

        Raises:
            UnresolvedCapability: If no visible target provides it.
            AmbiguousCapability: If several visible targets provide it.
            CyclicDependency: If aliases loop back on themselves.
        """
        chain: List[str] = []
        current = capability
        while True:
            if current in chain:
                raise CyclicDependency(chain[chain.index(current):] + [current])
            chain.append(current)

            candidates = self._providers.get(current, [])
            if not candidates:
                raise UnresolvedCapability(current, required_by)
            if len(candidates) > 1:
                raise AmbiguousCapability(current, [t.name for t, _ in candidates])

            target, provision = candidates[0]
            if provision.alias_of is None:
                return target, provision
            logger.debug("Capability %s is an alias of %s", current, provision.alias_of)
            current = provision.alias_of

    def _resolve_goal(self, goal: str) -> str:
        if goal in self.targets:
            return goal
        target, _ = self.lookup(goal)
        return target.name

    def _resolve_edges(self) -> Tuple[nx.DiGraph, Dict[str, Tuple[ResolvedEdge, ...]]]:
        graph = nx.DiGraph()
        edges: Dict[str, Tuple[ResolvedEdge, ...]] = {}

        for target in self.targets:
            graph.add_node(target.name)

        for target in self.targets:
            resolved: List[ResolvedEdge] = []
            for edge in target.dependencies:
                if not edge.applies_to(self.platform):
                    logger.debug(
                        "Ignoring %s dependency %s of %s",
                        edge.platform,
                        edge.capability,
                        target.name,
                    )
                    continue
                provider, provision = self.lookup(edge.capability, target.name)
                resolved.append(ResolvedEdge(edge=edge, provider=provider, provision=provision))
                graph.add_edge(target.name, provider.name)
            edges[target.name] = tuple(resolved)

        return graph, edges

    def _check_acyclic(self, graph: nx.DiGraph) -> None:
        try:
            raw_cycle = nx.find_cycle(graph)
        except nx.NetworkXNoCycle:
            return

        cycle_nodes = [raw_cycle[0][0]]
        for edge in raw_cycle:
            cycle_nodes.append(edge[1])
        logger.error("Dependency cycle: %s", " -> ".join(cycle_nodes))
        raise CyclicDependency(cycle_nodes)

    def resolve(self, goals: Iterable[str]) -> ResolvedGraph:
        """Resolve the build order for the requested goals.

        Args:
            goals: Target names or capability names.

        Returns:
            ResolvedGraph restricted to targets reachable from the goals.

        Raises:
            ResolutionError: On unresolved or ambiguous capabilities and on
                dependency cycles.
        """
        graph, edges = self._resolve_edges()
        self._check_acyclic(graph)

        goal_names: List[str] = []
        for goal in goals:
            name = self._resolve_goal(goal)
            if name not in goal_names:
                goal_names.append(name)

        required = set(goal_names)
        for name in goal_names:
            required |= nx.descendants(graph, name)

        # Reverse so that dependencies precede their dependents.
        build_graph = graph.subgraph(required).reverse(copy=True)
        ordered_names = list(
            nx.lexicographical_topological_sort(build_graph, key=self._index.__getitem__)
        )

        order = tuple(self.targets.get(name) for name in ordered_names)
        logger.info(
            "Resolved %d target(s) for goal(s) %s: %s",
            len(order),
            ", ".join(goal_names),
            " -> ".join(ordered_names),
        )
        return ResolvedGraph(
            order=order,
            edges={name: edges[name] for name in ordered_names},
            goals=tuple(goal_names),
            graph=graph,
        )


def resolve(
    targets: DeclarationSet,
    goals: Sequence[str],
    platform: Optional[str] = None,
) -> ResolvedGraph:
    """Convenience wrapper around ``GraphResolver.resolve``."""
    return GraphResolver(targets, platform=platform or ANY_PLATFORM).resolve(goals)
