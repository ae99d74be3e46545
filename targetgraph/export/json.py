"""JSON export for resolved build graphs."""

import json
import logging
from pathlib import Path
from typing import Any, Dict

import networkx as nx

from targetgraph.runtime.orchestrator import BuildPlan

logger = logging.getLogger("targetgraph.export.json")


def plan_graph(plan: BuildPlan) -> nx.DiGraph:
    """Graph of the planned targets with order and properties as attributes."""
    resolved = plan.resolved
    graph = nx.DiGraph()
    for index, target in enumerate(resolved.order):
        properties = plan.properties.get(target.name)
        graph.add_node(
            target.name,
            order=index,
            package=target.package,
            goal=target.name in resolved.goals,
            properties=properties.as_dict() if properties else {},
        )
    for target in resolved.order:
        for edge in resolved.edges.get(target.name, ()):
            graph.add_edge(
                target.name,
                edge.provider.name,
                capability=edge.edge.capability,
                visibility=edge.edge.visibility.value,
            )
    return graph


def plan_to_dict(plan: BuildPlan) -> Dict[str, Any]:
    return nx.readwrite.json_graph.node_link_data(plan_graph(plan), edges="edges")


def export_json(plan: BuildPlan, output_path: Path) -> None:
    """Export a build plan to JSON format.

    Args:
        plan: Resolved build plan.
        output_path: Output file path.
    """
    logger.info("Exporting plan to JSON: %s", output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(plan_to_dict(plan), f, indent=2, ensure_ascii=False)

    logger.info("JSON export completed: %d targets", len(plan.resolved.order))
