"""DOT export for resolved build graphs."""

import logging
from pathlib import Path

import networkx as nx

from targetgraph.export.json import plan_graph
from targetgraph.runtime.orchestrator import BuildPlan

logger = logging.getLogger("targetgraph.export.dot")


def export_dot(plan: BuildPlan, output_path: Path) -> bool:
    """Export a build plan to DOT format.

    Args:
        plan: Resolved build plan.
        output_path: Output file path.

    Returns:
        bool: False when no DOT backend is installed.
    """
    logger.info("Exporting plan to DOT: %s", output_path)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    graph = nx.DiGraph()
    source = plan_graph(plan)
    for node, data in source.nodes(data=True):
        graph.add_node(node, label=f'"{node}"', shape="box" if data.get("goal") else "ellipse")
    for u, v, data in source.edges(data=True):
        graph.add_edge(
            u,
            v,
            label=f'"{data["capability"]}"',
            style="dashed" if data["visibility"] == "private" else "solid",
        )

    # Use pydot if available, otherwise write_dot
    try:
        from networkx.drawing.nx_pydot import write_dot
        write_dot(graph, str(output_path))
    except ImportError:
        # Fallback to agraph if pydot not available
        try:
            from networkx.drawing.nx_agraph import write_dot
            write_dot(graph, str(output_path))
        except ImportError:
            logger.warning("Neither pydot nor pygraphviz available, DOT export skipped")
            return False

    logger.info("DOT export completed: %d nodes, %d edges",
                graph.number_of_nodes(), graph.number_of_edges())
    return True
