"""Targetgraph - build-target dependency-graph orchestrator.

Resolves configurations into required packages, orders the targets required
by the requested goals, propagates scoped build properties along the graph
and executes build, test and run actions concurrently.
"""

__version__ = "0.1.0"
