"""Configuration, graph and property resolution.

Public API:
    - ConfigurationResolver: flattens configurations into required packages
    - GraphResolver / ResolvedGraph: dependency graph and build order
    - PropertyPropagator / EffectivePropertySet: scoped property inheritance
"""

from .configurations import ConfigurationResolver
from .properties import EffectivePropertySet, PropertyPropagator, propagate
from .resolver import GraphResolver, ResolvedEdge, ResolvedGraph, resolve

__all__ = [
    "ConfigurationResolver",
    "EffectivePropertySet",
    "GraphResolver",
    "PropertyPropagator",
    "ResolvedEdge",
    "ResolvedGraph",
    "propagate",
    "resolve",
]
