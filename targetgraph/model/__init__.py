"""Declaration model for targetgraph."""

from .declarations import (
    ANY_PLATFORM,
    Action,
    ActionKind,
    Author,
    BuildOutputs,
    Configuration,
    Contribution,
    DeclarationSet,
    DependencyEdge,
    Package,
    Project,
    PropertyMap,
    Provision,
    Target,
    Visibility,
    build_declarations,
    no_contribution,
)

__all__ = [
    "ANY_PLATFORM",
    "Action",
    "ActionKind",
    "Author",
    "BuildOutputs",
    "Configuration",
    "Contribution",
    "DeclarationSet",
    "DependencyEdge",
    "Package",
    "Project",
    "PropertyMap",
    "Provision",
    "Target",
    "Visibility",
    "build_declarations",
    "no_contribution",
]
