"""Configuration schema and validation for targetgraph."""

from .schema import (
    FORMAT_VERSION,
    ActionSpec,
    ConfigurationSpec,
    DeclarationDocument,
    DependencySpec,
    ProjectSpec,
    ProvisionSpec,
    Settings,
    TargetSpec,
    ToolchainSettings,
)

__all__ = [
    "FORMAT_VERSION",
    "ActionSpec",
    "ConfigurationSpec",
    "DeclarationDocument",
    "DependencySpec",
    "ProjectSpec",
    "ProvisionSpec",
    "Settings",
    "TargetSpec",
    "ToolchainSettings",
]
