"""Configuration resolution.

A configuration names the packages a build needs (``requires``) and may
import other configurations. Resolution flattens the import graph into a
single ordered package list before any target graph is built.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Set

from targetgraph.errors import CyclicImport, UnknownConfiguration
from targetgraph.model import Configuration

logger = logging.getLogger("targetgraph.graph.configurations")


class ConfigurationResolver:
    """Flatten named configurations into an ordered list of required packages.

    Imports are expanded depth-first before the configuration's own
    requirements. A package required more than once keeps the position of
    its first occurrence; later duplicates are dropped.
    """

    def __init__(self, configurations: Mapping[str, Configuration]) -> None:
        self._configurations: Dict[str, Configuration] = dict(configurations)

    def get(self, name: str) -> Configuration:
        configuration = self._configurations.get(name)
        if configuration is None:
            raise UnknownConfiguration(name)
        return configuration

    @property
    def names(self) -> List[str]:
        return list(self._configurations)

    def public_names(self) -> List[str]:
        return [name for name, c in self._configurations.items() if c.public]

    def resolve(self, name: str) -> List[str]:
        """Resolve a configuration into its required packages.

        Args:
            name: Requested configuration name.

        Returns:
            Ordered, de-duplicated package names.

        Raises:
            UnknownConfiguration: If the configuration or an import is missing.
            CyclicImport: If imports form a cycle; ``path`` holds the cycle.
        """
        packages: List[str] = []
        seen_packages: Set[str] = set()
        visited: Set[str] = set()
        stack: List[str] = []

        def visit(current: str, imported_by: str) -> None:
            if current in stack:
                cycle = stack[stack.index(current):] + [current]
                raise CyclicImport(cycle)
            if current in visited:
                return

            configuration = self._configurations.get(current)
            if configuration is None:
                raise UnknownConfiguration(current, imported_by)

            stack.append(current)
            for imported in configuration.imports:
                visit(imported, current)
            stack.pop()
            visited.add(current)

            for package in configuration.requires:
                if package not in seen_packages:
                    seen_packages.add(package)
                    packages.append(package)

        visit(name, "")
        logger.debug("Configuration %s requires %s", name, packages)
        return packages
