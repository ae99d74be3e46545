"""Resolution context for one orchestration run.

The context is assembled fresh for every run from the root package, the
requested configuration and the settings. It replaces any global registry:
each resolver stage receives the context explicitly and nothing survives
between runs except build artifacts on disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from targetgraph.config import Settings
from targetgraph.graph.configurations import ConfigurationResolver
from targetgraph.model import DeclarationSet, Package, Project, Target
from targetgraph.runtime.config_loader import find_package, load_package

logger = logging.getLogger("targetgraph.runtime.context")

PackageLoader = Callable[[str], Package]


@dataclass(frozen=True)
class ResolutionContext:
    """Read-only snapshot of everything visible to one build.

    Args:
        project: Identity of the root project.
        root: Root package being built.
        packages: Required packages in resolution order.
        targets: Visible targets in declaration order (packages first, then
            the root package).
        settings: Orchestrator settings.
        configuration: Name of the resolved configuration, if any.
    """

    project: Project
    root: Package
    packages: Tuple[Package, ...]
    targets: DeclarationSet
    settings: Settings = field(default_factory=Settings.default)
    configuration: Optional[str] = None

    @property
    def build_root(self) -> Path:
        root = self.settings.build_root
        return root if root.is_absolute() else self.root.path / root

    @property
    def platform(self) -> str:
        return self.settings.platform

    def target(self, name: str) -> Target:
        target = self.targets.get(name)
        if target is None:
            raise KeyError(name)
        return target

    @classmethod
    def create(
        cls,
        root: Package,
        configuration: Optional[str] = None,
        settings: Optional[Settings] = None,
        package_loader: Optional[PackageLoader] = None,
    ) -> "ResolutionContext":
        """Resolve a configuration and collect the visible targets.

        Required packages that declare a public configuration named after
        themselves pull in that configuration's requirements as well.

        Args:
            root: Root package.
            configuration: Configuration to resolve; None builds the root
                package alone.
            settings: Orchestrator settings.
            package_loader: Callable loading a package by name. Defaults to
                searching ``settings.package_paths`` relative to the root.

        Raises:
            ResolutionError: On unknown configurations, cyclic imports,
                missing packages or duplicate target names.
        """
        settings = settings or Settings.default()
        if package_loader is None:
            def package_loader(name: str) -> Package:
                return load_package(find_package(name, settings, root.path), settings)

        pending: List[str] = []
        if configuration is not None:
            pending = ConfigurationResolver(root.configurations).resolve(configuration)

        loaded: Dict[str, Package] = {}
        index = 0
        while index < len(pending):
            name = pending[index]
            index += 1
            if name in loaded or name == root.name:
                continue

            package = package_loader(name)
            loaded[name] = package
            logger.debug("Loaded required package %s from %s", name, package.path)

            exported = package.configurations.get(name)
            if exported is not None and exported.public:
                for extra in ConfigurationResolver(package.configurations).resolve(name):
                    if extra not in pending:
                        pending.append(extra)

        targets = DeclarationSet()
        for package in loaded.values():
            targets.extend(package.targets)
        targets.extend(root.targets)

        logger.info(
            "Resolution context: %d package(s), %d visible target(s)",
            len(loaded),
            len(targets),
        )
        return cls(
            project=root.project,
            root=root,
            packages=tuple(loaded.values()),
            targets=targets,
            settings=settings,
            configuration=configuration,
        )
