"""In-memory declaration records.

These are plain, frozen records built once when declarations are loaded.
Property contributions are represented as pure callables from a target's
realized build outputs to ordered property contributions; they are invoked
explicitly by the property propagator, never at declaration time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from targetgraph.errors import DuplicateTargetName

logger = logging.getLogger("targetgraph.model.declarations")

PropertyMap = Dict[str, List[str]]

ANY_PLATFORM = "any"


class Visibility(str, Enum):
    """Dependency edge visibility."""

    PUBLIC = "public"
    PRIVATE = "private"


class ActionKind(str, Enum):
    """Symbolic action kinds understood by action runners."""

    COPY_HEADERS = "copy_headers"
    BUILD_STATIC_LIBRARY = "build_static_library"
    BUILD_EXECUTABLE = "build_executable"
    RUN_TESTS = "run_tests"
    RUN_EXECUTABLE = "run_executable"

    @property
    def forwards_arguments(self) -> bool:
        """Test and run actions receive caller-supplied arguments."""
        return self in (ActionKind.RUN_TESTS, ActionKind.RUN_EXECUTABLE)

    @property
    def is_build(self) -> bool:
        """Build actions produce artifacts and support up-to-date checks."""
        return self in (
            ActionKind.COPY_HEADERS,
            ActionKind.BUILD_STATIC_LIBRARY,
            ActionKind.BUILD_EXECUTABLE,
        )


@dataclass(frozen=True)
class Author:
    name: str
    email: Optional[str] = None


@dataclass(frozen=True)
class Project:
    """Project identity, created once at load time."""

    name: str
    title: str = ""
    summary: str = ""
    description: str = ""
    license: str = ""
    website: str = ""
    version: str = "0.0.0"
    authors: Tuple[Author, ...] = ()


@dataclass(frozen=True)
class BuildOutputs:
    """Deterministic output locations for one target.

    Attributes:
        install_prefix: Root directory owned by the target.
        artifacts: Artifact paths keyed by role (``library``, ``executable``,
            ``tests``, ``headers``). Only roles produced by the target's
            actions are present.
        package_path: Root path of the package that declared the target.
    """

    install_prefix: Path
    artifacts: Mapping[str, Path] = field(default_factory=dict)
    package_path: Optional[Path] = None

    @property
    def include_dir(self) -> Path:
        return self.install_prefix / "include"

    @property
    def lib_dir(self) -> Path:
        return self.install_prefix / "lib"

    @property
    def bin_dir(self) -> Path:
        return self.install_prefix / "bin"

    def template_values(self) -> Dict[str, str]:
        """Values available to contribution templates."""
        values = {
            "install_prefix": str(self.install_prefix),
            "include_dir": str(self.include_dir),
            "lib_dir": str(self.lib_dir),
            "bin_dir": str(self.bin_dir),
        }
        if self.package_path is not None:
            values["package_path"] = str(self.package_path)
        for role, path in self.artifacts.items():
            values[role] = str(path)
        return values


Contribution = Callable[[BuildOutputs], Mapping[str, Iterable[str]]]


def no_contribution(outputs: BuildOutputs) -> PropertyMap:
    """Contribution for capabilities that only signal presence."""
    return {}


@dataclass(frozen=True)
class Action:
    """Build action specification.

    Attributes:
        kind: Symbolic action kind.
        name: Artifact name (library, executable or test suite name).
        source_files: Already-expanded ordered list of input files.
        source_root: Root the inputs are relative to (used by copy_headers).
        arguments: Fixed arguments passed before caller arguments.
    """

    kind: ActionKind
    name: str
    source_files: Tuple[Path, ...] = ()
    source_root: Optional[Path] = None
    arguments: Tuple[str, ...] = ()

    @property
    def label(self) -> str:
        return f"{self.kind.value}:{self.name}"


@dataclass(frozen=True)
class DependencyEdge:
    capability: str
    visibility: Visibility = Visibility.PUBLIC
    platform: str = ANY_PLATFORM

    @property
    def is_public(self) -> bool:
        return self.visibility is Visibility.PUBLIC

    def applies_to(self, platform: str) -> bool:
        return self.platform == ANY_PLATFORM or self.platform == platform


@dataclass(frozen=True)
class Provision:
    """A capability exposed by a target.

    ``alias_of`` forwards dependents to another capability instead of this
    target, e.g. ``platform`` -> ``Platform/linux``.
    """

    name: str
    contribution: Contribution = no_contribution
    alias_of: Optional[str] = None


@dataclass(frozen=True)
class Target:
    """Named unit of work with actions, dependencies and provided capabilities."""

    name: str
    actions: Tuple[Action, ...] = ()
    dependencies: Tuple[DependencyEdge, ...] = ()
    provisions: Tuple[Provision, ...] = ()
    properties: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    package: str = ""
    package_path: Optional[Path] = None

    def declared_properties(self) -> PropertyMap:
        return {key: list(values) for key, values in self.properties.items()}


@dataclass(frozen=True)
class Configuration:
    """Named, composable bundle of required packages."""

    name: str
    imports: Tuple[str, ...] = ()
    requires: Tuple[str, ...] = ()
    public: bool = False
    source: Optional[str] = None


class DeclarationSet:
    """Ordered collection of targets with unique names.

    Iteration order is declaration order, which the graph resolver uses as
    its deterministic tie-break.
    """

    def __init__(self, targets: Iterable[Target] = ()) -> None:
        self._targets: Dict[str, Target] = {}
        for target in targets:
            self.add(target)

    def add(self, target: Target) -> None:
        if target.name in self._targets:
            raise DuplicateTargetName(target.name)
        self._targets[target.name] = target
        logger.debug("Declared target %s (package=%s)", target.name, target.package)

    def extend(self, targets: Iterable[Target]) -> None:
        for target in targets:
            self.add(target)

    def get(self, name: str) -> Optional[Target]:
        return self._targets.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._targets

    def __iter__(self) -> Iterator[Target]:
        return iter(self._targets.values())

    def __len__(self) -> int:
        return len(self._targets)

    @property
    def names(self) -> List[str]:
        return list(self._targets)


@dataclass(frozen=True)
class Package:
    """A project together with its targets and configurations."""

    name: str
    path: Path
    project: Project
    targets: Tuple[Target, ...] = ()
    configurations: Mapping[str, Configuration] = field(default_factory=dict)


def build_declarations(targets: Iterable[Target]) -> DeclarationSet:
    """Build a declaration set, failing on duplicate target names."""
    return DeclarationSet(targets)
