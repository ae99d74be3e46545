"""Helpers for loading settings and declaration documents from TOML/JSON.

This module provides two entry points:

* ``load_settings`` accepts None, a dict, a path to a ``.toml``/``.json``
  file, or an inline TOML/JSON string.
* ``load_package`` reads a package declaration document and turns it into
  frozen declaration records, expanding file-set globs and compiling
  provision templates into contribution callables.
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from targetgraph.config import DeclarationDocument, Settings
from targetgraph.config.schema import ActionSpec, TargetSpec
from targetgraph.errors import DeclarationError, MissingPackage
from targetgraph.model import (
    Action,
    ActionKind,
    Author,
    BuildOutputs,
    Configuration,
    Contribution,
    DependencyEdge,
    Package,
    Project,
    PropertyMap,
    Provision,
    Target,
    Visibility,
    no_contribution,
)
from targetgraph.runtime.fileset import expand_file_set

logger = logging.getLogger("targetgraph.runtime.config_loader")

ConfigSource = Union[str, Path, Dict[str, Any], None]


def _parse_text(text: str, fmt: str) -> Dict[str, Any]:
    if fmt == "json":
        data = json.loads(text)
    else:
        data = tomllib.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Top-level configuration must be a mapping/dict")
    return data


def _detect_format(path: Optional[Path], text: str) -> str:
    if path is not None:
        suffix = path.suffix.lower()
        if suffix in {".toml", ".tml"}:
            return "toml"
        if suffix == ".json":
            return "json"
    stripped = text.lstrip()
    return "json" if stripped.startswith(("{", "[")) else "toml"


def _read_source(source: Union[str, Path]) -> Dict[str, Any]:
    """Read a mapping from a file path or an inline TOML/JSON string."""
    path = Path(source)
    try:
        is_file = path.is_file()
    except OSError:
        # Inline documents can exceed the platform's path length limit.
        is_file = False

    if is_file:
        text = path.read_text(encoding="utf-8")
        fmt = _detect_format(path, text)
        logger.info("Loading configuration from file: %s (fmt=%s)", path, fmt)
    else:
        text = str(source)
        fmt = _detect_format(None, text)
        logger.info("Loading configuration from inline %s string", fmt)
    return _parse_text(text, fmt)


def load_settings(source: ConfigSource) -> Settings:
    """Load Settings from various configuration sources.

    Args:
        source: One of:
            * None: returns Settings.default()
            * dict: treated as already-parsed settings mapping
            * str/Path: either a filesystem path to a .toml/.json file,
              or an inline TOML/JSON string (auto-detected)

    Returns:
        Settings instance.
    """
    if source is None:
        logger.debug("No settings source provided; using defaults")
        return Settings.default()

    if isinstance(source, dict):
        return Settings.from_dict(source)

    if isinstance(source, (str, Path)):
        return Settings.from_dict(_read_source(source))

    raise TypeError(f"Unsupported settings source type: {type(source)!r}")


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


def template_contribution(append: Mapping[str, Sequence[str]]) -> Contribution:
    """Compile property templates into a contribution callable.

    Each template is formatted with the provider's output values, e.g.
    ``"{library}"`` becomes the path of the provider's static library. A
    template referencing an output the provider does not produce raises
    ``KeyError`` when evaluated.
    """
    if not append:
        return no_contribution

    frozen = {key: tuple(values) for key, values in append.items()}

    def contribution(outputs: BuildOutputs) -> PropertyMap:
        values = outputs.template_values()
        return {
            key: [template.format_map(values) for template in templates]
            for key, templates in frozen.items()
        }

    return contribution


def _build_action(spec: ActionSpec, package_path: Path) -> Action:
    root = (package_path / spec.root).resolve()
    return Action(
        kind=ActionKind(spec.kind),
        name=spec.name,
        source_files=tuple(expand_file_set(root, spec.files)),
        source_root=root,
        arguments=tuple(spec.arguments),
    )


def _build_target(spec: TargetSpec, package: str, package_path: Path) -> Target:
    return Target(
        name=spec.name,
        actions=tuple(_build_action(action, package_path) for action in spec.actions),
        dependencies=tuple(
            DependencyEdge(
                capability=dep.name,
                visibility=Visibility.PRIVATE if dep.private else Visibility.PUBLIC,
                platform=dep.platform,
            )
            for dep in spec.depends
        ),
        provisions=tuple(
            Provision(
                name=provision.name,
                contribution=template_contribution(provision.append),
                alias_of=provision.alias,
            )
            for provision in spec.provides
        ),
        properties={key: tuple(values) for key, values in spec.properties.items()},
        package=package,
        package_path=package_path,
    )


def package_from_document(document: DeclarationDocument, package_path: Path) -> Package:
    """Convert a validated declaration document into a Package."""
    project_spec = document.project
    project = Project(
        name=project_spec.name,
        title=project_spec.title or project_spec.name,
        summary=project_spec.summary,
        description=project_spec.description.strip(),
        license=project_spec.license,
        website=project_spec.website,
        version=project_spec.version,
        authors=tuple(Author(name=a.name, email=a.email) for a in project_spec.authors),
    )
    targets = tuple(
        _build_target(spec, project.name, package_path) for spec in document.targets
    )
    configurations = {
        name: Configuration(
            name=name,
            imports=tuple(spec.imports),
            requires=tuple(spec.requires),
            public=spec.public,
            source=spec.source,
        )
        for name, spec in document.configurations.items()
    }
    return Package(
        name=project.name,
        path=package_path,
        project=project,
        targets=targets,
        configurations=configurations,
    )


def load_package(source: Union[str, Path], settings: Optional[Settings] = None) -> Package:
    """Load a package from a declaration file or a directory containing one.

    Raises:
        DeclarationError: If the file is missing, unparsable or invalid.
    """
    settings = settings or Settings.default()
    path = Path(source)
    if path.is_dir():
        path = path / settings.declaration_file
    if not path.is_file():
        raise DeclarationError(f"Declaration file not found: {path}")

    try:
        data = _read_source(path)
        document = DeclarationDocument.from_dict(data)
        package = package_from_document(document, path.parent.resolve())
    except (ValueError, NotImplementedError, tomllib.TOMLDecodeError) as e:
        # ValidationError and JSONDecodeError are ValueError subclasses;
        # pathlib raises NotImplementedError for unsupported glob patterns.
        raise DeclarationError(f"Invalid declaration file {path}: {e}") from e

    logger.info(
        "Loaded package %s: %d target(s), %d configuration(s)",
        package.name,
        len(package.targets),
        len(package.configurations),
    )
    return package


def find_package(name: str, settings: Settings, base_dir: Path) -> Path:
    """Locate a required package's declaration file.

    Relative package search paths are resolved against ``base_dir``.

    Raises:
        MissingPackage: If no search path contains the package.
    """
    searched: List[str] = []
    for search_path in settings.package_paths:
        root = search_path if search_path.is_absolute() else base_dir / search_path
        candidate = root / name / settings.declaration_file
        searched.append(str(candidate.parent))
        if candidate.is_file():
            return candidate
    raise MissingPackage(name, searched)


__all__ = [
    "ConfigSource",
    "find_package",
    "load_package",
    "load_settings",
    "package_from_document",
    "template_contribution",
]
