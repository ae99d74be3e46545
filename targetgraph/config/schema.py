"""Configuration schema definitions using Pydantic for validation.

Two documents are described here:

* ``DeclarationDocument`` - the project declaration file (project metadata,
  targets, configurations) consumed by the loader.
* ``Settings`` - orchestrator settings (build root, workers, toolchain).

Using Pydantic ensures declaration errors are caught before any graph is
built, with clear error messages.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, Field, field_validator

# Declaration format version understood by this release.
FORMAT_VERSION = Version("2.0")

ACTION_KINDS = {
    "copy_headers",
    "build_static_library",
    "build_executable",
    "run_tests",
    "run_executable",
}


def _default_platform() -> str:
    if sys.platform.startswith("linux"):
        return "linux"
    if sys.platform == "darwin":
        return "darwin"
    if sys.platform.startswith("win"):
        return "windows"
    return sys.platform


# ---------------------------------------------------------------------------
# Declaration document
# ---------------------------------------------------------------------------


class AuthorSpec(BaseModel):
    name: str
    email: Optional[str] = None


class ProjectSpec(BaseModel):
    """Project metadata block.

    Attributes:
        name: Project (and root package) name.
        title: Human readable title.
        version: Project version string.
    """

    name: str = Field(min_length=1)
    title: str = ""
    summary: str = ""
    description: str = ""
    license: str = ""
    website: str = ""
    version: str = "0.0.0"
    authors: List[AuthorSpec] = Field(default_factory=list)


class ActionSpec(BaseModel):
    """Build action specification.

    Attributes:
        kind: Symbolic action kind.
        name: Artifact name.
        root: Directory (relative to the package) the file globs are rooted at.
        files: Glob patterns selecting the action inputs.
        arguments: Fixed arguments for test/run actions.
    """

    kind: str
    name: str = Field(min_length=1)
    root: str = "."
    files: List[str] = Field(default_factory=list)
    arguments: List[str] = Field(default_factory=list)

    @field_validator("kind")
    @classmethod
    def validate_kind(cls, v: str) -> str:
        """Validate that the action kind is known."""
        if v not in ACTION_KINDS:
            raise ValueError(
                f"Invalid action kind '{v}'. Valid kinds: {sorted(ACTION_KINDS)}"
            )
        return v

    @field_validator("files")
    @classmethod
    def validate_files(cls, v: List[str]) -> List[str]:
        """Patterns are globbed under ``root`` and must be relative to it."""
        for pattern in v:
            if not pattern.strip():
                raise ValueError("Empty file pattern")
            if pattern.startswith(("/", "\\")) or Path(pattern).is_absolute():
                raise ValueError(
                    f"Absolute file pattern '{pattern}'; use 'root' to select the directory"
                )
        return v


class DependencySpec(BaseModel):
    name: str = Field(min_length=1)
    private: bool = False
    platform: str = "any"


class ProvisionSpec(BaseModel):
    """Provided capability.

    Attributes:
        name: Capability name.
        alias: Capability this one forwards to, if any.
        append: Property templates appended to dependents' property sets.
    """

    name: str = Field(min_length=1)
    alias: Optional[str] = None
    append: Dict[str, List[str]] = Field(default_factory=dict)


class TargetSpec(BaseModel):
    name: str = Field(min_length=1)
    actions: List[ActionSpec] = Field(default_factory=list)
    depends: List[DependencySpec] = Field(default_factory=list)
    provides: List[ProvisionSpec] = Field(default_factory=list)
    properties: Dict[str, List[str]] = Field(default_factory=dict)

    @field_validator("depends", "provides", mode="before")
    @classmethod
    def expand_shorthand(cls, v: Any) -> Any:
        """Allow bare capability names in place of tables."""
        if not isinstance(v, list):
            return v
        return [{"name": item} if isinstance(item, str) else item for item in v]


class ConfigurationSpec(BaseModel):
    imports: List[str] = Field(default_factory=list)
    requires: List[str] = Field(default_factory=list)
    public: bool = False
    source: Optional[str] = None


class DeclarationDocument(BaseModel):
    """Top-level declaration document.

    Attributes:
        required_version: Declaration format version the document was written for.
        project: Project metadata.
        targets: Target declarations in declaration order.
        configurations: Named configurations.
    """

    required_version: str = str(FORMAT_VERSION)
    project: ProjectSpec
    targets: List[TargetSpec] = Field(default_factory=list)
    configurations: Dict[str, ConfigurationSpec] = Field(default_factory=dict)

    @field_validator("required_version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Reject documents written for an incompatible format version."""
        try:
            requested = Version(v)
        except InvalidVersion as exc:
            raise ValueError(f"Invalid required_version '{v}'") from exc
        if requested.major != FORMAT_VERSION.major or requested > FORMAT_VERSION:
            raise ValueError(
                f"Declaration requires format {v}, supported: {FORMAT_VERSION}"
            )
        return v

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DeclarationDocument":
        return cls.model_validate(data)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class ToolchainSettings(BaseModel):
    """External tools used by the subprocess action runner.

    Attributes:
        cxx: C++ compiler driver.
        ar: Static archive tool.
    """

    cxx: str = "c++"
    ar: str = "ar"

    model_config = {"extra": "allow"}


class Settings(BaseModel):
    """Orchestrator settings.

    Attributes:
        build_root: Directory receiving per-target outputs.
        max_workers: Maximum number of targets executed concurrently.
        platform: Active platform; platform-specific edges for other
            platforms are ignored.
        declaration_file: File name of package declaration documents.
        package_paths: Directories searched for required packages.
        action_timeout: Timeout for a single external invocation (seconds).
        incremental: Whether build actions may be skipped when up to date.
        toolchain: External tool configuration.
    """

    build_root: Path = Path(".targetgraph/build")
    max_workers: int = Field(default=4, ge=1, le=64)
    platform: str = Field(default_factory=_default_platform)
    declaration_file: str = "teapot.toml"
    package_paths: List[Path] = Field(
        default_factory=lambda: [Path("teapot/packages")]
    )
    action_timeout: float = Field(default=600.0, ge=1.0, le=86400.0)
    incremental: bool = True
    toolchain: ToolchainSettings = Field(default_factory=ToolchainSettings)

    @field_validator("package_paths")
    @classmethod
    def validate_package_paths(cls, v: List[Path]) -> List[Path]:
        """Drop duplicate search paths, keeping first occurrence."""
        unique: List[Path] = []
        for path in v:
            if path not in unique:
                unique.append(path)
        return unique

    @classmethod
    def default(cls) -> "Settings":
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create settings from dictionary.

        Raises:
            ValidationError: If settings are invalid.
        """
        return cls.model_validate(data)
