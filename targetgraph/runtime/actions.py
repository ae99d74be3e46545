"""Action invocation boundary.

The executor issues symbolic action requests (copy headers, build a static
library, build an executable, run tests, run an executable) to an
``ActionRunner``. The runner is a black box returning an exit status and
the captured output. ``SubprocessActionRunner`` maps requests onto compiler,
archiver and program invocations.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Mapping, Optional, Protocol, Sequence, Tuple

from targetgraph.config import ToolchainSettings
from targetgraph.model import Action, ActionKind, BuildOutputs
from targetgraph.runtime.outputs import artifact_path

logger = logging.getLogger("targetgraph.runtime.actions")

# Shell convention for "command not found".
EXECUTABLE_NOT_FOUND = 127


@dataclass(frozen=True)
class ActionRequest:
    """Everything an action runner needs to perform one action.

    Attributes:
        target: Name of the target owning the action.
        action: Action specification with expanded inputs.
        properties: Effective property set of the target.
        outputs: Output locations of the target.
        arguments: Fixed action arguments followed by caller arguments.
    """

    target: str
    action: Action
    properties: Mapping[str, Sequence[str]]
    outputs: BuildOutputs
    arguments: Tuple[str, ...] = ()

    @property
    def inputs(self) -> Tuple[Path, ...]:
        return self.action.source_files

    def property(self, key: str) -> List[str]:
        return list(self.properties.get(key, ()))


@dataclass
class ActionResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    commands: List[List[str]] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout, self.stderr) if part)


class ActionRunner(Protocol):
    """Executes one action request and reports its exit status."""

    def run(self, request: ActionRequest) -> ActionResult:
        ...


class SubprocessActionRunner:
    """Run actions as external processes.

    Properties consumed:
        cxxflags: compiler flags, in order.
        header_search_paths: directories passed as ``-I``.
        linkflags: linker inputs and flags, appended after objects.
        executables: candidate programs for ``run_executable``.

    Args:
        toolchain: Compiler and archiver commands.
        timeout: Timeout for each external invocation, in seconds.
    """

    def __init__(
        self,
        toolchain: Optional[ToolchainSettings] = None,
        timeout: float = 600.0,
    ) -> None:
        self.toolchain = toolchain or ToolchainSettings()
        self.timeout = timeout

    def run(self, request: ActionRequest) -> ActionResult:
        kind = request.action.kind
        if kind is ActionKind.COPY_HEADERS:
            return self._copy_headers(request)
        if kind is ActionKind.BUILD_STATIC_LIBRARY:
            return self._build_static_library(request)
        if kind is ActionKind.BUILD_EXECUTABLE:
            return self._build_executable(request)
        if kind is ActionKind.RUN_TESTS:
            return self._run_tests(request)
        if kind is ActionKind.RUN_EXECUTABLE:
            return self._run_executable(request)
        raise ValueError(f"Unsupported action kind: {kind}")

    # ------------------------------------------------------------------
    # Invocation helpers
    # ------------------------------------------------------------------

    def _invoke(self, command: List[str], result: ActionResult, cwd: Optional[Path] = None) -> bool:
        logger.debug("Invoking: %s", " ".join(command))
        completed = subprocess.run(
            command,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=False,
        )
        result.commands.append(command)
        if completed.stdout:
            result.stdout += completed.stdout
        if completed.stderr:
            result.stderr += completed.stderr
        result.exit_code = completed.returncode
        return completed.returncode == 0

    def _compile_flags(self, request: ActionRequest) -> List[str]:
        flags = request.property("cxxflags")
        flags.extend(f"-I{path}" for path in request.property("header_search_paths"))
        return flags

    def _compile(self, request: ActionRequest, result: ActionResult) -> Optional[List[Path]]:
        """Compile every input to an object file; None on first failure."""
        object_dir = request.outputs.install_prefix / "obj" / request.action.name
        object_dir.mkdir(parents=True, exist_ok=True)
        flags = self._compile_flags(request)

        objects: List[Path] = []
        for index, source in enumerate(request.inputs):
            obj = object_dir / f"{index:04d}-{Path(source).stem}.o"
            command = [self.toolchain.cxx, *flags, "-c", str(source), "-o", str(obj)]
            if not self._invoke(command, result):
                return None
            objects.append(obj)
        return objects

    def _link(self, request: ActionRequest, objects: List[Path], output: Path, result: ActionResult) -> bool:
        output.parent.mkdir(parents=True, exist_ok=True)
        command = [
            self.toolchain.cxx,
            *request.property("cxxflags"),
            *[str(obj) for obj in objects],
            "-o",
            str(output),
            *request.property("linkflags"),
        ]
        return self._invoke(command, result)

    # ------------------------------------------------------------------
    # Action kinds
    # ------------------------------------------------------------------

    def _copy_headers(self, request: ActionRequest) -> ActionResult:
        destination = request.outputs.include_dir
        root = request.action.source_root
        copied = 0
        for source in request.inputs:
            source = Path(source)
            relative = source.relative_to(root) if root else Path(source.name)
            target = destination / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, target)
            copied += 1
        destination.mkdir(parents=True, exist_ok=True)
        return ActionResult(exit_code=0, stdout=f"Copied {copied} header(s) to {destination}\n")

    def _build_static_library(self, request: ActionRequest) -> ActionResult:
        result = ActionResult(exit_code=0)
        objects = self._compile(request, result)
        if objects is None:
            return result

        library = artifact_path(request.outputs.install_prefix, request.action)
        library.parent.mkdir(parents=True, exist_ok=True)
        if library.exists():
            library.unlink()
        self._invoke([self.toolchain.ar, "rcs", str(library), *[str(o) for o in objects]], result)
        return result

    def _build_executable(self, request: ActionRequest) -> ActionResult:
        result = ActionResult(exit_code=0)
        objects = self._compile(request, result)
        if objects is None:
            return result

        executable = artifact_path(request.outputs.install_prefix, request.action)
        self._link(request, objects, executable, result)
        return result

    def _run_tests(self, request: ActionRequest) -> ActionResult:
        result = ActionResult(exit_code=0)
        objects = self._compile(request, result)
        if objects is None:
            return result

        binary = artifact_path(request.outputs.install_prefix, request.action)
        if not self._link(request, objects, binary, result):
            return result

        self._invoke([str(binary), *request.arguments], result, cwd=request.outputs.install_prefix)
        return result

    def _run_executable(self, request: ActionRequest) -> ActionResult:
        program = self._find_executable(request)
        if program is None:
            return ActionResult(
                exit_code=EXECUTABLE_NOT_FOUND,
                stderr=(
                    f"Executable '{request.action.name}' is not provided by any "
                    "dependency (no matching 'executables' entry)\n"
                ),
            )
        result = ActionResult(exit_code=0)
        self._invoke([program, *request.arguments], result)
        return result

    def _find_executable(self, request: ActionRequest) -> Optional[str]:
        """Locate a built executable among the ``executables`` property.

        Only artifacts contributed by dependencies are considered; programs
        on ``PATH`` are never substituted for them.
        """
        name = request.action.name
        for candidate in request.property("executables"):
            if Path(candidate).name == name and os.access(candidate, os.X_OK):
                return candidate
        return None
