"""Output layout and input signatures.

Every target owns ``<build_root>/<target>``; artifact paths inside it are
derived from the action kind and artifact name, so two targets can never
write to the same path. Build actions record a SHA-256 signature of their
inputs and effective properties next to their outputs; an action whose
stored signature matches is up to date and is not run again.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from targetgraph.model import Action, ActionKind, BuildOutputs, Target

logger = logging.getLogger("targetgraph.runtime.outputs")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._+-]")

STAMP_DIR = ".stamps"


def _safe_segment(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def artifact_role(kind: ActionKind) -> Optional[str]:
    """Return the artifact role produced by an action kind, if any."""
    return {
        ActionKind.COPY_HEADERS: "headers",
        ActionKind.BUILD_STATIC_LIBRARY: "library",
        ActionKind.BUILD_EXECUTABLE: "executable",
        ActionKind.RUN_TESTS: "tests",
    }.get(kind)


def artifact_path(install_prefix: Path, action: Action) -> Optional[Path]:
    """Deterministic artifact location for an action."""
    name = _safe_segment(action.name)
    if action.kind is ActionKind.COPY_HEADERS:
        return install_prefix / "include"
    if action.kind is ActionKind.BUILD_STATIC_LIBRARY:
        return install_prefix / "lib" / f"lib{name}.a"
    if action.kind is ActionKind.BUILD_EXECUTABLE:
        return install_prefix / "bin" / name
    if action.kind is ActionKind.RUN_TESTS:
        return install_prefix / "tests" / name
    return None


def outputs_for(target: Target, build_root: Path) -> BuildOutputs:
    """Compute the build outputs of a target without touching the filesystem."""
    install_prefix = Path(build_root) / _safe_segment(target.name)
    artifacts: Dict[str, Path] = {}
    for action in target.actions:
        role = artifact_role(action.kind)
        path = artifact_path(install_prefix, action)
        if role is not None and path is not None:
            artifacts.setdefault(role, path)
    return BuildOutputs(
        install_prefix=install_prefix,
        artifacts=artifacts,
        package_path=target.package_path,
    )


def input_signature(
    action: Action,
    properties: Mapping[str, Sequence[str]],
    upstream: Sequence[str] = (),
) -> str:
    """Compute the content signature of an action's inputs.

    The signature covers the action kind and name, every input path with its
    contents, the effective property set, and the signatures of the target's
    dependencies. Properties reference dependency artifacts by path only, so
    ``upstream`` is what makes a rebuilt dependency invalidate dependents.
    """
    digest = hashlib.sha256()
    for signature in upstream:
        digest.update(signature.encode("utf-8"))
        digest.update(b"\0")
    digest.update(action.kind.value.encode("utf-8"))
    digest.update(b"\0")
    digest.update(action.name.encode("utf-8"))
    digest.update(b"\0")

    for path in action.source_files:
        digest.update(str(path).encode("utf-8"))
        digest.update(b"\0")
        try:
            digest.update(Path(path).read_bytes())
        except OSError as e:
            # Missing inputs still change the signature; the action reports the error.
            logger.debug("Cannot read input %s for signature: %s", path, e)
            digest.update(b"<missing>")
        digest.update(b"\0")

    encoded = json.dumps(
        {key: list(values) for key, values in sorted(properties.items())},
        sort_keys=True,
    )
    digest.update(encoded.encode("utf-8"))
    return digest.hexdigest()


def target_signature(action_signatures: Sequence[str], upstream: Sequence[str] = ()) -> str:
    """Combine a target's action signatures and its dependencies' signatures.

    Targets without build actions still chain their dependencies' signatures
    through to their own dependents.
    """
    digest = hashlib.sha256()
    for signature in (*upstream, "|", *action_signatures):
        digest.update(signature.encode("utf-8"))
        digest.update(b"\0")
    return digest.hexdigest()


def stamp_path(outputs: BuildOutputs, action: Action) -> Path:
    return (
        outputs.install_prefix
        / STAMP_DIR
        / f"{action.kind.value}-{_safe_segment(action.name)}.sha256"
    )


def is_up_to_date(outputs: BuildOutputs, action: Action, signature: str) -> bool:
    """Check whether an action's stored signature matches and its artifact exists."""
    if not action.kind.is_build:
        return False

    artifact = artifact_path(outputs.install_prefix, action)
    if artifact is None or not artifact.exists():
        return False

    stamp = stamp_path(outputs, action)
    try:
        return stamp.read_text(encoding="utf-8").strip() == signature
    except OSError:
        return False


def record_signature(outputs: BuildOutputs, action: Action, signature: str) -> None:
    stamp = stamp_path(outputs, action)
    stamp.parent.mkdir(parents=True, exist_ok=True)
    stamp.write_text(signature + "\n", encoding="utf-8")
    logger.debug("Recorded signature for %s at %s", action.label, stamp)
