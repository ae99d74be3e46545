"""File-set expansion for action inputs.

Patterns are rooted at a directory inside the package and may use ``**`` and
brace alternatives (``Numerics/**/*.{h,hpp}``). Results are ordered and
de-duplicated so that action inputs, and therefore input signatures, are
stable across runs.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger("targetgraph.runtime.fileset")

_BRACE_PATTERN = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> List[str]:
    """Expand brace alternatives into plain glob patterns.

    >>> expand_braces("*.{h,hpp}")
    ['*.h', '*.hpp']
    """
    match = _BRACE_PATTERN.search(pattern)
    if match is None:
        return [pattern]

    head, tail = pattern[: match.start()], pattern[match.end():]
    expanded: List[str] = []
    for alternative in match.group(1).split(","):
        for candidate in expand_braces(head + alternative + tail):
            if candidate not in expanded:
                expanded.append(candidate)
    return expanded


def expand_file_set(root: Path, patterns: Iterable[str]) -> List[Path]:
    """Expand glob patterns rooted at ``root`` into an ordered file list.

    Args:
        root: Directory the patterns are relative to.
        patterns: Glob patterns in priority order.

    Returns:
        List of matching files. Matches of each pattern are sorted; earlier
        patterns come first and duplicates keep their first position.
    """
    pattern_list = list(patterns)
    files: List[Path] = []
    seen = set()

    for pattern in pattern_list:
        for plain in expand_braces(pattern):
            matches = sorted(path for path in root.glob(plain) if path.is_file())
            if not matches:
                logger.debug("Pattern %s matched nothing under %s", plain, root)
            for path in matches:
                if path not in seen:
                    seen.add(path)
                    files.append(path)

    logger.debug(
        "Expanded %d pattern(s) under %s to %d file(s)",
        len(pattern_list),
        root,
        len(files),
    )
    return files
