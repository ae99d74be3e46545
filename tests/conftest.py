"""Shared fixtures: a small C++ project with its required packages on disk."""

from __future__ import annotations

from pathlib import Path

import pytest

ROOT_DECLARATION = """\
required_version = "2.0"

[project]
name = "numerics"
title = "Numerics"
summary = "Linear algebra primitives."
license = "MIT License"
version = "0.1.0"
authors = [{ name = "Ada Lovelace", email = "ada@example.com" }]

[[targets]]
name = "numerics-library"
depends = ["platform", { name = "Build/Files", private = true }]
provides = [
    { name = "Library/Numerics", append = { linkflags = ["{library}"], header_search_paths = ["{include_dir}"] } },
]

[[targets.actions]]
kind = "copy_headers"
name = "Numerics"
root = "source"
files = ["Numerics/**/*.{h,hpp}"]

[[targets.actions]]
kind = "build_static_library"
name = "Numerics"
root = "source"
files = ["Numerics/**/*.cpp"]

[[targets]]
name = "numerics-test"
depends = ["Library/Numerics", "Library/UnitTest"]
provides = ["Test/Numerics"]

[[targets.actions]]
kind = "run_tests"
name = "numerics-test"
root = "test"
files = ["**/*.cpp"]
arguments = ["--reporter", "compact"]

[configurations.development]
imports = ["numerics"]
requires = ["platforms", "unit-test"]

[configurations.numerics]
public = true
requires = ["build-files"]
"""

PACKAGE_DECLARATIONS = {
    "build-files": """\
[project]
name = "build-files"

[[targets]]
name = "build-files"
provides = ["Build/Files"]
""",
    "platforms": """\
[project]
name = "platforms"

[[targets]]
name = "platform"
provides = [{ name = "platform", append = { cxxflags = ["-std=c++17"] } }]

[configurations.platforms]
public = true
requires = ["compilers"]
""",
    "unit-test": """\
[project]
name = "unit-test"

[[targets]]
name = "unit-test-library"
provides = [{ name = "Library/UnitTest", append = { linkflags = ["-lUnitTest"] } }]
""",
    "compilers": """\
[project]
name = "compilers"

[[targets]]
name = "clang"
provides = ["Build/Clang"]
""",
}


def write_project(root: Path) -> Path:
    """Write the numerics project and its packages under ``root``."""
    (root / "teapot.toml").write_text(ROOT_DECLARATION, encoding="utf-8")

    sources = {
        "source/Numerics/Vector.hpp": "#pragma once\n",
        "source/Numerics/Matrix.h": "#pragma once\n",
        "source/Numerics/Vector.cpp": "#include <Numerics/Vector.hpp>\n",
        "test/test_vector.cpp": "int main() { return 0; }\n",
    }
    for relative, text in sources.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    for name, text in PACKAGE_DECLARATIONS.items():
        package_dir = root / "teapot" / "packages" / name
        package_dir.mkdir(parents=True, exist_ok=True)
        (package_dir / "teapot.toml").write_text(text, encoding="utf-8")

    return root


@pytest.fixture
def numerics_project(tmp_path: Path) -> Path:
    """Directory holding the numerics project declaration."""
    return write_project(tmp_path.resolve())
