"""Tests for settings and declaration loading."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from targetgraph.config import Settings
from targetgraph.errors import DeclarationError, MissingPackage
from targetgraph.model import ActionKind, BuildOutputs, Visibility
from targetgraph.runtime.config_loader import (
    find_package,
    load_package,
    load_settings,
    template_contribution,
)
from targetgraph.runtime.fileset import expand_braces, expand_file_set


def test_load_settings_defaults() -> None:
    settings = load_settings(None)

    assert settings.max_workers == 4
    assert settings.declaration_file == "teapot.toml"
    assert settings.package_paths == [Path("teapot/packages")]
    assert settings.incremental is True


def test_load_settings_from_toml_file(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text(
        """
max_workers = 8
build_root = "out"

[toolchain]
cxx = "clang++"
""",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.max_workers == 8
    assert settings.build_root == Path("out")
    assert settings.toolchain.cxx == "clang++"
    assert settings.toolchain.ar == "ar"


def test_load_settings_from_inline_json() -> None:
    settings = load_settings(json.dumps({"platform": "windows", "incremental": False}))

    assert settings.platform == "windows"
    assert settings.incremental is False


def test_settings_reject_invalid_worker_count() -> None:
    with pytest.raises(ValueError):
        load_settings({"max_workers": 0})


def test_package_paths_are_deduplicated() -> None:
    settings = Settings.from_dict({"package_paths": ["a", "b", "a"]})

    assert settings.package_paths == [Path("a"), Path("b")]


def test_load_package(numerics_project: Path) -> None:
    package = load_package(numerics_project)

    assert package.name == "numerics"
    assert package.path == numerics_project
    assert package.project.title == "Numerics"
    assert package.project.authors[0].email == "ada@example.com"
    assert [t.name for t in package.targets] == ["numerics-library", "numerics-test"]

    library = package.targets[0]
    assert [dep.capability for dep in library.dependencies] == ["platform", "Build/Files"]
    assert [dep.visibility for dep in library.dependencies] == [
        Visibility.PUBLIC,
        Visibility.PRIVATE,
    ]
    assert library.package == "numerics"
    assert library.package_path == numerics_project

    headers, archive = library.actions
    assert headers.kind is ActionKind.COPY_HEADERS
    assert headers.source_root == numerics_project / "source"
    assert headers.source_files == (
        numerics_project / "source/Numerics/Matrix.h",
        numerics_project / "source/Numerics/Vector.hpp",
    )
    assert archive.source_files == (numerics_project / "source/Numerics/Vector.cpp",)

    test = package.targets[1]
    assert test.actions[0].arguments == ("--reporter", "compact")
    assert test.provisions[0].name == "Test/Numerics"

    development = package.configurations["development"]
    assert development.imports == ("numerics",)
    assert development.requires == ("platforms", "unit-test")
    assert package.configurations["numerics"].public


def test_load_package_accepts_file_path(numerics_project: Path) -> None:
    package = load_package(numerics_project / "teapot.toml")

    assert package.name == "numerics"


def test_missing_declaration(tmp_path: Path) -> None:
    with pytest.raises(DeclarationError):
        load_package(tmp_path)


@pytest.mark.parametrize(
    "document",
    [
        'required_version = "3.0"\n[project]\nname = "x"\n',
        'required_version = "banana"\n[project]\nname = "x"\n',
        '[project]\nname = "x"\n[[targets]]\nname = "t"\n[[targets.actions]]\nkind = "compile"\nname = "t"\n',
        '[project]\nname = ""\n',
        "[project\n",
        '[project]\nname = "x"\n[[targets]]\nname = "t"\n[[targets.actions]]\n'
        'kind = "copy_headers"\nname = "t"\nfiles = ["/usr/include/*.h"]\n',
        '[project]\nname = "x"\n[[targets]]\nname = "t"\n[[targets.actions]]\n'
        'kind = "copy_headers"\nname = "t"\nfiles = [""]\n',
    ],
)
def test_invalid_declaration(tmp_path: Path, document: str) -> None:
    (tmp_path / "teapot.toml").write_text(document, encoding="utf-8")

    with pytest.raises(DeclarationError):
        load_package(tmp_path)


def test_older_minor_version_is_accepted(tmp_path: Path) -> None:
    (tmp_path / "teapot.toml").write_text(
        'required_version = "2.0"\n[project]\nname = "x"\n', encoding="utf-8"
    )

    assert load_package(tmp_path).name == "x"


def test_find_package(numerics_project: Path) -> None:
    settings = Settings.default()

    path = find_package("platforms", settings, numerics_project)

    assert path == numerics_project / "teapot/packages/platforms/teapot.toml"


def test_find_package_reports_searched_paths(numerics_project: Path) -> None:
    settings = Settings.from_dict({"package_paths": ["teapot/packages", "vendor"]})

    with pytest.raises(MissingPackage) as excinfo:
        find_package("boost", settings, numerics_project)

    assert excinfo.value.name == "boost"
    assert excinfo.value.searched == [
        str(numerics_project / "teapot/packages/boost"),
        str(numerics_project / "vendor/boost"),
    ]


def test_template_contribution_formats_outputs() -> None:
    outputs = BuildOutputs(
        install_prefix=Path("/build/lib"),
        artifacts={"library": Path("/build/lib/lib/libFoo.a")},
    )
    contribution = template_contribution(
        {"linkflags": ["{library}", "-lm"], "header_search_paths": ["{include_dir}"]}
    )

    assert contribution(outputs) == {
        "linkflags": [str(Path("/build/lib/lib/libFoo.a")), "-lm"],
        "header_search_paths": [str(Path("/build/lib/include"))],
    }


def test_template_contribution_missing_output_raises_key_error() -> None:
    contribution = template_contribution({"linkflags": ["{executable}"]})

    with pytest.raises(KeyError):
        contribution(BuildOutputs(install_prefix=Path("/build/x")))


def test_expand_braces() -> None:
    assert expand_braces("*.{h,hpp}") == ["*.h", "*.hpp"]
    assert expand_braces("{a,b}/{c,d}") == ["a/c", "a/d", "b/c", "b/d"]
    assert expand_braces("plain.cpp") == ["plain.cpp"]


def test_expand_file_set_is_ordered_and_unique(tmp_path: Path) -> None:
    for name in ["b.cpp", "a.cpp", "main.cpp", "notes.txt"]:
        (tmp_path / name).write_text("", encoding="utf-8")

    files = expand_file_set(tmp_path, ["main.cpp", "*.cpp", "missing/*.h"])

    assert files == [tmp_path / "main.cpp", tmp_path / "a.cpp", tmp_path / "b.cpp"]
