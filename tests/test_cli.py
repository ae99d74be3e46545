"""Tests for targetgraph CLI entrypoints."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

import targetgraph.main as main
from targetgraph.cli import build as build_module
from targetgraph.cli.common import RESOLUTION_FAILED
from targetgraph.runtime.executor import ExecutionReport


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)


def test_split_forwarded() -> None:
    assert main.split_forwarded(["test", "suite", "--", "-v", "--", "x"]) == (
        ["test", "suite"],
        ["-v", "--", "x"],
    )
    assert main.split_forwarded(["build", "lib"]) == (["build", "lib"], [])


def test_main_dispatches_test_command_with_forwarded_arguments(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Arguments after -- reach the build command untouched."""
    captured = {}

    def fake_build_command(args) -> int:
        captured["args"] = args
        return 0

    monkeypatch.setattr(main, "build_command", fake_build_command)

    exit_code = main.main(
        ["-c", "release", "-j", "2", "test", "numerics-test", "--", "--filter", "vector"]
    )

    assert exit_code == 0
    args = captured["args"]
    assert args.command == "test"
    assert args.goals == ["numerics-test"]
    assert args.arguments == ["--filter", "vector"]
    assert args.configuration == "release"
    assert args.jobs == 2


def test_configuration_defaults_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(main.CONFIGURATION_ENV, "ci")

    args = main.build_parser().parse_args(["build", "lib"])

    assert args.configuration == "ci"


def test_main_without_command_prints_help(capsys: pytest.CaptureFixture[str]) -> None:
    assert main.main([]) == 1
    assert "usage" in capsys.readouterr().out


def test_graph_json_to_stdout(numerics_project: Path, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main.main(
        ["-f", str(numerics_project), "graph", "numerics-test", "--format", "json"]
    )

    assert exit_code == 0
    data = json.loads(capsys.readouterr().out)
    assert [node["id"] for node in sorted(data["nodes"], key=lambda n: n["order"])] == [
        "build-files",
        "platform",
        "unit-test-library",
        "numerics-library",
        "numerics-test",
    ]


def test_graph_json_to_file(numerics_project: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "graph.json"

    exit_code = main.main(
        [
            "-f",
            str(numerics_project),
            "graph",
            "Test/Numerics",
            "--format",
            "json",
            "-o",
            str(output),
        ]
    )

    assert exit_code == 0
    data = json.loads(output.read_text(encoding="utf-8"))
    assert any(node["goal"] for node in data["nodes"])


def test_graph_dot_requires_output(numerics_project: Path) -> None:
    assert main.main(["-f", str(numerics_project), "graph", "numerics-test", "--format", "dot"]) == 1


def test_graph_text(numerics_project: Path) -> None:
    assert main.main(["-f", str(numerics_project), "graph", "numerics-test", "--properties"]) == 0


def test_resolution_error_exit_status(numerics_project: Path) -> None:
    assert main.main(["-f", str(numerics_project), "build", "Library/Missing"]) == RESOLUTION_FAILED
    assert (
        main.main(["-f", str(numerics_project), "-c", "release", "build", "numerics-test"])
        == RESOLUTION_FAILED
    )


def test_build_copies_headers(tmp_path: Path) -> None:
    """A header-only target builds with the real runner and no toolchain."""
    (tmp_path / "include").mkdir()
    (tmp_path / "include" / "api.h").write_text("#pragma once\n", encoding="utf-8")
    (tmp_path / "teapot.toml").write_text(
        """
[project]
name = "api"

[[targets]]
name = "api-headers"
provides = ["Headers/API"]

[[targets.actions]]
kind = "copy_headers"
name = "API"
root = "include"
files = ["*.h"]
""",
        encoding="utf-8",
    )

    exit_code = main.main(["-f", str(tmp_path), "build", "Headers/API"])

    assert exit_code == 0
    copied = tmp_path.resolve() / ".targetgraph" / "build" / "api-headers" / "include" / "api.h"
    assert copied.is_file()


def test_configurations_command(numerics_project: Path) -> None:
    assert main.main(["-f", str(numerics_project), "configurations"]) == 0


def test_configurations_command_reports_cycles(tmp_path: Path) -> None:
    (tmp_path / "teapot.toml").write_text(
        '[project]\nname = "loop"\n[configurations.a]\nimports = ["a"]\n',
        encoding="utf-8",
    )

    assert main.main(["-f", str(tmp_path), "configurations"]) == RESOLUTION_FAILED


@pytest.mark.parametrize(
    ("command", "expected"),
    [("build", []), ("test", ["--filter", "vector"]), ("run", ["--filter", "vector"])],
)
def test_only_test_and_run_forward_arguments(
    monkeypatch: pytest.MonkeyPatch,
    numerics_project: Path,
    command: str,
    expected: list[str],
) -> None:
    """Arguments after -- are dropped for build."""
    received = {}

    class _Orchestrator:
        def __init__(self, context) -> None:
            self.context = context

        def run(self, goals, arguments=()):
            received["arguments"] = list(arguments)
            return ExecutionReport(outcomes=[])

    monkeypatch.setattr(build_module, "Orchestrator", _Orchestrator)

    exit_code = main.main(
        ["-f", str(numerics_project), command, "numerics-test", "--", "--filter", "vector"]
    )

    assert exit_code == 0
    assert received["arguments"] == expected
