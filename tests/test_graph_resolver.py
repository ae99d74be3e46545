"""Tests for target graph resolution."""

from typing import Iterable, Union

import pytest

from targetgraph.errors import (
    AmbiguousCapability,
    CyclicDependency,
    DuplicateTargetName,
    UnresolvedCapability,
)
from targetgraph.graph.resolver import GraphResolver
from targetgraph.model import (
    DeclarationSet,
    DependencyEdge,
    Provision,
    Target,
    Visibility,
    build_declarations,
)


def _target(
    name: str,
    depends: Iterable[Union[str, DependencyEdge]] = (),
    provides: Iterable[Union[str, Provision]] = (),
) -> Target:
    return Target(
        name=name,
        dependencies=tuple(
            DependencyEdge(dep) if isinstance(dep, str) else dep for dep in depends
        ),
        provisions=tuple(
            Provision(item) if isinstance(item, str) else item for item in provides
        ),
    )


def _scenario() -> DeclarationSet:
    return build_declarations(
        [
            _target("platform", provides=["platform"]),
            _target("lib", depends=["platform"], provides=["Library/Foo"]),
            _target("unit-test", provides=["Library/UnitTest"]),
            _target("test", depends=["Library/Foo", "Library/UnitTest"], provides=["Test/Foo"]),
            _target("exe", depends=["Library/Foo"], provides=["Executable/Foo"]),
        ]
    )


def _assert_dependencies_first(resolved) -> None:
    position = {name: index for index, name in enumerate(resolved.names)}
    for name in resolved.names:
        for dependency in resolved.dependencies(name):
            assert position[dependency] < position[name]


def test_goal_restricts_order_to_reachable_targets() -> None:
    """Requesting lib's consumer excludes the unrelated executable."""
    targets = build_declarations(
        [
            _target("platform", provides=["platform"]),
            _target("lib", depends=["platform"], provides=["Library/Foo"]),
            _target("test", depends=["Library/Foo"]),
            _target("exe", depends=["Library/Foo"]),
        ]
    )

    resolved = GraphResolver(targets).resolve(["test"])

    assert resolved.names == ["platform", "lib", "test"]
    assert resolved.goals == ("test",)


def test_scenario_order_with_unit_test_library() -> None:
    resolved = GraphResolver(_scenario()).resolve(["test"])

    assert resolved.names == ["platform", "lib", "unit-test", "test"]
    assert "exe" not in resolved.names
    _assert_dependencies_first(resolved)


def test_unrelated_targets_keep_declaration_order() -> None:
    """Siblings with no relation are ordered by declaration, not by name."""
    targets = build_declarations(
        [
            _target("zeta", provides=["Z"]),
            _target("alpha", provides=["A"]),
            _target("top", depends=["A", "Z"]),
        ]
    )

    resolved = GraphResolver(targets).resolve(["top"])

    assert resolved.names == ["zeta", "alpha", "top"]


def test_goal_may_name_a_capability() -> None:
    resolved = GraphResolver(_scenario()).resolve(["Executable/Foo"])

    assert resolved.names == ["platform", "lib", "exe"]
    assert resolved.goals == ("exe",)


def test_multiple_goals_share_dependencies() -> None:
    resolved = GraphResolver(_scenario()).resolve(["exe", "test", "exe"])

    assert resolved.goals == ("exe", "test")
    assert resolved.names == ["platform", "lib", "unit-test", "test", "exe"]
    _assert_dependencies_first(resolved)


def test_resolution_is_deterministic() -> None:
    first = GraphResolver(_scenario()).resolve(["test", "exe"])
    second = GraphResolver(_scenario()).resolve(["test", "exe"])

    assert first.names == second.names
    assert list(first.edges) == list(second.edges)


def test_unresolved_capability() -> None:
    targets = build_declarations([_target("app", depends=["Library/Missing"])])

    with pytest.raises(UnresolvedCapability) as excinfo:
        GraphResolver(targets).resolve(["app"])

    assert excinfo.value.capability == "Library/Missing"
    assert excinfo.value.required_by == "app"


def test_unknown_goal_is_unresolved() -> None:
    with pytest.raises(UnresolvedCapability):
        GraphResolver(_scenario()).resolve(["nothing"])


def test_ambiguous_capability() -> None:
    """Two providers of Library/Foo make a dependency on it ambiguous."""
    targets = build_declarations(
        [
            _target("foo-a", provides=["Library/Foo"]),
            _target("foo-b", provides=["Library/Foo"]),
            _target("app", depends=["Library/Foo"]),
        ]
    )

    with pytest.raises(AmbiguousCapability) as excinfo:
        GraphResolver(targets).resolve(["app"])

    assert excinfo.value.providers == ["foo-a", "foo-b"]


@pytest.mark.parametrize("visibility", [Visibility.PUBLIC, Visibility.PRIVATE])
def test_cycle_is_rejected_regardless_of_visibility(visibility: Visibility) -> None:
    targets = build_declarations(
        [
            _target("a", depends=[DependencyEdge("B", visibility)], provides=["A"]),
            _target("b", depends=[DependencyEdge("C", visibility)], provides=["B"]),
            _target("c", depends=[DependencyEdge("A", visibility)], provides=["C"]),
        ]
    )

    with pytest.raises(CyclicDependency) as excinfo:
        GraphResolver(targets).resolve(["a"])

    cycle = excinfo.value.cycle
    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"a", "b", "c"}


def test_cycle_outside_goals_is_still_rejected() -> None:
    """Cycles are never silently truncated by goal reachability."""
    targets = build_declarations(
        [
            _target("app"),
            _target("x", depends=["Y"], provides=["X"]),
            _target("y", depends=["X"], provides=["Y"]),
        ]
    )

    with pytest.raises(CyclicDependency):
        GraphResolver(targets).resolve(["app"])


def test_self_dependency_is_a_cycle() -> None:
    targets = build_declarations([_target("a", depends=["A"], provides=["A"])])

    with pytest.raises(CyclicDependency):
        GraphResolver(targets).resolve(["a"])


def test_alias_forwards_to_concrete_capability() -> None:
    targets = build_declarations(
        [
            _target("linux", provides=["Platform/linux"]),
            _target("aliases", provides=[Provision("platform", alias_of="Platform/linux")]),
            _target("app", depends=["platform"]),
        ]
    )

    resolved = GraphResolver(targets).resolve(["app"])

    assert resolved.names == ["linux", "app"]
    (edge,) = resolved.edges["app"]
    assert edge.provider.name == "linux"
    assert edge.provision.name == "Platform/linux"


def test_platform_specific_edges() -> None:
    """Edges for another platform are ignored."""
    targets = build_declarations(
        [
            _target("win32", provides=["Library/Win32"]),
            _target(
                "app",
                depends=[DependencyEdge("Library/Win32", platform="windows")],
            ),
        ]
    )

    assert GraphResolver(targets, platform="linux").resolve(["app"]).names == ["app"]
    assert GraphResolver(targets, platform="windows").resolve(["app"]).names == [
        "win32",
        "app",
    ]


def test_duplicate_target_names() -> None:
    with pytest.raises(DuplicateTargetName) as excinfo:
        build_declarations([_target("lib"), _target("lib")])

    assert excinfo.value.name == "lib"


def test_dependents_are_reported_in_order() -> None:
    resolved = GraphResolver(_scenario()).resolve(["test", "exe"])

    assert resolved.dependents("lib") == ["test", "exe"]
    assert resolved.dependencies("test") == ["lib", "unit-test"]
