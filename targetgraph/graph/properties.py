"""Property propagation along a resolved graph.

For every target the propagator computes an effective property set (what
the target is built with) and an interface (what flows on to dependents
that depend on it publicly). Walking targets in resolved order, each
dependency edge to provider P through capability C contributes:

* public edge: P's interface, then C's contribution;
* private edge: C's contribution only.

The target's own declared properties are appended last. Only public edges
extend a target's interface, so public propagation is transitive and
private propagation stops at the declaring target. Values are ordered lists;
duplicates are kept since flag order can matter.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from targetgraph.errors import PropertyContributionError
from targetgraph.graph.resolver import ResolvedEdge, ResolvedGraph
from targetgraph.model import BuildOutputs, PropertyMap, Target

logger = logging.getLogger("targetgraph.graph.properties")

OutputsFor = Callable[[Target], BuildOutputs]


@dataclass
class EffectivePropertySet:
    """Ordered key -> list-of-values bag."""

    values: Dict[str, List[str]] = field(default_factory=dict)

    def extend(self, contributions: Mapping[str, Iterable[str]]) -> None:
        for key, items in contributions.items():
            self.values.setdefault(key, []).extend(items)

    def merge(self, other: "EffectivePropertySet") -> None:
        self.extend(other.values)

    def get(self, key: str) -> List[str]:
        return list(self.values.get(key, []))

    def as_dict(self) -> PropertyMap:
        return {key: list(items) for key, items in self.values.items()}

    def __contains__(self, key: object) -> bool:
        return key in self.values


class PropertyPropagator:
    """Compute effective property sets for a resolved graph.

    Args:
        resolved: Graph snapshot from ``GraphResolver.resolve``.
        outputs_for: Maps a target to its realized build outputs, passed to
            contribution callables.
    """

    def __init__(self, resolved: ResolvedGraph, outputs_for: OutputsFor) -> None:
        self.resolved = resolved
        self.outputs_for = outputs_for
        self._interfaces: Dict[str, EffectivePropertySet] = {}

    def _contribution(self, resolved: ResolvedEdge) -> PropertyMap:
        provider = resolved.provider
        capability = resolved.provision.name
        try:
            raw = resolved.provision.contribution(self.outputs_for(provider))
            return {str(key): [str(item) for item in items] for key, items in raw.items()}
        except KeyError as e:
            raise PropertyContributionError(
                provider.name, capability, f"unknown output {e}"
            ) from e
        except (AttributeError, TypeError, ValueError, IndexError) as e:
            raise PropertyContributionError(provider.name, capability, str(e)) from e

    def _interface(self, name: str) -> EffectivePropertySet:
        interface = self._interfaces.get(name)
        if interface is None:
            # Providers precede dependents in resolved order.
            raise PropertyContributionError(
                name, "*", "provider properties requested before they were computed"
            )
        return interface

    def propagate(self) -> Dict[str, EffectivePropertySet]:
        """Compute effective property sets, keyed by target name.

        Raises:
            PropertyContributionError: If a contribution cannot be evaluated.
        """
        effective: Dict[str, EffectivePropertySet] = {}
        self._interfaces = {}

        for target in self.resolved.order:
            properties = EffectivePropertySet()
            interface = EffectivePropertySet()

            for resolved in self.resolved.edges.get(target.name, ()):
                contribution = self._contribution(resolved)
                if resolved.is_public:
                    upstream = self._interface(resolved.provider.name)
                    properties.merge(upstream)
                    interface.merge(upstream)
                    interface.extend(contribution)
                properties.extend(contribution)

            properties.extend(target.declared_properties())

            effective[target.name] = properties
            self._interfaces[target.name] = interface
            logger.debug("Effective properties for %s: %s", target.name, properties.values)

        return effective

    def interface(self, name: str) -> Optional[EffectivePropertySet]:
        """Interface computed for a target by the last ``propagate`` call."""
        return self._interfaces.get(name)


def propagate(
    resolved: ResolvedGraph, outputs_for: OutputsFor
) -> Dict[str, EffectivePropertySet]:
    return PropertyPropagator(resolved, outputs_for).propagate()
