"""
Cached marginals.

A DataSet is the distribution the inference engine produced for one node
under one scenario's evidence, tagged with the observation generation it
was computed for.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Tuple

import numpy as np

from bnscenario.errors import UnknownState
from bnscenario.network import Node

if TYPE_CHECKING:
    from bnscenario.scenario import Scenario


@dataclass(frozen=True)
class DataSet:
    """
    Snapshot of a node's marginal distribution under a scenario's evidence.

    ``generation`` is the scenario's observation generation at the time the
    distribution was stored. Any later observation change makes the snapshot
    stale; the scenario drops stale snapshots from its cache.
    """

    node: Node
    scenario: "Scenario"
    values: Tuple[Tuple[str, float], ...]
    generation: int

    @property
    def network_id(self) -> str:
        return self.node.network.id

    @property
    def node_id(self) -> str:
        return self.node.id

    @property
    def scenario_id(self) -> str:
        return self.scenario.id

    @property
    def is_stale(self) -> bool:
        return self.generation != self.scenario.generation

    @property
    def states(self) -> Tuple[str, ...]:
        return tuple(s for s, _ in self.values)

    @property
    def probabilities(self) -> np.ndarray:
        return np.asarray([p for _, p in self.values], dtype=float)

    def probability(self, state: str) -> float:
        for s, p in self.values:
            if s == state:
                return p
        raise UnknownState(f"State '{state}' is not part of the marginals of node '{self.node.id}'")

    def as_dict(self) -> Dict[str, float]:
        return {s: p for s, p in self.values}

    def __repr__(self) -> str:
        return (
            f"DataSet(node={self.node_id!r}, scenario={self.scenario_id!r}, "
            f"values={self.as_dict()!r})"
        )
