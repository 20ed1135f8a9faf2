"""
Interface to an external inference engine.

The engine itself (belief propagation, junction trees, sampling, ...) lives
outside this package. ``run_inference`` hands it a snapshot of a scenario's
observations and writes the distributions it returns back into the
scenario's marginals cache.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Protocol, Tuple

import numpy as np

from bnscenario.errors import MalformedMarginals, ScenarioError
from bnscenario.exchange import validate_distribution
from bnscenario.network import Node
from bnscenario.observation import Observation

if TYPE_CHECKING:
    from bnscenario.model import Model
    from bnscenario.scenario import Scenario


class InferenceEngine(Protocol):
    """
    Computes marginals for a model under a set of observations.

    ``compute`` returns, per node, either a state to probability mapping, a
    sequence of ``(state, probability)`` pairs, or a 1D array aligned with
    the node's declared states.
    """

    def compute(self, model: "Model", observations: Mapping[Node, Observation]) -> Mapping[Node, Any]: ...


def run_inference(scenario: "Scenario", engine: InferenceEngine) -> None:
    """
    Run an engine on a scenario's evidence and store the resulting marginals.

    The result is validated as a whole before anything is stored; the
    scenario's previous marginals are replaced.

    Raises:
        CrossModelReference: If the engine returns a node from another model.
        MalformedMarginals: If a returned distribution is invalid.
        ScenarioError: If the scenario's observations changed while the
            engine was running.
    """
    scenario._ensure_active()
    generation = scenario.generation
    result = engine.compute(scenario.model, scenario.observations)
    if scenario.generation != generation:
        raise ScenarioError(
            f"Observations of scenario '{scenario.id}' changed during inference"
        )

    settings = scenario.model.settings
    parsed: List[Tuple[Node, Tuple[Tuple[str, float], ...]]] = []
    for node, values in result.items():
        scenario._check_node(node)
        if isinstance(values, np.ndarray):
            values = _aligned_pairs(node, values)
        parsed.append((node, validate_distribution(node, values, settings=settings, stacklevel=3)))
    scenario._replace_marginals(parsed)


def _aligned_pairs(node: Node, values: np.ndarray) -> Dict[str, float]:
    if values.ndim != 1 or values.shape[0] != len(node.states):
        raise MalformedMarginals(
            f"Marginals array for node '{node.id}' must have one entry per state "
            f"({len(node.states)}), got shape {values.shape}"
        )
    return {label: float(p) for label, p in zip(node.state_labels, values)}
