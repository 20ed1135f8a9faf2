"""
Evidence scenarios.

A Scenario is a named, independent set of observations applied to the nodes
of a model's networks, together with the marginals the inference engine
produced for that evidence. Scenarios are created by ``Model.create_scenario``
and stay bound to that model.

Every mutation validates its whole input before touching any state, so a
failed call leaves the scenario exactly as it was. Any change to the
observations clears all cached marginals of the scenario: the effect of
evidence propagates through the network, and only the inference engine knows
how far.

Scenarios are not internally thread-safe beyond identifier renames, which go
through the model's registry lock. Callers must serialise writes to a single
scenario.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from bnscenario.dataset import DataSet
from bnscenario.errors import CrossModelReference, NoMarginals, ScenarioError
from bnscenario.exchange import (
    DistributionLike,
    evidence_to_json,
    marginals_to_json,
    parse_evidence,
    parse_marginals,
    validate_distribution,
)
from bnscenario.network import Node
from bnscenario.observation import (
    Observation,
    build_soft,
    resolve_hard,
    soft_from_mapping,
)

if TYPE_CHECKING:
    from bnscenario.model import Model


class Scenario:
    """
    Observations and cached marginals for one what-if case.

    Attributes:
        _model: Owning model, fixed at creation.
        _observations: Node to observation mapping, at most one per node.
        _marginals: Node to cached marginals mapping.
        _generation: Counter bumped on every observation change.
    """

    def __init__(self, model: "Model", scenario_id: str) -> None:
        self._model = model
        self._id = scenario_id
        self._observations: Dict[Node, Observation] = {}
        self._marginals: Dict[Node, DataSet] = {}
        self._generation = 0
        self._removed = False

    @classmethod
    def create(cls, model: "Model", scenario_id: str) -> "Scenario":
        """
        Create a scenario and register its id in the model's registry.

        Raises:
            IdentifierConflict: If the id is already taken in the model.
        """
        scenario = cls(model, scenario_id)
        model.registry.register(scenario_id, scenario)
        return scenario

    @property
    def model(self) -> "Model":
        return self._model

    @property
    def id(self) -> str:
        return self._id

    @id.setter
    def id(self, new_id: str) -> None:
        self.set_id(new_id)

    def _assign_id(self, new_id: str) -> None:
        self._id = new_id

    def set_id(self, new_id: str) -> None:
        """
        Rename the scenario.

        Raises:
            IdentifierConflict: If ``new_id`` is taken by another entity in
                the model. The old id stays in place.
        """
        self._ensure_active()
        if new_id == self._id:
            warnings.warn(
                f"Scenario already has id '{new_id}'; nothing to rename.",
                UserWarning,
                stacklevel=2,
            )
            return
        self._model.change_contained_id(self, new_id)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_removed(self) -> bool:
        return self._removed

    def _mark_removed(self) -> None:
        self._removed = True

    def _ensure_active(self) -> None:
        if self._removed:
            raise ScenarioError(f"Scenario '{self._id}' has been removed from its model")

    def _check_node(self, node: Node) -> None:
        if not isinstance(node, Node):
            raise TypeError(f"Expected a Node, got {type(node).__name__}")
        if node.model is not self._model:
            raise CrossModelReference(
                f"Node '{node.id}' of network '{node.network.id}' does not belong "
                f"to the model of scenario '{self._id}'"
            )

    def _invalidate(self) -> None:
        self._generation += 1
        self._marginals.clear()

    # Observations

    def set_observation_hard(self, node: Node, value: Any) -> None:
        """
        Set a hard observation for a node, replacing any existing one.

        Args:
            node: Node to observe.
            value: State label, ``True``/``False`` for boolean nodes, or a
                number for continuous nodes.

        Raises:
            CrossModelReference: If the node belongs to another model.
            UnknownState: If no state of the node matches the value.
            UnsupportedObservationType: If the value type does not suit the
                node kind.
        """
        self._ensure_active()
        self._check_node(node)
        observation = resolve_hard(node, value)
        self._observations[node] = observation
        self._invalidate()

    def set_observation_soft(
        self,
        node: Node,
        states: Union[Sequence[Any], Mapping[Any, Any]],
        weights: Optional[Sequence[Any]] = None,
    ) -> None:
        """
        Set a soft observation for a node, replacing any existing one.

        Weights are normalised to sum to 1 and states not given get weight 0.
        Accepts either parallel ``states`` and ``weights`` sequences or a
        single state to weight mapping.

        Raises:
            CrossModelReference: If the node belongs to another model.
            ArityMismatch: If states and weights differ in length.
            UnknownState: If a state does not exist.
            InvalidWeight: If a weight is negative or all are zero.
        """
        self._ensure_active()
        self._check_node(node)
        atol = self._model.settings.weight_atol
        if weights is None:
            if not isinstance(states, Mapping):
                raise TypeError("weights are required unless states is a mapping")
            observation = soft_from_mapping(node, states, weight_atol=atol)
        else:
            if isinstance(states, Mapping):
                raise TypeError("weights must not be given together with a mapping")
            observation = build_soft(node, states, weights, weight_atol=atol)
        self._observations[node] = observation
        self._invalidate()

    def set_observations(self, observations: Any) -> None:
        """
        Replace all observations with the ones described by evidence JSON.

        The batch is applied all-or-nothing: if any entry fails, the scenario
        keeps its previous observations and marginals.

        Raises:
            MalformedEvidence: If an entry is malformed or names an unknown
                node.
            UnknownState, InvalidWeight, UnsupportedObservationType: As for
                the single-node calls.
        """
        self._ensure_active()
        parsed = parse_evidence(
            self._model, observations, weight_atol=self._model.settings.weight_atol
        )
        self._observations = dict(parsed)
        self._invalidate()

    def clear_observation(self, node: Node) -> None:
        """
        Remove a node's observation if it has one.
        """
        self._ensure_active()
        self._check_node(node)
        self._observations.pop(node, None)
        self._invalidate()

    def clear_observations(self) -> None:
        self._ensure_active()
        self._observations.clear()
        self._invalidate()

    def has_observation(self, node: Node) -> bool:
        self._check_node(node)
        return node in self._observations

    def get_observation(self, node: Node) -> Optional[Observation]:
        """
        Return the node's observation or ``None``.

        Observations are frozen, so the returned value cannot be used to
        change the scenario; use the ``set_observation_*`` methods.
        """
        self._check_node(node)
        return self._observations.get(node)

    @property
    def observations(self) -> Dict[Node, Observation]:
        return dict(self._observations)

    def get_observations_json(self) -> List[Dict[str, Any]]:
        return evidence_to_json(self._observations)

    # Marginals

    def get_marginals(self, node: Optional[Node] = None) -> Union[DataSet, List[DataSet]]:
        """
        Return cached marginals.

        With a node, returns that node's DataSet. Without one, returns every
        DataSet currently cached in this scenario (possibly an empty list).

        Raises:
            CrossModelReference: If the node belongs to another model.
            NoMarginals: If the node's marginals were never stored or have
                been invalidated by an observation change.
        """
        if node is None:
            return [ds for ds in self._marginals.values() if not ds.is_stale]
        self._check_node(node)
        ds = self._marginals.get(node)
        if ds is None or ds.is_stale:
            raise NoMarginals(
                f"No marginals for node '{node.id}' of network '{node.network.id}' "
                f"in scenario '{self._id}'"
            )
        return ds

    def has_marginals(self, node: Node) -> bool:
        self._check_node(node)
        ds = self._marginals.get(node)
        return ds is not None and not ds.is_stale

    def set_marginals(self, node: Node, values: DistributionLike) -> DataSet:
        """
        Store a single node's marginals, as written back by inference.

        Raises:
            CrossModelReference: If the node belongs to another model.
            MalformedMarginals: If the distribution is invalid.
        """
        self._ensure_active()
        self._check_node(node)
        pairs = validate_distribution(
            node, values, settings=self._model.settings, stacklevel=3
        )
        ds = DataSet(node=node, scenario=self, values=pairs, generation=self._generation)
        self._marginals[node] = ds
        return ds

    def load_marginals(self, data: Any) -> None:
        """
        Rebuild the marginals cache from marginals JSON.

        The previous cache is replaced entirely. Nothing changes if any
        distribution fails validation.

        Raises:
            MalformedMarginals: If a node is unknown or a distribution is
                invalid.
        """
        self._ensure_active()
        parsed = parse_marginals(
            self._model, data, settings=self._model.settings, stacklevel=3
        )
        self._replace_marginals(parsed)

    def _replace_marginals(
        self, parsed: Sequence[Tuple[Node, Tuple[Tuple[str, float], ...]]]
    ) -> None:
        self._marginals = {
            node: DataSet(node=node, scenario=self, values=pairs, generation=self._generation)
            for node, pairs in parsed
        }

    def get_marginals_json(self) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
        return marginals_to_json(self.get_marginals())  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return (
            f"Scenario({self._id!r}, observations={len(self._observations)}, "
            f"marginals={len(self._marginals)})"
        )
