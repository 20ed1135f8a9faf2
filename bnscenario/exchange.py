"""
Evidence and marginals exchange formats.

Evidence JSON is an array of observation objects::

    [
        {"network": "net", "node": "Rain", "type": "hard", "value": "True"},
        {"network": "net", "node": "Temp", "type": "hard", "value": 12.5},
        {"network": "net", "node": "Wind", "type": "soft",
         "value": [{"state": "Low", "weight": 3}, {"state": "High", "weight": 1}]}
    ]

Marginals JSON is an object keyed by network id and then node id::

    {"net": {"Rain": [{"state": "False", "probability": 0.8},
                      {"state": "True", "probability": 0.2}]}}

Both formats are additive-only: unknown extra fields are ignored. Parsing
validates the whole payload and returns plain ``(node, value)`` lists, so
callers can apply the result all-or-nothing.
"""

from __future__ import annotations

import json
import warnings
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Sequence, Tuple, Union

import numpy as np

from bnscenario.config import DEFAULT_SETTINGS, ScenarioSettings
from bnscenario.errors import MalformedEvidence, MalformedMarginals, ScenarioError
from bnscenario.network import Node
from bnscenario.observation import (
    Observation,
    build_soft,
    resolve_hard,
)

if TYPE_CHECKING:
    from bnscenario.dataset import DataSet
    from bnscenario.model import Model
    from bnscenario.scenario import Scenario


EVIDENCE_FIELDS: Tuple[str, ...] = ("network", "node", "type", "value")

DistributionLike = Union[
    Mapping[str, float],
    Sequence[Tuple[str, float]],
    Sequence[Mapping[str, Any]],
]


def _is_array(data: object) -> bool:
    return isinstance(data, (list, tuple))


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(
        value, (bool, np.bool_)
    )


def parse_evidence(
    model: "Model",
    data: Any,
    *,
    weight_atol: float = 0.0,
) -> List[Tuple[Node, Observation]]:
    """
    Validate evidence JSON against a model.

    Args:
        model: Model whose networks the entries refer to.
        data: Decoded evidence JSON (a list of objects).
        weight_atol: Passed to soft evidence validation.

    Returns:
        List of ``(node, observation)`` pairs in payload order.

    Raises:
        MalformedEvidence: If the payload or an entry is malformed, names
            an unknown network or node, or lists a node twice.
        UnknownState, InvalidWeight, ArityMismatch,
        UnsupportedObservationType: If an entry's value is invalid for its
            node.
    """
    if not _is_array(data):
        raise MalformedEvidence(
            f"Evidence must be a JSON array, got {type(data).__name__}"
        )

    out: List[Tuple[Node, Observation]] = []
    seen: set = set()
    for pos, entry in enumerate(data):
        if not isinstance(entry, Mapping):
            raise MalformedEvidence(f"Evidence entry {pos} must be an object")
        missing = [k for k in EVIDENCE_FIELDS if k not in entry]
        if missing:
            raise MalformedEvidence(f"Evidence entry {pos} is missing fields: {missing!r}")

        network_id = entry["network"]
        node_id = entry["node"]
        if not isinstance(network_id, str) or not isinstance(node_id, str):
            raise MalformedEvidence(f"Evidence entry {pos} must reference network and node by string id")
        try:
            node = model.resolve_node(network_id, node_id)
        except ValueError as exc:
            raise MalformedEvidence(f"Evidence entry {pos}: {exc}") from exc
        if node in seen:
            raise MalformedEvidence(
                f"Evidence entry {pos} repeats node '{node_id}' of network '{network_id}'"
            )
        seen.add(node)

        kind = entry["type"]
        value = entry["value"]
        try:
            if kind == "hard":
                observation: Observation = resolve_hard(node, value)
            elif kind == "soft":
                states, weights = _soft_pairs(pos, value)
                observation = build_soft(node, states, weights, weight_atol=weight_atol)
            else:
                raise MalformedEvidence(
                    f"Evidence entry {pos} has unknown type {kind!r}; expected 'hard' or 'soft'"
                )
        except MalformedEvidence:
            raise
        except ScenarioError as exc:
            raise type(exc)(f"Evidence entry {pos}: {exc}") from exc
        out.append((node, observation))

    return out


def _soft_pairs(pos: int, value: Any) -> Tuple[List[Any], List[Any]]:
    if not _is_array(value):
        raise MalformedEvidence(f"Soft evidence entry {pos} must give a list of state weights")
    states: List[Any] = []
    weights: List[Any] = []
    for item in value:
        if not isinstance(item, Mapping) or "state" not in item or "weight" not in item:
            raise MalformedEvidence(
                f"Soft evidence entry {pos} items must be objects with 'state' and 'weight'"
            )
        states.append(item["state"])
        weights.append(item["weight"])
    return states, weights


def evidence_to_json(observations: Mapping[Node, Observation]) -> List[Dict[str, Any]]:
    """
    Export observations as evidence JSON.

    Hard observations on continuous nodes made with a number keep the number;
    all others export the state label. Soft observations export every state,
    including those with weight 0.
    """
    out: List[Dict[str, Any]] = []
    for node, obs in observations.items():
        network_id, node_id = node.reference
        if obs.kind == "hard":
            value: Any = obs.value if obs.value is not None else obs.state
        elif obs.kind == "soft":
            value = [{"state": s, "weight": float(w)} for s, w in obs.weights]
        else:
            raise ScenarioError(f"Unknown observation kind: {obs.kind!r}")
        out.append({"network": network_id, "node": node_id, "type": obs.kind, "value": value})
    return out


def _distribution_pairs(node: Node, values: Any) -> List[Tuple[Any, Any]]:
    if isinstance(values, Mapping):
        return list(values.items())
    if not _is_array(values):
        raise MalformedMarginals(
            f"Marginals for node '{node.id}' must be a list of state probabilities"
        )
    pairs: List[Tuple[Any, Any]] = []
    for item in values:
        if isinstance(item, Mapping):
            if "state" not in item or "probability" not in item:
                raise MalformedMarginals(
                    f"Marginals items for node '{node.id}' need 'state' and 'probability'"
                )
            pairs.append((item["state"], item["probability"]))
        elif _is_array(item) and len(item) == 2:
            pairs.append((item[0], item[1]))
        else:
            raise MalformedMarginals(f"Invalid marginals item for node '{node.id}': {item!r}")
    return pairs


def validate_distribution(
    node: Node,
    values: Any,
    *,
    settings: ScenarioSettings = DEFAULT_SETTINGS,
    stacklevel: int = 2,
) -> Tuple[Tuple[str, float], ...]:
    """
    Validate a marginal distribution for a node.

    Accepts a state to probability mapping, a list of ``(state, p)`` pairs,
    or a list of ``{"state", "probability"}`` objects. The order given is
    kept. ``stacklevel`` is passed to the partial-distribution warning.

    Raises:
        MalformedMarginals: If a state is unknown or repeated, a probability
            is not a finite non-negative number, or the probabilities do not
            sum to 1 within ``settings.marginals_tol``.
    """
    pairs = _distribution_pairs(node, values)
    if not pairs:
        raise MalformedMarginals(f"Marginals for node '{node.id}' are empty")

    states: List[str] = []
    for state, _ in pairs:
        if not isinstance(state, str) or not node.has_state(state):
            raise MalformedMarginals(f"State {state!r} does not exist in node '{node.id}'")
        states.append(state)
    if len(set(states)) != len(states):
        raise MalformedMarginals(f"Marginals for node '{node.id}' repeat a state")

    if not all(_is_number(p) for _, p in pairs):
        raise MalformedMarginals(f"Marginals for node '{node.id}' must be numbers")
    p = np.asarray([p for _, p in pairs], dtype=float)
    if not np.all(np.isfinite(p)) or np.any(p < 0.0):
        raise MalformedMarginals(
            f"Marginals for node '{node.id}' must be finite and non-negative"
        )
    total = float(np.sum(p))
    if abs(total - 1.0) > float(settings.marginals_tol):
        raise MalformedMarginals(
            f"Marginals for node '{node.id}' must sum to 1 (got {total})"
        )

    if settings.warn_on_partial_marginals and len(states) < len(node.states):
        given = set(states)
        omitted = [s for s in node.state_labels if s not in given]
        warnings.warn(
            f"Marginals for node '{node.id}' omit states {omitted!r}; "
            "they are treated as having probability 0.",
            UserWarning,
            stacklevel=stacklevel,
        )

    return tuple((s, float(v)) for s, v in zip(states, p))


def parse_marginals(
    model: "Model",
    data: Any,
    *,
    settings: ScenarioSettings = DEFAULT_SETTINGS,
    stacklevel: int = 2,
) -> List[Tuple[Node, Tuple[Tuple[str, float], ...]]]:
    """
    Validate marginals JSON against a model.

    Returns:
        List of ``(node, pairs)`` in payload order.

    Raises:
        MalformedMarginals: If the payload is not a nested object, names an
            unknown network or node, or holds an invalid distribution.
    """
    if not isinstance(data, Mapping):
        raise MalformedMarginals(
            f"Marginals must be a JSON object keyed by network id, got {type(data).__name__}"
        )

    out: List[Tuple[Node, Tuple[Tuple[str, float], ...]]] = []
    for network_id, by_node in data.items():
        if not isinstance(by_node, Mapping):
            raise MalformedMarginals(f"Marginals for network {network_id!r} must be an object keyed by node id")
        for node_id, values in by_node.items():
            try:
                node = model.resolve_node(network_id, node_id)
            except ValueError as exc:
                raise MalformedMarginals(f"Unknown node in marginals: {exc}") from exc
            pairs = validate_distribution(
                node, values, settings=settings, stacklevel=stacklevel + 1
            )
            out.append((node, pairs))
    return out


def marginals_to_json(datasets: Iterable["DataSet"]) -> Dict[str, Dict[str, List[Dict[str, Any]]]]:
    out: Dict[str, Dict[str, List[Dict[str, Any]]]] = {}
    for ds in datasets:
        out.setdefault(ds.network_id, {})[ds.node_id] = [
            {"state": s, "probability": float(p)} for s, p in ds.values
        ]
    return out


def _read_json(path: str, error: type) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"JSON file not found: {path}")
    except json.JSONDecodeError as e:
        raise error(f"Invalid JSON format: {e}") from e


def load_evidence(path: str) -> List[Dict[str, Any]]:
    """
    Load evidence JSON from a file.

    The result can be passed to ``Scenario.set_observations``.

    Raises:
        FileNotFoundError: If the file is not found.
        MalformedEvidence: If the file is not valid JSON or not an array.
    """
    data = _read_json(path, MalformedEvidence)
    if not _is_array(data):
        raise MalformedEvidence(f"Evidence file must hold a JSON array: {path}")
    return data


def save_evidence(scenario: "Scenario", path: str) -> None:
    """
    Save a scenario's observations as evidence JSON.
    """
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scenario.get_observations_json(), f, indent=2, ensure_ascii=False)


def load_marginals_file(path: str) -> Dict[str, Any]:
    """
    Load marginals JSON from a file.

    Raises:
        FileNotFoundError: If the file is not found.
        MalformedMarginals: If the file is not valid JSON or not an object.
    """
    data = _read_json(path, MalformedMarginals)
    if not isinstance(data, dict):
        raise MalformedMarginals(f"Marginals file must hold a JSON object: {path}")
    return data


def save_marginals(scenario: "Scenario", path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scenario.get_marginals_json(), f, indent=2, ensure_ascii=False)
