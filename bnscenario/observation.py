"""
Hard and soft observations and the rules that build them.

An observation is a tagged value: ``HardObservation`` (kind ``"hard"``)
selects a single state, ``SoftObservation`` (kind ``"soft"``) spreads
normalised weights over the node's states. Both are frozen and hold only
immutable data, so a returned observation is already a detached snapshot.

The builders in this module validate raw caller input against a node's state
catalog and never produce an observation that would be rejected later. They
do not check model membership; that is the scenario's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from bnscenario.errors import (
    ArityMismatch,
    InvalidWeight,
    UnknownState,
    UnsupportedObservationType,
)
from bnscenario.network import Node


@dataclass(frozen=True)
class HardObservation:
    """
    Certainty that a node is in one state.

    Attributes:
        state: Label of the selected state.
        value: Numeric value that selected the state, for continuous nodes
            observed with a number; otherwise ``None``.
    """

    state: str
    value: Optional[float] = None
    kind: Literal["hard"] = field(default="hard", init=False)


@dataclass(frozen=True)
class SoftObservation:
    """
    Normalised weights over every declared state of a node.

    Attributes:
        weights: ``(state, weight)`` pairs in state catalog order, summing
            to 1. States the caller did not mention carry weight 0.
    """

    weights: Tuple[Tuple[str, float], ...]
    kind: Literal["soft"] = field(default="soft", init=False)

    @property
    def states(self) -> Tuple[str, ...]:
        return tuple(s for s, _ in self.weights)

    def weight(self, state: str) -> float:
        for s, w in self.weights:
            if s == state:
                return w
        raise UnknownState(f"State '{state}' is not part of this observation")

    def as_dict(self) -> Dict[str, float]:
        return {s: w for s, w in self.weights}


Observation = Union[HardObservation, SoftObservation]

OBSERVATION_KINDS: Tuple[str, ...] = ("hard", "soft")


def _is_bool(value: object) -> bool:
    return isinstance(value, (bool, np.bool_))


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float, np.integer, np.floating)) and not _is_bool(value)


def resolve_hard(node: Node, value: object) -> HardObservation:
    """
    Resolve a raw hard evidence value against a node's state catalog.

    Boolean nodes accept ``True``/``False`` or a state label. Labelled and
    ranked nodes accept a state label. Continuous nodes accept a number,
    which selects the interval containing it, or a string that is either an
    interval label or parses as a number.

    Raises:
        UnknownState: If no declared state matches.
        UnsupportedObservationType: If the value type cannot be an
            observation for this kind of node.
    """
    kind = node.kind
    if kind == "boolean":
        if _is_bool(value):
            return HardObservation(state=str(bool(value)))
        if isinstance(value, str):
            return HardObservation(state=node.get_state(value).label)
        raise UnsupportedObservationType(
            f"Boolean node '{node.id}' cannot be observed with {type(value).__name__} value {value!r}"
        )

    if kind in ("labelled", "ranked"):
        if isinstance(value, str):
            return HardObservation(state=node.get_state(value).label)
        if _is_number(value):
            for label in (f"{float(value):g}", str(value)):  # type: ignore[arg-type]
                if node.has_state(label):
                    return HardObservation(state=label)
        raise UnsupportedObservationType(
            f"Node '{node.id}' of kind {kind!r} has no state matching {value!r}"
        )

    if kind == "continuous":
        if _is_number(value):
            v = float(value)  # type: ignore[arg-type]
            return HardObservation(state=node.find_interval(v).label, value=v)
        if isinstance(value, str):
            if node.has_state(value):
                return HardObservation(state=value)
            try:
                v = float(value)
            except ValueError:
                raise UnknownState(
                    f"'{value}' is neither a state nor a number for node '{node.id}'"
                ) from None
            return HardObservation(state=node.find_interval(v).label, value=v)
        raise UnsupportedObservationType(
            f"Continuous node '{node.id}' cannot be observed with {type(value).__name__} value {value!r}"
        )

    raise UnsupportedObservationType(f"Unsupported node kind: {kind!r}")


def _soft_state_label(node: Node, state: object) -> str:
    if node.kind == "boolean" and _is_bool(state):
        return str(bool(state))
    if not isinstance(state, str):
        raise UnknownState(f"State id must be a string, got {state!r} for node '{node.id}'")
    return node.get_state(state).label


def build_soft(
    node: Node,
    states: Sequence[object],
    weights: Sequence[object],
    *,
    weight_atol: float = 0.0,
) -> SoftObservation:
    """
    Build a normalised soft observation from parallel states and weights.

    Raises:
        ArityMismatch: If the sequences differ in length.
        UnknownState: If a state is unknown or listed twice.
        InvalidWeight: If a weight is negative, not a finite number, or if
            no weight is positive.
    """
    states = list(states)
    weights = list(weights)
    if len(states) != len(weights):
        raise ArityMismatch(
            f"Got {len(states)} states but {len(weights)} weights for node '{node.id}'"
        )

    labels = [_soft_state_label(node, s) for s in states]
    if len(set(labels)) != len(labels):
        raise UnknownState(f"Duplicate states in soft observation for node '{node.id}'")

    if any(_is_bool(w) for w in weights):
        raise InvalidWeight(f"Weights for node '{node.id}' must be numbers")
    try:
        w = np.asarray(weights, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidWeight(f"Weights for node '{node.id}' must be numbers") from exc
    if w.ndim != 1 or w.size != len(labels):
        raise InvalidWeight(f"Weights for node '{node.id}' must be a flat sequence")
    if not np.all(np.isfinite(w)):
        raise InvalidWeight(f"Weights for node '{node.id}' must be finite")
    if np.any(w < 0.0):
        raise InvalidWeight(f"Weights for node '{node.id}' must be non-negative")
    if not np.any(w > float(weight_atol)):
        raise InvalidWeight(f"At least one weight for node '{node.id}' must be positive")

    # Scale by the largest weight first so the sum cannot overflow.
    w = w / float(np.max(w))
    w = w / float(np.sum(w))
    given = dict(zip(labels, (float(x) for x in w)))
    return SoftObservation(
        weights=tuple((label, given.get(label, 0.0)) for label in node.state_labels)
    )


def soft_from_mapping(
    node: Node,
    weights: Mapping[object, object],
    *,
    weight_atol: float = 0.0,
) -> SoftObservation:
    """
    Build a normalised soft observation from a state to weight mapping.

    Only states with some weight need to be present; the rest get weight 0.
    """
    items = list(weights.items())
    return build_soft(
        node,
        [s for s, _ in items],
        [w for _, w in items],
        weight_atol=weight_atol,
    )
