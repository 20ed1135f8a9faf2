"""
Network, node and state catalog definitions.

These classes carry just enough of a Bayesian network definition for
evidence handling: which network and model a node belongs to, its kind and
its ordered states. Conditional probability tables and graph structure are
the inference engine's concern and are not represented here.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, List, Literal, Optional, Sequence, Tuple

import numpy as np

from bnscenario.errors import UnknownState

if TYPE_CHECKING:
    from bnscenario.model import Model


NodeKind = Literal["boolean", "labelled", "ranked", "continuous"]

NODE_KINDS: Tuple[str, ...] = ("boolean", "labelled", "ranked", "continuous")

BOOLEAN_STATES: Tuple[str, str] = ("False", "True")


@dataclass(frozen=True)
class State:
    """
    A declared state of a node.

    Discrete states only have a label. Continuous states also carry the
    numeric interval ``[lower, upper)`` they cover.
    """

    label: str
    lower: Optional[float] = None
    upper: Optional[float] = None

    @property
    def is_interval(self) -> bool:
        return self.lower is not None and self.upper is not None

    def contains(self, value: float, *, closed_upper: bool = False) -> bool:
        """
        Check whether a numeric value falls in this state's interval.

        The lower bound is inclusive and the upper bound exclusive, unless
        ``closed_upper`` is set (used for the last interval of a node).
        """
        if not self.is_interval:
            return False
        v = float(value)
        if v < float(self.lower):  # type: ignore[arg-type]
            return False
        if closed_upper:
            return v <= float(self.upper)  # type: ignore[arg-type]
        return v < float(self.upper)  # type: ignore[arg-type]


def _interval_label(lower: float, upper: float) -> str:
    return f"{lower:g} - {upper:g}"


class Node:
    """
    A node of a network with a kind and an ordered state catalog.

    Nodes are created through ``Network.add_node``. Identity for evidence
    purposes is the node object itself; ``reference`` gives the
    ``(network id, node id)`` pair used in JSON payloads.
    """

    def __init__(self, network: "Network", node_id: str, kind: NodeKind, states: Sequence[State]) -> None:
        self._network = network
        self._id = str(node_id)
        self._kind = kind
        self._states: Tuple[State, ...] = tuple(states)
        self._by_label: Dict[str, State] = {s.label: s for s in self._states}

    @property
    def id(self) -> str:
        return self._id

    @property
    def network(self) -> "Network":
        return self._network

    @property
    def model(self) -> "Model":
        return self._network.model

    @property
    def kind(self) -> NodeKind:
        return self._kind

    @property
    def states(self) -> Tuple[State, ...]:
        return self._states

    @property
    def state_labels(self) -> List[str]:
        return [s.label for s in self._states]

    @property
    def reference(self) -> Tuple[str, str]:
        return (self._network.id, self._id)

    def has_state(self, label: str) -> bool:
        return label in self._by_label

    def get_state(self, label: str) -> State:
        """
        Look up a state by its label.

        Raises:
            UnknownState: If the node has no such state.
        """
        try:
            return self._by_label[label]
        except (KeyError, TypeError):
            raise UnknownState(
                f"State '{label}' does not exist in node '{self._id}' "
                f"of network '{self._network.id}'"
            ) from None

    def find_interval(self, value: float) -> State:
        """
        Find the interval state containing a numeric value.

        Raises:
            UnknownState: If the node is not continuous, the value is not
                finite, or no interval contains it.
        """
        if self._kind != "continuous":
            raise UnknownState(f"Node '{self._id}' does not declare numeric intervals")
        v = float(value)
        if not np.isfinite(v):
            raise UnknownState(f"Value {value!r} is not a finite number")
        last = len(self._states) - 1
        for pos, state in enumerate(self._states):
            if state.contains(v, closed_upper=(pos == last)):
                return state
        raise UnknownState(
            f"Value {v:g} is outside every interval of node '{self._id}' "
            f"of network '{self._network.id}'"
        )

    def __repr__(self) -> str:
        return f"Node({self._network.id!r}, {self._id!r}, kind={self._kind!r})"


class Network:
    """
    A container of nodes belonging to exactly one model.

    Networks are created through ``Model.create_network`` so that their ids
    are registered in the model's identifier registry.
    """

    def __init__(self, model: "Model", network_id: str) -> None:
        self._model = model
        self._id = str(network_id)
        self._nodes: Dict[str, Node] = {}

    @property
    def id(self) -> str:
        return self._id

    def _assign_id(self, new_id: str) -> None:
        self._id = new_id

    def set_id(self, new_id: str) -> None:
        self._model.change_contained_id(self, new_id)

    @property
    def model(self) -> "Model":
        return self._model

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes.values())

    def add_node(
        self,
        node_id: str,
        kind: str,
        states: Optional[Sequence[str]] = None,
        *,
        intervals: Optional[Sequence[Tuple[float, float]]] = None,
    ) -> Node:
        """
        Declare a node and its states.

        Args:
            node_id: Identifier unique within this network.
            kind: One of ``"boolean"``, ``"labelled"``, ``"ranked"``,
                ``"continuous"``.
            states: State labels. Required for labelled and ranked nodes.
                For continuous nodes they optionally name the intervals.
                Ignored for boolean nodes, which always have
                ``("False", "True")``.
            intervals: Ascending, non-overlapping ``(lower, upper)`` bounds
                for continuous nodes.

        Raises:
            ValueError: If the declaration is inconsistent.
        """
        node_id = str(node_id)
        kind = str(kind).strip().lower()
        if not node_id:
            raise ValueError("Node id cannot be empty")
        if node_id in self._nodes:
            raise ValueError(f"Node '{node_id}' already exists in network '{self._id}'")
        if kind not in NODE_KINDS:
            raise ValueError(f"Unknown node kind: {kind!r}")

        if kind == "boolean":
            declared = [State(label) for label in BOOLEAN_STATES]
        elif kind == "continuous":
            declared = _interval_states(node_id, intervals, states)
        else:
            if intervals is not None:
                raise ValueError(f"Node '{node_id}' of kind {kind!r} cannot declare intervals")
            if not states:
                raise ValueError(f"Node '{node_id}' must have at least one state")
            declared = [State(str(label)) for label in states]

        labels = [s.label for s in declared]
        if len(set(labels)) != len(labels):
            raise ValueError(f"Node '{node_id}' has duplicate states")

        node = Node(self, node_id, kind, declared)
        self._nodes[node_id] = node
        return node

    def get_node(self, node_id: str) -> Node:
        if node_id not in self._nodes:
            raise ValueError(f"Node '{node_id}' not found in network '{self._id}'")
        return self._nodes[node_id]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._nodes

    def __repr__(self) -> str:
        return f"Network({self._id!r}, nodes={len(self._nodes)})"


def _interval_states(
    node_id: str,
    intervals: Optional[Sequence[Tuple[float, float]]],
    labels: Optional[Sequence[str]],
) -> List[State]:
    if not intervals:
        raise ValueError(f"Continuous node '{node_id}' must declare at least one interval")
    if labels is not None and len(labels) != len(intervals):
        raise ValueError(f"Continuous node '{node_id}' has {len(labels)} labels for {len(intervals)} intervals")

    out: List[State] = []
    prev_upper = -np.inf
    for pos, (lower, upper) in enumerate(intervals):
        lower = float(lower)
        upper = float(upper)
        if np.isnan(lower) or np.isnan(upper) or lower >= upper:
            raise ValueError(f"Invalid interval ({lower}, {upper}) for node '{node_id}'")
        if lower < prev_upper:
            raise ValueError(f"Intervals of node '{node_id}' must be ascending and non-overlapping")
        prev_upper = upper
        label = str(labels[pos]) if labels is not None else _interval_label(lower, upper)
        out.append(State(label, lower, upper))
    return out
