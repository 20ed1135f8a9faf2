"""
Unit tests for hard/soft observation resolution and normalisation.
"""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from bnscenario.errors import (
    ArityMismatch,
    InvalidWeight,
    UnknownState,
    UnsupportedObservationType,
)
from bnscenario.model import Model
from bnscenario.observation import HardObservation, build_soft, resolve_hard, soft_from_mapping


def _nodes():
    net = Model().create_network("net")
    return {
        "bool": net.add_node("Rain", "boolean"),
        "lab": net.add_node("Wind", "labelled", ["Low", "Medium", "High"]),
        "rank": net.add_node("Risk", "ranked", ["Low", "High"]),
        "cont": net.add_node("Temp", "continuous", intervals=[(-10, 0), (0, 15), (15, 40)]),
    }


def test_hard_boolean_accepts_bool_and_label() -> None:
    n = _nodes()["bool"]
    assert resolve_hard(n, True) == HardObservation(state="True")
    assert resolve_hard(n, np.bool_(False)).state == "False"
    assert resolve_hard(n, "False").state == "False"
    with pytest.raises(UnknownState):
        resolve_hard(n, "maybe")
    with pytest.raises(UnsupportedObservationType):
        resolve_hard(n, 1.0)


def test_hard_labelled_and_ranked() -> None:
    nodes = _nodes()
    assert resolve_hard(nodes["lab"], "High").state == "High"
    assert resolve_hard(nodes["rank"], "Low").state == "Low"
    with pytest.raises(UnknownState):
        resolve_hard(nodes["lab"], "Gale")
    with pytest.raises(UnsupportedObservationType):
        resolve_hard(nodes["lab"], 3.5)
    with pytest.raises(UnsupportedObservationType):
        resolve_hard(nodes["rank"], True)


def test_hard_numeric_value_matches_discrete_label() -> None:
    net = Model().create_network("net")
    rank = net.add_node("Score", "ranked", ["1", "2", "3"])
    lab = net.add_node("Dose", "labelled", ["0.5", "1.5"])
    assert resolve_hard(rank, 2) == HardObservation(state="2")
    assert resolve_hard(rank, 3.0).state == "3"
    assert resolve_hard(rank, np.int64(1)).state == "1"
    assert resolve_hard(lab, 1.5).state == "1.5"
    with pytest.raises(UnsupportedObservationType):
        resolve_hard(rank, 4)
    with pytest.raises(UnsupportedObservationType):
        resolve_hard(rank, True)


def test_hard_continuous_by_number_label_or_text() -> None:
    n = _nodes()["cont"]
    obs = resolve_hard(n, 12.5)
    assert obs.state == "0 - 15"
    assert obs.value == 12.5
    assert resolve_hard(n, 15).state == "15 - 40"
    assert resolve_hard(n, "-10 - 0") == HardObservation(state="-10 - 0")
    assert resolve_hard(n, "39.9").value == pytest.approx(39.9)
    with pytest.raises(UnknownState):
        resolve_hard(n, 100)
    with pytest.raises(UnknownState):
        resolve_hard(n, "warm")
    with pytest.raises(UnsupportedObservationType):
        resolve_hard(n, True)


def test_soft_is_normalised_with_zero_fill() -> None:
    n = _nodes()["lab"]
    obs = build_soft(n, ["High", "Low"], [3, 1])
    assert obs.kind == "soft"
    assert obs.states == ("Low", "Medium", "High")
    assert np.isclose(sum(w for _, w in obs.weights), 1.0)
    assert np.isclose(obs.weight("High"), 0.75)
    assert np.isclose(obs.weight("Low"), 0.25)
    assert obs.weight("Medium") == 0.0


def test_soft_mapping_form_matches_array_form() -> None:
    n = _nodes()["rank"]
    assert soft_from_mapping(n, {"High": 2.0}) == build_soft(n, ["High"], [5.0])


@pytest.mark.parametrize(
    "weights",
    [
        [0.2, 0.3, 0.5],
        [1e-9, 0.0, 0.0],
        [7, 11, 13],
        [0.0, 1e6, 1.0],
        [1e308, 1e308, 1e308],
        [1e-320, 0.0, 5e-324],
    ],
)
def test_soft_sums_to_one_for_valid_weights(weights) -> None:
    n = _nodes()["lab"]
    obs = build_soft(n, ["Low", "Medium", "High"], weights)
    total = sum(w for _, w in obs.weights)
    assert np.isclose(total, 1.0)
    assert all(w >= 0.0 for _, w in obs.weights)


def test_soft_validation_errors() -> None:
    n = _nodes()["lab"]
    with pytest.raises(ArityMismatch):
        build_soft(n, ["Low", "High"], [1.0])
    with pytest.raises(UnknownState):
        build_soft(n, ["Low", "Gale"], [1.0, 1.0])
    with pytest.raises(UnknownState):
        build_soft(n, ["Low", "Low"], [1.0, 1.0])
    with pytest.raises(InvalidWeight):
        build_soft(n, ["Low", "High"], [1.0, -0.5])
    with pytest.raises(InvalidWeight):
        build_soft(n, ["Low", "High"], [0.0, 0.0])
    with pytest.raises(InvalidWeight):
        build_soft(n, ["Low"], [float("inf")])
    with pytest.raises(InvalidWeight):
        build_soft(n, ["Low"], ["heavy"])
    with pytest.raises(InvalidWeight):
        build_soft(n, ["Low"], [0.001], weight_atol=0.01)


def test_soft_boolean_accepts_bool_keys() -> None:
    n = _nodes()["bool"]
    obs = soft_from_mapping(n, {True: 1.0, False: 3.0})
    assert obs.as_dict() == {"False": 0.75, "True": 0.25}


def test_observations_are_frozen() -> None:
    n = _nodes()["lab"]
    obs = build_soft(n, ["Low"], [1.0])
    with pytest.raises(dataclasses.FrozenInstanceError):
        obs.weights = ()  # type: ignore[misc]
    d = obs.as_dict()
    d["Low"] = 0.0
    assert obs.weight("Low") == 1.0
