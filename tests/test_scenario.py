"""
Unit tests for scenario observation handling.
"""

from __future__ import annotations

import dataclasses

import numpy as np
import pytest

from bnscenario.errors import (
    ArityMismatch,
    CrossModelReference,
    InvalidWeight,
    ScenarioError,
    UnknownState,
)
from bnscenario.model import Model
from bnscenario.observation import HardObservation, SoftObservation


def _weather_model():
    model = Model()
    net = model.create_network("weather")
    rain = net.add_node("Rain", "boolean")
    wind = net.add_node("Wind", "labelled", ["Low", "Medium", "High"])
    temp = net.add_node("Temp", "continuous", intervals=[(-10, 0), (0, 15), (15, 40)])
    return model, rain, wind, temp


def test_scenario_is_bound_to_its_model() -> None:
    model, *_ = _weather_model()
    s = model.create_scenario("base")
    assert s.model is model
    assert s.get_observation(model.resolve_node("weather", "Rain")) is None
    assert s.get_marginals() == []


def test_hard_set_then_get() -> None:
    model, rain, wind, temp = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(wind, "High")
    s.set_observation_hard(rain, True)
    s.set_observation_hard(temp, 3.0)

    assert s.get_observation(wind) == HardObservation(state="High")
    assert s.get_observation(rain) == HardObservation(state="True")
    obs = s.get_observation(temp)
    assert obs.kind == "hard"
    assert obs.state == "0 - 15" and obs.value == 3.0


def test_returned_view_cannot_change_scenario() -> None:
    model, _, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(wind, "High")
    view = s.get_observation(wind)
    with pytest.raises(dataclasses.FrozenInstanceError):
        view.state = "Low"  # type: ignore[misc]

    obs = s.observations
    obs.clear()
    assert s.has_observation(wind)
    assert s.get_observation(wind).state == "High"


def test_new_observation_replaces_previous() -> None:
    model, _, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(wind, "High")
    s.set_observation_soft(wind, ["Low", "Medium"], [1.0, 1.0])
    obs = s.get_observation(wind)
    assert isinstance(obs, SoftObservation)
    assert obs.as_dict() == {"Low": 0.5, "Medium": 0.5, "High": 0.0}
    assert len(s.observations) == 1


def test_soft_mapping_overload() -> None:
    model, _, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_soft(wind, {"High": 4, "Low": 1})
    obs = s.get_observation(wind)
    assert np.isclose(obs.weight("High"), 0.8)
    assert obs.weight("Medium") == 0.0
    with pytest.raises(TypeError):
        s.set_observation_soft(wind, ["High"])


def test_failed_set_leaves_previous_observation() -> None:
    model, _, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(wind, "Medium")
    for bad in (
        lambda: s.set_observation_hard(wind, "Gale"),
        lambda: s.set_observation_soft(wind, ["Low"], [1.0, 2.0]),
        lambda: s.set_observation_soft(wind, ["Low", "High"], [0.0, 0.0]),
    ):
        with pytest.raises((UnknownState, ArityMismatch, InvalidWeight)):
            bad()
    assert s.get_observation(wind) == HardObservation(state="Medium")


def test_clear_observation() -> None:
    model, rain, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(rain, False)
    s.set_observation_soft(wind, {"Low": 1.0})
    s.clear_observation(rain)
    assert not s.has_observation(rain)
    assert s.get_observation(rain) is None
    assert s.has_observation(wind)
    # Clearing an absent observation is a no-op.
    s.clear_observation(rain)

    s.clear_observations()
    assert s.observations == {}


def test_cross_model_reference_rejected() -> None:
    model, _, wind, _ = _weather_model()
    other_model, _, other_wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(wind, "Low")
    before = s.observations

    with pytest.raises(CrossModelReference):
        s.set_observation_hard(other_wind, "High")
    with pytest.raises(CrossModelReference):
        s.set_observation_soft(other_wind, {"High": 1.0})
    with pytest.raises(CrossModelReference):
        s.clear_observation(other_wind)
    with pytest.raises(CrossModelReference):
        s.has_observation(other_wind)
    with pytest.raises(CrossModelReference):
        s.get_marginals(other_wind)

    assert s.observations == before


def test_scenarios_are_independent() -> None:
    model, _, wind, _ = _weather_model()
    a = model.create_scenario("a")
    b = model.create_scenario("b")
    a.set_observation_hard(wind, "Low")
    assert not b.has_observation(wind)


def test_removed_scenario_rejects_mutation() -> None:
    model, _, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_hard(wind, "Low")
    model.remove_scenario(s)
    with pytest.raises(ScenarioError):
        s.set_observation_hard(wind, "High")
    with pytest.raises(ScenarioError):
        s.set_id("renamed")
    assert s.get_observation(wind).state == "Low"
    with pytest.raises(ScenarioError):
        model.remove_scenario(s)


def test_soft_weights_near_float_max_stay_normalised() -> None:
    model, _, wind, _ = _weather_model()
    s = model.create_scenario("base")
    s.set_observation_soft(wind, ["Low", "High"], [1e308, 1e308])
    obs = s.get_observation(wind)
    assert obs.as_dict() == {"Low": 0.5, "Medium": 0.0, "High": 0.5}
    assert np.isclose(sum(w for _, w in obs.weights), 1.0)
