"""
Model: the owning container of networks and scenarios.

The model holds the identifier registry shared by everything it contains and
the settings every scenario validates against.
"""

from __future__ import annotations

from typing import List, Optional

from bnscenario.config import DEFAULT_SETTINGS, ScenarioSettings
from bnscenario.errors import ScenarioError
from bnscenario.network import Network, Node
from bnscenario.registry import Identifiable, IdentifierRegistry
from bnscenario.scenario import Scenario


class Model:
    """
    Container of networks and scenarios with a shared identifier namespace.

    Attributes:
        settings: Tolerances used by scenario validation.
        registry: Identifier registry for networks and scenarios.
    """

    def __init__(self, *, settings: Optional[ScenarioSettings] = None) -> None:
        self.settings: ScenarioSettings = settings or DEFAULT_SETTINGS
        self.settings.validate()
        self.registry = IdentifierRegistry()
        self._networks: List[Network] = []
        self._scenarios: List[Scenario] = []

    @property
    def networks(self) -> List[Network]:
        return list(self._networks)

    @property
    def scenarios(self) -> List[Scenario]:
        return list(self._scenarios)

    def create_network(self, network_id: str) -> Network:
        """
        Create a network and register its id.

        Raises:
            IdentifierConflict: If the id is already taken in this model.
        """
        network = Network(self, network_id)
        self.registry.register(network.id, network)
        self._networks.append(network)
        return network

    def get_network(self, network_id: str) -> Network:
        entity = self.registry.lookup(network_id)
        if not isinstance(entity, Network):
            raise ValueError(f"Network '{network_id}' not found")
        return entity

    def create_scenario(self, scenario_id: str) -> Scenario:
        """
        Create a scenario bound to this model.

        Raises:
            IdentifierConflict: If the id is already taken in this model.
        """
        scenario = Scenario.create(self, scenario_id)
        self._scenarios.append(scenario)
        return scenario

    def get_scenario(self, scenario_id: str) -> Scenario:
        entity = self.registry.lookup(scenario_id)
        if not isinstance(entity, Scenario):
            raise ValueError(f"Scenario '{scenario_id}' not found")
        return entity

    def remove_scenario(self, scenario: Scenario) -> None:
        """
        Remove a scenario and release its id.

        The removed scenario keeps its data for reading but rejects any
        further mutation.
        """
        if scenario.model is not self or scenario not in self._scenarios:
            raise ScenarioError(f"Scenario '{scenario.id}' is not part of this model")
        self.registry.unregister(scenario.id)
        self._scenarios.remove(scenario)
        scenario._mark_removed()

    def change_contained_id(self, entity: Identifiable, new_id: str) -> None:
        """
        Rename a network or scenario of this model.

        Raises:
            IdentifierConflict: If ``new_id`` is taken by another entity.
            ScenarioError: If the entity is not part of this model.
        """
        try:
            self.registry.rename(entity, new_id)
        except KeyError as exc:
            raise ScenarioError(f"Entity '{entity.id}' is not part of this model") from exc

    def resolve_node(self, network_id: str, node_id: str) -> Node:
        """
        Find a node by its ``(network id, node id)`` reference.

        Raises:
            ValueError: If the network or node does not exist.
        """
        return self.get_network(network_id).get_node(node_id)
