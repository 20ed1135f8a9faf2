"""
Evidence scenarios for Bayesian networks.

This package manages named, independent sets of observations ("scenarios")
applied to the nodes of a model's networks, the hard/soft observation model
and its validation, bulk JSON exchange of evidence and marginals, and the
cache of marginals produced by an external inference engine.
"""

from bnscenario.config import ScenarioSettings
from bnscenario.dataset import DataSet
from bnscenario.engine import InferenceEngine, run_inference
from bnscenario.errors import (
    ArityMismatch,
    CrossModelReference,
    IdentifierConflict,
    InvalidWeight,
    MalformedEvidence,
    MalformedMarginals,
    NoMarginals,
    ScenarioError,
    UnknownState,
    UnsupportedObservationType,
)
from bnscenario.exchange import (
    load_evidence,
    load_marginals_file,
    save_evidence,
    save_marginals,
)
from bnscenario.model import Model
from bnscenario.network import Network, Node, State
from bnscenario.observation import HardObservation, Observation, SoftObservation
from bnscenario.registry import IdentifierRegistry
from bnscenario.scenario import Scenario

__all__ = [
    "Model",
    "Network",
    "Node",
    "State",
    "Scenario",
    "ScenarioSettings",
    "IdentifierRegistry",
    "Observation",
    "HardObservation",
    "SoftObservation",
    "DataSet",
    "InferenceEngine",
    "run_inference",
    "load_evidence",
    "save_evidence",
    "load_marginals_file",
    "save_marginals",
    "ScenarioError",
    "IdentifierConflict",
    "CrossModelReference",
    "UnknownState",
    "ArityMismatch",
    "InvalidWeight",
    "MalformedEvidence",
    "MalformedMarginals",
    "NoMarginals",
    "UnsupportedObservationType",
]
