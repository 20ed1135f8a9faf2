"""
Error types raised by scenario, observation and marginals operations.

All errors derive from ``ValueError`` so that callers treating invalid input
generically keep working, while the subclasses let callers distinguish the
failure kinds.
"""

from __future__ import annotations


class ScenarioError(ValueError):
    """Base class for every error raised by this package."""


class IdentifierConflict(ScenarioError):
    """An identifier is already taken by another entity in the same model."""


class CrossModelReference(ScenarioError):
    """A node belongs to a different model than the scenario it is used with."""


class UnknownState(ScenarioError):
    """A referenced state does not exist on the target node."""


class ArityMismatch(ScenarioError):
    """Parallel state and weight sequences differ in length."""


class InvalidWeight(ScenarioError):
    """A soft evidence weight is negative or not finite, or all weights are zero."""


class MalformedEvidence(ScenarioError):
    """Bulk evidence JSON is missing required fields or fails validation."""


class MalformedMarginals(ScenarioError):
    """Marginals JSON is malformed or a distribution does not sum to one."""


class NoMarginals(ScenarioError):
    """Marginals for a node are not available in a scenario."""


class UnsupportedObservationType(ScenarioError):
    """An observation value type is incompatible with the node kind."""
