"""
Configuration objects for scenario handling.

In this module, configuration dataclasses are provided as a stable, typed
surface for tolerances used by observation and marginals validation.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ScenarioSettings:
    """
    Tolerances and switches shared by all scenarios of a model.

    Attributes:
        marginals_tol: Maximum allowed distance of a marginal distribution's
            sum from 1.
        weight_atol: Soft evidence weights at or below this value do not
            count as positive when checking that some weight is positive.
        warn_on_partial_marginals: Emit a ``UserWarning`` when a marginals
            distribution omits declared states of its node.
    """

    marginals_tol: float = 1e-6
    weight_atol: float = 0.0
    warn_on_partial_marginals: bool = True

    def validate(self) -> None:
        """
        Configuration validation is performed.
        """
        if not np.isfinite(float(self.marginals_tol)) or float(self.marginals_tol) < 0.0:
            raise ValueError("marginals_tol must be a non-negative finite number")
        if not np.isfinite(float(self.weight_atol)) or float(self.weight_atol) < 0.0:
            raise ValueError("weight_atol must be a non-negative finite number")


DEFAULT_SETTINGS = ScenarioSettings()
