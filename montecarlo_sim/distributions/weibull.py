"""Weibull distribution sampled by inverse CDF.

With ``shape = 1`` the Weibull reduces to an exponential distribution with
rate ``1 / scale``.
"""

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np
from scipy import special

from ..parameters import ValidationResult, check_parameter
from .base import (
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    ParameterInfo,
    RandomFn,
    SampleContext,
)

# Bound on the moment-based shape estimate when the data has no spread
MAX_FITTED_SHAPE = 100.0


class WeibullDistribution(DistributionGenerator):
    """Two-parameter Weibull, common for wind speeds and failure times."""

    name = "Weibull"

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        scale = self.get_parameter_value("scale", year, 1.0)
        shape = self.get_parameter_value("shape", year, 1.0)
        return scale * (-math.log(random())) ** (1 / shape)

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "scale", "Scale parameter", errors, positive=True)
        check_parameter(parameters, "shape", "Shape parameter", errors, positive=True)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        """Estimate scale and shape from the coefficient of variation.

        Uses the approximation ``shape = (0.9 / cv) ** 1.086`` and derives the
        scale from the mean via ``mean / Gamma(1 + 1 / shape)``.
        """
        values = cls._positive_values(cls._fit_values(data_points), "Weibull")
        mean = float(np.mean(values))
        cv = float(np.std(values)) / mean

        shape = (0.9 / cv) ** 1.086 if cv > 0 else MAX_FITTED_SHAPE
        shape = min(shape, MAX_FITTED_SHAPE)
        scale = mean / float(special.gamma(1 + 1 / shape))
        return {"scale": scale if scale > 0 else 1.0, "shape": shape if shape > 0 else 1.0}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Weibull Distribution",
            description="Flexible distribution for wind speeds and component lifetimes",
            applications="Wind resource assessment and reliability analysis.",
            parameters=[
                ParameterInfo("scale", "Scale parameter (lambda)", constraints="must be positive"),
                ParameterInfo("shape", "Shape parameter (k)", constraints="must be positive"),
            ],
            examples=[
                DistributionExample("Typical wind speed distribution", {"scale": 7.5, "shape": 2}),
                DistributionExample("Early-life component failures", {"scale": 10, "shape": 0.8}),
                DistributionExample("Wear-out failures", {"scale": 20, "shape": 3.5}),
            ],
        )
