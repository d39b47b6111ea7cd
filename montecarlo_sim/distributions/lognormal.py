"""Lognormal distribution: ``exp(mu + sigma * z)`` with ``z`` from Box-Muller."""

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..parameters import ValidationResult, check_parameter
from .base import (
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    ParameterInfo,
    RandomFn,
    SampleContext,
    standard_normal,
)


class LognormalDistribution(DistributionGenerator):
    """Distribution whose logarithm is normally distributed."""

    name = "Lognormal"

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        mu = self.get_parameter_value("mu", year, 0.0)
        sigma = self.get_parameter_value("sigma", year, 1.0)
        return math.exp(mu + sigma * standard_normal(random))

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "mu", "Mu parameter (location)", errors)
        check_parameter(parameters, "sigma", "Sigma parameter (scale)", errors, positive=True)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        values = cls._positive_values(cls._fit_values(data_points), "lognormal")
        log_values = np.log(values)
        mu = float(np.mean(log_values))
        sigma = float(np.std(log_values))
        return {"mu": mu, "sigma": sigma if sigma > 0 else 0.1}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Lognormal Distribution",
            description="Used for modeling variables where the logarithm follows a normal distribution",
            applications="Right-skewed positive quantities such as repair times and asset returns.",
            parameters=[
                ParameterInfo("mu", "Location parameter (mean of the logarithm)"),
                ParameterInfo(
                    "sigma",
                    "Scale parameter (standard deviation of the logarithm)",
                    constraints="must be positive",
                ),
            ],
            examples=[
                DistributionExample("Standard lognormal distribution", {"mu": 0, "sigma": 1}),
                DistributionExample("Typical financial asset return", {"mu": 0.05, "sigma": 0.2}),
                DistributionExample("Repair time distribution", {"mu": 3, "sigma": 0.8}),
            ],
        )
