"""Exponential distribution sampled by inverse CDF."""

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..parameters import ValidationResult, check_parameter
from .base import (
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    Formula,
    ParameterInfo,
    RandomFn,
    SampleContext,
)

MIN_LAMBDA = 1e-5
MAX_FITTED_LAMBDA = 1000.0


class ExponentialDistribution(DistributionGenerator):
    """Memoryless distribution of waiting times with rate ``lambda``."""

    name = "Exponential"

    def _rate(self, year: int) -> float:
        return self.get_parameter_value("lambda", year, 1.0)

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        rate = max(self._rate(year), MIN_LAMBDA)
        return -math.log(1 - random()) / rate

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "lambda", "Rate parameter (lambda)", errors, positive=True)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        values = cls._positive_values(cls._fit_values(data_points), "exponential")
        rate = 1 / float(np.mean(values))
        return {"lambda": min(MAX_FITTED_LAMBDA, max(MIN_LAMBDA, rate))}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Exponential Distribution",
            description="Models time between events in a Poisson process",
            applications="Times between failures and arrival intervals.",
            parameters=[
                ParameterInfo(
                    "lambda", "Rate parameter (events per unit time)", constraints="must be positive"
                ),
            ],
            examples=[
                DistributionExample("One failure every two years on average", {"lambda": 0.5}),
                DistributionExample("Frequent events", {"lambda": 4}),
            ],
        )

    def mean_formula(self) -> Optional[Formula]:
        def mean(parameters, year):
            rate = self._rate(year)
            return 1 / rate if rate > 0 else None

        return mean

    def std_dev_formula(self) -> Optional[Formula]:
        return self.mean_formula()

    def skewness_formula(self) -> Optional[Formula]:
        return lambda parameters, year: 2.0

    def kurtosis_formula(self) -> Optional[Formula]:
        return lambda parameters, year: 6.0
