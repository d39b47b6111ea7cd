"""Poisson distribution sampled with Knuth's product method."""

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
)

MIN_FITTED_LAMBDA = 0.001
# exp(-lambda) stays far above the smallest double up to this rate
KNUTH_MAX_LAMBDA = 500.0


def _knuth_count(rate: float, random: RandomFn) -> int:
    limit = math.exp(-rate)
    count = 0
    product = random()
    while product > limit:
        count += 1
        product *= random()
    return count


class PoissonDistribution(DistributionGenerator):
    """Count of events per year with mean rate ``lambda``.

    Knuth's method multiplies uniforms until the product drops to
    ``exp(-lambda)``, so it consumes about ``lambda + 1`` draws per sample.
    Beyond ``KNUTH_MAX_LAMBDA`` that limit would underflow, so larger rates
    are split into chunks of at most ``KNUTH_MAX_LAMBDA`` and the chunk
    counts are summed. A sum of independent Poisson counts is Poisson with
    the summed rate, so the draw stays exact.
    """

    name = "Poisson"

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        rate = self.get_parameter_value("lambda", year, 1.0)
        if rate <= 0:
            return 0

        count = 0
        remaining = rate
        while remaining > 0:
            chunk = min(remaining, KNUTH_MAX_LAMBDA)
            count += _knuth_count(chunk, random)
            remaining -= chunk
        return count

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "lambda", "Rate parameter (lambda)", errors, positive=True)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        values = cls._fit_values(data_points)
        return {"lambda": max(float(np.mean(values)), MIN_FITTED_LAMBDA)}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Poisson Distribution",
            description="Models the number of events occurring in a fixed interval",
            applications="Yearly counts of failures, outages or claims.",
            parameters=[
                ParameterInfo(
                    "lambda",
                    "Average number of events per interval",
                    constraints="must be positive",
                ),
            ],
            examples=[
                DistributionExample("Gearbox failures per year across a fleet", {"lambda": 2.5}),
                DistributionExample("Rare grid outages", {"lambda": 0.3}),
            ],
        )
