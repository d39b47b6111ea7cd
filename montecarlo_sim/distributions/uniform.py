"""Continuous uniform distribution on ``[min, max]``."""

from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..parameters import ValidationResult, check_parameter, resolve_points
from .base import (
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    ParameterInfo,
    RandomFn,
    SampleContext,
)


class UniformDistribution(DistributionGenerator):
    """Every value between ``min`` and ``max`` is equally likely."""

    name = "Uniform"

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        low = self.get_parameter_value("min", year, 0.0)
        high = self.get_parameter_value("max", year, 1.0)
        return low + (high - low) * random()

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "min", "Minimum value", errors)
        check_parameter(parameters, "max", "Maximum value", errors)

        for year, (low, high) in resolve_points(parameters, ("min", "max")):
            if low >= high:
                suffix = f" (year {year})" if year is not None else ""
                errors.append(f"Maximum value must be greater than minimum value{suffix}")
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        values = cls._fit_values(data_points)
        low = float(np.min(values))
        high = float(np.max(values))

        if low == high:
            padding = abs(low) * 0.05 if low != 0 else 0.05
            return {"min": low - padding, "max": high + padding}
        return {"min": low, "max": high}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Uniform Distribution",
            description="Equal probability for all values between minimum and maximum.",
            applications="Modeling complete uncertainty within known bounds.",
            parameters=[
                ParameterInfo("min", "Lower bound of the distribution"),
                ParameterInfo(
                    "max",
                    "Upper bound of the distribution",
                    constraints="must be greater than min",
                ),
            ],
            examples=[
                DistributionExample("Unit interval", {"min": 0, "max": 1}),
                DistributionExample("Annual O&M cost range", {"min": 40000, "max": 60000}),
            ],
        )
