"""Normal (Gaussian) distribution.

The spread is given as a percentage of the mean: ``stdDev = 10`` with
``value = 200`` draws from N(200, 20). An absolute standard deviation is
not accepted.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..exceptions import FitError
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


class NormalDistribution(DistributionGenerator):
    """Symmetric bell-shaped distribution sampled with Box-Muller."""

    name = "Normal"

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        mean = self.get_parameter_value("value", year, 0.0)
        std_dev_pct = self.get_parameter_value("stdDev", year, 1.0)
        std_dev = std_dev_pct / 100 * abs(mean)
        return mean + std_dev * standard_normal(random)

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "value", "Mean value", errors)
        check_parameter(parameters, "stdDev", "Standard deviation", errors, positive=True)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        values = cls._fit_values(data_points)
        mean = float(np.mean(values))
        std_dev = float(np.std(values))
        if mean == 0:
            raise FitError(
                "Cannot fit a Normal distribution with zero mean: "
                "stdDev is expressed as a percentage of the mean"
            )
        std_dev_pct = std_dev / abs(mean) * 100
        return {"value": mean, "stdDev": std_dev_pct if std_dev_pct > 0 else 1.0}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Normal",
            description="Symmetric bell-shaped distribution centered around the mean",
            applications="General-purpose uncertainty around a central estimate.",
            parameters=[
                ParameterInfo("value", "Mean (center of the distribution)"),
                ParameterInfo(
                    "stdDev",
                    "Standard deviation as a percentage of the mean",
                    constraints="must be positive",
                ),
            ],
            examples=[
                DistributionExample("Energy yield with 10% spread", {"value": 100, "stdDev": 10}),
                DistributionExample("Tight cost estimate", {"value": 2500, "stdDev": 3}),
            ],
        )
