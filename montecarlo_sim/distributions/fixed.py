"""Deterministic value with optional compound annual drift."""

from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..parameters import (
    ValidationResult,
    check_parameter,
    is_valid_data_point,
    point_value,
    point_year,
)
from .base import (
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    Formula,
    ParameterInfo,
    RandomFn,
    SampleContext,
)


class FixedDistribution(DistributionGenerator):
    """Returns ``value * (1 + drift / 100) ** (year - 1)`` without drawing.

    Every analytic statistic is known exactly, so all six formulas are
    supplied and the numeric moments are never reported.
    """

    name = "Fixed"

    def _value(self, year: int) -> float:
        value = self.get_parameter_value("value", year, 0.0)
        drift = self.get_parameter_value("drift", year, 0.0)
        if drift and year > 1:
            return value * (1 + drift / 100) ** (year - 1)
        return value

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        return self._value(year)

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "value", "Value parameter", errors)
        check_parameter(parameters, "drift", "Drift parameter", errors, required=False)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        """Use the mean as the value and the first-to-last CAGR as drift."""
        values = cls._fit_values(data_points)
        drift = 0.0

        dated = sorted((p for p in data_points if is_valid_data_point(p)), key=point_year)
        if len(dated) > 1:
            first, last = dated[0], dated[-1]
            span = point_year(last) - point_year(first)
            ratio = point_value(last) / point_value(first) if point_value(first) else 0
            if span > 0 and ratio > 0:
                drift = (ratio ** (1 / span) - 1) * 100

        return {"value": float(np.mean(values)), "drift": round(drift, 2)}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Fixed Value",
            description="Uses a single deterministic value with no variability.",
            applications=(
                "Fixed power purchase agreement (PPA) prices, guaranteed availability "
                "levels, or contractual performance metrics."
            ),
            parameters=[
                ParameterInfo("value", "Set to the most likely or contractually agreed value"),
                ParameterInfo("drift", "Annual growth rate (%)", required=False, default=0),
            ],
            examples=[
                DistributionExample("Fixed price with no growth", {"value": 50, "drift": 0}),
                DistributionExample("Fixed price with 2% annual growth", {"value": 50, "drift": 2}),
                DistributionExample("Performance guarantee", {"value": 97}),
            ],
        )

    def mean_formula(self) -> Optional[Formula]:
        return lambda parameters, year: self._value(year)

    def std_dev_formula(self) -> Optional[Formula]:
        return lambda parameters, year: 0.0

    def min_formula(self) -> Optional[Formula]:
        return self.mean_formula()

    def max_formula(self) -> Optional[Formula]:
        return self.mean_formula()

    def skewness_formula(self) -> Optional[Formula]:
        return self.std_dev_formula()

    def kurtosis_formula(self) -> Optional[Formula]:
        return self.std_dev_formula()
