"""Triangular distribution sampled by inverse CDF."""

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..parameters import ValidationResult, check_parameter, resolve_points
from .base import (
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    Formula,
    ParameterInfo,
    RandomFn,
    SampleContext,
)


def _variance_term(low: float, mode: float, high: float) -> float:
    return low * low + mode * mode + high * high - low * mode - low * high - mode * high


class TriangularDistribution(DistributionGenerator):
    """Distribution defined by minimum, most likely and maximum values.

    Sampling degrades to returning ``min`` when ``min >= max`` and clamps the
    mode into ``[min, max]``, so invalid parameters never raise during a run.
    """

    name = "Triangular"

    def _bounds(self, year: int):
        return (
            self.get_parameter_value("min", year, 0.0),
            self.get_parameter_value("mode", year, 0.5),
            self.get_parameter_value("max", year, 1.0),
        )

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        low, mode, high = self._bounds(year)
        if low >= high:
            return low

        mode = max(low, min(mode, high))
        c = (mode - low) / (high - low)
        u = random()
        if u < c:
            return low + math.sqrt(u * (high - low) * (mode - low))
        return high - math.sqrt((1 - u) * (high - low) * (high - mode))

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "min", "Minimum value", errors)
        check_parameter(parameters, "mode", "Mode value", errors)
        check_parameter(parameters, "max", "Maximum value", errors)

        for year, (low, mode, high) in resolve_points(parameters, ("min", "mode", "max")):
            suffix = f" (year {year})" if year is not None else ""
            if low > high:
                errors.append(f"Minimum value must be less than maximum value{suffix}")
            if low > mode:
                errors.append(f"Minimum value must be less than or equal to mode{suffix}")
            if mode > high:
                errors.append(f"Mode must be less than or equal to maximum value{suffix}")
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        values = cls._fit_values(data_points)
        low = float(np.min(values))
        high = float(np.max(values))
        ordered = np.sort(values)

        # Few points: the median stands in for the mode
        if values.size <= 5:
            return {"min": low, "mode": float(ordered[values.size // 2]), "max": high}

        bin_width = (high - low) / 10
        if bin_width == 0:
            return {"min": low, "mode": low, "max": low}

        bins = np.minimum(((values - low) / bin_width).astype(int), 9)
        counts = np.bincount(bins, minlength=10)
        densest = int(np.argmax(counts))
        return {"min": low, "mode": low + (densest + 0.5) * bin_width, "max": high}

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Triangular Distribution",
            description="Simple distribution defined by minimum, maximum, and most likely values.",
            applications=(
                "Useful when data is limited but min, max, and most likely values "
                "are known from expert judgment."
            ),
            parameters=[
                ParameterInfo("min", "Absolute minimum (e.g., 30% for capacity factor)"),
                ParameterInfo("mode", "Most likely value (e.g., 40% for capacity factor)"),
                ParameterInfo("max", "Maximum reasonable value (e.g., 50% for capacity factor)"),
            ],
            examples=[
                DistributionExample(
                    "Capacity factor estimation", {"min": 0.30, "mode": 0.40, "max": 0.50}
                ),
                DistributionExample("Construction timeline (months)", {"min": 12, "mode": 18, "max": 24}),
            ],
        )

    def mean_formula(self) -> Optional[Formula]:
        def mean(parameters, year):
            low, mode, high = self._bounds(year)
            return (low + mode + high) / 3

        return mean

    def std_dev_formula(self) -> Optional[Formula]:
        def std_dev(parameters, year):
            return math.sqrt(max(_variance_term(*self._bounds(year)), 0.0) / 18)

        return std_dev

    def min_formula(self) -> Optional[Formula]:
        return lambda parameters, year: self.get_parameter_value("min", year, 0.0)

    def max_formula(self) -> Optional[Formula]:
        return lambda parameters, year: self.get_parameter_value("max", year, 1.0)

    def skewness_formula(self) -> Optional[Formula]:
        def skewness(parameters, year):
            low, mode, high = self._bounds(year)
            term = _variance_term(low, mode, high)
            if term <= 0:
                return 0.0
            denominator = 5 * term**1.5
            return math.sqrt(2) * (low + high - 2 * mode) * (2 * low - high - mode) * (
                low - 2 * high + mode
            ) / denominator

        return skewness
