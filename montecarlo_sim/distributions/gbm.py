"""Geometric Brownian motion over the simulation years."""

import math
from typing import Any, Dict, Mapping, Optional, Sequence

import numpy as np

from ..exceptions import FitError
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
    standard_normal,
)


class GBMDistribution(DistributionGenerator):
    """Path-dependent process ``S_t = S_{t-1} * exp((mu - sigma^2/2) dt + sigma sqrt(dt) z)``.

    Drift and volatility are annual percentages. Year 1 returns the initial
    value without consuming any draws. The running path value lives in the
    :class:`SampleContext` passed by the caller, which must create a new
    context for every iteration.
    """

    name = "GBM"

    def initialize(self) -> SampleContext:
        return SampleContext(last_value=self.get_parameter_value("value", 1, 100.0))

    def update_year(self, year: int, context: SampleContext) -> None:
        if year == 1:
            context.last_value = self.get_parameter_value("value", 1, 100.0)

    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        if context is None:
            context = self.initialize()

        if year == 1:
            initial = self.get_parameter_value("value", year, 100.0)
            context.last_value = initial
            return initial

        drift = self.get_parameter_value("drift", year, 5.0) / 100
        volatility = self.get_parameter_value("volatility", year, 20.0) / 100
        time_step = self.get_parameter_value("timeStep", year, 1.0)

        last_value = context.last_value
        if last_value is None:
            last_value = self.get_parameter_value("value", year, 100.0)

        z = standard_normal(random)
        value = last_value * math.exp(
            (drift - volatility * volatility / 2) * time_step
            + volatility * math.sqrt(time_step) * z
        )
        context.last_value = value
        return value

    @classmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        errors: list = []
        check_parameter(parameters, "value", "Initial value", errors, positive=True)
        check_parameter(parameters, "drift", "Drift parameter", errors)
        check_parameter(parameters, "volatility", "Volatility parameter", errors, positive=True)
        check_parameter(parameters, "timeStep", "Time step parameter", errors, required=False, positive=True)
        return ValidationResult.from_errors(errors)

    @classmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        """Estimate drift and volatility from year-ordered log returns.

        Raises:
            FitError: If fewer than two dated numeric points, or fewer than two
                positive ones, are available.
        """
        usable = [p for p in data_points or [] if is_valid_data_point(p)]
        if len(usable) < 2:
            raise FitError("At least two data points are required for GBM curve fitting")

        ordered = sorted(usable, key=point_year)
        positive = [p for p in ordered if point_value(p) > 0]
        if len(positive) < 2:
            raise FitError("At least two positive values are required for GBM fitting")

        values = np.asarray([point_value(p) for p in positive], dtype=float)
        log_returns = np.diff(np.log(values))
        mean_return = float(np.mean(log_returns))
        var_return = float(np.var(log_returns))

        years = np.asarray([point_year(p) for p in ordered], dtype=float)
        time_step = float(np.mean(np.diff(years))) if years.size > 1 else 1.0
        if time_step <= 0:
            time_step = 1.0

        volatility = math.sqrt(var_return / time_step) * 100
        drift = (mean_return / time_step + var_return / (2 * time_step)) * 100
        return {
            "value": float(values[0]),
            "drift": max(drift, -20.0),
            "volatility": max(volatility, 0.1),
            "timeStep": time_step,
        }

    @classmethod
    def metadata(cls) -> DistributionMetadata:
        return DistributionMetadata(
            name="Geometric Brownian Motion",
            description=(
                "A continuous-time stochastic process where logarithmic returns "
                "follow Brownian motion with drift."
            ),
            applications=(
                "Electricity market prices, carbon credit values, variable tariffs, "
                "investment returns over time."
            ),
            parameters=[
                ParameterInfo("value", "Initial value at t=0", constraints="must be positive"),
                ParameterInfo("drift", "Annual growth rate (2-5% typical)"),
                ParameterInfo(
                    "volatility",
                    "Annual standard deviation (15-30% for electricity prices)",
                    constraints="must be positive",
                ),
                ParameterInfo("timeStep", "Time step for simulation (years)", required=False, default=1),
            ],
            examples=[
                DistributionExample(
                    "Electricity price model with moderate growth",
                    {"value": 50, "drift": 3, "volatility": 20, "timeStep": 1},
                ),
                DistributionExample(
                    "Asset price model with high volatility",
                    {"value": 100, "drift": 5, "volatility": 35, "timeStep": 1},
                ),
            ],
        )

    def min_formula(self) -> Optional[Formula]:
        return lambda parameters, year: 0.0
