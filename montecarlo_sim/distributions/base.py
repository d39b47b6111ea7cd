"""Common contract for sampled distributions.

Every distribution type implements :class:`DistributionGenerator`:

* ``sample(year, random, context)`` draws one value using only ``random``,
  a zero-argument callable returning uniforms strictly inside ``(0, 1)``.
* ``initialize()`` creates the per-iteration :class:`SampleContext` and
  ``update_year(year, context)`` is called before each draw. Path-dependent
  distributions keep their state in the context, never on the instance.
* ``validate``, ``fit_curve`` and ``metadata`` are classmethods, so they can
  be used without constructing a distribution.
* Analytic statistics are optional capabilities: each ``*_formula`` method
  returns ``None`` when the distribution has no closed form, otherwise a
  callable ``(parameters, year) -> float | None``.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
import math
from typing import Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence
import warnings

import numpy as np

from .._warnings import DataQualityWarning
from ..exceptions import FitError
from ..parameters import ValidationResult, get_parameter_value, is_valid_number, point_value

RandomFn = Callable[[], float]
Formula = Callable[[Mapping[str, Any], int], Optional[float]]

STATISTIC_NAMES = ("mean", "stdDev", "min", "max", "skewness", "kurtosis")


def standard_normal(random: RandomFn) -> float:
    """Draw a standard normal variate with the Box-Muller transform.

    Consumes exactly two uniforms and returns the cosine branch.
    """
    u1 = random()
    u2 = random()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


@dataclass
class SampleContext:
    """Caller-owned state for one iteration of the year loop.

    Attributes:
        last_value: Last simulated value of a path-dependent distribution.
        extras: Free-form state for distributions that need more.
    """

    last_value: Optional[float] = None
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ParameterInfo:
    """Description of one distribution parameter."""

    name: str
    description: str
    required: bool = True
    type: str = "number or time series"
    constraints: Optional[str] = None
    default: Optional[float] = None


@dataclass(frozen=True)
class DistributionExample:
    """Example parameter set for a distribution."""

    description: str
    parameters: Dict[str, float]


@dataclass(frozen=True)
class DistributionMetadata:
    """Static descriptive information about a distribution type."""

    name: str
    description: str
    parameters: List[ParameterInfo]
    examples: List[DistributionExample]
    applications: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class DistributionGenerator(ABC):
    """Abstract base class for all distribution generators.

    Args:
        parameters: Mapping of parameter names to scalars or time series.

    Attributes:
        name: Registry name of the distribution type.
        parameters: Parameters the instance was created with.
    """

    name: ClassVar[str] = ""

    def __init__(self, parameters: Mapping[str, Any]):
        self.parameters: Dict[str, Any] = dict(parameters)

    def initialize(self) -> SampleContext:
        """Create the context for a new iteration."""
        return SampleContext()

    def update_year(self, year: int, context: SampleContext) -> None:
        """Hook called once per (iteration, year) before :meth:`sample`."""

    @abstractmethod
    def sample(self, year: int, random: RandomFn, context: Optional[SampleContext] = None) -> float:
        """Draw one value for ``year``.

        Args:
            year: Simulation year, starting at 1.
            random: Source of uniform draws in ``(0, 1)``.
            context: Iteration state from :meth:`initialize`.

        Returns:
            Sampled value.
        """

    def get_parameter_value(self, name: str, year: int, default: Any = None) -> Any:
        return get_parameter_value(self.parameters, name, year, default)

    @classmethod
    @abstractmethod
    def validate(cls, parameters: Mapping[str, Any]) -> ValidationResult:
        """Check parameter presence and constraints without raising."""

    @classmethod
    @abstractmethod
    def fit_curve(cls, data_points: Sequence[Any]) -> Dict[str, Any]:
        """Estimate parameters from observed ``{year, value}`` points.

        Raises:
            FitError: If there is no usable data.
        """

    @classmethod
    @abstractmethod
    def metadata(cls) -> DistributionMetadata:
        """Describe the distribution and its parameters."""

    def mean_formula(self) -> Optional[Formula]:
        return None

    def std_dev_formula(self) -> Optional[Formula]:
        return None

    def min_formula(self) -> Optional[Formula]:
        return None

    def max_formula(self) -> Optional[Formula]:
        return None

    def skewness_formula(self) -> Optional[Formula]:
        return None

    def kurtosis_formula(self) -> Optional[Formula]:
        return None

    def formulas(self) -> Dict[str, Optional[Formula]]:
        """Analytic formula providers keyed by statistic name."""
        return {
            "mean": self.mean_formula(),
            "stdDev": self.std_dev_formula(),
            "min": self.min_formula(),
            "max": self.max_formula(),
            "skewness": self.skewness_formula(),
            "kurtosis": self.kurtosis_formula(),
        }

    @staticmethod
    def _fit_values(data_points: Optional[Sequence[Any]]) -> np.ndarray:
        """Extract numeric values from data points for fitting.

        Raises:
            FitError: If no data points are given or none are numeric.
        """
        if not data_points:
            raise FitError("Data points are required for curve fitting")
        values = [point_value(p) for p in data_points]
        values = [float(v) for v in values if is_valid_number(v)]
        if not values:
            raise FitError("Data points must carry numeric values for curve fitting")
        return np.asarray(values, dtype=float)

    @classmethod
    def _positive_values(cls, values: np.ndarray, label: str) -> np.ndarray:
        """Keep strictly positive values, warning about anything dropped.

        Raises:
            FitError: If no positive value remains.
        """
        positive = values[values > 0]
        if positive.size == 0:
            raise FitError(
                f"No positive values found in data points (required for {label} fitting)"
            )
        dropped = values.size - positive.size
        if dropped:
            warnings.warn(
                f"Discarded {dropped} non-positive value(s) while fitting {label}",
                DataQualityWarning,
                stacklevel=3,
            )
        return positive

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.parameters!r})"
