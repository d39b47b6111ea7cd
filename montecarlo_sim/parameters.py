"""Distribution parameter handling.

A parameter is either a scalar number or a time series: a sequence of
``{"year": int, "value": float}`` points. Time-series lookup is by exact
year; an unmatched year falls back to a caller-supplied default, there is no
interpolation between points.

The predicates here never raise. Validation helpers append human-readable
messages to an error list so a distribution can report every problem with
its parameters in one :class:`ValidationResult`.
"""

from dataclasses import dataclass, field
import math
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple


@dataclass
class ValidationResult:
    """Outcome of validating a set of distribution parameters.

    Attributes:
        is_valid: True when no errors were found.
        errors: Human-readable messages, one per problem.
    """

    is_valid: bool
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))

    def to_dict(self) -> Dict[str, Any]:
        return {"isValid": self.is_valid, "errors": list(self.errors)}


def _point_field(point: Any, name: str) -> Any:
    if isinstance(point, Mapping):
        return point.get(name)
    return getattr(point, name, None)


def point_year(point: Any) -> Any:
    """Return the ``year`` of a data point given as a mapping or an object."""
    return _point_field(point, "year")


def point_value(point: Any) -> Any:
    """Return the ``value`` of a data point given as a mapping or an object."""
    return _point_field(point, "value")


def is_valid_number(value: Any, allow_none: bool = False) -> bool:
    """Check for a finite real number (booleans are rejected)."""
    if value is None:
        return allow_none
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def is_positive_number(value: Any, allow_zero: bool = False, allow_none: bool = False) -> bool:
    """Check for a finite number that is positive (or non-negative)."""
    if value is None:
        return allow_none
    if not is_valid_number(value):
        return False
    return value >= 0 if allow_zero else value > 0


def is_in_range(value: Any, low: float, high: float, allow_none: bool = False) -> bool:
    """Check for a finite number inside the closed interval ``[low, high]``."""
    if value is None:
        return allow_none
    return is_valid_number(value) and low <= value <= high


def is_valid_data_point(point: Any) -> bool:
    """Check that a point carries numeric ``year`` and ``value`` fields."""
    if point is None:
        return False
    return is_valid_number(point_year(point)) and is_valid_number(point_value(point))


def is_time_series(value: Any) -> bool:
    """True for list/tuple values, i.e. parameters in time-series mode."""
    return isinstance(value, (list, tuple))


def is_valid_time_series(value: Any, allow_empty: bool = True, allow_none: bool = False) -> bool:
    """Check for a sequence of valid data points."""
    if value is None:
        return allow_none
    if not is_time_series(value):
        return False
    if not value and not allow_empty:
        return False
    return all(is_valid_data_point(point) for point in value)


def is_valid_parameter(value: Any, allow_none: bool = False) -> bool:
    """Check for a scalar number or a valid time series."""
    if value is None:
        return allow_none
    return is_valid_number(value) or is_valid_time_series(value)


def is_valid_percentile(value: Any) -> bool:
    """Check for a number in ``[0, 100]``."""
    return is_in_range(value, 0, 100)


def duplicate_years(series: Sequence[Any]) -> List[Any]:
    """Return the years that appear more than once in a time series."""
    seen = set()
    duplicates = []
    for point in series:
        year = point_year(point)
        if year in seen and year not in duplicates:
            duplicates.append(year)
        seen.add(year)
    return duplicates


def get_parameter_value(
    parameters: Mapping[str, Any], name: str, year: int, default: Any = None
) -> Any:
    """Resolve a parameter for one year.

    Args:
        parameters: Parameter mapping of a distribution.
        name: Parameter key.
        year: Simulation year (1-based).
        default: Returned when the parameter is absent or, for a time
            series, when no point matches ``year`` exactly.

    Returns:
        The scalar value, the matching time-series value, or ``default``.
    """
    value = parameters.get(name)
    if value is None:
        return default
    if is_time_series(value):
        for point in value:
            if point_year(point) == year:
                return point_value(point)
        return default
    return value


def parameter_years(parameters: Mapping[str, Any], names: Iterable[str]) -> List[Any]:
    """Collect, sorted, every year mentioned by the named time-series parameters."""
    years = set()
    for name in names:
        value = parameters.get(name)
        if is_valid_time_series(value):
            years.update(point_year(point) for point in value)
    return sorted(years)


def resolve_points(
    parameters: Mapping[str, Any], names: Sequence[str]
) -> List[Tuple[Optional[Any], Tuple[Any, ...]]]:
    """Resolve several parameters jointly for pointwise cross-checks.

    When every parameter is scalar a single ``(None, values)`` entry is
    returned. Otherwise one entry is produced per year mentioned by any time
    series, skipping years for which a parameter cannot be resolved.
    """
    if not all(is_valid_parameter(parameters.get(name)) for name in names):
        return []
    years = parameter_years(parameters, names)
    if not years:
        return [(None, tuple(parameters[name] for name in names))]
    resolved = []
    for year in years:
        values = tuple(get_parameter_value(parameters, name, year) for name in names)
        if all(v is not None for v in values):
            resolved.append((year, values))
    return resolved


def check_parameter(
    parameters: Mapping[str, Any],
    name: str,
    label: str,
    errors: List[str],
    required: bool = True,
    positive: bool = False,
    non_negative: bool = False,
    maximum: Optional[float] = None,
) -> bool:
    """Validate one parameter, appending messages to ``errors``.

    Scalars and time series are both accepted. Constraints are applied to
    the scalar or to every time-series point, and time-series years must be
    unique.

    Args:
        parameters: Parameter mapping of a distribution.
        name: Parameter key.
        label: Human-readable name used in messages.
        errors: List receiving validation messages.
        required: Report a missing parameter as an error.
        positive: Require values strictly greater than zero.
        non_negative: Require values greater than or equal to zero.
        maximum: Optional inclusive upper bound.

    Returns:
        True when no message was added.
    """
    value = parameters.get(name)
    if value is None:
        if required:
            errors.append(f"{label} must be a number or a valid time series")
            return False
        return True

    if not is_valid_parameter(value):
        errors.append(f"{label} must be a number or a valid time series")
        return False

    count = len(errors)
    if is_time_series(value):
        for year in duplicate_years(value):
            errors.append(f"{label} time series has duplicate year {year}")
        points = [(index, point_year(p), point_value(p)) for index, p in enumerate(value)]
    else:
        points = [(None, None, value)]

    for index, year, point in points:
        where = f" at index {index} (year {year})" if index is not None else ""
        if positive and point <= 0:
            errors.append(f"{label}{where} must be positive")
        elif non_negative and point < 0:
            errors.append(f"{label}{where} must be non-negative")
        elif maximum is not None and point > maximum:
            errors.append(f"{label}{where} is unreasonably high (> {maximum:g})")
    return len(errors) == count
