"""Tests for parameter lookup and validation helpers."""

import math

import pytest

from montecarlo_sim.config import DataPoint
from montecarlo_sim.parameters import (
    ValidationResult,
    check_parameter,
    duplicate_years,
    get_parameter_value,
    is_in_range,
    is_positive_number,
    is_valid_number,
    is_valid_parameter,
    is_valid_percentile,
    is_valid_time_series,
    resolve_points,
)

SERIES = [{"year": 1, "value": 10}, {"year": 3, "value": 30}]


class TestPredicates:
    """Test numeric and time-series predicates."""

    def test_is_valid_number(self):
        """Finite real numbers only."""
        assert is_valid_number(1)
        assert is_valid_number(-2.5)
        assert not is_valid_number(math.nan)
        assert not is_valid_number(math.inf)
        assert not is_valid_number("1")
        assert not is_valid_number(True)
        assert not is_valid_number(None)
        assert is_valid_number(None, allow_none=True)

    def test_is_positive_number(self):
        """Strictly positive unless zero is allowed."""
        assert is_positive_number(0.1)
        assert not is_positive_number(0)
        assert is_positive_number(0, allow_zero=True)
        assert not is_positive_number(-1, allow_zero=True)

    def test_is_in_range(self):
        """Closed interval check."""
        assert is_in_range(0, 0, 100)
        assert is_in_range(100, 0, 100)
        assert not is_in_range(100.1, 0, 100)
        assert is_valid_percentile(50)
        assert not is_valid_percentile(-1)

    def test_time_series(self):
        """Lists of {year, value} points are valid parameters."""
        assert is_valid_time_series(SERIES)
        assert is_valid_time_series([])
        assert not is_valid_time_series([], allow_empty=False)
        assert not is_valid_time_series([{"year": 1}])
        assert is_valid_parameter(SERIES)
        assert is_valid_parameter(5)
        assert not is_valid_parameter("five")

    def test_point_objects(self):
        """Model instances are accepted as points."""
        assert is_valid_time_series([DataPoint(year=1, value=2.0)])


class TestGetParameterValue:
    """Test year lookup."""

    def test_scalar(self):
        """Scalars apply to every year."""
        assert get_parameter_value({"a": 5}, "a", 7) == 5

    def test_exact_year_match(self):
        """Time series are looked up by exact year."""
        assert get_parameter_value({"a": SERIES}, "a", 3) == 30

    def test_missing_year_uses_default(self):
        """No interpolation: unmatched years fall back to the default."""
        assert get_parameter_value({"a": SERIES}, "a", 2, default=-1) == -1

    def test_missing_parameter(self):
        """Absent parameters fall back to the default."""
        assert get_parameter_value({}, "a", 1, default=4) == 4


class TestCheckParameter:
    """Test validation message collection."""

    def test_missing_required(self):
        """Missing required parameters are reported."""
        errors = []
        assert not check_parameter({}, "scale", "Scale parameter", errors)
        assert errors == ["Scale parameter must be a number or a valid time series"]

    def test_missing_optional(self):
        """Missing optional parameters are fine."""
        errors = []
        assert check_parameter({}, "scale", "Scale", errors, required=False)
        assert errors == []

    def test_positive_scalar(self):
        """Non-positive scalars fail a positivity constraint."""
        errors = []
        check_parameter({"shape": 0}, "shape", "Shape parameter", errors, positive=True)
        assert errors == ["Shape parameter must be positive"]

    def test_positive_time_series_pointwise(self):
        """Each offending point is reported with its index and year."""
        errors = []
        series = [{"year": 1, "value": 2}, {"year": 2, "value": -1}]
        check_parameter({"shape": series}, "shape", "Shape parameter", errors, positive=True)
        assert errors == ["Shape parameter at index 1 (year 2) must be positive"]

    def test_duplicate_years(self):
        """Time-series years must be unique."""
        series = [{"year": 1, "value": 2}, {"year": 1, "value": 3}]
        assert duplicate_years(series) == [1]
        errors = []
        check_parameter({"a": series}, "a", "Param", errors)
        assert errors == ["Param time series has duplicate year 1"]

    def test_maximum(self):
        """Values above the maximum are reported."""
        errors = []
        check_parameter({"ti": 150}, "ti", "Turbulence intensity", errors, maximum=100)
        assert errors == ["Turbulence intensity is unreasonably high (> 100)"]


class TestResolvePoints:
    """Test joint resolution for cross-parameter checks."""

    def test_all_scalar(self):
        """Scalars resolve to a single yearless entry."""
        assert resolve_points({"min": 1, "max": 2}, ("min", "max")) == [(None, (1, 2))]

    def test_mixed(self):
        """Scalars combine with every year of a time series."""
        resolved = resolve_points({"min": 1, "max": SERIES}, ("min", "max"))
        assert resolved == [(1, (1, 10)), (3, (1, 30))]

    def test_invalid_parameters_skipped(self):
        """Nothing is resolved when a parameter is invalid."""
        assert resolve_points({"min": "x", "max": 2}, ("min", "max")) == []


class TestValidationResult:
    """Test ValidationResult helpers."""

    def test_from_errors(self):
        assert ValidationResult.from_errors([]).is_valid
        result = ValidationResult.from_errors(["bad"])
        assert not result.is_valid
        assert result.to_dict() == {"isValid": False, "errors": ["bad"]}

    @pytest.mark.parametrize("errors", [[], ["a", "b"]])
    def test_errors_copied(self, errors):
        result = ValidationResult.from_errors(errors)
        assert result.errors == errors
        assert result.errors is not errors
