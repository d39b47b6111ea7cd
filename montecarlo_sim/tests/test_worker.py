"""Tests for the simulation worker."""

import math
import threading

import numpy as np
import pytest

from montecarlo_sim.config import DistributionConfig, SimulationSettings
from montecarlo_sim.distributions import FixedDistribution
from montecarlo_sim.exceptions import (
    FitError,
    InvalidParametersError,
    SimulationError,
    UnknownDistributionError,
)
from montecarlo_sim.worker import (
    DistributionWorker,
    WorkerState,
    run_distribution,
    run_distribution_standalone,
)


def make_worker(type_, parameters, settings, distribution_id="d1"):
    config = DistributionConfig(id=distribution_id, type=type_, parameters=parameters)
    return DistributionWorker(config, settings)


def series_values(result, name):
    series = next(s for s in result.results if s.name == name)
    return [point.value for point in series.data]


class FailingDistribution(FixedDistribution):
    """Fixed distribution that returns NaN on the second iteration's second year."""

    def __init__(self, parameters):
        super().__init__(parameters)
        self.calls = 0

    def sample(self, year, random, context=None):
        self.calls += 1
        if self.calls == 7:
            return math.nan
        return super().sample(year, random, context)


class TestWorkerLifecycle:
    """Test state transitions and initialization failures."""

    def test_process_before_initialize(self, small_settings):
        worker = make_worker("Fixed", {"value": 1}, small_settings)
        assert worker.state is WorkerState.UNINITIALIZED
        with pytest.raises(SimulationError, match="Distribution 'd1': Worker must be initialized"):
            worker.process()

    def test_states(self, small_settings):
        worker = make_worker("Fixed", {"value": 1}, small_settings)
        assert worker.initialize(1) is worker
        assert worker.state is WorkerState.INITIALIZED
        worker.process()
        assert worker.state is WorkerState.PROCESSED
        with pytest.raises(SimulationError):
            worker.process()

    def test_unknown_type(self, small_settings):
        worker = make_worker("Cauchy", {}, small_settings)
        with pytest.raises(UnknownDistributionError):
            worker.initialize(1)
        assert worker.state is WorkerState.UNINITIALIZED

    def test_invalid_parameters(self, small_settings):
        worker = make_worker("Triangular", {"min": 10, "mode": 5, "max": 1}, small_settings)
        with pytest.raises(InvalidParametersError, match="Invalid parameters for Triangular"):
            worker.initialize(1)
        assert worker.state is WorkerState.UNINITIALIZED

    def test_fit_overrides_parameters(self):
        """Fitted parameters replace configured ones before validation."""
        settings = SimulationSettings(
            iterations=100, years=3, seed=1,
            fit_to_data=[{"year": 1, "value": 10}, {"year": 2, "value": 10}],
        )
        worker = make_worker("Fixed", {"value": 1, "drift": 5}, settings).initialize(1)
        assert worker.distribution.parameters == {"value": 10.0, "drift": 0.0}
        result = worker.process()
        assert series_values(result, "Fixed_P50") == [10.0, 10.0, 10.0]

    def test_fit_error(self):
        settings = SimulationSettings(iterations=100, years=2,
                                      fit_to_data=[{"year": 1, "value": -3}])
        worker = make_worker("Gamma", {"shape": 2, "scale": 1}, settings)
        with pytest.raises(FitError, match="No positive values"):
            worker.initialize(1)

    def test_per_entry_settings_override(self, small_settings):
        config = DistributionConfig(
            id="d1", type="Fixed", parameters={"value": 1}, settings={"years": 2}
        )
        worker = DistributionWorker(config, small_settings)
        assert worker.settings.years == 2
        assert worker.settings.iterations == small_settings.iterations


class TestWorkerProcess:
    """Test the sampling loop and result reduction."""

    def test_fixed_scenario(self, small_settings):
        """Fixed{value:50, drift:0} is 50 in every year and percentile."""
        result = make_worker("Fixed", {"value": 50, "drift": 0}, small_settings).initialize(9).process()
        assert len(result.results) == 5
        for series in result.results:
            assert [p.value for p in series.data] == [50.0] * 5
        assert [p.value for p in result.statistics.mean] == [50] * 5
        assert [p.value for p in result.statistics.std_dev] == [0] * 5

    def test_series_names_and_labels(self, small_settings):
        result = make_worker("Normal", {"value": 100, "stdDev": 10}, small_settings).initialize(1).process()
        assert [s.name for s in result.results] == [
            "Normal_P50", "Normal_P75", "Normal_P25", "Normal_P10", "Normal_P90"
        ]
        assert result.results[0].percentile.description == "primary"
        assert [p.year for p in result.results[0].data] == [1, 2, 3, 4, 5]

    def test_percentiles_monotonic(self, small_settings):
        result = make_worker("Lognormal", {"mu": 0, "sigma": 1}, small_settings).initialize(3).process()
        for year_index in range(small_settings.years):
            ordered = [series_values(result, f"Lognormal_P{p}")[year_index]
                       for p in (10, 25, 50, 75, 90)]
            assert ordered == sorted(ordered)

    def test_uniform_percentiles_within_bounds(self, small_settings):
        result = make_worker("Uniform", {"min": 2, "max": 4}, small_settings).initialize(3).process()
        for series in result.results:
            assert all(2 <= p.value <= 4 for p in series.data)

    def test_descending_direction(self):
        """Descending reports 100 - p under the label of p."""
        base = dict(iterations=400, years=3, seed=5)
        ascending = make_worker(
            "Normal", {"value": 100, "stdDev": 10}, SimulationSettings(**base)
        ).initialize(5).process()
        descending = make_worker(
            "Normal", {"value": 100, "stdDev": 10},
            SimulationSettings(**base, percentile_direction="descending"),
        ).initialize(5).process()

        assert series_values(descending, "Normal_P10") == series_values(ascending, "Normal_P90")
        assert series_values(descending, "Normal_P50") == series_values(ascending, "Normal_P50")
        assert descending.results[3].percentile.value == 10

    def test_statistics_numeric_fallback(self, small_settings):
        result = make_worker("Uniform", {"min": 0, "max": 1}, small_settings).initialize(3).process()
        stats = result.running_stats[0]
        assert stats.count == small_settings.iterations
        assert result.statistics.mean[0].value == pytest.approx(stats.mean)
        assert result.statistics.kurtosis[0].value == pytest.approx(stats.kurtosis)
        assert result.statistics.mean[0].value == pytest.approx(0.5, abs=0.05)

    def test_statistics_use_formulas(self, small_settings):
        """Analytic formulas replace numeric values where supplied."""
        result = make_worker("GBM", {"value": 100, "drift": 5, "volatility": 20},
                             small_settings).initialize(3).process()
        assert [p.value for p in result.statistics.min] == [0.0] * 5
        assert result.statistics.max[0].value == 100
        assert result.statistics.std_dev[0].value == 0

    def test_reproducible(self, small_settings):
        a = make_worker("Gamma", {"shape": 2, "scale": 3}, small_settings).initialize(77).process()
        b = make_worker("Gamma", {"shape": 2, "scale": 3}, small_settings).initialize(77).process()
        assert [s.model_dump() for s in a.results] == [s.model_dump() for s in b.results]
        assert a.statistics == b.statistics

    def test_non_finite_sample(self, small_settings):
        worker = make_worker("Fixed", {"value": 1}, small_settings).initialize(1)
        worker.distribution = FailingDistribution({"value": 1})
        with pytest.raises(SimulationError, match="Distribution 'd1': Non-finite value nan"):
            worker.process()


class TestWorkerCancellation:
    """Test cooperative cancellation and progress reporting."""

    def test_cancel_mid_run(self):
        settings = SimulationSettings(iterations=1000, years=2, seed=1)
        worker = make_worker("Normal", {"value": 10, "stdDev": 10}, settings).initialize(1)
        cancel_event = threading.Event()

        def on_progress(completed, total, elapsed):
            if completed >= 100:
                cancel_event.set()

        result = worker.process(cancel_event=cancel_event, progress_callback=on_progress)
        assert result.cancelled
        assert result.completed_iterations == 100
        assert result.running_stats[0].count == 100
        assert all(p.value is not None for p in result.results[0].data)

    def test_cancel_before_start(self, small_settings):
        cancel_event = threading.Event()
        cancel_event.set()
        worker = make_worker("Normal", {"value": 10, "stdDev": 10}, small_settings).initialize(1)
        result = worker.process(cancel_event=cancel_event)
        assert result.cancelled
        assert result.completed_iterations == 0
        assert all(p.value is None for p in result.results[0].data)
        assert all(p.value is None for p in result.statistics.mean)

    def test_progress_callback(self):
        settings = SimulationSettings(iterations=250, years=1, seed=1)
        calls = []
        make_worker("Fixed", {"value": 1}, settings).initialize(1).process(
            progress_callback=lambda c, t, e: calls.append((c, t))
        )
        assert calls[0] == (2, 250)
        assert calls[-1] == (250, 250)
        assert [c for c, _ in calls] == sorted(c for c, _ in calls)

    def test_progress_bar(self, small_settings):
        result = make_worker("Fixed", {"value": 1}, small_settings).initialize(1).process(
            progress_bar=True
        )
        assert result.completed_iterations == small_settings.iterations


class TestRunDistribution:
    """Test the error-capturing wrappers."""

    def test_errors_recorded(self, small_settings):
        config = DistributionConfig(id="bad", type="Poisson", parameters={"lambda": -1})
        info = run_distribution(config, small_settings, "bad", seed=1, request_seed=42)
        assert info.seed == 42
        assert info.results == []
        assert info.statistics is None
        assert len(info.errors) == 1
        assert "Rate parameter (lambda) must be positive" in info.errors[0]

    def test_cancelled_info(self, small_settings):
        cancel_event = threading.Event()
        cancel_event.set()
        config = DistributionConfig(id="d1", type="Fixed", parameters={"value": 1})
        info = run_distribution(config, small_settings, "d1", seed=1, cancel_event=cancel_event)
        assert info.cancelled
        assert info.errors == ["Simulation cancelled after 0 of 500 iterations"]

    def test_standalone_matches_direct(self, small_settings):
        config = DistributionConfig(id="d1", type="Weibull", parameters={"scale": 5, "shape": 2})
        direct = run_distribution(config, small_settings, "d1", seed=99, request_seed=42)
        standalone = run_distribution_standalone(
            config.model_dump(), small_settings.model_dump(), "d1", 99, 42
        )
        assert standalone.model_dump(exclude={"time_elapsed"}) == direct.model_dump(
            exclude={"time_elapsed"}
        )
        assert np.isfinite(standalone.time_elapsed)
