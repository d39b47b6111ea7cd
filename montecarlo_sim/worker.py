"""Simulation worker: drives one distribution through iterations and years.

A :class:`DistributionWorker` moves through three states::

    UNINITIALIZED --initialize(seed)--> INITIALIZED --process()--> PROCESSED

``initialize`` resolves the distribution type, applies fitted parameters,
validates and builds the generator with its own seeded random source. A
failure leaves the worker ``UNINITIALIZED``. ``process`` runs the
iteration/year loop, then reduces the samples to percentile and statistics
series.

:func:`run_distribution` wraps both steps and turns errors into a
:class:`~montecarlo_sim.config.SimulationInfo`. The engine calls it
directly, or through :func:`run_distribution_standalone` in a process pool.
"""

from dataclasses import dataclass
from enum import Enum
import logging
import math
import threading
import time
from typing import Any, Callable, Dict, List, Optional
import warnings

import numpy as np
from tqdm import tqdm

from ._warnings import ConfigurationWarning
from .config import (
    DataPointResult,
    DistributionConfig,
    PercentileSeries,
    SimulationInfo,
    SimulationSettings,
    StatisticsSeries,
)
from .distributions.base import DistributionGenerator, SampleContext
from .exceptions import InvalidParametersError, MonteCarloSimError, SimulationError
from .percentiles import calculate_percentiles, format_percentile_key
from .random_source import SeedLike, UnitIntervalRandom
from .registry import get_distribution_class
from .running_stats import RunningStats
from .statistics import derive_statistics

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, float], None]


class WorkerState(Enum):
    """Lifecycle of a :class:`DistributionWorker`."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    PROCESSED = "processed"


@dataclass
class WorkerResult:
    """Output of :meth:`DistributionWorker.process`.

    Attributes:
        distribution_id: Id of the simulated entry.
        iterations: Iterations requested.
        completed_iterations: Iterations actually run.
        years: Simulated years.
        results: One percentile series per requested percentile.
        statistics: Yearly summary statistics.
        running_stats: Per-year accumulators, index 0 is year 1.
        cancelled: True when the loop stopped on the cancel event.
        elapsed: Loop duration in seconds.
    """

    distribution_id: str
    iterations: int
    completed_iterations: int
    years: int
    results: List[PercentileSeries]
    statistics: StatisticsSeries
    running_stats: List[RunningStats]
    cancelled: bool = False
    elapsed: float = 0.0


class DistributionWorker:
    """Runs one distribution entry with its own random source.

    Args:
        distribution_config: Entry to simulate.
        settings: Request settings. A per-entry ``settings`` override on the
            config is applied on top.
        distribution_id: Id used in results and errors. Defaults to the
            config id.
    """

    def __init__(
        self,
        distribution_config: DistributionConfig,
        settings: SimulationSettings,
        distribution_id: Optional[str] = None,
    ):
        self.config = distribution_config
        self.settings = settings.merged(distribution_config.settings)
        self.distribution_id = distribution_id or distribution_config.id or "distribution"
        self.state = WorkerState.UNINITIALIZED
        self.distribution: Optional[DistributionGenerator] = None
        self.random: Optional[UnitIntervalRandom] = None
        self.seed: Optional[SeedLike] = None

    def initialize(self, seed: SeedLike) -> "DistributionWorker":
        """Prepare the distribution and random source.

        Args:
            seed: Seed of this worker's random source.

        Returns:
            The worker, for chaining.

        Raises:
            UnknownDistributionError: If the type is not registered.
            FitError: If ``fitToData`` cannot be fitted.
            InvalidParametersError: If the final parameters fail validation.
        """
        distribution_class = get_distribution_class(self.config.type)
        parameters: Dict[str, Any] = dict(self.config.parameters)

        if self.settings.fit_to_data:
            fitted = distribution_class.fit_curve(self.settings.fit_to_data)
            logger.debug("Fitted %s parameters for %s: %s", distribution_class.name,
                         self.distribution_id, fitted)
            parameters = {**parameters, **fitted}

        validation = distribution_class.validate(parameters)
        if not validation.is_valid:
            raise InvalidParametersError(distribution_class.name, validation.errors)

        self.distribution = distribution_class(parameters)
        self.random = UnitIntervalRandom(seed)
        self.seed = seed
        self.state = WorkerState.INITIALIZED
        logger.debug("Worker %s initialized (type=%s, seed=%s)", self.distribution_id,
                     distribution_class.name, seed)
        return self

    def _draw(self, iteration: int, year: int, context: SampleContext) -> float:
        """Sample one (iteration, year) unit, raising before anything is stored."""
        try:
            self.distribution.update_year(year, context)
            value = float(self.distribution.sample(year, self.random, context))
        except (ArithmeticError, ValueError, TypeError) as e:
            raise SimulationError(
                self.distribution_id,
                f"Sampling failed at iteration {iteration + 1}, year {year}: {e}",
            ) from e
        if not math.isfinite(value):
            raise SimulationError(
                self.distribution_id,
                f"Non-finite value {value} sampled at iteration {iteration + 1}, year {year}",
            )
        return value

    def process(
        self,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[ProgressCallback] = None,
        progress_bar: bool = False,
    ) -> WorkerResult:
        """Run the iteration/year loop and reduce the samples.

        Args:
            cancel_event: When set, the loop stops before the next iteration
                and results cover the completed iterations.
            progress_callback: Called with ``(completed, total, elapsed)``
                about every 1% of iterations.
            progress_bar: Show a tqdm progress bar.

        Returns:
            Percentile series and statistics of this distribution.

        Raises:
            SimulationError: If the worker is not initialized, or a sample
                fails or is not finite.
        """
        if self.state is not WorkerState.INITIALIZED:
            raise SimulationError(
                self.distribution_id,
                f"Worker must be initialized before processing (state: {self.state.value})",
            )

        iterations = self.settings.iterations
        years = self.settings.years
        samples = np.empty((years, iterations), dtype=np.float64)
        running_stats = [RunningStats() for _ in range(years)]

        iterator = range(iterations)
        if progress_bar:
            iterator = tqdm(iterator, desc=f"Simulating {self.distribution_id}", leave=False)

        callback_interval = max(1, iterations // 100)
        start = time.time()
        completed = 0
        cancelled = False
        try:
            for i in iterator:
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Cancellation requested for %s at iteration %d/%d",
                                self.distribution_id, i, iterations)
                    cancelled = True
                    break

                context = self.distribution.initialize()
                for year in range(1, years + 1):
                    value = self._draw(i, year, context)
                    samples[year - 1, i] = value
                    running_stats[year - 1].update(value)

                completed = i + 1
                if progress_callback is not None and completed % callback_interval == 0:
                    progress_callback(completed, iterations, time.time() - start)
        finally:
            if progress_bar:
                iterator.close()

        # Fire final callback so callers always see the completed count
        if progress_callback is not None and completed > 0 and completed % callback_interval:
            progress_callback(completed, iterations, time.time() - start)

        if completed < iterations:
            samples = samples[:, :completed]

        result = WorkerResult(
            distribution_id=self.distribution_id,
            iterations=iterations,
            completed_iterations=completed,
            years=years,
            results=self._percentile_series(samples),
            statistics=derive_statistics(self.distribution, running_stats, years),
            running_stats=running_stats,
            cancelled=cancelled,
            elapsed=time.time() - start,
        )
        self.state = WorkerState.PROCESSED
        return result

    def _percentile_series(self, samples: np.ndarray) -> List[PercentileSeries]:
        """Percentile series per requested percentile, honoring the direction."""
        descending = self.settings.percentile_direction == "descending"
        requested = [spec.value for spec in self.settings.percentiles]
        effective = [100 - p if descending else p for p in requested]

        yearly: List[Optional[Dict[str, float]]] = []
        for row in samples:
            yearly.append(calculate_percentiles(row, effective) if row.size else None)

        series = []
        for spec, percentile in zip(self.settings.percentiles, effective):
            key = format_percentile_key(percentile)
            data = [
                DataPointResult(year=year, value=None if values is None else values[key])
                for year, values in enumerate(yearly, start=1)
            ]
            series.append(
                PercentileSeries(
                    name=f"{self.distribution.name}_{format_percentile_key(spec.value)}",
                    percentile=spec,
                    data=data,
                )
            )
        return series


def run_distribution(
    distribution_config: DistributionConfig,
    settings: SimulationSettings,
    distribution_id: str,
    seed: SeedLike,
    request_seed: Optional[SeedLike] = None,
    cancel_event: Optional[threading.Event] = None,
    progress_callback: Optional[ProgressCallback] = None,
    progress_bar: bool = False,
) -> SimulationInfo:
    """Initialize and process one entry, recording failures as errors.

    Args:
        distribution_config: Entry to simulate.
        settings: Request settings.
        distribution_id: Id of the entry.
        seed: Seed of the entry's random source.
        request_seed: Seed echoed in the result. Defaults to ``seed``.
        cancel_event: Cooperative cancellation flag.
        progress_callback: Forwarded to :meth:`DistributionWorker.process`.
        progress_bar: Show a tqdm progress bar.

    Returns:
        Result of the entry. ``errors`` holds the message of any
        :class:`~montecarlo_sim.exceptions.MonteCarloSimError`.
    """
    start = time.time()
    worker = DistributionWorker(distribution_config, settings, distribution_id)
    info = SimulationInfo(
        distribution=distribution_id,
        iterations=worker.settings.iterations,
        seed=seed if request_seed is None else request_seed,
        years=worker.settings.years,
    )

    try:
        worker.initialize(seed)
        result = worker.process(
            cancel_event=cancel_event,
            progress_callback=progress_callback,
            progress_bar=progress_bar,
        )
    except MonteCarloSimError as e:
        logger.warning("Distribution %s failed: %s", distribution_id, e)
        info.errors.append(str(e))
    else:
        info.results = result.results
        info.statistics = result.statistics
        if result.cancelled:
            info.cancelled = True
            info.errors.append(
                f"Simulation cancelled after {result.completed_iterations} of "
                f"{result.iterations} iterations"
            )

    info.time_elapsed = (time.time() - start) * 1000
    logger.debug("Distribution %s finished in %.1f ms", distribution_id, info.time_elapsed)
    return info


def run_distribution_standalone(
    config_dict: Dict[str, Any],
    settings_dict: Dict[str, Any],
    distribution_id: str,
    seed: SeedLike,
    request_seed: Optional[SeedLike] = None,
) -> SimulationInfo:
    """Standalone function to simulate one entry for multiprocessing.

    This function is independent of the engine and takes plain dictionaries,
    so it can be pickled for a process pool on every platform. Errors are
    returned inside the result because the exception classes carry extra
    constructor arguments.

    Args:
        config_dict: ``DistributionConfig.model_dump()`` of the entry.
        settings_dict: ``SimulationSettings.model_dump()`` of the request.
        distribution_id: Id of the entry.
        seed: Seed of the entry's random source.
        request_seed: Seed echoed in the result.

    Returns:
        Result of the entry.
    """
    with warnings.catch_warnings():
        # Already reported when the request was built in the parent process
        warnings.simplefilter("ignore", ConfigurationWarning)
        distribution_config = DistributionConfig.model_validate(config_dict)
        settings = SimulationSettings.model_validate(settings_dict)
    return run_distribution(distribution_config, settings, distribution_id, seed, request_seed)
