"""Monte Carlo engine for batches of distributions.

The engine runs every distribution entry of a request with its own seeded
worker and assembles a :class:`~montecarlo_sim.config.SimulationResponse`.
A failing entry is reported in its own ``errors`` list and does not stop the
other entries.

Each entry's seed is derived from the request seed and the entry id only,
so an entry produces the same draws whatever else is in the request, in any
order and in sequential or parallel execution.

Examples:
    Running a request::

        from montecarlo_sim import MonteCarloEngine

        engine = MonteCarloEngine()
        response = engine.run({
            "distributions": [
                {"id": "yield", "type": "Normal",
                 "parameters": {"value": 100, "stdDev": 10}},
                {"id": "price", "type": "GBM",
                 "parameters": {"value": 50, "drift": 3, "volatility": 20}},
            ],
            "simulationSettings": {"iterations": 10000, "years": 20, "seed": 42},
        })
        print(response.success, response.get("price").results[0].data[:3])

    Building up distributions one at a time::

        engine = MonteCarloEngine(settings={"iterations": 2000, "years": 5, "seed": 7})
        engine.add_distribution("cost", {"type": "Triangular",
                                         "parameters": {"min": 8, "mode": 10, "max": 15}})
        response = engine.run()
"""

from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
import logging
import threading
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union
import warnings

from pydantic import ValidationError
from tqdm import tqdm

from .config import (
    DistributionConfig,
    SettingsOverride,
    SimulationInfo,
    SimulationRequest,
    SimulationResponse,
    SimulationSettings,
)
from .exceptions import ConfigurationError
from .random_source import derive_seed, generate_seed
from .worker import run_distribution, run_distribution_standalone

logger = logging.getLogger(__name__)

RequestLike = Union[SimulationRequest, Mapping[str, Any]]

# (id, config) for a usable entry, (id, error message) for a malformed one
_Entry = Tuple[str, Union[DistributionConfig, str]]


@dataclass
class EngineConfig:
    """Runtime options of :class:`MonteCarloEngine`.

    Attributes:
        parallel: Run distributions in a process pool.
        n_workers: Number of pool processes (None for auto).
        progress_bar: Show a tqdm progress bar over distributions.
    """

    parallel: bool = False
    n_workers: Optional[int] = None
    progress_bar: bool = False

    def __post_init__(self):
        """Validate configuration parameters.

        Raises:
            ValueError: If ``n_workers`` is not positive.
        """
        if self.n_workers is not None and self.n_workers <= 0:
            raise ValueError(
                f"n_workers must be positive, got {self.n_workers}. "
                "Use None to let the pool pick the CPU count."
            )


def _format_validation_error(error: ValidationError, prefix: str = "") -> List[str]:
    issues = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        where = f"{location}: " if location else ""
        issues.append(f"{prefix}{where}{item.get('msg', 'invalid value')}")
    return issues


def _coerce_settings(settings: Any) -> SimulationSettings:
    if settings is None:
        return SimulationSettings()
    if isinstance(settings, SimulationSettings):
        return settings
    try:
        return SimulationSettings.model_validate(settings)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e, "simulationSettings.")) from e


def _coerce_distribution(distribution: Any, distribution_id: str) -> DistributionConfig:
    """Build an entry config with ``distribution_id`` as its id.

    Raises:
        ConfigurationError: If the entry is not a mapping or misses its type
            or parameters.
    """
    if isinstance(distribution, DistributionConfig):
        return distribution.model_copy(update={"id": distribution_id})
    if not isinstance(distribution, Mapping):
        raise ConfigurationError(
            [f"Distribution '{distribution_id}' must be a mapping, got {type(distribution).__name__}"]
        )
    try:
        return DistributionConfig.model_validate({**distribution, "id": distribution_id})
    except ValidationError as e:
        raise ConfigurationError(
            _format_validation_error(e, f"Distribution '{distribution_id}': ")
        ) from e


def _entry_seed(
    settings: SimulationSettings, distribution_id: str, config: DistributionConfig
) -> Tuple[int, Any]:
    """Seed of one entry's random source and the seed echoed in its result.

    A ``seed`` in the entry's settings override replaces the request seed for
    that entry only.
    """
    base_seed = settings.merged(config.settings).seed
    return derive_seed(base_seed, distribution_id), base_seed


class MonteCarloEngine:
    """Runs simulation requests.

    Args:
        config: Runtime options, defaults to sequential execution.
        settings: Default settings for :meth:`run` without a request.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        settings: Optional[Union[SimulationSettings, Mapping[str, Any]]] = None,
    ):
        self.config = config or EngineConfig()
        self.settings = _coerce_settings(settings)
        self._distributions: Dict[str, DistributionConfig] = {}
        self._results: Dict[str, SimulationInfo] = {}

    def add_distribution(
        self,
        distribution_id: str,
        distribution: Union[DistributionConfig, Mapping[str, Any]],
        settings: Optional[Union[SettingsOverride, Mapping[str, Any]]] = None,
    ) -> "MonteCarloEngine":
        """Register a distribution for :meth:`run` without a request.

        Args:
            distribution_id: Unique id of the entry.
            distribution: Entry with ``type`` and ``parameters``.
            settings: Optional per-entry settings override.

        Returns:
            The engine, for chaining.

        Raises:
            ConfigurationError: If the id is taken or the entry is malformed.
        """
        if distribution_id in self._distributions:
            raise ConfigurationError([f"Duplicate distribution id '{distribution_id}'"])

        config = _coerce_distribution(distribution, distribution_id)
        if settings is not None:
            try:
                override = (
                    settings
                    if isinstance(settings, SettingsOverride)
                    else SettingsOverride.model_validate(settings)
                )
            except ValidationError as e:
                raise ConfigurationError(
                    _format_validation_error(e, f"Distribution '{distribution_id}' settings: ")
                ) from e
            config = config.model_copy(update={"settings": override})

        self._distributions[distribution_id] = config
        return self

    def remove_distribution(self, distribution_id: str) -> bool:
        """Unregister a distribution. Returns False if it was not registered."""
        return self._distributions.pop(distribution_id, None) is not None

    def clear_distributions(self) -> None:
        self._distributions.clear()

    def get_distributions(self) -> Dict[str, DistributionConfig]:
        return dict(self._distributions)

    def get_distribution_settings(self, distribution_id: str) -> SimulationSettings:
        """Effective settings of a registered distribution.

        Raises:
            KeyError: If the id is not registered.
        """
        if distribution_id not in self._distributions:
            raise KeyError(f"Distribution '{distribution_id}' is not registered")
        return self.settings.merged(self._distributions[distribution_id].settings)

    def get_results(self) -> Dict[str, SimulationInfo]:
        """Per-distribution results of the last run, keyed by id."""
        return dict(self._results)

    def _parse_request(self, request: RequestLike) -> Tuple[SimulationSettings, List[_Entry]]:
        """Split a request into settings and entries with ids assigned.

        Malformed entries are kept with their error so the rest of the
        batch still runs.

        Raises:
            ConfigurationError: If the settings are invalid, the
                distributions are not a list, or ids are duplicated.
        """
        if isinstance(request, SimulationRequest):
            settings = request.simulation_settings
            raw_entries: Any = list(request.distributions)
        elif isinstance(request, Mapping):
            raw_settings = request.get("simulationSettings", request.get("simulation_settings"))
            settings = _coerce_settings(raw_settings)
            raw_entries = request.get("distributions")
        else:
            raise ConfigurationError(
                [f"Request must be a SimulationRequest or a mapping, got {type(request).__name__}"]
            )

        if not isinstance(raw_entries, (list, tuple)) or not raw_entries:
            raise ConfigurationError(["Request must contain a non-empty 'distributions' list"])

        entries: List[_Entry] = []
        seen = set()
        duplicates = []
        for index, raw in enumerate(raw_entries):
            explicit_id = raw.id if isinstance(raw, DistributionConfig) else (
                raw.get("id") if isinstance(raw, Mapping) else None
            )
            distribution_id = str(explicit_id) if explicit_id else f"distribution_{index + 1}"
            if distribution_id in seen:
                duplicates.append(f"Duplicate distribution id '{distribution_id}'")
            seen.add(distribution_id)

            try:
                entries.append((distribution_id, _coerce_distribution(raw, distribution_id)))
            except ConfigurationError as e:
                entries.append((distribution_id, str(e)))

        if duplicates:
            raise ConfigurationError(duplicates)
        return settings, entries

    def run(
        self,
        request: Optional[RequestLike] = None,
        cancel_event: Optional[threading.Event] = None,
        progress_callback: Optional[Callable[[int, int, float], None]] = None,
    ) -> SimulationResponse:
        """Simulate every distribution of a request.

        Args:
            request: :class:`SimulationRequest` or mapping with
                ``distributions`` and ``simulationSettings``. When omitted,
                the distributions registered with :meth:`add_distribution`
                run with the engine's settings.
            cancel_event: When set, running distributions stop at the next
                iteration boundary and the rest are reported as cancelled.
            progress_callback: Called with ``(completed, total, elapsed)``
                after each distribution.

        Returns:
            Aggregate response. ``success`` is False if any entry has errors.

        Raises:
            ConfigurationError: If the request as a whole is malformed.
        """
        if request is None:
            if not self._distributions:
                raise ConfigurationError(["No distributions registered"])
            settings = self.settings
            entries: List[_Entry] = list(self._distributions.items())
        else:
            settings, entries = self._parse_request(request)

        if settings.seed is None:
            settings = settings.model_copy(update={"seed": generate_seed()})
        request_seed = settings.seed

        logger.info(
            "Starting Monte Carlo run: %d distributions, %d iterations, %d years, seed=%s",
            len(entries), settings.iterations, settings.years, request_seed,
        )
        start = time.time()

        if self.config.parallel and len(entries) > 1:
            infos = self._run_parallel(entries, settings, cancel_event, progress_callback)
        else:
            infos = self._run_sequential(entries, settings, cancel_event, progress_callback)

        response = SimulationResponse(
            success=all(not info.errors for info in infos),
            simulation_info=infos,
        )
        self._results = {info.distribution: info for info in infos}

        failed = [info.distribution for info in infos if info.errors]
        logger.info(
            "Monte Carlo run finished in %.2fs (%d ok, %d with errors)",
            time.time() - start, len(infos) - len(failed), len(failed),
        )
        return response

    def _error_info(
        self, distribution_id: str, config: Optional[DistributionConfig],
        settings: SimulationSettings, message: str, cancelled: bool = False,
    ) -> SimulationInfo:
        effective = settings.merged(config.settings) if config is not None else settings
        logger.warning("Distribution %s failed: %s", distribution_id, message)
        return SimulationInfo(
            distribution=distribution_id,
            iterations=effective.iterations,
            seed=effective.seed,
            years=effective.years,
            errors=[message],
            cancelled=cancelled,
        )

    def _run_sequential(
        self,
        entries: List[_Entry],
        settings: SimulationSettings,
        cancel_event: Optional[threading.Event],
        progress_callback: Optional[Callable[[int, int, float], None]],
    ) -> List[SimulationInfo]:
        """Run entries one after the other in this process."""
        infos = []
        iterator: Any = entries
        if self.config.progress_bar:
            iterator = tqdm(entries, desc="Simulating distributions")

        run_start = time.time()
        for completed, (distribution_id, config) in enumerate(iterator, start=1):
            if isinstance(config, str):
                infos.append(self._error_info(distribution_id, None, settings, config))
            else:
                seed, echoed_seed = _entry_seed(settings, distribution_id, config)
                logger.debug("Distribution %s uses seed %d", distribution_id, seed)
                infos.append(
                    run_distribution(
                        config, settings, distribution_id, seed,
                        request_seed=echoed_seed, cancel_event=cancel_event,
                    )
                )
            if progress_callback is not None:
                progress_callback(completed, len(entries), time.time() - run_start)
        return infos

    def _run_parallel(
        self,
        entries: List[_Entry],
        settings: SimulationSettings,
        cancel_event: Optional[threading.Event],
        progress_callback: Optional[Callable[[int, int, float], None]],
    ) -> List[SimulationInfo]:
        """Run entries in a process pool, keeping request order in the output."""
        results: Dict[str, SimulationInfo] = {}
        settings_dict = settings.model_dump()
        run_start = time.time()

        try:
            with ProcessPoolExecutor(max_workers=self.config.n_workers) as executor:
                futures = {}
                for distribution_id, config in entries:
                    if isinstance(config, str):
                        results[distribution_id] = self._error_info(
                            distribution_id, None, settings, config
                        )
                        continue
                    seed, echoed_seed = _entry_seed(settings, distribution_id, config)
                    future = executor.submit(
                        run_distribution_standalone,
                        config.model_dump(),
                        settings_dict,
                        distribution_id,
                        seed,
                        echoed_seed,
                    )
                    futures[future] = (distribution_id, config)

                if self.config.progress_bar:
                    pbar = tqdm(total=len(futures), desc="Simulating distributions")

                for future in as_completed(futures):
                    if cancel_event is not None and cancel_event.is_set():
                        logger.info("Cancellation requested during parallel execution")
                        for f in futures:
                            f.cancel()
                        break

                    distribution_id, _ = futures[future]
                    results[distribution_id] = future.result()

                    if self.config.progress_bar:
                        pbar.update(1)
                    if progress_callback is not None:
                        progress_callback(len(results), len(entries), time.time() - run_start)

                if self.config.progress_bar:
                    pbar.close()

                for future, (distribution_id, config) in futures.items():
                    if distribution_id in results:
                        continue
                    if future.cancelled():
                        results[distribution_id] = self._error_info(
                            distribution_id, config, settings,
                            "Simulation cancelled before start", cancelled=True,
                        )
                    else:
                        results[distribution_id] = future.result()

        except (OSError, RuntimeError) as e:
            warnings.warn(
                f"Parallel execution failed: {e}. Falling back to sequential execution.",
                RuntimeWarning,
                stacklevel=2,
            )
            return self._run_sequential(entries, settings, cancel_event, progress_callback)

        return [results[distribution_id] for distribution_id, _ in entries]
