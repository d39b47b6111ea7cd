"""Request, settings and response models using Pydantic v2.

Models serialize with camelCase keys (``model_dump(by_alias=True)``) and
accept either camelCase or snake_case on input, so a request body received
by an HTTP layer can be passed through unchanged. Python attributes are
snake_case.

Examples:
    Building a request in code::

        from montecarlo_sim.config import SimulationRequest

        request = SimulationRequest.from_dict({
            "distributions": [
                {"id": "price", "type": "GBM",
                 "parameters": {"value": 50, "drift": 3, "volatility": 20}},
            ],
            "simulationSettings": {"iterations": 5000, "years": 10, "seed": 42},
        })

    Loading from YAML::

        request = SimulationRequest.from_yaml(Path("request.yaml"))
"""

import logging
from pathlib import Path
import sys
from typing import Any, Dict, List, Literal, Optional, Union
import warnings

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ._warnings import ConfigurationWarning

RECOMMENDED_MIN_ITERATIONS = 100

Seed = Union[int, str]


class CamelModel(BaseModel):
    """Base model with camelCase aliases that also accepts field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _warn_low_iterations(iterations: Optional[int]) -> None:
    if iterations is not None and iterations < RECOMMENDED_MIN_ITERATIONS:
        warnings.warn(
            f"iterations={iterations} is below the recommended minimum of "
            f"{RECOMMENDED_MIN_ITERATIONS}; percentiles will be unstable",
            ConfigurationWarning,
            stacklevel=2,
        )


class DataPoint(CamelModel):
    """One observed or time-series ``{year, value}`` point."""

    year: int
    value: float


class PercentileSpec(CamelModel):
    """A requested percentile and its label."""

    value: float = Field(ge=0, le=100, description="Percentile in [0, 100]")
    description: str = Field(default="", description="Label such as 'primary'")


def default_percentiles() -> List[PercentileSpec]:
    """Percentiles reported when a request does not list its own."""
    return [
        PercentileSpec(value=50, description="primary"),
        PercentileSpec(value=75, description="upper_bound"),
        PercentileSpec(value=25, description="lower_bound"),
        PercentileSpec(value=10, description="extreme_lower"),
        PercentileSpec(value=90, description="extreme_upper"),
    ]


class SimulationSettings(CamelModel):
    """Settings shared by every distribution of a request.

    Attributes:
        iterations: Number of simulated paths per distribution.
        seed: Request seed. ``None`` means the engine draws one and echoes it
            in the response.
        years: Number of simulated years (1-based).
        percentiles: Percentiles to report, in the order given.
        fit_to_data: Observed points. When non-empty, fitted parameters
            override the configured ones before validation.
        percentile_direction: ``"descending"`` reports ``100 - p`` under the
            label of ``p``, for metrics where lower values are better.
    """

    iterations: int = Field(default=10000, gt=0)
    seed: Optional[Seed] = Field(default=None, description="Seed for reproducibility")
    years: int = Field(default=20, gt=0)
    percentiles: List[PercentileSpec] = Field(default_factory=default_percentiles, min_length=1)
    fit_to_data: Optional[List[DataPoint]] = None
    percentile_direction: Literal["ascending", "descending"] = "ascending"

    @field_validator("iterations")
    @classmethod
    def warn_low_iterations(cls, v: int) -> int:
        _warn_low_iterations(v)
        return v

    def merged(self, override: Optional["SettingsOverride"]) -> "SimulationSettings":
        """Return a copy with every field set on ``override`` applied."""
        if override is None:
            return self
        updates = {
            name: getattr(override, name)
            for name in override.model_fields_set
            if getattr(override, name) is not None
        }
        return self.model_copy(update=updates)


class SettingsOverride(CamelModel):
    """Per-distribution partial override of :class:`SimulationSettings`."""

    iterations: Optional[int] = Field(default=None, gt=0)
    seed: Optional[Seed] = None
    years: Optional[int] = Field(default=None, gt=0)
    percentiles: Optional[List[PercentileSpec]] = Field(default=None, min_length=1)
    fit_to_data: Optional[List[DataPoint]] = None
    percentile_direction: Optional[Literal["ascending", "descending"]] = None

    @field_validator("iterations")
    @classmethod
    def warn_low_iterations(cls, v: Optional[int]) -> Optional[int]:
        _warn_low_iterations(v)
        return v


class DistributionConfig(CamelModel):
    """One distribution entry of a request. Immutable once created.

    Parameter values are kept as given (numbers or lists of ``{year,
    value}`` points) and checked by the distribution's own ``validate``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: Optional[str] = None
    type: str = Field(min_length=1)
    parameters: Dict[str, Any]
    time_series_mode: bool = False
    settings: Optional[SettingsOverride] = None


class SimulationRequest(CamelModel):
    """A batch of distributions simulated with shared settings."""

    distributions: List[DistributionConfig] = Field(min_length=1)
    simulation_settings: SimulationSettings = Field(default_factory=SimulationSettings)

    @model_validator(mode="after")
    def validate_unique_ids(self):
        """Reject explicit distribution ids that appear more than once.

        Raises:
            ValueError: If an id is repeated.
        """
        seen = set()
        for entry in self.distributions:
            if entry.id is None:
                continue
            if entry.id in seen:
                raise ValueError(f"Duplicate distribution id '{entry.id}'")
            seen.add(entry.id)
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationRequest":
        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, path: Path) -> "SimulationRequest":
        """Load a request from a YAML file.

        Args:
            path: Path to the YAML file.

        Returns:
            Validated request.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValidationError: If the content is not a valid request.
        """
        import yaml

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Request file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Remove private anchors if present
        data = {k: v for k, v in data.items() if not k.startswith("_")}

        return cls.model_validate(data)

    def to_yaml(self, path: Path) -> None:
        """Save the request to a YAML file with camelCase keys."""
        import yaml

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(by_alias=True, exclude_none=True),
                f,
                default_flow_style=False,
                sort_keys=False,
            )


class DataPointResult(CamelModel):
    """A yearly result value, ``None`` when the year had no samples."""

    year: int
    value: Optional[float] = None


class PercentileSeries(CamelModel):
    """One requested percentile of one distribution over all years."""

    name: str
    percentile: PercentileSpec
    data: List[DataPointResult] = Field(default_factory=list)


class StatisticsSeries(CamelModel):
    """Yearly summary statistics of one distribution."""

    mean: List[DataPointResult] = Field(default_factory=list)
    std_dev: List[DataPointResult] = Field(default_factory=list)
    min: List[DataPointResult] = Field(default_factory=list)
    max: List[DataPointResult] = Field(default_factory=list)
    skewness: List[DataPointResult] = Field(default_factory=list)
    kurtosis: List[DataPointResult] = Field(default_factory=list)


class SimulationInfo(CamelModel):
    """Outcome for one distribution entry.

    Attributes:
        distribution: Id of the distribution entry.
        iterations: Iterations requested for this entry.
        seed: Request seed, or the entry's own seed override (the seed of
            the entry's random source is derived from it).
        years: Simulated years.
        time_elapsed: Wall-clock time of this entry in milliseconds.
        results: Percentile series, empty when the entry failed.
        errors: Error messages, empty on success.
        statistics: Yearly summary statistics, ``None`` when the entry failed.
        cancelled: True when the run was stopped early; results then cover
            the completed iterations only.
    """

    distribution: str
    iterations: int
    seed: Optional[Seed] = None
    years: int
    time_elapsed: float = 0.0
    results: List[PercentileSeries] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    statistics: Optional[StatisticsSeries] = None
    cancelled: bool = False


class SimulationResponse(CamelModel):
    """Aggregate response of an engine run.

    ``success`` is False when any entry carries errors; entries without
    errors still hold usable results.
    """

    success: bool
    simulation_info: List[SimulationInfo] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dictionary with camelCase keys."""
        return self.model_dump(by_alias=True)

    def get(self, distribution_id: str) -> Optional[SimulationInfo]:
        for info in self.simulation_info:
            if info.distribution == distribution_id:
                return info
        return None

    def to_dataframe(self) -> pd.DataFrame:
        """Long-form table of every percentile series.

        Returns:
            DataFrame with columns ``distribution``, ``series``,
            ``percentile``, ``description``, ``year`` and ``value``.
        """
        rows = [
            {
                "distribution": info.distribution,
                "series": series.name,
                "percentile": series.percentile.value,
                "description": series.percentile.description,
                "year": point.year,
                "value": point.value,
            }
            for info in self.simulation_info
            for series in info.results
            for point in series.data
        ]
        columns = ["distribution", "series", "percentile", "description", "year", "value"]
        return pd.DataFrame(rows, columns=columns)


class LoggingConfig(BaseModel):
    """Where and how the ``montecarlo_sim`` loggers write.

    Library modules only create loggers; nothing is emitted until an
    application calls :meth:`setup_logging` or configures logging itself.
    """

    enabled: bool = Field(default=True, description="Attach handlers when set up")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Threshold of the package logger"
    )
    log_file: Optional[str] = Field(
        default=None, description="Also write to this file (parents are created)"
    )
    console_output: bool = Field(default=True, description="Write to stdout")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        description="logging.Formatter format string",
    )

    def setup_logging(self) -> logging.Logger:
        """Configure the ``montecarlo_sim`` logger.

        Existing handlers on that logger are replaced.

        Returns:
            The configured package logger.
        """
        logger = logging.getLogger("montecarlo_sim")
        if not self.enabled:
            return logger

        logger.setLevel(getattr(logging, self.level))
        logger.handlers.clear()

        formatter = logging.Formatter(self.format)

        if self.console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if self.log_file:
            log_path = Path(self.log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        return logger
