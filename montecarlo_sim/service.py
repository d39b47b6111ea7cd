"""Library entry points for API layers and scripts.

These functions cover what an outer layer needs without building an engine
by hand: simulate one distribution, list distribution metadata, validate
parameters and fit parameters to observed data.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Union

from .config import DistributionConfig, SimulationResponse, SimulationSettings
from .exceptions import FitError, UnknownDistributionError
from .monte_carlo import EngineConfig, MonteCarloEngine
from .parameters import ValidationResult
from .registry import get_all_distributions_metadata, get_distribution_class

logger = logging.getLogger(__name__)


def simulate_distribution(
    distribution: Union[DistributionConfig, Mapping[str, Any]],
    settings: Optional[Union[SimulationSettings, Mapping[str, Any]]] = None,
    engine_config: Optional[EngineConfig] = None,
) -> SimulationResponse:
    """Run a request holding a single distribution.

    Args:
        distribution: Entry with ``type`` and ``parameters`` (and optional id).
        settings: Simulation settings, defaults when omitted.
        engine_config: Optional engine runtime options.

    Returns:
        Response with one ``simulationInfo`` entry.

    Raises:
        ConfigurationError: If the settings are invalid.
    """
    engine = MonteCarloEngine(engine_config)
    request: Dict[str, Any] = {"distributions": [distribution]}
    if settings is not None:
        request["simulationSettings"] = settings
    return engine.run(request)


def get_distributions_info() -> Dict[str, Dict[str, Any]]:
    """Metadata of every registered distribution type, keyed by type name."""
    return get_all_distributions_metadata()


def validate_parameters(distribution_type: str, parameters: Mapping[str, Any]) -> ValidationResult:
    """Validate parameters for a distribution type without raising.

    An unknown type produces an invalid result naming the type.
    """
    try:
        distribution_class = get_distribution_class(distribution_type)
    except UnknownDistributionError as e:
        return ValidationResult(is_valid=False, errors=list(e.issues))
    if not isinstance(parameters, Mapping):
        return ValidationResult(is_valid=False, errors=["Parameters must be a mapping"])
    return distribution_class.validate(parameters)


def fit_distribution(distribution_type: str, data_points: Sequence[Any]) -> Dict[str, Any]:
    """Fit a distribution type to observed ``{year, value}`` points.

    Args:
        distribution_type: Registered type name.
        data_points: Observed points as mappings or objects.

    Returns:
        Fitted parameters.

    Raises:
        UnknownDistributionError: If the type is not registered.
        FitError: If the data cannot be fitted. The message names the type.
    """
    distribution_class = get_distribution_class(distribution_type)
    try:
        fitted = distribution_class.fit_curve(list(data_points or []))
    except FitError as e:
        raise FitError(f"Cannot fit {distribution_class.name} distribution: {e}") from e
    logger.debug("Fitted %s to %d points: %s", distribution_class.name,
                 len(data_points or []), fitted)
    return fitted
