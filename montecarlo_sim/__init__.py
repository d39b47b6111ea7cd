"""Monte Carlo simulation of configurable distributions over multi-year horizons"""

from ._version import __version__

# Use lazy imports so that importing the package stays cheap
# Direct imports are defined but modules are imported only when accessed

__all__ = [
    "__version__",
    "ConfigurationError",
    "DistributionConfig",
    "DistributionGenerator",
    "DistributionType",
    "EngineConfig",
    "FitError",
    "LoggingConfig",
    "MonteCarloEngine",
    "MonteCarloSimError",
    "RunningStats",
    "SimulationError",
    "SimulationRequest",
    "SimulationResponse",
    "SimulationSettings",
    "ValidationResult",
    "fit_distribution",
    "get_distributions_info",
    "simulate_distribution",
    "validate_parameters",
]


def __getattr__(name):
    """Lazy import modules on first attribute access."""
    if name in [
        "DistributionConfig",
        "LoggingConfig",
        "SimulationRequest",
        "SimulationResponse",
        "SimulationSettings",
    ]:
        from .config import (
            DistributionConfig,
            LoggingConfig,
            SimulationRequest,
            SimulationResponse,
            SimulationSettings,
        )

        return locals()[name]
    elif name in ["ConfigurationError", "FitError", "MonteCarloSimError", "SimulationError"]:
        from .exceptions import ConfigurationError, FitError, MonteCarloSimError, SimulationError

        return locals()[name]
    elif name == "DistributionGenerator":
        from .distributions import DistributionGenerator

        return DistributionGenerator
    elif name == "DistributionType":
        from .registry import DistributionType

        return DistributionType
    elif name == "EngineConfig" or name == "MonteCarloEngine":
        from .monte_carlo import EngineConfig, MonteCarloEngine

        return locals()[name]
    elif name == "RunningStats":
        from .running_stats import RunningStats

        return RunningStats
    elif name == "ValidationResult":
        from .parameters import ValidationResult

        return ValidationResult
    elif name in [
        "fit_distribution",
        "get_distributions_info",
        "simulate_distribution",
        "validate_parameters",
    ]:
        from .service import (
            fit_distribution,
            get_distributions_info,
            simulate_distribution,
            validate_parameters,
        )

        return locals()[name]
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
