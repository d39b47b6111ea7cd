"""Exception hierarchy for simulation configuration, fitting and execution.

Expected bad input to a distribution is reported through
:class:`~montecarlo_sim.parameters.ValidationResult` values instead of
exceptions. The classes below cover the cases that abort an operation.
"""

from typing import List, Optional


class MonteCarloSimError(Exception):
    """Base class for all errors raised by montecarlo_sim."""


class ConfigurationError(MonteCarloSimError):
    """Raised when a request or distribution entry is structurally unusable.

    Attributes:
        issues: List of specific configuration problems found.

    Examples:
        Catching and inspecting issues::

            try:
                engine.add_distribution("d1", {"parameters": {}})
            except ConfigurationError as e:
                for issue in e.issues:
                    print(f"  - {issue}")
    """

    def __init__(self, issues: List[str]) -> None:
        self.issues = list(issues)
        bullet_list = "\n".join(f"  - {issue}" for issue in self.issues)
        super().__init__(
            f"Configuration has {len(self.issues)} "
            f"{'issue' if len(self.issues) == 1 else 'issues'}:\n{bullet_list}"
        )


class UnknownDistributionError(ConfigurationError):
    """Raised when a distribution type is not present in the registry."""

    def __init__(self, distribution_type: str, known_types: Optional[List[str]] = None) -> None:
        self.distribution_type = distribution_type
        message = f"Distribution type '{distribution_type}' is not registered"
        if known_types:
            message += f" (known types: {', '.join(known_types)})"
        super().__init__([message])


class InvalidParametersError(MonteCarloSimError):
    """Raised when final distribution parameters fail validation.

    Attributes:
        distribution_type: Type name of the offending distribution.
        errors: Human-readable validation messages.
    """

    def __init__(self, distribution_type: str, errors: List[str]) -> None:
        self.distribution_type = distribution_type
        self.errors = list(errors)
        super().__init__(
            f"Invalid parameters for {distribution_type} distribution: {', '.join(self.errors)}"
        )


class FitError(MonteCarloSimError):
    """Raised when curve fitting has no usable data."""


class SimulationError(MonteCarloSimError):
    """Raised when the sampling loop of a distribution fails.

    Attributes:
        distribution_id: Identifier of the distribution being simulated.
    """

    def __init__(self, distribution_id: Optional[str], message: str) -> None:
        self.distribution_id = distribution_id
        prefix = f"Distribution '{distribution_id}': " if distribution_id else ""
        super().__init__(f"{prefix}{message}")
