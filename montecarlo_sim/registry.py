"""Static registry of distribution types.

The table below is the single place where a distribution type name is bound
to its generator class. It is checked against :class:`DistributionType` when
the module is imported, so a type added to one but not the other fails
immediately instead of at simulation time.
"""

from enum import Enum
import logging
from typing import Any, Dict, List, Mapping, Type

from .distributions import (
    DistributionGenerator,
    ExponentialDistribution,
    FixedDistribution,
    GammaDistribution,
    GBMDistribution,
    KaimalDistribution,
    LognormalDistribution,
    NormalDistribution,
    PoissonDistribution,
    TriangularDistribution,
    UniformDistribution,
    WeibullDistribution,
)
from .exceptions import UnknownDistributionError

logger = logging.getLogger(__name__)


class DistributionType(str, Enum):
    """Names of the built-in distribution types."""

    NORMAL = "Normal"
    LOGNORMAL = "Lognormal"
    TRIANGULAR = "Triangular"
    UNIFORM = "Uniform"
    WEIBULL = "Weibull"
    EXPONENTIAL = "Exponential"
    POISSON = "Poisson"
    FIXED = "Fixed"
    KAIMAL = "Kaimal"
    GBM = "GBM"
    GAMMA = "Gamma"


_BUILTIN_DISTRIBUTIONS: Dict[str, Type[DistributionGenerator]] = {
    DistributionType.NORMAL.value: NormalDistribution,
    DistributionType.LOGNORMAL.value: LognormalDistribution,
    DistributionType.TRIANGULAR.value: TriangularDistribution,
    DistributionType.UNIFORM.value: UniformDistribution,
    DistributionType.WEIBULL.value: WeibullDistribution,
    DistributionType.EXPONENTIAL.value: ExponentialDistribution,
    DistributionType.POISSON.value: PoissonDistribution,
    DistributionType.FIXED.value: FixedDistribution,
    DistributionType.KAIMAL.value: KaimalDistribution,
    DistributionType.GBM.value: GBMDistribution,
    DistributionType.GAMMA.value: GammaDistribution,
}


def _check_registry_complete() -> None:
    expected = {member.value for member in DistributionType}
    registered = set(_BUILTIN_DISTRIBUTIONS)
    if expected != registered:
        raise RuntimeError(
            "Distribution registry out of sync with DistributionType: "
            f"missing={sorted(expected - registered)}, extra={sorted(registered - expected)}"
        )
    for type_name, distribution_class in _BUILTIN_DISTRIBUTIONS.items():
        if distribution_class.name != type_name:
            raise RuntimeError(
                f"{distribution_class.__name__}.name is {distribution_class.name!r}, "
                f"registered as {type_name!r}"
            )


_check_registry_complete()

_registry: Dict[str, Type[DistributionGenerator]] = dict(_BUILTIN_DISTRIBUTIONS)


def get_registered_distribution_types() -> List[str]:
    """Names of all registered distribution types, in registration order."""
    return list(_registry)


def get_distribution_class(distribution_type: Any) -> Type[DistributionGenerator]:
    """Look up a generator class by type name (case-insensitive).

    Args:
        distribution_type: Type name or :class:`DistributionType` member.

    Returns:
        The registered generator class.

    Raises:
        UnknownDistributionError: If no type with that name is registered.
    """
    if isinstance(distribution_type, DistributionType):
        distribution_type = distribution_type.value
    if isinstance(distribution_type, str):
        if distribution_type in _registry:
            return _registry[distribution_type]
        wanted = distribution_type.lower()
        for type_name, distribution_class in _registry.items():
            if type_name.lower() == wanted:
                return distribution_class
    raise UnknownDistributionError(str(distribution_type), get_registered_distribution_types())


def create_distribution(
    distribution_type: Any, parameters: Mapping[str, Any]
) -> DistributionGenerator:
    """Instantiate a registered distribution with ``parameters``."""
    return get_distribution_class(distribution_type)(parameters)


def register_distribution(
    distribution_class: Type[DistributionGenerator], replace: bool = False
) -> None:
    """Add a custom generator class under its ``name``.

    Raises:
        ValueError: If the class has no name, or the name is taken and
            ``replace`` is False.
    """
    type_name = distribution_class.name
    if not type_name:
        raise ValueError(f"{distribution_class.__name__} must define a non-empty 'name'")
    if type_name in _registry and not replace:
        raise ValueError(f"Distribution type '{type_name}' is already registered")
    _registry[type_name] = distribution_class
    logger.debug("Registered distribution type %s -> %s", type_name, distribution_class.__name__)


def unregister_distribution(type_name: str) -> None:
    """Remove a custom distribution type. Built-in types cannot be removed."""
    if type_name in _BUILTIN_DISTRIBUTIONS:
        raise ValueError(f"Built-in distribution type '{type_name}' cannot be unregistered")
    _registry.pop(type_name, None)


def get_all_distributions_metadata() -> Dict[str, Dict[str, Any]]:
    """Metadata dictionaries of every registered type, keyed by type name."""
    return {
        type_name: distribution_class.metadata().to_dict()
        for type_name, distribution_class in _registry.items()
    }
