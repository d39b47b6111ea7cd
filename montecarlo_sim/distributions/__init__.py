"""Distribution generators, one module per distribution type."""

from .base import (
    STATISTIC_NAMES,
    DistributionExample,
    DistributionGenerator,
    DistributionMetadata,
    Formula,
    ParameterInfo,
    RandomFn,
    SampleContext,
    standard_normal,
)
from .exponential import ExponentialDistribution
from .fixed import FixedDistribution
from .gamma import GammaDistribution
from .gbm import GBMDistribution
from .kaimal import KaimalDistribution, spectral_density
from .lognormal import LognormalDistribution
from .normal import NormalDistribution
from .poisson import PoissonDistribution
from .triangular import TriangularDistribution
from .uniform import UniformDistribution
from .weibull import WeibullDistribution

__all__ = [
    "STATISTIC_NAMES",
    "DistributionExample",
    "DistributionGenerator",
    "DistributionMetadata",
    "ExponentialDistribution",
    "FixedDistribution",
    "Formula",
    "GBMDistribution",
    "GammaDistribution",
    "KaimalDistribution",
    "LognormalDistribution",
    "NormalDistribution",
    "ParameterInfo",
    "PoissonDistribution",
    "RandomFn",
    "SampleContext",
    "TriangularDistribution",
    "UniformDistribution",
    "WeibullDistribution",
    "spectral_density",
    "standard_normal",
]
