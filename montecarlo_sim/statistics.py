"""Yearly summary statistics from running moments and analytic formulas."""

import logging
import math
from typing import Any, Callable, Dict, Optional, Sequence

from .config import DataPointResult, StatisticsSeries
from .distributions.base import DistributionGenerator, Formula
from .running_stats import RunningStats

logger = logging.getLogger(__name__)

# Statistic name -> numeric fallback computed from the accumulator
NUMERIC_FALLBACKS: Dict[str, Callable[[RunningStats], Optional[float]]] = {
    "mean": lambda stats: stats.mean,
    "stdDev": lambda stats: stats.std_dev,
    "min": lambda stats: stats.min,
    "max": lambda stats: stats.max,
    "skewness": lambda stats: stats.skewness,
    "kurtosis": lambda stats: stats.kurtosis,
}

_SERIES_FIELDS = {
    "mean": "mean",
    "stdDev": "std_dev",
    "min": "min",
    "max": "max",
    "skewness": "skewness",
    "kurtosis": "kurtosis",
}


def _as_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def derive_year_statistics(
    stats: RunningStats,
    formulas: Dict[str, Optional[Formula]],
    parameters: Dict[str, Any],
    year: int,
) -> Dict[str, Optional[float]]:
    """Statistics of one year.

    Every statistic is ``None`` when no sample was recorded. Otherwise each
    one comes from the distribution's analytic formula when it has one,
    used as returned, and from the running moments when it does not.
    """
    if stats.count == 0:
        return {name: None for name in NUMERIC_FALLBACKS}

    values: Dict[str, Optional[float]] = {}
    for name, fallback in NUMERIC_FALLBACKS.items():
        formula = formulas.get(name)
        if formula is not None:
            values[name] = _as_float(formula(parameters, year))
        else:
            values[name] = _as_float(fallback(stats))
    return values


def derive_statistics(
    distribution: DistributionGenerator,
    running_stats: Sequence[RunningStats],
    years: int,
) -> StatisticsSeries:
    """Build the six yearly statistics series of one distribution.

    Args:
        distribution: Distribution whose formulas take precedence.
        running_stats: One accumulator per year, index 0 is year 1.
        years: Number of simulated years.

    Returns:
        Series for mean, stdDev, min, max, skewness and kurtosis.
    """
    formulas = distribution.formulas()
    provided = [name for name, formula in formulas.items() if formula is not None]
    if provided:
        logger.debug("%s uses analytic formulas for %s", distribution.name, ", ".join(provided))

    series: Dict[str, list] = {field: [] for field in _SERIES_FIELDS.values()}
    for year in range(1, years + 1):
        stats = running_stats[year - 1] if year - 1 < len(running_stats) else RunningStats()
        values = derive_year_statistics(stats, formulas, distribution.parameters, year)
        for name, field in _SERIES_FIELDS.items():
            series[field].append(DataPointResult(year=year, value=values[name]))

    return StatisticsSeries(**series)
