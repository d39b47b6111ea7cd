"""Percentile utilities for simulation results.

Percentiles use linear interpolation between the two nearest order
statistics, with rank ``p / 100 * (n - 1)`` over the ascending-sorted
sample. This is numpy's default ``"linear"`` method.
"""

from typing import Dict, Iterable, Sequence, Union

import numpy as np

DEFAULT_PERCENTILES = (10, 25, 50, 75, 90)

ArrayLike = Union[Sequence[float], np.ndarray]


def format_percentile_key(percentile: float) -> str:
    """Format a percentile as a ``P<value>`` key, e.g. ``P50`` or ``P2.5``."""
    value = float(percentile)
    return f"P{int(value)}" if value.is_integer() else f"P{value:g}"


def _check_percentile(percentile: float) -> None:
    if not 0 <= percentile <= 100:
        raise ValueError(f"Percentile must be between 0 and 100, got {percentile}")


def calculate_percentile(values: ArrayLike, percentile: float) -> float:
    """Calculate one percentile of an unsorted sample.

    Args:
        values: Sample values in any order.
        percentile: Percentile in ``[0, 100]``.

    Returns:
        Interpolated percentile, or 0.0 for an empty sample.

    Raises:
        ValueError: If ``percentile`` is outside ``[0, 100]``.
    """
    _check_percentile(percentile)
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return 0.0
    return float(np.percentile(data, percentile))


def calculate_percentiles(
    values: ArrayLike, percentiles: Iterable[float] = DEFAULT_PERCENTILES
) -> Dict[str, float]:
    """Calculate several percentiles of one sample, sorting it once.

    Args:
        values: Sample values in any order.
        percentiles: Percentiles in ``[0, 100]``.

    Returns:
        Mapping of ``P<value>`` keys to percentile values (0.0 for an empty
        sample).
    """
    requested = [float(p) for p in percentiles]
    for p in requested:
        _check_percentile(p)
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return {format_percentile_key(p): 0.0 for p in requested}
    if not requested:
        return {}
    results = np.percentile(data, requested)
    return {format_percentile_key(p): float(v) for p, v in zip(requested, results)}


def calculate_statistics(values: ArrayLike) -> Dict[str, float]:
    """Basic statistics of a sample: mean, median, min, max, population stdDev.

    Returns zeros for an empty sample.
    """
    data = np.asarray(values, dtype=float)
    if data.size == 0:
        return {"mean": 0.0, "median": 0.0, "min": 0.0, "max": 0.0, "stdDev": 0.0}
    return {
        "mean": float(np.mean(data)),
        "median": float(np.median(data)),
        "min": float(np.min(data)),
        "max": float(np.max(data)),
        "stdDev": float(np.std(data)),
    }
