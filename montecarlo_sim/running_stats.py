"""One-pass accumulation of sample moments.

:class:`RunningStats` keeps the sufficient statistics for mean, variance,
skewness and excess kurtosis without retaining samples. Updates follow
Welford's recurrence extended to third and fourth central moments
(Terriberry / Pébay), and :meth:`RunningStats.merge` implements the pairwise
combination of Chan et al., so partial accumulators built over disjoint
chunks of iterations can be reduced in any grouping.

The m3 and m4 updates carry the full cross terms, so numeric skewness and
kurtosis are computed from exact central moments rather than from the
shortened recurrences ``m3 += delta * delta2**2`` and ``m4 += delta * delta2**3``.
"""

from dataclasses import dataclass
import math
from typing import Iterable, Optional


@dataclass
class RunningStats:
    """Streaming moment accumulator for one (distribution, year) cell.

    Attributes:
        count: Number of values folded in.
        sum: Running sum of values.
        mean: Running mean.
        m2: Sum of squared deviations from the mean.
        m3: Sum of cubed deviations from the mean.
        m4: Sum of fourth-power deviations from the mean.
        min: Smallest value seen (``inf`` while empty).
        max: Largest value seen (``-inf`` while empty).
    """

    count: int = 0
    sum: float = 0.0
    mean: float = 0.0
    m2: float = 0.0
    m3: float = 0.0
    m4: float = 0.0
    min: float = math.inf
    max: float = -math.inf

    def update(self, value: float) -> None:
        """Fold one value into the accumulator."""
        n1 = self.count
        n = n1 + 1
        delta = value - self.mean
        delta_n = delta / n
        delta_n2 = delta_n * delta_n
        term1 = delta * delta_n * n1

        self.mean += delta_n
        self.m4 += (
            term1 * delta_n2 * (n * n - 3 * n + 3)
            + 6 * delta_n2 * self.m2
            - 4 * delta_n * self.m3
        )
        self.m3 += term1 * delta_n * (n - 2) - 3 * delta_n * self.m2
        self.m2 += term1

        self.count = n
        self.sum += value
        if value < self.min:
            self.min = value
        if value > self.max:
            self.max = value

    def update_many(self, values: Iterable[float]) -> None:
        for value in values:
            self.update(value)

    def merge(self, other: "RunningStats") -> "RunningStats":
        """Return a new accumulator equivalent to both inputs combined."""
        if other.count == 0:
            return RunningStats(**vars(self))
        if self.count == 0:
            return RunningStats(**vars(other))

        na, nb = self.count, other.count
        n = na + nb
        delta = other.mean - self.mean
        delta2 = delta * delta

        mean = self.mean + delta * nb / n
        m2 = self.m2 + other.m2 + delta2 * na * nb / n
        m3 = (
            self.m3
            + other.m3
            + delta2 * delta * na * nb * (na - nb) / (n * n)
            + 3 * delta * (na * other.m2 - nb * self.m2) / n
        )
        m4 = (
            self.m4
            + other.m4
            + delta2 * delta2 * na * nb * (na * na - na * nb + nb * nb) / (n**3)
            + 6 * delta2 * (na * na * other.m2 + nb * nb * self.m2) / (n * n)
            + 4 * delta * (na * other.m3 - nb * self.m3) / n
        )
        return RunningStats(
            count=n,
            sum=self.sum + other.sum,
            mean=mean,
            m2=m2,
            m3=m3,
            m4=m4,
            min=min(self.min, other.min),
            max=max(self.max, other.max),
        )

    @property
    def variance(self) -> Optional[float]:
        """Population variance ``m2 / n``."""
        if self.count == 0:
            return None
        return self.m2 / self.count

    @property
    def std_dev(self) -> Optional[float]:
        variance = self.variance
        if variance is None:
            return None
        return math.sqrt(max(variance, 0.0))

    @property
    def skewness(self) -> Optional[float]:
        """Population skewness ``(m3 / n) / stdDev**3``, 0 for a constant sample."""
        std_dev = self.std_dev
        if std_dev is None:
            return None
        if std_dev == 0:
            return 0.0
        return (self.m3 / self.count) / std_dev**3

    @property
    def kurtosis(self) -> Optional[float]:
        """Excess kurtosis ``(m4 / n) / stdDev**4 - 3``, 0 for a constant sample."""
        std_dev = self.std_dev
        if std_dev is None:
            return None
        if std_dev == 0:
            return 0.0
        return (self.m4 / self.count) / std_dev**4 - 3
