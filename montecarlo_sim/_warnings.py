"""Warning categories emitted by montecarlo_sim.

All categories derive from :class:`MonteCarloSimWarning`, so callers can
silence or collect everything the package warns about with one filter.

Example:
    Quiet the advisory about small iteration counts in unit tests::

        import warnings
        from montecarlo_sim._warnings import ConfigurationWarning

        warnings.simplefilter("ignore", ConfigurationWarning)

    Count the observations dropped while fitting::

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", DataQualityWarning)
            fitted = fit_distribution("Lognormal", points)
        dropped = [w for w in caught if w.category is DataQualityWarning]
"""


class MonteCarloSimWarning(UserWarning):
    """Base class for all montecarlo_sim warnings."""


class ConfigurationWarning(MonteCarloSimWarning):
    """Unusual or potentially unreliable simulation settings.

    Raised while building simulation settings when values are legal but
    fall below recommended levels (e.g., fewer than 100 iterations).
    """


class DataQualityWarning(MonteCarloSimWarning):
    """Data anomalies observed while fitting distributions.

    Raised when curve fitting has to discard observations, such as
    non-positive values for a distribution with positive support.
    """
