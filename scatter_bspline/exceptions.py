"""Exceptions raised while configuring and building a B-spline."""


class BSplineError(Exception):
    """Base exception for all B-spline builder errors."""

    pass


class InvalidConfigError(BSplineError, ValueError):
    """Malformed or inconsistent builder configuration."""

    pass


class InsufficientDataError(BSplineError, ValueError):
    """Too few distinct sample values to support the requested basis."""

    pass


class SampleOutOfDomainError(BSplineError, ValueError):
    """A point falls outside the clamped knot range of the spline."""

    pass


class SingularSystemError(BSplineError, RuntimeError):
    """The least-squares system for the coefficients could not be solved."""

    pass
