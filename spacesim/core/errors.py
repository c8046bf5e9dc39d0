"""
Exception hierarchy.

Numerical propagation is deterministic, so every error raised here is a
configuration or input defect; nothing is retried.
"""


class SpacesimError(Exception):
    """Base class for all package errors."""


class ConfigurationError(SpacesimError, ValueError):
    """Unknown model or method selection, or an inconsistent setup value."""


class NumericalDegeneracyError(SpacesimError, ArithmeticError):
    """Inputs that would make a linearised model ill-defined.

    Raised for a reference orbit radius near zero or a non-positive
    gravitational parameter, instead of letting NaN/Inf propagate.
    """
