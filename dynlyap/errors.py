"""Exceptions and warnings raised by dynlyap"""

__all__ = [
    "DynlyapError",
    "ConfigurationError",
    "NumericalDivergenceError",
    "UnderflowWarning",
]


class DynlyapError(Exception):
    """Base error for the dynlyap package."""


class ConfigurationError(DynlyapError, ValueError):
    """
    Raised when a system or an estimation run is set up inconsistently, such as
    mismatched state and Jacobian dimensions, more exponents than dimensions, or a
    non-positive evolution length. Always raised before any evolution happens.
    """


class NumericalDivergenceError(DynlyapError, ArithmeticError):
    """Raised when the state or the deviation vectors become non-finite during a run."""

    def __init__(self, message: str, t=None):
        self.t = t
        if t is not None:
            message = f"{message} (at t={t})"
        super().__init__(message)


class UnderflowWarning(RuntimeWarning):
    """
    Emitted when a deviation vector shrinks below the resolution of the others between
    two orthonormalizations. The renormalization interval should be decreased.
    """
