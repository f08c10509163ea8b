"""
Exception types raised by the sampling and low-rank approximation code.
"""

from typing import Optional


class PreconditionViolation(ValueError):
    """
    Raised when an input can never be processed as given.

    Examples are a domain with zero measure, a negative sample count or
    rank, or a matrix with the wrong shape.
    """


class NumericalInstability(ArithmeticError):
    """
    Raised when non-finite values show up in a numerical computation.

    Parameters
    ----------
    message : str
        Description of the failure.
    step : str, optional
        Name of the computation stage in which the values were found.
    """

    def __init__(self, message: str, step: Optional[str] = None):
        self.step = step
        if step is not None:
            message = f"{message} (step: {step})"
        super().__init__(message)
