"""
Gaussian process deformation models and their marginals.
"""

import numpy as np
from typing import Callable
from scipy.linalg import cho_factor, cho_solve

from .errors import PreconditionViolation


class MultivariateNormal:
    """
    Normal distribution N(mean, cov) in d dimensions.

    Parameters
    ----------
    mean : array_like
        Mean vector of shape (d,).
    cov : array_like
        Symmetric positive definite covariance of shape (d, d).
    """

    def __init__(self, mean, cov):
        self.mean = np.atleast_1d(np.asarray(mean, dtype=np.float64))
        self.cov = np.atleast_2d(np.asarray(cov, dtype=np.float64))
        d = self.mean.shape[0]
        if self.cov.shape != (d, d):
            raise PreconditionViolation(
                f"covariance of shape {self.cov.shape} does not match mean of length {d}"
            )
        self._factor = None

    @property
    def dimensionality(self) -> int:
        return self.mean.shape[0]

    def mahalanobis_distance(self, x) -> float:
        """
        Whitened distance sqrt((x - mean)^T cov^{-1} (x - mean)).

        Raises
        ------
        np.linalg.LinAlgError
            If the covariance is not positive definite.
        """
        if self._factor is None:
            self._factor = cho_factor(self.cov)
        diff = np.atleast_1d(np.asarray(x, dtype=np.float64)) - self.mean
        return float(np.sqrt(diff @ cho_solve(self._factor, diff)))

    def __repr__(self) -> str:
        return f"MultivariateNormal(dimensionality={self.dimensionality})"


class GaussianProcess:
    """
    Vector-valued Gaussian process over points, e.g. a deformation model.

    Parameters
    ----------
    mean : callable
        Mean function, x -> vector of shape (d,).
    kernel : callable
        Matrix-valued covariance function, (x, y) -> (d, d).
    """

    def __init__(self, mean: Callable, kernel: Callable):
        self.mean = mean
        self.kernel = kernel

    @classmethod
    def zero_mean(cls, kernel: Callable, output_dim: int) -> "GaussianProcess":
        zero = np.zeros(output_dim)
        return cls(lambda x: zero, kernel)

    def marginal(self, x) -> MultivariateNormal:
        """Distribution of the process value at a single point."""
        return MultivariateNormal(self.mean(x), self.kernel(x, x))
