"""
Kernel functions and kernel matrix assembly
===========================================

A kernel maps a pair of points to either a scalar or a small (d, d)
matrix. Given a point set x_1, ..., x_n, the kernel matrix is the
(n*d, n*d) matrix whose (i, j) block is k(x_i, x_j).

Kernel evaluation dominates the cost of the assembly for large n, so only
the upper triangle of blocks is evaluated and the result is mirrored.
"""

import numpy as np
from typing import Callable, Optional

from .errors import PreconditionViolation


class GaussianKernel:
    """
    Scalar Gaussian kernel k(x, y) = exp(-||x - y||^2 / sigma^2).

    Parameters
    ----------
    sigma : float
        Length scale, must be positive.
    """

    def __init__(self, sigma: float):
        if not sigma > 0:
            raise PreconditionViolation(f"sigma must be positive, got {sigma}")
        self.sigma = float(sigma)
        self._sigma2 = self.sigma ** 2

    def __call__(self, x, y) -> float:
        diff = np.asarray(x, dtype=np.float64) - np.asarray(y, dtype=np.float64)
        return float(np.exp(-np.dot(diff, diff) / self._sigma2))

    def __repr__(self) -> str:
        return f"GaussianKernel(sigma={self.sigma})"


class UncorrelatedKernel:
    """
    Matrix-valued kernel k(x, y) * I_d built from a scalar kernel.

    The output components are treated as independent processes sharing
    the same scalar covariance.

    Parameters
    ----------
    kernel : callable
        Scalar kernel.
    output_dim : int
        Number of output components d.
    """

    def __init__(self, kernel: Callable, output_dim: int):
        if output_dim < 1:
            raise PreconditionViolation(f"output_dim must be >= 1, got {output_dim}")
        self.kernel = kernel
        self.output_dim = int(output_dim)
        self._identity = np.eye(self.output_dim)

    def __call__(self, x, y) -> np.ndarray:
        return self.kernel(x, y) * self._identity

    def __repr__(self) -> str:
        return f"UncorrelatedKernel({self.kernel!r}, output_dim={self.output_dim})"


def _as_block(value) -> np.ndarray:
    block = np.asarray(value, dtype=np.float64)
    if block.ndim == 0:
        return block.reshape(1, 1)
    if block.ndim != 2 or block.shape[0] != block.shape[1]:
        raise PreconditionViolation(
            f"kernel must return a scalar or a square matrix, got shape {block.shape}"
        )
    return block


def _as_points(points) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64)
    if points.ndim == 1:
        points = points.reshape(-1, 1)
    if points.ndim != 2:
        raise PreconditionViolation(f"points must be an (n, d) array, got shape {points.shape}")
    return points


def compute_kernel_matrix(
    points,
    kernel: Callable,
    max_distance: Optional[float] = None,
    verbose: bool = False
) -> np.ndarray:
    """
    Assemble the kernel matrix of a point set.

    Parameters
    ----------
    points : array_like
        Points of shape (n, dim). A 1D array is read as n points in 1D.
    kernel : callable
        k(x, y) returning a scalar or a (d, d) matrix.
    max_distance : float, optional
        If given, only pairs at most this far apart are evaluated; the
        blocks of all other pairs stay zero.
    verbose : bool, optional
        If True, print progress information (default: False).

    Returns
    -------
    np.ndarray
        Symmetric matrix of shape (n*d, n*d). For a scalar kernel d = 1.

    Notes
    -----
    The result depends on nothing but (points, kernel). An exception from
    any kernel evaluation aborts the assembly.
    """
    points = _as_points(points)
    n = points.shape[0]
    if n == 0:
        return np.zeros((0, 0))

    first = _as_block(kernel(points[0], points[0]))
    d = first.shape[0]
    K = np.zeros((n * d, n * d), dtype=np.float64)

    if verbose:
        print(f"Assembling {n * d}x{n * d} kernel matrix from {n} points...")

    for i in range(n):
        xi = points[i]
        for j in range(i, n):
            if max_distance is not None and np.linalg.norm(xi - points[j]) > max_distance:
                continue
            if i == 0 and j == 0:
                block = first
            else:
                block = _as_block(kernel(xi, points[j]))
                if block.shape != (d, d):
                    raise PreconditionViolation(
                        f"kernel output shape changed from {(d, d)} to {block.shape}"
                    )
            K[i * d:(i + 1) * d, j * d:(j + 1) * d] = block
            if j != i:
                K[j * d:(j + 1) * d, i * d:(i + 1) * d] = block.T

        if verbose and (i + 1) % 100 == 0:
            print(f"  Processed {i + 1}/{n} rows")

    return K


def compute_kernel_vector(x, points, kernel: Callable) -> np.ndarray:
    """
    Evaluate a kernel between one point and a point set.

    Parameters
    ----------
    x : array_like
        Point of shape (dim,).
    points : array_like
        Points of shape (n, dim).
    kernel : callable
        k(x, y) returning a scalar or a (d, d) matrix.

    Returns
    -------
    np.ndarray
        Array of shape (d, n*d) holding [k(x, p_1), ..., k(x, p_n)].
    """
    points = _as_points(points)
    x = np.atleast_1d(np.asarray(x, dtype=np.float64))
    blocks = [_as_block(kernel(x, p)) for p in points]
    if not blocks:
        d = _as_block(kernel(x, x)).shape[0]
        return np.zeros((d, 0))
    return np.hstack(blocks)
