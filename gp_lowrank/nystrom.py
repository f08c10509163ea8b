"""
Nyström approximation of kernel eigenfunctions
==============================================

Approximates the leading eigenpairs (λ_l, φ_l) of the integral operator

    (T φ)(x) = ∫ k(x, y) φ(y) dy

over a domain, by replacing the integral with a weighted sum over sample
points drawn by a sampler. With n samples x_j drawn with density p_j, the
quadrature weights are w_j = 1 / (n p_j) and the symmetrized matrix

    M = D K D,   D = diag(sqrt(w))

is decomposed with the randomized solver. Its eigenvectors u_l give

    φ_l(x) = (1 / λ_l) Σ_j k(x, x_j) sqrt(w_j) u_jl.

These eigenfunctions form the basis of a low-rank Gaussian process.
"""

import logging
import numpy as np
from typing import Callable, Optional

from .kernels import compute_kernel_matrix, compute_kernel_vector
from .random_svd import RandomizedSVD
from .samplers import Sampler
from .errors import PreconditionViolation

logger = logging.getLogger(__name__)

DEFAULT_RELATIVE_TOLERANCE = 1e-12


class NystromApproximation:
    """
    Leading eigenpairs of a kernel, evaluated through the Nyström formula.

    Parameters
    ----------
    kernel : callable
        The approximated kernel.
    points : np.ndarray
        Sample points, shape (n, dim).
    basis : np.ndarray
        Matrix of shape (n*d, k) such that φ(x) = k_x @ basis, where k_x
        is the (d, n*d) kernel vector of x.
    eigenvalues : np.ndarray
        Eigenvalues λ_l, shape (k,), descending.
    """

    def __init__(self, kernel: Callable, points: np.ndarray, basis: np.ndarray, eigenvalues: np.ndarray):
        self.kernel = kernel
        self.points = points
        self.basis = basis
        self.eigenvalues = eigenvalues

    @property
    def number_of_basis_functions(self) -> int:
        return int(self.eigenvalues.shape[0])

    def eigenfunctions(self, x) -> np.ndarray:
        """
        Evaluate all eigenfunctions at a point.

        Returns
        -------
        np.ndarray
            Array of shape (d, k); column l holds φ_l(x).
        """
        return compute_kernel_vector(x, self.points, self.kernel) @ self.basis

    def approximate_kernel(self, x, y) -> np.ndarray:
        """Low-rank kernel value φ(x) diag(λ) φ(y)^T, shape (d, d)."""
        phi_x = self.eigenfunctions(x)
        phi_y = self.eigenfunctions(y)
        return (phi_x * self.eigenvalues) @ phi_y.T

    def __repr__(self) -> str:
        return (f"NystromApproximation(number_of_basis_functions="
                f"{self.number_of_basis_functions}, n_points={len(self.points)})")


def nystrom_approximation(
    kernel: Callable,
    sampler: Sampler,
    num_basis_functions: int,
    solver: Optional[RandomizedSVD] = None,
    relative_tolerance: float = DEFAULT_RELATIVE_TOLERANCE
) -> NystromApproximation:
    """
    Compute the Nyström approximation of a kernel's leading eigenpairs.

    Parameters
    ----------
    kernel : callable
        Scalar or matrix-valued kernel.
    sampler : Sampler
        Provides the quadrature points and their densities.
    num_basis_functions : int
        Number of eigenpairs to compute.
    solver : RandomizedSVD, optional
        Solver used for the eigendecomposition. A default one with fresh
        randomness is created if omitted.
    relative_tolerance : float, optional
        Eigenpairs with eigenvalue at most relative_tolerance times the
        largest one are dropped (default: 1e-12).

    Returns
    -------
    NystromApproximation
        Eigenpairs with eigenvalues above the tolerance only; at most
        num_basis_functions of them.
    """
    if num_basis_functions < 0:
        raise PreconditionViolation(
            f"num_basis_functions must be non-negative, got {num_basis_functions}"
        )
    if solver is None:
        solver = RandomizedSVD()

    samples = sampler.sample()
    points = samples.points
    n = len(samples)

    if n == 0:
        logger.warning("Sampler returned no points; Nyström approximation is empty")
        return NystromApproximation(kernel, points, np.zeros((0, 0)), np.zeros(0))

    K = compute_kernel_matrix(points, kernel)
    d = K.shape[0] // n

    quadrature_weights = 1.0 / (n * samples.weights)
    sqrt_w = np.repeat(np.sqrt(quadrature_weights), d)
    M = sqrt_w[:, np.newaxis] * K * sqrt_w[np.newaxis, :]

    result = solver.compute_approx_eigen(M, num_basis_functions)

    cutoff = max(float(result.values[0]), 0.0) * relative_tolerance if result.rank else 0.0
    positive = result.values > cutoff
    if not np.all(positive):
        logger.warning("Dropping %d negligible or non-positive eigenpairs from Nyström approximation",
                       int(np.sum(~positive)))
    eigenvalues = result.values[positive]
    U = result.u[:, positive]

    basis = sqrt_w[:, np.newaxis] * U / eigenvalues[np.newaxis, :]
    logger.debug("Nyström approximation with %d basis functions from %d points",
                 eigenvalues.shape[0], n)
    return NystromApproximation(kernel, points, basis, eigenvalues)
