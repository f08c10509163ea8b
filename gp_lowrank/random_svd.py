"""
Randomized Low-Rank Decomposition
=================================

This module computes approximate truncated SVDs and eigendecompositions
of large dense matrices by random projection.

For a target rank k and oversampling p, a Gaussian test matrix Ω with
k + p columns is drawn and Y = A Ω captures the dominant range of A.
An orthonormal basis Q of Y (refined by a few power iterations
Y <- A (A^T Q)) is then used to project A to the small matrix

    B = Q^T A Q   (symmetric case)   or   B = Q^T A   (general case)

whose exact decomposition is cheap. Lifting the result back through Q
gives the approximate leading singular/eigen vectors of A.

References
----------
[1] Halko, N., Martinsson, P.G. and Tropp, J.A. (2011). Finding structure
    with randomness: probabilistic algorithms for constructing approximate
    matrix decompositions. SIAM Review 53(2), 217-288.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Tuple
from scipy import linalg

from .errors import NumericalInstability, PreconditionViolation
from .utils import SeedType, resolve_rng

logger = logging.getLogger(__name__)

DEFAULT_OVERSAMPLING = 10
DEFAULT_POWER_ITERATIONS = 2


@dataclass(frozen=True)
class LowRankFactorization:
    """
    Truncated decomposition A ~ U diag(values) V^T.

    Attributes
    ----------
    u : np.ndarray
        Left singular/eigen vectors as columns, shape (m, k).
    values : np.ndarray
        Singular/eigen values in descending order, shape (k,).
    v : np.ndarray
        Right singular vectors as columns, shape (n, k). For the
        symmetric eigen case v is u.
    """

    u: np.ndarray
    values: np.ndarray
    v: np.ndarray

    @property
    def rank(self) -> int:
        return int(self.values.shape[0])

    def truncate(self, rank: int) -> "LowRankFactorization":
        """Keep the leading ``rank`` components."""
        if rank < 0:
            raise PreconditionViolation(f"rank must be non-negative, got {rank}")
        rank = min(rank, self.rank)
        return LowRankFactorization(self.u[:, :rank], self.values[:rank], self.v[:, :rank])

    def reconstruct(self) -> np.ndarray:
        return (self.u * self.values) @ self.v.T


def _check_finite(array: np.ndarray, step: str):
    if not np.all(np.isfinite(array)):
        raise NumericalInstability("encountered non-finite values", step=step)


def _orthonormalize(Y: np.ndarray, step: str) -> np.ndarray:
    _check_finite(Y, step)
    Q, _ = linalg.qr(Y, mode="economic", check_finite=False)
    _check_finite(Q, "orthonormalization")
    return Q


class RandomizedSVD:
    """
    Randomized range finder with power iterations.

    Parameters
    ----------
    oversampling : int, optional
        Extra random directions beyond the target rank (default: 10).
    power_iterations : int, optional
        Number of subspace refinement steps (default: 2). More steps are
        needed when the spectrum decays slowly.
    seed : int, np.random.Generator or None
        Random source for the test matrices. None draws fresh OS entropy.

    Examples
    --------
    >>> solver = RandomizedSVD(oversampling=10, power_iterations=2, seed=0)
    >>> result = solver.compute_approx_eigen(K, target_rank=10)
    >>> result.values[:3]
    """

    def __init__(
        self,
        oversampling: int = DEFAULT_OVERSAMPLING,
        power_iterations: int = DEFAULT_POWER_ITERATIONS,
        seed: SeedType = None
    ):
        if oversampling < 0:
            raise PreconditionViolation(f"oversampling must be non-negative, got {oversampling}")
        if power_iterations < 0:
            raise PreconditionViolation(
                f"power_iterations must be non-negative, got {power_iterations}"
            )
        self.oversampling = int(oversampling)
        self.power_iterations = int(power_iterations)
        self._rng = resolve_rng(seed)

    def _validate(self, matrix, target_rank: int) -> Tuple[np.ndarray, int]:
        A = np.asarray(matrix, dtype=np.float64)
        if A.ndim != 2:
            raise PreconditionViolation(f"expected a 2D matrix, got shape {A.shape}")
        if target_rank < 0:
            raise PreconditionViolation(f"target_rank must be non-negative, got {target_rank}")
        _check_finite(A, "input")

        max_rank = min(A.shape)
        if target_rank > max_rank:
            logger.warning("Requested rank %d exceeds matrix dimension %d; clamping",
                           target_rank, max_rank)
            target_rank = max_rank
        return A, target_rank

    def _range_basis(self, A: np.ndarray, target_rank: int) -> np.ndarray:
        """Approximate orthonormal basis for the dominant column space of A."""
        m, n = A.shape
        width = min(target_rank + self.oversampling, m, n)
        logger.debug("Randomized range finder: matrix %dx%d, sketch width %d", m, n, width)

        omega = self._rng.standard_normal((n, width))
        Q = _orthonormalize(A @ omega, "range finding")

        for _ in range(self.power_iterations):
            Z = _orthonormalize(A.T @ Q, "power iteration")
            Q = _orthonormalize(A @ Z, "power iteration")

        return Q

    def compute_approx_eigen(self, matrix, target_rank: int) -> LowRankFactorization:
        """
        Approximate the leading eigenpairs of a symmetric matrix.

        Parameters
        ----------
        matrix : array_like
            Symmetric matrix of shape (n, n).
        target_rank : int
            Number of eigenpairs. Values above n are clamped to n.

        Returns
        -------
        LowRankFactorization
            Eigenvectors in u (and v, which is the same array), eigenvalues
            sorted descending. The pairs kept are those of largest
            magnitude.

        Raises
        ------
        PreconditionViolation
            If the matrix is not square or target_rank is negative.
        NumericalInstability
            If the matrix or an intermediate result is not finite.
        """
        A = np.asarray(matrix, dtype=np.float64)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise PreconditionViolation(f"expected a square matrix, got shape {A.shape}")
        A, target_rank = self._validate(A, target_rank)
        n = A.shape[0]

        if target_rank == 0:
            empty = np.zeros((n, 0))
            return LowRankFactorization(empty, np.zeros(0), empty)

        Q = self._range_basis(A, target_rank)

        B = Q.T @ (A @ Q)
        B = 0.5 * (B + B.T)
        _check_finite(B, "projection")

        eigvals, eigvecs = linalg.eigh(B, check_finite=False)
        _check_finite(eigvals, "eigendecomposition")

        keep = np.argsort(np.abs(eigvals))[::-1][:target_rank]
        keep = keep[np.argsort(eigvals[keep])[::-1]]

        U = Q @ eigvecs[:, keep]
        return LowRankFactorization(U, eigvals[keep], U)

    def compute_svd(self, matrix, target_rank: int) -> LowRankFactorization:
        """
        Approximate the leading singular triplets of a general matrix.

        Parameters
        ----------
        matrix : array_like
            Matrix of shape (m, n).
        target_rank : int
            Number of singular triplets. Values above min(m, n) are
            clamped.

        Returns
        -------
        LowRankFactorization
            u of shape (m, k), singular values descending, v of shape (n, k).
        """
        A, target_rank = self._validate(matrix, target_rank)
        m, n = A.shape

        if target_rank == 0:
            return LowRankFactorization(np.zeros((m, 0)), np.zeros(0), np.zeros((n, 0)))

        Q = self._range_basis(A, target_rank)

        B = Q.T @ A
        _check_finite(B, "projection")

        U_b, s, Vt = linalg.svd(B, full_matrices=False, check_finite=False)
        _check_finite(s, "singular value decomposition")

        U = Q @ U_b[:, :target_rank]
        return LowRankFactorization(U, s[:target_rank], Vt[:target_rank].T)

    def info(self) -> dict:
        return {
            "oversampling": self.oversampling,
            "power_iterations": self.power_iterations,
        }

    def __repr__(self) -> str:
        return (f"RandomizedSVD(oversampling={self.oversampling}, "
                f"power_iterations={self.power_iterations})")


def compute_approx_eigen(
    matrix,
    target_rank: int,
    oversampling: int = DEFAULT_OVERSAMPLING,
    power_iterations: int = DEFAULT_POWER_ITERATIONS,
    seed: SeedType = None
) -> LowRankFactorization:
    """One-shot wrapper around RandomizedSVD.compute_approx_eigen."""
    solver = RandomizedSVD(oversampling, power_iterations, seed)
    return solver.compute_approx_eigen(matrix, target_rank)


def compute_svd(
    matrix,
    target_rank: int,
    oversampling: int = DEFAULT_OVERSAMPLING,
    power_iterations: int = DEFAULT_POWER_ITERATIONS,
    seed: SeedType = None
) -> LowRankFactorization:
    """One-shot wrapper around RandomizedSVD.compute_svd."""
    solver = RandomizedSVD(oversampling, power_iterations, seed)
    return solver.compute_svd(matrix, target_rank)
