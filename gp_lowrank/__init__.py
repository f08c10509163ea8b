"""
Low-Rank Kernel Approximation from Sampled Domains
==================================================

This package approximates the dominant eigenstructure of a kernel operator
over a continuous domain, as needed to build low-rank Gaussian process
(PCA-style) shape models:

1. a sampler draws weighted points from a box, grid or surface mesh,
2. the kernel is evaluated over all pairs of points to form a matrix,
3. a randomized solver computes its leading eigenpairs.

Main classes:
- GridSampler, UniformSampler, RandomMeshSampler, FixedPointsMeshSampler,
  FixedPointsUniformMeshSampler, PointsWithLikelyCorrespondenceSampler
- RandomizedSVD: randomized truncated SVD / eigendecomposition
- NystromApproximation: kernel eigenfunctions from the pipeline above

License: MIT
"""

from .domains import BoxDomain, GridDomain, TriangleMesh
from .errors import PreconditionViolation, NumericalInstability
from .gaussian_process import GaussianProcess, MultivariateNormal
from .kernels import (
    GaussianKernel,
    UncorrelatedKernel,
    compute_kernel_matrix,
    compute_kernel_vector,
)
from .samplers import (
    SampleSet,
    Sampler,
    GridSampler,
    UniformSampler,
    RandomMeshSampler,
    FixedPointsMeshSampler,
    FixedPointsUniformMeshSampler,
    PointsWithLikelyCorrespondenceSampler,
)
from .random_svd import (
    LowRankFactorization,
    RandomizedSVD,
    compute_approx_eigen,
    compute_svd,
)
from .nystrom import NystromApproximation, nystrom_approximation
from .utils import lower_bound, weighted_choice

__version__ = "1.0.0"
__all__ = [
    "BoxDomain",
    "GridDomain",
    "TriangleMesh",
    "PreconditionViolation",
    "NumericalInstability",
    "GaussianProcess",
    "MultivariateNormal",
    "GaussianKernel",
    "UncorrelatedKernel",
    "compute_kernel_matrix",
    "compute_kernel_vector",
    "SampleSet",
    "Sampler",
    "GridSampler",
    "UniformSampler",
    "RandomMeshSampler",
    "FixedPointsMeshSampler",
    "FixedPointsUniformMeshSampler",
    "PointsWithLikelyCorrespondenceSampler",
    "LowRankFactorization",
    "RandomizedSVD",
    "compute_approx_eigen",
    "compute_svd",
    "NystromApproximation",
    "nystrom_approximation",
    "lower_bound",
    "weighted_choice",
]
