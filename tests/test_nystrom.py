"""Tests for the sampler -> kernel matrix -> solver pipeline."""
import numpy as np
import pytest

from gp_lowrank.domains import BoxDomain, GridDomain
from gp_lowrank.kernels import GaussianKernel, UncorrelatedKernel
from gp_lowrank.nystrom import nystrom_approximation
from gp_lowrank.random_svd import RandomizedSVD
from gp_lowrank.samplers import FixedPointsUniformMeshSampler, GridSampler, UniformSampler


@pytest.fixture
def line_sampler():
    """50 grid points with unit spacing on [0, 50)."""
    return GridSampler(GridDomain(origin=[0.0], spacing=[1.0], size=[50]))


class TestNystromApproximation:

    def test_reproduces_kernel_at_samples(self, line_sampler):
        k = GaussianKernel(10.0)
        approx = nystrom_approximation(k, line_sampler, 30, RandomizedSVD(seed=0))
        points = line_sampler.sample().points
        for i, j in [(0, 0), (3, 7), (10, 40), (25, 26)]:
            value = approx.approximate_kernel(points[i], points[j])
            assert value.shape == (1, 1)
            assert value[0, 0] == pytest.approx(k(points[i], points[j]), abs=1e-4)

    def test_interpolates_between_samples(self, line_sampler):
        k = GaussianKernel(10.0)
        approx = nystrom_approximation(k, line_sampler, 30, RandomizedSVD(seed=1))
        x, y = np.array([12.5]), np.array([17.25])
        assert approx.approximate_kernel(x, y)[0, 0] == pytest.approx(k(x, y), abs=1e-3)

    def test_eigenvalues_sum_to_trace(self):
        # k(x, x) = 1, so the operator trace is the domain volume (50)
        sampler = GridSampler(GridDomain(origin=[0.0], spacing=[0.5], size=[100]))
        approx = nystrom_approximation(GaussianKernel(10.0), sampler, 40, RandomizedSVD(seed=2))
        assert np.sum(approx.eigenvalues) == pytest.approx(50.0, rel=1e-4)
        assert np.all(np.diff(approx.eigenvalues) <= 0)

    def test_eigenfunctions_orthonormal_under_quadrature(self, line_sampler):
        approx = nystrom_approximation(GaussianKernel(10.0), line_sampler, 5, RandomizedSVD(seed=3))
        samples = line_sampler.sample()
        phi = np.vstack([approx.eigenfunctions(p) for p in samples.points])  # (n, k)
        w = 1.0 / (len(samples) * samples.weights)
        gram = phi.T @ (w[:, np.newaxis] * phi)
        np.testing.assert_allclose(gram, np.eye(5), atol=1e-6)

    def test_vector_valued_kernel(self):
        sampler = UniformSampler(BoxDomain([0.0, 0.0], [1.0, 1.0]), 30, seed=4)
        k = UncorrelatedKernel(GaussianKernel(0.5), 2)
        approx = nystrom_approximation(k, sampler, 8, RandomizedSVD(seed=5))
        phi = approx.eigenfunctions(np.array([0.3, 0.6]))
        assert phi.shape == (2, approx.number_of_basis_functions)
        assert approx.approximate_kernel(np.array([0.3, 0.6]), np.array([0.3, 0.6])).shape == (2, 2)

    def test_mesh_sampler(self, plate_mesh):
        sampler = FixedPointsUniformMeshSampler(plate_mesh, 60, seed=6)
        approx = nystrom_approximation(GaussianKernel(0.5), sampler, 10, RandomizedSVD(seed=7))
        assert 0 < approx.number_of_basis_functions <= 10
        assert np.all(approx.eigenvalues > 0)

    def test_empty_sampler(self):
        sampler = UniformSampler(BoxDomain([0.0], [1.0]), 0, seed=0)
        approx = nystrom_approximation(GaussianKernel(1.0), sampler, 5)
        assert approx.number_of_basis_functions == 0
        assert approx.eigenfunctions(np.array([0.5])).shape == (1, 0)
