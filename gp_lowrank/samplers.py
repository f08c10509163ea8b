"""
Point Samplers over Continuous Domains
======================================

A sampler turns a continuous domain into a finite set of weighted points
(x_i, p(x_i)), where p is the probability density according to which the
points were drawn. These point sets feed the kernel matrix assembly and
the Nyström approximation.

Available samplers:

- GridSampler: every point of a regular grid
- UniformSampler: uniform random points inside a box
- RandomMeshSampler: uniform random mesh vertices, redrawn on every call
- FixedPointsMeshSampler: uniform random mesh vertices, drawn once
- FixedPointsUniformMeshSampler: area-uniform random points on a surface
- PointsWithLikelyCorrespondenceSampler: reference mesh vertices with a
  plausible correspondence on a target mesh

All samplers expose number_of_points, volume_of_sample_region and
sample(). Random sources are owned by each sampler; none of them touches
numpy's global random state.
"""

import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from typing import Iterator, Optional, Protocol, Tuple, runtime_checkable

from .domains import BoxDomain, GridDomain, TriangleMesh
from .errors import PreconditionViolation
from .gaussian_process import GaussianProcess
from .utils import (
    SeedType,
    resolve_rng,
    check_reseedable,
    check_positive_measure,
    check_number_of_points,
    weighted_choice,
)

logger = logging.getLogger(__name__)


class SampleSet:
    """
    Immutable sequence of weighted points.

    Parameters
    ----------
    points : array_like
        Points of shape (n, d).
    weights : array_like
        Density value at every point, shape (n,).
    """

    __slots__ = ("points", "weights")

    def __init__(self, points, weights):
        points = np.array(points, dtype=np.float64)
        weights = np.array(weights, dtype=np.float64).reshape(-1)
        if points.ndim != 2 or points.shape[0] != weights.shape[0]:
            raise PreconditionViolation(
                f"points {points.shape} and weights {weights.shape} do not match"
            )
        points.setflags(write=False)
        weights.setflags(write=False)
        object.__setattr__(self, "points", points)
        object.__setattr__(self, "weights", weights)

    def __setattr__(self, name, value):
        raise AttributeError("SampleSet is immutable")

    @classmethod
    def uniform(cls, points, density: float) -> "SampleSet":
        points = np.asarray(points, dtype=np.float64)
        return cls(points, np.full(points.shape[0], density))

    def __len__(self) -> int:
        return self.points.shape[0]

    def __iter__(self) -> Iterator[Tuple[np.ndarray, float]]:
        for point, weight in zip(self.points, self.weights):
            yield point, float(weight)

    def __getitem__(self, index: int) -> Tuple[np.ndarray, float]:
        return self.points[index], float(self.weights[index])

    def __repr__(self) -> str:
        return f"SampleSet(n={len(self)}, dim={self.points.shape[1]})"


@runtime_checkable
class Sampler(Protocol):
    """Anything that produces a weighted point set over a region."""

    @property
    def number_of_points(self) -> int: ...

    @property
    def volume_of_sample_region(self) -> float: ...

    def sample(self) -> SampleSet: ...


class GridSampler:
    """
    Returns every point of a grid, each with density 1 / volume.

    Parameters
    ----------
    domain : GridDomain
        The grid to enumerate.
    """

    def __init__(self, domain: GridDomain):
        self.domain = domain
        self.volume_of_sample_region = check_positive_measure(domain.volume, "grid domain")
        self.number_of_points = domain.number_of_points
        self._density = 1.0 / self.volume_of_sample_region

    def sample(self) -> SampleSet:
        return SampleSet.uniform(self.domain.points, self._density)

    def __repr__(self) -> str:
        return f"GridSampler({self.domain!r})"


class UniformSampler:
    """
    Independent uniform random points inside a box.

    The generator is re-seeded from ``seed`` on every call: with a fixed
    seed all calls return the same points, with None every call draws
    fresh points.

    Parameters
    ----------
    domain : BoxDomain
        Box to sample from.
    number_of_points : int
        Points per call to sample().
    seed : int or None
        Seed used at the start of every call. None draws fresh OS entropy
        each time.
    """

    def __init__(self, domain: BoxDomain, number_of_points: int, seed: Optional[int] = None):
        self.domain = domain
        self.number_of_points = check_number_of_points(number_of_points)
        self.volume_of_sample_region = check_positive_measure(domain.volume, "box domain")
        self._density = 1.0 / self.volume_of_sample_region
        self.seed = check_reseedable(seed)

    def sample(self) -> SampleSet:
        rng = resolve_rng(self.seed)
        points = rng.uniform(
            self.domain.origin,
            self.domain.opposite_corner,
            size=(self.number_of_points, self.domain.dimensionality),
        )
        return SampleSet.uniform(points, self._density)

    def __repr__(self) -> str:
        return (f"UniformSampler({self.domain!r}, number_of_points={self.number_of_points}, "
                f"seed={self.seed})")


class RandomMeshSampler:
    """
    Mesh vertices chosen uniformly at random by index.

    Vertices are chosen with equal probability regardless of the area
    around them, so the result only approximates a uniform surface measure
    on evenly tessellated meshes. The generator is re-seeded from ``seed``
    on every call: with a fixed seed all calls return the same points.

    Parameters
    ----------
    mesh : TriangleMesh
        Mesh whose vertices are sampled.
    number_of_points : int
        Points per call to sample().
    seed : int or None
        Seed used at the start of every call. None draws fresh OS entropy
        each time. A Generator is rejected, since it cannot be replayed.
    """

    def __init__(self, mesh: TriangleMesh, number_of_points: int, seed: Optional[int] = None):
        self.mesh = mesh
        self.number_of_points = check_number_of_points(number_of_points)
        self.volume_of_sample_region = check_positive_measure(mesh.area, "mesh")
        self.seed = check_reseedable(seed)
        self._density = 1.0 / self.volume_of_sample_region

    def sample(self) -> SampleSet:
        rng = resolve_rng(self.seed)
        indices = rng.integers(0, self.mesh.number_of_points, size=self.number_of_points)
        return SampleSet.uniform(self.mesh.points[indices], self._density)

    def __repr__(self) -> str:
        return (f"RandomMeshSampler({self.mesh!r}, number_of_points={self.number_of_points}, "
                f"seed={self.seed})")


class FixedPointsMeshSampler:
    """
    Mesh vertices chosen uniformly at random once, at construction.

    Parameters
    ----------
    mesh : TriangleMesh
        Mesh whose vertices are sampled.
    number_of_points : int
        Number of vertices to draw (with replacement).
    seed : int, np.random.Generator or None
        Random source. None draws fresh OS entropy.
    """

    def __init__(self, mesh: TriangleMesh, number_of_points: int, seed: SeedType = None):
        self.mesh = mesh
        self.number_of_points = check_number_of_points(number_of_points)
        self.volume_of_sample_region = check_positive_measure(mesh.area, "mesh")
        rng = resolve_rng(seed)
        indices = rng.integers(0, mesh.number_of_points, size=self.number_of_points)
        self._samples = SampleSet.uniform(mesh.points[indices], 1.0 / self.volume_of_sample_region)

    def sample(self) -> SampleSet:
        return self._samples

    def __repr__(self) -> str:
        return f"FixedPointsMeshSampler({self.mesh!r}, number_of_points={self.number_of_points})"


class FixedPointsUniformMeshSampler:
    """
    Points distributed uniformly over the area of a triangulated surface.

    A face is chosen with probability proportional to its area, by drawing
    a uniform value in [0, total area) and locating it in the cumulative
    area table. A uniformly random point inside that face is then drawn
    with barycentric sampling. The points are drawn once, at construction,
    so every call to sample() returns the same set.

    Parameters
    ----------
    mesh : TriangleMesh
        Surface to sample.
    number_of_points : int
        Number of points to draw.
    seed : int, np.random.Generator or None
        Random source. None draws fresh OS entropy.

    Examples
    --------
    >>> sampler = FixedPointsUniformMeshSampler(mesh, number_of_points=500, seed=42)
    >>> samples = sampler.sample()
    >>> samples.points.shape
    (500, 3)
    """

    def __init__(self, mesh: TriangleMesh, number_of_points: int, seed: SeedType = None):
        self.mesh = mesh
        self.number_of_points = check_number_of_points(number_of_points)
        self.volume_of_sample_region = check_positive_measure(mesh.area, "mesh")
        self._density = 1.0 / self.volume_of_sample_region
        self._samples = self._draw(resolve_rng(seed))

    def _draw(self, rng: np.random.Generator) -> SampleSet:
        points = np.empty((self.number_of_points, 3))
        if self.number_of_points:
            cell_indices = weighted_choice(self.mesh.triangle_areas, self.number_of_points, rng)
            for i, cell_index in enumerate(cell_indices):
                points[i] = self.mesh.sample_point_in_triangle_cell(cell_index, rng)

        logger.debug("Drew %d area-uniform points on %r", self.number_of_points, self.mesh)
        return SampleSet.uniform(points, self._density)

    def sample(self) -> SampleSet:
        return self._samples

    def __repr__(self) -> str:
        return (f"FixedPointsUniformMeshSampler({self.mesh!r}, "
                f"number_of_points={self.number_of_points})")


class PointsWithLikelyCorrespondenceSampler:
    """
    Reference mesh vertices that have a plausible match on a target mesh.

    Every reference vertex x is moved by the mean deformation of the
    Gaussian process, and the target vertex closest to the moved point is
    looked up. The displacement from x to that target vertex is scored by
    its Mahalanobis distance under the process marginal at x. Vertices
    scoring strictly below ``max_mahalanobis_distance`` are kept, each with
    weight 1.

    The number of points is therefore an output of the filter, and may be
    zero. Callers that need a non-empty set must check number_of_points.

    Parameters
    ----------
    gp : GaussianProcess
        Deformation model defined on the reference mesh.
    reference_mesh : TriangleMesh
        Mesh providing the candidate points.
    target_mesh : TriangleMesh
        Mesh in which correspondences are searched.
    max_mahalanobis_distance : float
        Acceptance threshold.
    max_workers : int, optional
        Worker threads for the per-point evaluation. None lets
        ThreadPoolExecutor decide; 1 runs serially.
    verbose : bool, optional
        If True, print the number of retained points (default: False).

    Attributes
    ----------
    distances : np.ndarray
        Mahalanobis distance of every reference vertex, shape (N,).
    """

    def __init__(
        self,
        gp: GaussianProcess,
        reference_mesh: TriangleMesh,
        target_mesh: TriangleMesh,
        max_mahalanobis_distance: float,
        max_workers: Optional[int] = None,
        verbose: bool = False
    ):
        self.gp = gp
        self.reference_mesh = reference_mesh
        self.target_mesh = target_mesh
        self.max_mahalanobis_distance = float(max_mahalanobis_distance)
        self.max_workers = max_workers
        self.verbose = verbose
        self.volume_of_sample_region = 1.0

        self.distances = self._compute_distances()
        keep = self.distances < self.max_mahalanobis_distance
        # TODO: weight survivors by their distance instead of 1 once a
        # consumer needs proximity-aware importance weights.
        self._samples = SampleSet.uniform(reference_mesh.points[keep], 1.0)
        self.number_of_points = len(self._samples)

        if self.verbose:
            print(f"Sampled: {self.number_of_points} of "
                  f"{reference_mesh.number_of_points} reference points")

    def _distance_at(self, ref_point: np.ndarray, closest: np.ndarray) -> float:
        return self.gp.marginal(ref_point).mahalanobis_distance(closest - ref_point)

    def _compute_distances(self) -> np.ndarray:
        ref_points = self.reference_mesh.points
        if len(ref_points) == 0:
            return np.zeros(0)

        # workers only read the target search tree, which is built here
        moved = np.array([p + self.gp.mean(p) for p in ref_points], dtype=np.float64)
        closest_points, _ = self.target_mesh.find_closest_points(moved)

        if self.max_workers == 1:
            distances = [self._distance_at(p, c) for p, c in zip(ref_points, closest_points)]
        else:
            # map() yields results in input order, keeping point/distance pairs aligned
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                distances = list(executor.map(self._distance_at, ref_points, closest_points))
        return np.asarray(distances, dtype=np.float64)

    def sample(self) -> SampleSet:
        return self._samples

    def __repr__(self) -> str:
        return (f"PointsWithLikelyCorrespondenceSampler(max_mahalanobis_distance="
                f"{self.max_mahalanobis_distance}, number_of_points={self.number_of_points})")
