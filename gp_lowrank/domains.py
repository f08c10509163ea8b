"""
Domains over which sample points are drawn
==========================================

Three kinds of continuous regions are supported:

- BoxDomain: an axis-aligned box in d dimensions
- GridDomain: a regular image grid, whose points can be enumerated
- TriangleMesh: a triangulated surface in 3D

Each domain reports its measure (volume or surface area). Meshes also
provide the per-face areas, barycentric point sampling and closest point
queries needed by the mesh samplers.
"""

import numpy as np
from typing import Tuple
from scipy.spatial import cKDTree

from .errors import PreconditionViolation


class BoxDomain:
    """
    Axis-aligned box [origin, opposite_corner].

    Parameters
    ----------
    origin : array_like
        Lower corner of shape (d,).
    opposite_corner : array_like
        Upper corner of shape (d,).
    """

    def __init__(self, origin, opposite_corner):
        self.origin = np.atleast_1d(np.asarray(origin, dtype=np.float64))
        self.opposite_corner = np.atleast_1d(np.asarray(opposite_corner, dtype=np.float64))

        if self.origin.shape != self.opposite_corner.shape or self.origin.ndim != 1:
            raise PreconditionViolation(
                f"corners must be 1D with equal length, got shapes "
                f"{self.origin.shape} and {self.opposite_corner.shape}"
            )
        if np.any(self.opposite_corner < self.origin):
            raise PreconditionViolation("opposite_corner must be >= origin in every axis")

    @property
    def dimensionality(self) -> int:
        return self.origin.shape[0]

    @property
    def extent(self) -> np.ndarray:
        return self.opposite_corner - self.origin

    @property
    def volume(self) -> float:
        return float(np.prod(self.extent))

    def is_inside(self, point) -> bool:
        point = np.asarray(point, dtype=np.float64)
        return bool(np.all(point >= self.origin) and np.all(point <= self.opposite_corner))

    def __repr__(self) -> str:
        return (f"BoxDomain(origin={self.origin.tolist()}, "
                f"opposite_corner={self.opposite_corner.tolist()})")


class GridDomain:
    """
    Regular grid of points, as used for the pixels/voxels of an image.

    The grid has size[i] points along axis i, starting at origin and
    separated by spacing[i]. Each point is taken to represent a cell of
    the given spacing, so the covered box reaches origin + spacing * size.

    Parameters
    ----------
    origin : array_like
        Position of the first grid point, shape (d,).
    spacing : array_like
        Distance between neighbouring points along each axis, shape (d,).
    size : array_like of int
        Number of points along each axis, shape (d,).
    """

    def __init__(self, origin, spacing, size):
        self.origin = np.atleast_1d(np.asarray(origin, dtype=np.float64))
        self.spacing = np.atleast_1d(np.asarray(spacing, dtype=np.float64))
        self.size = np.atleast_1d(np.asarray(size, dtype=np.int64))

        if not (self.origin.shape == self.spacing.shape == self.size.shape):
            raise PreconditionViolation("origin, spacing and size must have the same length")
        if np.any(self.size < 0):
            raise PreconditionViolation(f"grid size must be non-negative, got {self.size.tolist()}")

        self._points = None

    @property
    def dimensionality(self) -> int:
        return self.origin.shape[0]

    @property
    def number_of_points(self) -> int:
        return int(np.prod(self.size))

    @property
    def image_box(self) -> BoxDomain:
        return BoxDomain(self.origin, self.origin + self.spacing * self.size)

    @property
    def volume(self) -> float:
        return self.image_box.volume

    @property
    def points(self) -> np.ndarray:
        """
        All grid points.

        Returns
        -------
        np.ndarray
            Array of shape (number_of_points, d); the first axis varies
            fastest.
        """
        if self._points is None:
            axes = [self.origin[i] + self.spacing[i] * np.arange(self.size[i])
                    for i in range(self.dimensionality)]
            mesh = np.meshgrid(*axes, indexing="ij")
            # Fortran order makes axis 0 the fastest varying index
            self._points = np.stack([m.ravel(order="F") for m in mesh], axis=1)
        return self._points

    def __repr__(self) -> str:
        return (f"GridDomain(origin={self.origin.tolist()}, spacing={self.spacing.tolist()}, "
                f"size={self.size.tolist()})")


class TriangleMesh:
    """
    Triangulated surface in 3D.

    Parameters
    ----------
    points : array_like
        Vertex positions of shape (N, 3).
    cells : array_like of int
        Triangles of shape (M, 3), given as vertex indices.
    """

    def __init__(self, points, cells):
        self.points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        self.cells = np.asarray(cells, dtype=np.int64).reshape(-1, 3)

        if self.cells.size and (self.cells.min() < 0 or self.cells.max() >= len(self.points)):
            raise PreconditionViolation("cell refers to a vertex index outside the mesh")

        self._triangle_areas = None
        self._tree = None

    @property
    def number_of_points(self) -> int:
        return self.points.shape[0]

    @property
    def number_of_cells(self) -> int:
        return self.cells.shape[0]

    @property
    def triangle_areas(self) -> np.ndarray:
        """Area of every cell, shape (M,)."""
        if self._triangle_areas is None:
            a = self.points[self.cells[:, 0]]
            b = self.points[self.cells[:, 1]]
            c = self.points[self.cells[:, 2]]
            cross = np.cross(b - a, c - a)
            self._triangle_areas = 0.5 * np.linalg.norm(cross, axis=1)
        return self._triangle_areas

    def compute_triangle_area(self, cell_index: int) -> float:
        return float(self.triangle_areas[cell_index])

    @property
    def area(self) -> float:
        return float(np.sum(self.triangle_areas))

    def sample_point_in_triangle_cell(
        self,
        cell_index: int,
        rng: np.random.Generator
    ) -> np.ndarray:
        """
        Draw a point uniformly at random inside one triangle.

        Two uniform numbers are used as barycentric coordinates; pairs
        outside the triangle (a + b > 1) are reflected back into it.

        Parameters
        ----------
        cell_index : int
            Index of the triangle.
        rng : np.random.Generator
            Random source.

        Returns
        -------
        np.ndarray
            Point of shape (3,).
        """
        a_pt, b_pt, c_pt = self.points[self.cells[cell_index]]
        a, b = rng.random(2)
        if a + b > 1.0:
            a, b = 1.0 - a, 1.0 - b
        return a_pt + a * (b_pt - a_pt) + b * (c_pt - a_pt)

    def _kdtree(self) -> cKDTree:
        if self._tree is None:
            self._tree = cKDTree(self.points)
        return self._tree

    def find_closest_point(self, point) -> Tuple[np.ndarray, int]:
        """
        Find the mesh vertex closest to a point.

        Returns
        -------
        closest : np.ndarray
            Vertex position of shape (3,).
        index : int
            Vertex index.
        """
        if self.number_of_points == 0:
            raise PreconditionViolation("cannot search the closest point of an empty mesh")
        _, index = self._kdtree().query(np.asarray(point, dtype=np.float64))
        index = int(index)
        return self.points[index].copy(), index

    def find_closest_points(self, points) -> Tuple[np.ndarray, np.ndarray]:
        """Vectorized version of find_closest_point for an (n, 3) array."""
        if self.number_of_points == 0:
            raise PreconditionViolation("cannot search the closest point of an empty mesh")
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        _, indices = self._kdtree().query(points)
        indices = np.asarray(indices, dtype=np.int64)
        return self.points[indices], indices

    def __repr__(self) -> str:
        return f"TriangleMesh(number_of_points={self.number_of_points}, number_of_cells={self.number_of_cells})"
