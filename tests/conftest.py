"""Shared fixtures for the gp_lowrank tests."""
import numpy as np
import pytest

from gp_lowrank.domains import TriangleMesh


@pytest.fixture
def unit_square_mesh():
    """Unit square in the z=0 plane, two triangles, area 1."""
    points = np.array([
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 1.0, 0.0],
        [0.0, 1.0, 0.0],
    ])
    cells = np.array([[0, 1, 2], [0, 2, 3]])
    return TriangleMesh(points, cells)


@pytest.fixture
def plate_mesh():
    """11 x 11 vertex plate on [0, 1]^2 in the z=0 plane, area 1."""
    n = 11
    xs = np.linspace(0.0, 1.0, n)
    points = np.array([[x, y, 0.0] for y in xs for x in xs])
    cells = []
    for row in range(n - 1):
        for col in range(n - 1):
            i = row * n + col
            cells.append([i, i + 1, i + n + 1])
            cells.append([i, i + n + 1, i + n])
    return TriangleMesh(points, np.array(cells))
