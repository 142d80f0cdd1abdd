"""Shared meshes and an in-memory solver for the test suite."""

import numpy as np
import pytest
import trimesh

from discrete_geometry import HalfedgeMesh, SolverError, SolverKind, SparseSolver


class DenseSolver(SparseSolver):
    """Dense NumPy stand-in for the sparse solver, with call recording."""

    def __init__(self):
        self.calls = []

    def solve(self, kind, a, nnz_a, n, b, nnz_b, m):
        a = list(a)
        b = list(b)
        assert len(a) == nnz_a and len(b) == nnz_b
        self.calls.append(SolverKind(kind))

        A = np.zeros((n, n))
        for row, col, value in a:
            A[row, col] += value
        B = np.zeros((n, m))
        for row, col, value in b:
            B[row, col] += value

        try:
            if kind == SolverKind.CHOLESKY:
                if not np.allclose(A, A.T):
                    raise SolverError("Matrix is not symmetric")
                np.linalg.cholesky(A)
            X = np.linalg.solve(A, B)
        except np.linalg.LinAlgError as exc:
            raise SolverError(str(exc)) from exc

        return X.ravel(order="F")


def make_grid(n: int = 4, size: float = 1.0, bump: float = 0.0) -> HalfedgeMesh:
    """
    Square grid in the xy-plane, each cell split along its rising diagonal.

    Faces are wound counter-clockwise seen from +z. A non-zero ``bump`` lifts
    the interior by ``bump * sin(πx) sin(πy)``; the boundary stays at z = 0.
    """
    xs = np.linspace(0.0, size, n + 1)
    vertices = []
    for j in range(n + 1):
        for i in range(n + 1):
            x, y = xs[i], xs[j]
            z = bump * np.sin(np.pi * x / size) * np.sin(np.pi * y / size)
            vertices.append([x, y, z])

    faces = []
    for j in range(n):
        for i in range(n):
            v00 = j * (n + 1) + i
            v10 = v00 + 1
            v01 = v00 + n + 1
            v11 = v01 + 1
            faces.append([v00, v10, v11])
            faces.append([v00, v11, v01])

    return HalfedgeMesh(np.array(vertices), faces)


def signed_areas(uv: np.ndarray, mesh: HalfedgeMesh) -> np.ndarray:
    """Signed areas of the faces laid out in the uv plane."""
    areas = []
    for face in mesh.faces:
        a, b, c = uv[face[0], :2], uv[face[1], :2], uv[face[2], :2]
        areas.append(0.5 * ((b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])))
    return np.array(areas)


@pytest.fixture
def dense_solver():
    return DenseSolver()


@pytest.fixture
def icosahedron():
    """Regular icosahedron with unit circumradius."""
    mesh = trimesh.creation.icosahedron()
    vertices = np.asarray(mesh.vertices, dtype=float)
    vertices /= np.linalg.norm(vertices, axis=1, keepdims=True)
    return HalfedgeMesh(vertices, np.asarray(mesh.faces))


@pytest.fixture
def icosphere():
    mesh = trimesh.creation.icosphere(subdivisions=2, radius=1.0)
    return HalfedgeMesh.from_trimesh(mesh)


@pytest.fixture
def flat_grid():
    return make_grid(n=4)


@pytest.fixture
def bumpy_grid():
    return make_grid(n=6, bump=0.1)
