"""Tests for explicit and implicit Laplacian smoothing."""

import numpy as np
import pytest

from conftest import DenseSolver, make_grid
from discrete_geometry import (
    HalfedgeMesh,
    LaplacianSmoothing,
    ScipySparseSolver,
    SolverError,
    SolverKind,
)


class FailingSolver(DenseSolver):
    def solve(self, kind, a, nnz_a, n, b, nnz_b, m):
        raise SolverError("Matrix is singular")


###############################################################################
# Explicit smoothing
###############################################################################


class TestExplicitSmoothing:
    """Forward-Euler cotangent diffusion."""

    def test_zero_lambda_is_identity(self, bumpy_grid):
        """lambda = 0 leaves every vertex where it was."""
        before = bumpy_grid.vertices.copy()
        LaplacianSmoothing(bumpy_grid).explicit(0.0, iterations=10)
        assert np.array_equal(bumpy_grid.vertices, before)

    def test_flattens_bump(self, bumpy_grid):
        before = bumpy_grid.vertices.copy()
        LaplacianSmoothing(bumpy_grid).explicit(0.5, iterations=5)

        assert np.max(np.abs(bumpy_grid.vertices[:, 2])) < np.max(np.abs(before[:, 2]))
        boundary = bumpy_grid.boundary_vertices()
        assert np.array_equal(bumpy_grid.vertices[boundary], before[boundary])

    def test_moving_boundary(self, bumpy_grid):
        """With keep_boundary=False the border is smoothed as well."""
        before = bumpy_grid.vertices.copy()
        LaplacianSmoothing(bumpy_grid).explicit(0.5, iterations=1, keep_boundary=False)
        boundary = bumpy_grid.boundary_vertices()
        assert not np.allclose(bumpy_grid.vertices[boundary], before[boundary])

    def test_empty_mesh(self):
        mesh = HalfedgeMesh(np.zeros((0, 3)), [])
        result = LaplacianSmoothing(mesh).explicit(0.5, iterations=3)
        assert result is mesh
        assert result.n_vertices == 0

    def test_returns_same_mesh(self, flat_grid):
        assert LaplacianSmoothing(flat_grid).explicit(0.1) is flat_grid


###############################################################################
# Implicit smoothing, reduced system
###############################################################################


class TestImplicitSmoothing:
    """Backward-Euler smoothing over interior vertices."""

    @pytest.mark.parametrize("solver", [DenseSolver(), ScipySparseSolver()])
    def test_zero_timestep_is_identity(self, solver):
        """timestep = 0 reduces the system to the area diagonal."""
        mesh = make_grid(n=4)
        before = mesh.vertices.copy()
        LaplacianSmoothing(mesh, solver).implicit(0.0)
        assert np.allclose(mesh.vertices, before, atol=1e-12)

    @pytest.mark.parametrize("solver", [DenseSolver(), ScipySparseSolver()])
    def test_flat_grid_is_fixed_point(self, solver):
        mesh = make_grid(n=4)
        before = mesh.vertices.copy()
        LaplacianSmoothing(mesh, solver).implicit(0.1)
        assert np.allclose(mesh.vertices, before, atol=1e-10)

    def test_flattens_bump(self, bumpy_grid):
        before = bumpy_grid.vertices.copy()
        LaplacianSmoothing(bumpy_grid).implicit(0.01)

        assert np.max(np.abs(bumpy_grid.vertices[:, 2])) < np.max(np.abs(before[:, 2]))
        boundary = bumpy_grid.boundary_vertices()
        assert np.array_equal(bumpy_grid.vertices[boundary], before[boundary])

    def test_uses_spd_solver(self, bumpy_grid, dense_solver):
        LaplacianSmoothing(bumpy_grid, dense_solver).implicit(0.01)
        assert dense_solver.calls == [SolverKind.CHOLESKY]

    def test_system_layout(self, bumpy_grid):
        """One row per interior vertex, three right-hand side columns."""
        system = LaplacianSmoothing(bumpy_grid).assemble_implicit(0.01)
        n_free = int(np.sum(~bumpy_grid.boundary_vertices()))
        assert system.n == n_free
        assert system.m == 3
        A = system.A.to_dense()
        assert np.allclose(A, A.T)
        assert np.all(np.linalg.eigvalsh(A) > 0.0)

    def test_solver_failure_propagates(self, bumpy_grid):
        before = bumpy_grid.vertices.copy()
        with pytest.raises(SolverError):
            LaplacianSmoothing(bumpy_grid, FailingSolver()).implicit(0.01)
        assert np.array_equal(bumpy_grid.vertices, before)

    def test_no_interior_vertices(self, dense_solver):
        mesh = make_grid(n=1)
        before = mesh.vertices.copy()
        LaplacianSmoothing(mesh, dense_solver).implicit(0.1)
        assert dense_solver.calls == []
        assert np.array_equal(mesh.vertices, before)


###############################################################################
# Implicit smoothing, full system
###############################################################################


class TestImplicitFullSmoothing:
    """All vertices as unknowns, boundary pinned by identity rows."""

    def test_boundary_rows_are_identity(self, bumpy_grid):
        system = LaplacianSmoothing(bumpy_grid).assemble_implicit_full(0.01)
        A = system.A.to_dense()
        B = system.B.to_dense()
        for v in np.flatnonzero(bumpy_grid.boundary_vertices()):
            row = np.zeros(bumpy_grid.n_vertices)
            row[v] = 1.0
            assert np.allclose(A[v], row)
            assert np.allclose(B[v], bumpy_grid.vertices[v])

    def test_zero_timestep_is_identity(self, bumpy_grid, dense_solver):
        before = bumpy_grid.vertices.copy()
        LaplacianSmoothing(bumpy_grid, dense_solver).implicit_full(0.0)
        assert np.allclose(bumpy_grid.vertices, before, atol=1e-12)
        assert dense_solver.calls == [SolverKind.LU]

    def test_matches_reduced_system(self, icosahedron):
        """On a closed mesh with positive weights both formulations agree."""
        full = icosahedron.copy()

        LaplacianSmoothing(icosahedron).implicit(0.1)
        LaplacianSmoothing(full).implicit_full(0.1)

        assert np.allclose(icosahedron.vertices, full.vertices, atol=1e-8)

    def test_fairing_flattens(self, bumpy_grid):
        """Membrane fairing with a flat border gives a flat patch."""
        LaplacianSmoothing(bumpy_grid).implicit_full()
        assert np.allclose(bumpy_grid.vertices[:, 2], 0.0, atol=1e-10)
