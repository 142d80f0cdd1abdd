"""Tests for the dense and sparse Laplace operators."""

import numpy as np
import pytest

from discrete_geometry import LaplaceBeltrami, MeshUtils, TripletMatrix

###############################################################################
# Dense operators
###############################################################################


class TestDenseOperators:
    """Per-vertex Laplace vectors."""

    def test_flat_interior_is_zero(self, flat_grid):
        """The cotangent Laplacian vanishes inside a planar patch."""
        laplace = LaplaceBeltrami(flat_grid).cotangent_laplace()
        interior = ~flat_grid.boundary_vertices()
        assert np.allclose(laplace[interior], 0.0, atol=1e-12)

    def test_boundary_is_zero(self, bumpy_grid):
        laplace = LaplaceBeltrami(bumpy_grid).cotangent_laplace()
        assert np.allclose(laplace[bumpy_grid.boundary_vertices()], 0.0)

    def test_bump_points_down(self, bumpy_grid):
        """On top of a bump the Laplace vector points into the surface."""
        laplace = LaplaceBeltrami(bumpy_grid).cotangent_laplace()
        center = 3 * 7 + 3
        assert laplace[center, 2] < 0.0

    def test_sphere_points_inward(self, icosphere):
        laplace = LaplaceBeltrami(icosphere).cotangent_laplace()
        radial = np.einsum("ij,ij->i", laplace, icosphere.vertices)
        assert np.all(radial < 0.0)

    def test_uniform_laplace_is_neighbor_centroid(self, icosahedron):
        """On a closed mesh the uniform operator averages the one-ring."""
        laplace = LaplaceBeltrami(icosahedron).uniform_laplace()
        for v in range(icosahedron.n_vertices):
            neighbors = icosahedron.vertex_neighbors(v)
            expected = icosahedron.vertices[neighbors].mean(axis=0)
            assert np.allclose(laplace[v], expected)


###############################################################################
# Sparse matrices
###############################################################################


class TestMatrices:
    """Triplet matrix builders."""

    def test_adjacency(self, icosahedron):
        lb = LaplaceBeltrami(icosahedron)
        W = lb.adjacency_matrix_vv()
        assert W.nnz == 2 * icosahedron.n_edges
        dense = W.to_dense()
        assert np.allclose(dense, dense.T)
        assert np.allclose(dense.sum(axis=1), 5.0)

    def test_face_vertex_adjacency(self, flat_grid):
        F = LaplaceBeltrami(flat_grid).adjacency_matrix_fv()
        assert F.shape == (flat_grid.n_faces, flat_grid.n_vertices)
        assert np.allclose(F.to_dense().sum(axis=1), 3.0)

    def test_valency(self, flat_grid):
        D = LaplaceBeltrami(flat_grid).valency_matrix().to_dense()
        expected = [flat_grid.valence(v) for v in range(flat_grid.n_vertices)]
        assert np.allclose(np.diag(D), expected)
        assert np.allclose(D, np.diag(np.diag(D)))

    def test_uniform_laplacian_is_d_minus_w(self, flat_grid):
        lb = LaplaceBeltrami(flat_grid)
        K = lb.uniform_laplace_matrix().to_dense()
        D = lb.valency_matrix().to_dense()
        W = lb.adjacency_matrix_vv().to_dense()
        assert np.allclose(K, D - W)
        assert np.allclose(K.sum(axis=1), 0.0)

    def test_tutte_laplacian(self, flat_grid):
        T = LaplaceBeltrami(flat_grid).tutte_laplace_matrix().to_dense()
        assert np.allclose(np.diag(T), 1.0)
        assert np.allclose(T.sum(axis=1), 0.0)

    def test_cotangent_matrix(self, icosphere):
        """Symmetric, zero row sums, scaled by the timestep."""
        lb = LaplaceBeltrami(icosphere)
        L = lb.cotangent_laplace_matrix(timestep=0.5).to_dense()
        assert np.allclose(L, L.T)
        assert np.allclose(L.sum(axis=1), 0.0)
        assert np.all(np.diag(L) < 0.0)

        h = icosphere.outgoing_halfedges(0)[0]
        j = icosphere.end_vertex(h)
        assert L[0, j] == pytest.approx(0.5 * lb.edge_weights[h >> 1])

    def test_cotangent_matrix_reproduces_linear_functions(self, flat_grid):
        L = LaplaceBeltrami(flat_grid).get_laplacian()
        interior = ~flat_grid.boundary_vertices()
        result = L @ flat_grid.vertices
        assert np.allclose(result[interior], 0.0, atol=1e-12)

    def test_apply_operator(self, icosphere):
        lb = LaplaceBeltrami(icosphere)
        constant = np.ones(icosphere.n_vertices)
        assert np.allclose(lb.apply_operator(constant), 0.0, atol=1e-12)

    def test_mass_matrix(self, icosahedron):
        lb = LaplaceBeltrami(icosahedron)
        M = lb.get_mass_matrix().toarray()
        assert np.allclose(np.diag(M), MeshUtils.compute_vertex_areas(icosahedron))


###############################################################################
# Triplet builder
###############################################################################


class TestTripletMatrix:
    """Append-only assembly."""

    def test_duplicates_are_kept_then_summed(self):
        T = TripletMatrix((2, 2))
        T.append(0, 0, 1.0)
        T.append(0, 0, 2.0)
        T.append(1, 0, -1.0)
        assert T.nnz == 3
        assert [t.value for t in T] == [1.0, 2.0, -1.0]
        assert np.allclose(T.to_dense(), [[3.0, 0.0], [-1.0, 0.0]])

    def test_out_of_range(self):
        T = TripletMatrix((2, 3))
        T.append(1, 2, 1.0)
        with pytest.raises(ValueError):
            T.append(2, 0, 1.0)
        with pytest.raises(ValueError):
            T.append(0, -1, 1.0)
