"""Laplace-Beltrami operator implementation for halfedge meshes."""

import numpy as np
from scipy import sparse

from .halfedge import HalfedgeMesh
from .sparse import TripletMatrix
from .utils import MeshUtils


class LaplaceBeltrami:
    """
    Laplace-Beltrami operator on polygon meshes.

    The discrete Laplace-Beltrami operator uses the cotangent formula:
        w_{ij} = (cot α_{ij} + cot β_{ij}) / 2

    Dense operators return one vector per vertex; matrix builders return
    :class:`TripletMatrix` objects over vertex-index space.

    The edge weights are computed once from the mesh positions at
    construction time; build a new operator after moving vertices.
    """

    def __init__(self, mesh: HalfedgeMesh):
        """
        Initialize the Laplace-Beltrami operator.

        Args:
            mesh: Input halfedge mesh
        """
        self.mesh = mesh
        self.n_vertices = mesh.n_vertices

        self.edge_weights = MeshUtils.compute_cotangent_weights(mesh)
        self._vertex_areas = None

    @property
    def vertex_areas(self) -> np.ndarray:
        """Mixed Voronoi areas, computed on first use."""
        if self._vertex_areas is None:
            self._vertex_areas = MeshUtils.compute_vertex_areas(self.mesh)
        return self._vertex_areas

    def uniform_laplace(self) -> np.ndarray:
        """
        Compute the uniform Laplace position of each vertex.

        Sums the neighbor positions over the outgoing halfedges that have a
        face and divides by the valence.

        Returns:
            Neighbor centroids (n_vertices, 3)
        """
        mesh = self.mesh
        laplace = np.zeros((self.n_vertices, 3))
        valence = np.zeros(self.n_vertices)

        for h in range(mesh.n_halfedges):
            a = mesh.start_vertex(h)
            valence[a] += 1
            if mesh.adjacent_face(h) != -1:
                laplace[a] += mesh.vertices[mesh.end_vertex(h)]

        nonzero = valence > 0
        laplace[nonzero] /= valence[nonzero, None]
        return laplace

    def cotangent_laplace(self, skip_boundary: bool = True) -> np.ndarray:
        """
        Compute the cotangent Laplace vector of each vertex.

            Δp_i = Σ_j w_ij (p_j - p_i) / Σ_j w_ij

        Args:
            skip_boundary: Leave boundary vertices at zero

        Returns:
            Laplace vectors (n_vertices, 3)
        """
        mesh = self.mesh
        positions = mesh.vertices
        laplace = np.zeros((self.n_vertices, 3))

        for i in range(self.n_vertices):
            if skip_boundary and mesh.is_boundary(i):
                continue

            total = 0.0
            for h in mesh.outgoing_halfedges(i):
                w = self.edge_weights[h >> 1]
                total += w
                laplace[i] += (positions[mesh.end_vertex(h)] - positions[i]) * w

            if total != 0.0:
                laplace[i] /= total

        return laplace

    def adjacency_matrix_vv(self) -> TripletMatrix:
        """Vertex-to-vertex adjacency with unit entries."""
        A = TripletMatrix((self.n_vertices, self.n_vertices))
        for i in range(self.n_vertices):
            for j in self.mesh.vertex_neighbors(i):
                A.append(i, j, 1.0)
        return A

    def adjacency_matrix_fv(self) -> TripletMatrix:
        """Face-to-vertex incidence with unit entries (n_faces x n_vertices)."""
        A = TripletMatrix((self.mesh.n_faces, self.n_vertices))
        for f in range(self.mesh.n_faces):
            for v in self.mesh.face_vertices(f):
                A.append(f, v, 1.0)
        return A

    def valency_matrix(self) -> TripletMatrix:
        """Diagonal degree matrix D."""
        D = TripletMatrix((self.n_vertices, self.n_vertices))
        for i in range(self.n_vertices):
            D.append(i, i, len(self.mesh.vertex_neighbors(i)))
        return D

    def uniform_laplace_matrix(self) -> TripletMatrix:
        """Combinatorial Laplacian K = D - W."""
        K = TripletMatrix((self.n_vertices, self.n_vertices))
        for i in range(self.n_vertices):
            neighbors = self.mesh.vertex_neighbors(i)
            for j in neighbors:
                K.append(i, j, -1.0)
            K.append(i, i, len(neighbors))
        return K

    def tutte_laplace_matrix(self) -> TripletMatrix:
        """Row-normalized Laplacian T = D^-1 K; not symmetric."""
        T = TripletMatrix((self.n_vertices, self.n_vertices))
        for i in range(self.n_vertices):
            neighbors = self.mesh.vertex_neighbors(i)
            for j in neighbors:
                T.append(i, j, -1.0 / len(neighbors))
            T.append(i, i, 1.0)
        return T

    def cotangent_laplace_matrix(self, timestep: float = 1.0) -> TripletMatrix:
        """
        Cotangent Laplacian scaled by a diffusion timestep.

        Off-diagonal entries are ``timestep * w_ij`` (one per halfedge, so the
        matrix is symmetric) and the diagonal is ``-timestep * Σ_j w_ij``;
        ``M - L`` is then the implicit diffusion matrix.

        Args:
            timestep: Scale applied to every entry

        Returns:
            Scaled cotangent Laplacian
        """
        mesh = self.mesh
        L = TripletMatrix((self.n_vertices, self.n_vertices))
        vertex_weight = np.zeros(self.n_vertices)

        for h in range(mesh.n_halfedges):
            i = mesh.start_vertex(h)
            j = mesh.end_vertex(h)
            w = self.edge_weights[h >> 1]

            vertex_weight[i] += w
            L.append(i, j, w * timestep)

        for i in range(self.n_vertices):
            L.append(i, i, -timestep * vertex_weight[i])

        return L

    def mass_matrix(self) -> TripletMatrix:
        """Diagonal matrix of mixed Voronoi areas."""
        M = TripletMatrix((self.n_vertices, self.n_vertices))
        for i, area in enumerate(self.vertex_areas):
            M.append(i, i, area)
        return M

    def get_laplacian(self, timestep: float = 1.0) -> sparse.csr_matrix:
        """Get the cotangent Laplacian as a CSR matrix."""
        return self.cotangent_laplace_matrix(timestep).to_scipy()

    def get_mass_matrix(self) -> sparse.csr_matrix:
        """Get the mass matrix as a CSR matrix."""
        return self.mass_matrix().to_scipy()

    def apply_operator(self, function: np.ndarray) -> np.ndarray:
        """
        Apply the cotangent Laplacian to a per-vertex function.

        Args:
            function: Function values at vertices (n_vertices,) or (n_vertices, k)

        Returns:
            Result of L @ function
        """
        return self.get_laplacian() @ function
