"""Explicit and implicit Laplacian smoothing of halfedge meshes."""

import logging

import numpy as np
from typing import Optional

from .halfedge import HalfedgeMesh
from .laplace_beltrami import LaplaceBeltrami
from .solver import ScipySparseSolver, SolverKind, SparseSolver
from .sparse import LinearSystem, TripletMatrix
from .utils import MeshUtils

logger = logging.getLogger(__name__)


class LaplacianSmoothing:
    """
    Cotangent Laplacian smoothing.

    The explicit method is forward-Euler diffusion:
        p_{n+1} = p_n + λ Δp_n

    The implicit methods use backward-Euler integration:
        (2A + t Σw) p_i - t Σ_j w_ij p_j = 2A p_i^0

    where A is the mixed Voronoi area of vertex i and t the timestep.
    All methods write the new positions into the mesh and return it.
    """

    def __init__(self, mesh: HalfedgeMesh, solver: Optional[SparseSolver] = None):
        """
        Initialize the smoother.

        Args:
            mesh: Mesh to smooth in place
            solver: Sparse solver for the implicit methods (default: SuperLU)
        """
        self.mesh = mesh
        self.solver = solver if solver is not None else ScipySparseSolver()
        self.n_vertices = mesh.n_vertices

    def explicit(
        self,
        lambda_: float,
        iterations: int = 1,
        keep_boundary: bool = True
    ) -> HalfedgeMesh:
        """
        Smooth by repeated steps along the cotangent Laplace vector.

        Edge weights are taken from the mesh before the first step.

        Args:
            lambda_: Step size per iteration
            iterations: Number of smoothing iterations
            keep_boundary: Hold boundary vertices fixed

        Returns:
            The smoothed mesh
        """
        mesh = self.mesh
        if mesh.n_vertices == 0:
            return mesh

        lb = LaplaceBeltrami(mesh)
        movable = np.ones(self.n_vertices, dtype=bool)
        if keep_boundary:
            movable &= ~mesh.boundary_vertices()

        for _ in range(iterations):
            # Every vector is computed before any position moves
            laplace = lb.cotangent_laplace(skip_boundary=keep_boundary)
            for i in np.flatnonzero(movable):
                mesh.set_vertex(i, mesh.vertices[i] + lambda_ * laplace[i])

        return mesh

    def assemble_implicit(self, timestep: float) -> LinearSystem:
        """
        Assemble the reduced implicit system over interior vertices.

        Boundary vertices are fixed and moved to the right-hand side. Edge
        weights are floored at zero so the system is symmetric positive
        definite.

        Args:
            timestep: Diffusion time

        Returns:
            System with one row per interior vertex and 3 columns
        """
        mesh = self.mesh
        free_vertices = [v for v in range(self.n_vertices) if not mesh.is_boundary(v)]
        index = {v: k for k, v in enumerate(free_vertices)}
        n = len(free_vertices)

        edge_weights = np.maximum(0.0, MeshUtils.compute_cotangent_weights(mesh))

        A = TripletMatrix((n, n))
        B = TripletMatrix((n, 3))

        for i, v in enumerate(free_vertices):
            inv_vertex_weight = 2.0 * MeshUtils.compute_mixed_voronoi_area(mesh, v)
            b = mesh.vertices[v] * inv_vertex_weight
            total = 0.0

            for h in mesh.outgoing_halfedges(v):
                vv = mesh.end_vertex(h)
                w = edge_weights[h >> 1]
                total += w
                if mesh.is_boundary(vv):
                    b = b + timestep * w * mesh.vertices[vv]
                else:
                    A.append(i, index[vv], -timestep * w)

            for c in range(3):
                B.append(i, c, b[c])
            A.append(i, i, inv_vertex_weight + timestep * total)

        return LinearSystem(A, B)

    def implicit(self, timestep: float) -> HalfedgeMesh:
        """
        Smooth by one backward-Euler step with the boundary held fixed.

        Args:
            timestep: Diffusion time

        Returns:
            The smoothed mesh

        Raises:
            SolverError: If the system cannot be factored
        """
        mesh = self.mesh
        free_vertices = [v for v in range(self.n_vertices) if not mesh.is_boundary(v)]
        if not free_vertices:
            logger.warning("No interior vertices to smooth, mesh left unchanged")
            return mesh

        system = self.assemble_implicit(timestep)
        logger.debug("Implicit smoothing: %s", system)

        X = self.solver.solve_system(system, SolverKind.CHOLESKY)
        for i, v in enumerate(free_vertices):
            mesh.set_vertex(v, X[i])

        return mesh

    def assemble_implicit_full(self, timestep: Optional[float] = None) -> LinearSystem:
        """
        Assemble the implicit system over all vertices.

        Boundary vertices get identity rows pinning them in place. Interior
        rows are backward-Euler rows with the raw (unfloored) weights, or the
        membrane rows Σw p_i - Σ_j w_ij p_j = 0 when ``timestep`` is None.

        Args:
            timestep: Diffusion time, or None for membrane fairing

        Returns:
            System with one row per vertex and 3 columns
        """
        mesh = self.mesh
        n = self.n_vertices
        edge_weights = MeshUtils.compute_cotangent_weights(mesh)

        A = TripletMatrix((n, n))
        B = TripletMatrix((n, 3))

        for i in range(n):
            if mesh.is_boundary(i):
                A.append(i, i, 1.0)
                for c in range(3):
                    B.append(i, c, mesh.vertices[i][c])
                continue

            scale = 1.0 if timestep is None else timestep
            total = 0.0
            for h in mesh.outgoing_halfedges(i):
                w = edge_weights[h >> 1]
                total += w
                A.append(i, mesh.end_vertex(h), -scale * w)

            if timestep is None:
                A.append(i, i, total)
            else:
                inv_vertex_weight = 2.0 * MeshUtils.compute_mixed_voronoi_area(mesh, i)
                A.append(i, i, inv_vertex_weight + timestep * total)
                for c in range(3):
                    B.append(i, c, inv_vertex_weight * mesh.vertices[i][c])

        return LinearSystem(A, B)

    def implicit_full(self, timestep: Optional[float] = None) -> HalfedgeMesh:
        """
        Smooth with every vertex as an unknown, using the general LU solver.

        Args:
            timestep: Diffusion time, or None for membrane fairing

        Returns:
            The smoothed mesh

        Raises:
            SolverError: If the system is singular
        """
        mesh = self.mesh
        if mesh.n_vertices == 0:
            return mesh

        system = self.assemble_implicit_full(timestep)
        logger.debug("Full implicit smoothing: %s", system)

        X = self.solver.solve_system(system, SolverKind.LU)
        for i in range(self.n_vertices):
            mesh.set_vertex(i, X[i])

        return mesh
