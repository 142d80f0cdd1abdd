"""Least-squares mesh reconstruction from the uniform Laplacian."""

import logging

from typing import Sequence

from .halfedge import HalfedgeMesh
from .laplace_beltrami import LaplaceBeltrami
from .sparse import LinearSystem, TripletMatrix

logger = logging.getLogger(__name__)


class LeastSquaresMesh:
    """
    Least-squares meshes.

    Stacks the uniform Laplacian K of all n vertices on top of one unit row
    per constrained vertex:

        [ K ] x = [ 0 ]
        [ C ]     [ p_c ]

    The (n + k) x n system is over-determined and meant for a least-squares
    solve, which the solver interface does not offer yet.
    """

    def __init__(self, mesh: HalfedgeMesh):
        self.mesh = mesh
        self.n_vertices = mesh.n_vertices

    def constrained_vertices(self, constraints: Sequence[int]) -> list:
        """
        Constrained vertex list with the boundary of an open mesh appended.

        Args:
            constraints: Caller-chosen anchor vertices (not modified)

        Returns:
            Distinct vertex indices, first occurrence order
        """
        vertices = [int(v) for v in constraints]
        for v in vertices:
            if not 0 <= v < self.n_vertices:
                raise ValueError(f"Constraint {v} is not a vertex index")
        if not self.mesh.is_closed():
            vertices.extend(v for v in range(self.n_vertices) if self.mesh.is_boundary(v))
        return list(dict.fromkeys(vertices))

    def assemble(self, constraints: Sequence[int]) -> LinearSystem:
        """
        Assemble the over-determined least-squares system.

        Args:
            constraints: Anchor vertices pinned to their current positions

        Returns:
            System with n + k rows, n unknowns and 3 columns
        """
        n = self.n_vertices
        anchors = self.constrained_vertices(constraints)
        m = len(anchors)

        K = LaplaceBeltrami(self.mesh).uniform_laplace_matrix()
        A = TripletMatrix((n + m, n))
        for row, col, value in K:
            A.append(row, col, value)

        B = TripletMatrix((n + m, 3))
        for k, v in enumerate(anchors):
            A.append(n + k, v, 1.0)
            for c in range(3):
                B.append(n + k, c, self.mesh.vertices[v][c])

        return LinearSystem(A, B)

    def reconstruct(self, constraints: Sequence[int]) -> HalfedgeMesh:
        """
        Reconstruct vertex positions from the Laplacian and the anchors.

        Args:
            constraints: Anchor vertices pinned to their current positions

        Raises:
            NotImplementedError: Always; the least-squares solve is not available
        """
        system = self.assemble(constraints)
        logger.debug("Least-squares mesh: %s", system)
        raise NotImplementedError(
            f"Least-squares solve of the {system.A.shape[0]}x{system.A.shape[1]} "
            "system is not implemented; mesh left unchanged"
        )
