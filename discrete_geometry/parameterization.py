"""Harmonic parameterization of disk-like meshes."""

import logging

import numpy as np
from typing import Optional

from .halfedge import HalfedgeMesh
from .solver import ScipySparseSolver, SolverKind, SparseSolver
from .sparse import LinearSystem, TripletMatrix
from .utils import MeshUtils

logger = logging.getLogger(__name__)


def map_boundary_to_circle(mesh: HalfedgeMesh, radius: float = 1.0) -> np.ndarray:
    """
    Place the boundary loop on a circle, spaced by arc length.

    Vertices follow the face winding, so a counter-clockwise wound mesh maps
    to a counter-clockwise circle.

    Args:
        mesh: Mesh with at least one boundary loop
        radius: Circle radius

    Returns:
        Texture coordinates (n_vertices, 2); interior rows are zero
    """
    loop = mesh.boundary_loop()
    if len(loop) < 3:
        raise ValueError("Mesh needs a boundary loop with at least three vertices")

    points = mesh.vertices[loop]
    seg_len = np.linalg.norm(np.roll(points, -1, axis=0) - points, axis=1)
    perimeter = float(seg_len.sum())

    if perimeter > 0.0:
        t = np.concatenate([[0.0], np.cumsum(seg_len)[:-1]]) / perimeter
    else:
        t = np.arange(len(loop)) / len(loop)
    angles = 2.0 * np.pi * t

    uv = np.zeros((mesh.n_vertices, 2))
    uv[loop] = np.column_stack([np.cos(angles), np.sin(angles)]) * radius
    return uv


class HarmonicParameterization:
    """
    Harmonic map of a disk-like mesh into the plane.

    Interior texture coordinates solve the discrete Laplace equation
        Σ_j w_ij (u_j - u_i) = 0
    with cotangent weights floored at zero, and the boundary texture
    coordinates as Dirichlet data. For a convex boundary polygon the
    resulting map has no flipped triangles.
    """

    def __init__(self, mesh: HalfedgeMesh, solver: Optional[SparseSolver] = None):
        """
        Args:
            mesh: Disk-like input mesh
            solver: Sparse solver (default: SuperLU)
        """
        self.mesh = mesh
        self.solver = solver if solver is not None else ScipySparseSolver()
        self.n_vertices = mesh.n_vertices

    def assemble(self, texture_coords: np.ndarray) -> LinearSystem:
        """
        Assemble the harmonic system over interior vertices.

        Args:
            texture_coords: Texture coordinates (n_vertices, 2 or 3); only the
                boundary rows are read

        Returns:
            System with one row per interior vertex and 2 columns
        """
        mesh = self.mesh
        free_vertices = [v for v in range(self.n_vertices) if not mesh.is_boundary(v)]
        index = {v: k for k, v in enumerate(free_vertices)}
        n = len(free_vertices)

        edge_weights = np.maximum(0.0, MeshUtils.compute_cotangent_weights(mesh))

        A = TripletMatrix((n, n))
        B = TripletMatrix((n, 2))

        for i, v in enumerate(free_vertices):
            b = np.zeros(2)
            total = 0.0

            for h in mesh.outgoing_halfedges(v):
                vv = mesh.end_vertex(h)
                w = edge_weights[h >> 1]
                total += w
                if mesh.is_boundary(vv):
                    b += w * texture_coords[vv, :2]
                else:
                    A.append(i, index[vv], -w)

            B.append(i, 0, b[0])
            B.append(i, 1, b[1])
            A.append(i, i, total)

        return LinearSystem(A, B)

    def solve(self, texture_coords: np.ndarray) -> np.ndarray:
        """
        Overwrite the interior texture coordinates with the harmonic map.

        Args:
            texture_coords: Texture coordinates (n_vertices, 2 or 3), updated
                in place; boundary rows are left untouched

        Returns:
            The updated texture coordinates

        Raises:
            ValueError: If the array has the wrong shape or is not floating point
            SolverError: If the system is singular
        """
        if texture_coords.ndim != 2 or texture_coords.shape[0] != self.n_vertices \
                or texture_coords.shape[1] not in (2, 3):
            raise ValueError(
                f"Expected texture coordinates of shape ({self.n_vertices}, 2|3), "
                f"got {texture_coords.shape}"
            )
        if not np.issubdtype(texture_coords.dtype, np.floating):
            raise ValueError(
                f"Texture coordinates must be floating point, got {texture_coords.dtype}"
            )

        free_vertices = [v for v in range(self.n_vertices) if not self.mesh.is_boundary(v)]
        if not free_vertices:
            logger.warning("No interior vertices to parameterize")
            return texture_coords

        system = self.assemble(texture_coords)
        logger.debug("Harmonic parameterization: %s", system)

        X = self.solver.solve_system(system, SolverKind.LU)
        texture_coords[free_vertices, 0] = X[:, 0]
        texture_coords[free_vertices, 1] = X[:, 1]
        if texture_coords.shape[1] == 3:
            texture_coords[free_vertices, 2] = 0.0

        return texture_coords

    def parameterize(self, radius: float = 1.0) -> np.ndarray:
        """
        Map the boundary onto a circle and solve for the interior.

        Args:
            radius: Radius of the boundary circle

        Returns:
            Texture coordinates (n_vertices, 2)
        """
        uv = map_boundary_to_circle(self.mesh, radius)
        return self.solve(uv)
