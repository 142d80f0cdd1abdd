"""Discrete curvature estimators on halfedge meshes."""

import math

import numpy as np
from typing import Optional, Tuple

from .halfedge import HalfedgeMesh
from .laplace_beltrami import LaplaceBeltrami
from .utils import MeshUtils


class Curvature:
    """
    Per-vertex curvature estimators.

    Two mean curvature estimators are provided and they do not agree in
    general: :meth:`laplacian_mean_curvature` measures the length of the
    cotangent Laplace vector, :meth:`normal_mean_curvature` averages the
    normal variation along the incident edges.
    """

    def __init__(self, mesh: HalfedgeMesh):
        """
        Args:
            mesh: Input halfedge mesh
        """
        self.mesh = mesh
        self.n_vertices = mesh.n_vertices
        self.lb = LaplaceBeltrami(mesh)

    def laplacian_mean_curvature(self) -> np.ndarray:
        """
        Mean curvature from the cotangent Laplace operator.

            H_i = |Δp_i| / 2

        Returns:
            Mean curvatures (n_vertices,), zero on the boundary
        """
        laplace = self.lb.cotangent_laplace()
        curvature = 0.5 * np.linalg.norm(laplace, axis=1)
        curvature[self.mesh.boundary_vertices()] = 0.0
        return curvature

    def normal_mean_curvature(self) -> np.ndarray:
        """
        Mean curvature from vertex normals.

        Each edge gets ``(n1 - n0) · (p1 - p0) / |p1 - p0|²`` and every vertex
        averages the values of its incident edges.

        Returns:
            Mean curvatures (n_vertices,)
        """
        mesh = self.mesh
        normals = MeshUtils.compute_vertex_normals(mesh)
        edge_curvature = np.zeros(mesh.n_edges)

        for e in range(mesh.n_edges):
            v0 = mesh.start_vertex(2 * e)
            v1 = mesh.end_vertex(2 * e)
            d = mesh.vertices[v1] - mesh.vertices[v0]
            length_sq = float(np.dot(d, d))
            if length_sq == 0.0:
                continue
            edge_curvature[e] = np.dot(normals[v1] - normals[v0], d) / length_sq

        curvature = np.zeros(self.n_vertices)
        for v in range(self.n_vertices):
            hs = mesh.outgoing_halfedges(v)
            if hs:
                curvature[v] = sum(edge_curvature[h >> 1] for h in hs) / len(hs)

        return curvature

    def gaussian_curvature(self) -> np.ndarray:
        """
        Compute discrete Gaussian curvature at each vertex using angle deficit.

        K_i = (2π - Σ θ_j) / A_i

        where θ_j are the angles between consecutive one-ring neighbors seen
        from vertex i and A_i is the mixed Voronoi area. Boundary vertices use
        the same 2π reference.

        Returns:
            Gaussian curvatures (n_vertices,), NaN where the area vanishes
        """
        mesh = self.mesh
        areas = self.lb.vertex_areas
        curvature = np.full(self.n_vertices, np.nan)

        for i in range(self.n_vertices):
            neighbors = mesh.vertex_neighbors(i)
            valence = len(neighbors)
            p = mesh.vertices[i]

            angle_sum = 0.0
            for j in range(valence):
                v1 = p - mesh.vertices[neighbors[j]]
                v2 = p - mesh.vertices[neighbors[(j + 1) % valence]]
                norms = np.linalg.norm(v1) * np.linalg.norm(v2)
                if norms == 0.0:
                    continue
                cos_angle = MeshUtils.clamp_cos(float(np.dot(v1, v2)) / norms)
                angle_sum += math.acos(cos_angle)

            if areas[i] > 0.0:
                curvature[i] = (2.0 * math.pi - angle_sum) / areas[i]

        return curvature

    def principal_curvatures(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Compute the two principal curvatures.

            k = H ± sqrt(max(0, H² - K))

        Returns:
            Tuple of (k_max, k_min), each (n_vertices,)
        """
        mean = self.laplacian_mean_curvature()
        gaussian = self.gaussian_curvature()

        delta = np.sqrt(np.maximum(0.0, mean * mean - gaussian))
        return mean + delta, mean - delta

    def principal_directions(self, curvature: Optional[np.ndarray] = None) -> np.ndarray:
        """
        Approximate the direction of largest curvature at each vertex.

        The neighbor with the largest curvature is paired with the larger of
        its two one-ring neighbors around the vertex; the direction points at
        their curvature-weighted blend.

        Args:
            curvature: Per-vertex field to follow (default: k_max)

        Returns:
            Unit directions (n_vertices, 3), zero for isolated vertices
        """
        mesh = self.mesh
        if curvature is None:
            curvature, _ = self.principal_curvatures()
        curvature = np.asarray(curvature, dtype=float)
        if curvature.shape != (self.n_vertices,):
            raise ValueError(
                f"Expected {self.n_vertices} curvature values, got shape {curvature.shape}"
            )

        directions = np.zeros((self.n_vertices, 3))

        for i in range(self.n_vertices):
            incoming = mesh.incoming_halfedges(i)
            if not incoming:
                continue

            # Ties go to the last halfedge holding the maximum
            max_id = incoming[0]
            running_max = -math.inf
            for h in incoming:
                value = curvature[mesh.start_vertex(h)]
                if value >= running_max:
                    running_max = value
                    max_id = h

            pre_vert = mesh.end_vertex(mesh.next_halfedge(mesh.pair_halfedge(max_id)))
            next_vert = mesh.start_vertex(mesh.prev_halfedge(max_id))

            second = mesh.start_vertex(max_id)
            third = pre_vert if curvature[pre_vert] > curvature[next_vert] else next_vert

            denominator = curvature[second] + curvature[third]
            third_weight = curvature[third] / denominator if denominator != 0.0 else 0.5

            end = third_weight * mesh.vertices[third] + (1.0 - third_weight) * mesh.vertices[second]
            directions[i] = MeshUtils.normalize(end - mesh.vertices[i])

        return directions
