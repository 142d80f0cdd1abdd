"""Utility functions for mesh processing and geometric computations."""

import math

import numpy as np
from typing import List

from .halfedge import HalfedgeMesh

# Cotangents are clamped as if angles were limited to [1, 89] degrees
COT_BOUND = 19.1
# Cosines are clamped as if angles were limited to [3, 177] degrees
COS_BOUND = 0.9986
# Cross-product magnitude below which a triangle is skipped
DEGENERATE_AREA = 1e-6


class MeshUtils:
    """Utility functions for mesh operations."""

    @staticmethod
    def clamp_cot(value: float) -> float:
        """Clamp a cotangent value to [-COT_BOUND, COT_BOUND]."""
        return min(max(value, -COT_BOUND), COT_BOUND)

    @staticmethod
    def clamp_cos(value: float) -> float:
        """Clamp a cosine value to [-COS_BOUND, COS_BOUND]."""
        return min(max(value, -COS_BOUND), COS_BOUND)

    @staticmethod
    def cotan(v1: np.ndarray, v2: np.ndarray) -> float:
        """
        Compute cotangent of angle between two vectors.

        cot(θ) = cos(θ) / sin(θ) = (v1 · v2) / ||v1 × v2||

        Args:
            v1, v2: Input vectors

        Returns:
            Cotangent value, signed infinity for parallel vectors
        """
        dot_product = float(np.dot(v1, v2))
        cross_norm = float(np.linalg.norm(np.cross(v1, v2)))

        if cross_norm == 0.0:
            if dot_product == 0.0:
                return 0.0
            return math.copysign(math.inf, dot_product)

        return dot_product / cross_norm

    @staticmethod
    def normalize(v: np.ndarray) -> np.ndarray:
        """Unit vector along ``v``; the zero vector stays zero."""
        norm = np.linalg.norm(v)
        if norm == 0.0:
            return np.zeros_like(v, dtype=float)
        return v / norm

    @staticmethod
    def face_normal(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
        """Unnormalized normal of triangle (a, b, c), oriented by its winding."""
        return np.cross(b - a, c - a)

    @staticmethod
    def triangle_area(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> float:
        """Area of triangle (a, b, c)."""
        return 0.5 * float(np.linalg.norm(np.cross(b - a, c - a)))

    @staticmethod
    def circumcenter(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
        """
        Circumcenter of triangle (a, b, c).

        Args:
            a, b, c: Triangle corners

        Returns:
            Point equidistant from the three corners
        """
        ab = b - a
        ac = c - a
        ab_x_ac = np.cross(ab, ac)

        offset = (
            np.cross(ab_x_ac, ab) * np.dot(ac, ac) +
            np.cross(ac, ab_x_ac) * np.dot(ab, ab)
        ) / (2.0 * np.dot(ab_x_ac, ab_x_ac))

        return a + offset

    @staticmethod
    def compute_face_normals(mesh: HalfedgeMesh) -> np.ndarray:
        """
        Compute unit normals for each face from its first three corners.

        Args:
            mesh: Input halfedge mesh

        Returns:
            Array of face normals (n_faces, 3)
        """
        normals = np.zeros((mesh.n_faces, 3))
        for f in range(mesh.n_faces):
            a, b, c = mesh.vertices[mesh.face_vertices(f)[:3]]
            normals[f] = MeshUtils.normalize(MeshUtils.face_normal(a, b, c))
        return normals

    @staticmethod
    def compute_vertex_normals(mesh: HalfedgeMesh) -> np.ndarray:
        """
        Compute normals for each vertex.

        Sums the cross products of consecutive outgoing edge vectors over the
        faces around the vertex. Isolated vertices get a zero normal.

        Args:
            mesh: Input halfedge mesh

        Returns:
            Array of vertex normals (n_vertices, 3)
        """
        normals = np.zeros((mesh.n_vertices, 3))

        for v in range(mesh.n_vertices):
            out_edges = mesh.outgoing_halfedges(v)
            valence = len(out_edges)
            if valence == 0:
                continue

            p = mesh.vertices[v]
            out_vectors = [mesh.vertices[mesh.end_vertex(h)] - p for h in out_edges]

            normal = np.zeros(3)
            for j in range(valence):
                k = (j + 1) % valence
                # The wedge between two border edges is not a face
                if mesh.adjacent_face(out_edges[k]) != -1:
                    normal += np.cross(out_vectors[k], out_vectors[j])

            normals[v] = MeshUtils.normalize(normal)

        return normals

    @staticmethod
    def compute_mixed_voronoi_area(mesh: HalfedgeMesh, v: int) -> float:
        """
        Compute the mixed Voronoi area of a vertex.

        Non-obtuse triangles contribute their Voronoi region; obtuse triangles
        fall back to a fraction of the triangle area (half when the obtuse
        angle sits at ``v``, a quarter otherwise).

        Args:
            mesh: Input halfedge mesh
            v: Vertex index

        Returns:
            Mixed Voronoi area of ``v``
        """
        area = 0.0

        for h0 in mesh.outgoing_halfedges(v):
            if mesh.adjacent_face(h0) == -1:
                continue

            h1 = mesh.next_halfedge(h0)
            h2 = mesh.next_halfedge(h1)

            p = mesh.vertices[mesh.end_vertex(h2)]
            q = mesh.vertices[mesh.end_vertex(h0)]
            r = mesh.vertices[mesh.end_vertex(h1)]

            pq = q - p
            qr = r - q
            pr = r - p

            # Twice the triangle area
            tri_area = float(np.linalg.norm(np.cross(pq, qr)))
            if tri_area <= DEGENERATE_AREA:
                continue

            dot_p = float(np.dot(pq, pr))
            dot_q = float(-np.dot(qr, pq))
            dot_r = float(np.dot(qr, pr))

            if dot_p < 0.0:
                area += 0.25 * tri_area
            elif dot_q < 0.0 or dot_r < 0.0:
                area += 0.125 * tri_area
            else:
                cot_q = MeshUtils.clamp_cot(dot_q / tri_area)
                cot_r = MeshUtils.clamp_cot(dot_r / tri_area)
                area += 0.125 * (np.dot(pr, pr) * cot_q + np.dot(pq, pq) * cot_r)

        return float(area)

    @staticmethod
    def compute_vertex_areas(mesh: HalfedgeMesh) -> np.ndarray:
        """
        Compute the mixed Voronoi area associated with each vertex.

        Args:
            mesh: Input halfedge mesh

        Returns:
            Array of vertex areas (n_vertices,)
        """
        return np.array(
            [MeshUtils.compute_mixed_voronoi_area(mesh, v) for v in range(mesh.n_vertices)],
            dtype=float
        )

    @staticmethod
    def compute_cotangent_weights(mesh: HalfedgeMesh) -> np.ndarray:
        """
        Compute cotangent weights for the Laplace-Beltrami operator.

        For each edge (i,j), the weight is: w_ij = (cot α + cot β) / 2
        where α and β are the angles opposite to the edge. Each cotangent is
        clamped to [-COT_BOUND, COT_BOUND]; boundary edges have one term.

        Args:
            mesh: Input halfedge mesh

        Returns:
            Weights indexed by undirected edge id (n_edges,)
        """
        vertices = mesh.vertices
        weights = np.zeros(mesh.n_edges)

        for e in range(mesh.n_edges):
            h = 2 * e
            ho = h + 1

            a = vertices[mesh.start_vertex(h)]
            c = vertices[mesh.end_vertex(h)]

            if mesh.adjacent_face(h) != -1:
                b = vertices[mesh.start_vertex(mesh.prev_halfedge(h))]
                weights[e] += 0.5 * MeshUtils.clamp_cot(MeshUtils.cotan(a - b, c - b))

            if mesh.adjacent_face(ho) != -1:
                d = vertices[mesh.end_vertex(mesh.next_halfedge(ho))]
                weights[e] += 0.5 * MeshUtils.clamp_cot(MeshUtils.cotan(a - d, c - d))

        return weights

    @staticmethod
    def is_feature_edge(
        mesh: HalfedgeMesh,
        h: int,
        angle: float = 30.0,
        include_boundary: bool = True
    ) -> bool:
        """
        Decide whether the edge of halfedge ``h`` is a crease.

        Args:
            mesh: Input halfedge mesh
            h: Halfedge index
            angle: Dihedral threshold in degrees
            include_boundary: Whether border edges count as features

        Returns:
            True when the face normals across the edge differ by more than ``angle``
        """
        f0 = mesh.adjacent_face(h)
        f1 = mesh.adjacent_face(mesh.pair_halfedge(h))
        if f0 == -1 or f1 == -1:
            return include_boundary

        feature_cosine = math.cos(math.radians(angle))

        n0 = MeshUtils.face_normal(*mesh.vertices[mesh.face_vertices(f0)[:3]])
        n1 = MeshUtils.face_normal(*mesh.vertices[mesh.face_vertices(f1)[:3]])
        cosine = np.dot(n0, n1) / (np.linalg.norm(n0) * np.linalg.norm(n1))

        return bool(cosine < feature_cosine)

    @staticmethod
    def find_feature_edges(
        mesh: HalfedgeMesh,
        angle: float = 30.0,
        include_boundary: bool = True
    ) -> List[int]:
        """Undirected edge ids whose dihedral angle exceeds ``angle`` degrees."""
        return [
            e for e in range(mesh.n_edges)
            if MeshUtils.is_feature_edge(mesh, 2 * e, angle, include_boundary)
        ]

    @staticmethod
    def compute_mean_edge_length(mesh: HalfedgeMesh) -> float:
        """
        Compute the mean edge length of the mesh.

        Args:
            mesh: Input halfedge mesh

        Returns:
            Mean edge length
        """
        if mesh.n_edges == 0:
            return 0.0
        starts = [mesh.start_vertex(2 * e) for e in range(mesh.n_edges)]
        ends = [mesh.end_vertex(2 * e) for e in range(mesh.n_edges)]
        edge_lengths = np.linalg.norm(
            mesh.vertices[starts] - mesh.vertices[ends],
            axis=1
        )
        return float(np.mean(edge_lengths))
