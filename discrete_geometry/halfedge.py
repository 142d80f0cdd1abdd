"""Halfedge mesh used as the read/write facade for all geometry kernels."""

import numpy as np
import trimesh
from typing import List, Optional, Sequence


class HalfedgeMesh:
    """
    Polygon mesh stored as paired halfedges.

    Halfedges are allocated in pairs, so the opposite of halfedge ``h`` is
    ``h ^ 1`` and its undirected edge id is ``h >> 1``. Halfedges on the
    border of the mesh have adjacent face ``-1`` and are chained into
    boundary loops through ``next``/``prev``.

    The outgoing halfedges of a vertex are visited by ``next(pair(h))``.
    For boundary vertices the walk starts at the face-less halfedge, which
    makes the neighbor list of a boundary vertex begin and end at the border.
    """

    def __init__(self, vertices: np.ndarray, faces: Sequence[Sequence[int]]):
        """
        Build the halfedge structure.

        Args:
            vertices: Vertex positions (n_vertices, 3)
            faces: Polygon faces as vertex index lists, consistently wound

        Raises:
            ValueError: If the faces do not describe an oriented manifold
        """
        vertices = np.array(vertices, dtype=float).reshape(-1, 3)
        self.vertices = vertices
        self.faces = [list(map(int, face)) for face in faces]

        n_vertices = len(vertices)
        start = []
        face_of = []
        directed = {}

        for f, face in enumerate(self.faces):
            if len(face) < 3:
                raise ValueError(f"Face {f} has fewer than three vertices")
            for k in range(len(face)):
                a, b = face[k], face[(k + 1) % len(face)]
                if not (0 <= a < n_vertices and 0 <= b < n_vertices):
                    raise ValueError(f"Face {f} references a missing vertex")
                if (a, b) not in directed:
                    h = len(start)
                    start.extend([a, b])
                    face_of.extend([-1, -1])
                    directed[(a, b)] = h
                    directed[(b, a)] = h + 1
                h = directed[(a, b)]
                if face_of[h] != -1:
                    raise ValueError(
                        f"Edge ({a}, {b}) is used twice; mesh is non-manifold "
                        "or inconsistently wound"
                    )
                face_of[h] = f

        n_halfedges = len(start)
        self._start = np.array(start, dtype=int)
        self._face = np.array(face_of, dtype=int)
        self._next = np.full(n_halfedges, -1, dtype=int)
        self._prev = np.full(n_halfedges, -1, dtype=int)

        # Face loops
        self._face_halfedges = []
        for face in self.faces:
            hs = [directed[(face[k], face[(k + 1) % len(face)])] for k in range(len(face))]
            for k, h in enumerate(hs):
                self._next[h] = hs[(k + 1) % len(hs)]
                self._prev[hs[(k + 1) % len(hs)]] = h
            self._face_halfedges.append(hs)

        # Boundary loops
        boundary_out = {}
        for h in np.flatnonzero(self._face == -1):
            v = int(self._start[h])
            if v in boundary_out:
                raise ValueError(f"Vertex {v} joins more than one boundary fan")
            boundary_out[v] = int(h)
        for h in boundary_out.values():
            h_next = boundary_out[int(self._start[h ^ 1])]
            self._next[h] = h_next
            self._prev[h_next] = h

        # One outgoing halfedge per vertex, face-less ones first
        self._outgoing = np.full(n_vertices, -1, dtype=int)
        for h in range(n_halfedges):
            v = self._start[h]
            if self._outgoing[v] == -1:
                self._outgoing[v] = h
        for v, h in boundary_out.items():
            self._outgoing[v] = h

        # A single fan must reach every halfedge leaving the vertex
        out_degree = np.bincount(self._start, minlength=n_vertices)
        for v in range(n_vertices):
            if len(self.outgoing_halfedges(v)) != out_degree[v]:
                raise ValueError(f"Vertex {v} joins more than one face fan")

    @classmethod
    def from_trimesh(cls, mesh: trimesh.Trimesh) -> "HalfedgeMesh":
        """Build a halfedge mesh from a triangle mesh."""
        return cls(np.asarray(mesh.vertices), np.asarray(mesh.faces))

    def to_trimesh(self) -> trimesh.Trimesh:
        """Export the current state as a triangle mesh (faces fan-triangulated)."""
        triangles = []
        for face in self.faces:
            for k in range(1, len(face) - 1):
                triangles.append([face[0], face[k], face[k + 1]])
        return trimesh.Trimesh(
            vertices=self.vertices.copy(),
            faces=np.array(triangles, dtype=int).reshape(-1, 3),
            process=False
        )

    def copy(self) -> "HalfedgeMesh":
        """Independent mesh with copied positions and the same faces."""
        return HalfedgeMesh(self.vertices.copy(), self.faces)

    # Counts

    @property
    def n_vertices(self) -> int:
        """Number of vertices, isolated ones included."""
        return len(self.vertices)

    @property
    def n_faces(self) -> int:
        """Number of polygon faces."""
        return len(self.faces)

    @property
    def n_halfedges(self) -> int:
        """Number of halfedges, always twice the edge count."""
        return len(self._start)

    @property
    def n_edges(self) -> int:
        """Number of undirected edges."""
        return len(self._start) // 2

    # Halfedge relations

    def start_vertex(self, h: int) -> int:
        """Vertex that ``h`` leaves."""
        return int(self._start[h])

    def end_vertex(self, h: int) -> int:
        """Vertex that ``h`` points to."""
        return int(self._start[h ^ 1])

    def next_halfedge(self, h: int) -> int:
        """Next halfedge around the face (or boundary loop) of ``h``."""
        return int(self._next[h])

    def prev_halfedge(self, h: int) -> int:
        """Previous halfedge around the face (or boundary loop) of ``h``."""
        return int(self._prev[h])

    def pair_halfedge(self, h: int) -> int:
        """Opposite halfedge of the same edge."""
        return h ^ 1

    def adjacent_face(self, h: int) -> int:
        """Face on the left of ``h``, or -1 for a boundary halfedge."""
        return int(self._face[h])

    # Vertex queries

    def position(self, v: int) -> np.ndarray:
        """Position of vertex ``v`` (a view into :attr:`vertices`)."""
        return self.vertices[v]

    def set_vertex(self, v: int, position: Sequence[float]):
        """Overwrite the position of vertex ``v``."""
        position = np.asarray(position, dtype=float)
        if position.shape != (3,):
            raise ValueError(f"Expected a 3D position, got shape {position.shape}")
        self.vertices[v] = position

    def outgoing_halfedges(self, v: int) -> List[int]:
        """Outgoing halfedges of ``v`` in cyclic order."""
        h0 = int(self._outgoing[v])
        if h0 == -1:
            return []
        result = []
        h = h0
        while True:
            result.append(h)
            h = int(self._next[h ^ 1])
            if h == h0:
                break
            if len(result) > self.n_halfedges:
                raise ValueError(f"Halfedge fan around vertex {v} does not close")
        return result

    def incoming_halfedges(self, v: int) -> List[int]:
        """Incoming halfedges of ``v``, paired with :meth:`outgoing_halfedges`."""
        return [h ^ 1 for h in self.outgoing_halfedges(v)]

    def vertex_neighbors(self, v: int) -> List[int]:
        """One-ring neighbor vertices in cyclic order."""
        return [self.end_vertex(h) for h in self.outgoing_halfedges(v)]

    def vertex_faces(self, v: int) -> List[int]:
        """Adjacent face of every outgoing halfedge (-1 marks the boundary gap)."""
        return [int(self._face[h]) for h in self.outgoing_halfedges(v)]

    def valence(self, v: int) -> int:
        """Number of edges incident to ``v``."""
        return len(self.outgoing_halfedges(v))

    def is_boundary(self, v: int) -> bool:
        """True for vertices on a border; isolated vertices count as boundary."""
        h = self._outgoing[v]
        return bool(h == -1 or self._face[h] == -1)

    def boundary_vertices(self) -> np.ndarray:
        """Boolean mask of boundary vertices."""
        return np.array([self.is_boundary(v) for v in range(self.n_vertices)], dtype=bool)

    def is_closed(self) -> bool:
        """True when no halfedge lies on a border."""
        return not bool(np.any(self._face == -1))

    def boundary_loop(self, start: Optional[int] = None) -> List[int]:
        """
        Vertices of one boundary loop, ordered along the face winding.

        Args:
            start: Boundary vertex to start from (default: lowest index)

        Returns:
            Ordered vertex indices, empty for a closed mesh
        """
        if start is None:
            border = np.flatnonzero(self._face == -1)
            if len(border) == 0:
                return []
            start = int(min(self._start[border]))
        h0 = int(self._outgoing[start])
        if h0 == -1 or self._face[h0] != -1:
            raise ValueError(f"Vertex {start} is not on a boundary")

        # Face-less halfedges run against the face winding, walk them backwards
        loop = []
        h = h0
        while True:
            loop.append(self.start_vertex(h))
            h = int(self._prev[h])
            if h == h0:
                break
        return loop

    # Face queries

    def face_vertices(self, f: int) -> List[int]:
        """Vertex indices of face ``f`` in winding order."""
        return list(self.faces[f])

    def face_halfedges(self, f: int) -> List[int]:
        """Halfedges of face ``f`` in winding order."""
        return list(self._face_halfedges[f])

    def face_centroid(self, f: int) -> np.ndarray:
        """Mean of the corner positions of face ``f``."""
        return self.vertices[self.faces[f]].mean(axis=0)

    def __repr__(self) -> str:
        return (
            f"HalfedgeMesh(n_vertices={self.n_vertices}, n_faces={self.n_faces}, "
            f"n_edges={self.n_edges})"
        )
