"""Polyscope views of per-vertex fields and parameterizations."""

import numpy as np
import polyscope as ps

from .halfedge import HalfedgeMesh


def _register(mesh: HalfedgeMesh, name: str = "mesh"):
    ps.init()
    return ps.register_surface_mesh(name, mesh.vertices, mesh.faces)


def show_scalar_field(
    mesh: HalfedgeMesh,
    values: np.ndarray,
    name: str = "curvature",
    cmap: str = "coolwarm"
):
    """
    Visualize a per-vertex scalar field (e.g. curvature) using Polyscope.

    Args:
        mesh: Input mesh
        values: Values at vertices (n_vertices,)
        name: Quantity name
        cmap: Colormap name
    """
    ps_mesh = _register(mesh)

    ps_mesh.add_scalar_quantity(
        name,
        np.nan_to_num(values),
        defined_on='vertices',
        cmap=cmap,
        enabled=True
    )

    ps.show()


def show_vector_field(
    mesh: HalfedgeMesh,
    vectors: np.ndarray,
    name: str = "directions"
):
    """
    Visualize a per-vertex vector field (normals, principal directions).

    Args:
        mesh: Input mesh
        vectors: Vectors at vertices (n_vertices, 3)
        name: Quantity name
    """
    ps_mesh = _register(mesh)

    ps_mesh.add_vector_quantity(
        name,
        vectors,
        defined_on='vertices',
        enabled=True
    )

    ps.show()


def show_parameterization(mesh: HalfedgeMesh, uv: np.ndarray, name: str = "uv"):
    """
    Show texture coordinates on the surface and the flattened mesh beside it.

    Args:
        mesh: Input mesh
        uv: Texture coordinates (n_vertices, 2 or 3)
        name: Quantity name
    """
    ps_mesh = _register(mesh)
    ps_mesh.add_parameterization_quantity(name, uv[:, :2], defined_on='vertices', enabled=True)

    flat = np.zeros((mesh.n_vertices, 3))
    flat[:, :2] = uv[:, :2]
    ps.register_surface_mesh(f"{name}_flat", flat, mesh.faces)

    ps.show()
