"""Discrete differential geometry on halfedge meshes"""

from .halfedge import HalfedgeMesh
from .utils import MeshUtils
from .sparse import LinearSystem, Triplet, TripletMatrix
from .solver import ScipySparseSolver, SolverError, SolverKind, SparseSolver
from .laplace_beltrami import LaplaceBeltrami
from .curvature import Curvature
from .smoothing import LaplacianSmoothing
from .parameterization import HarmonicParameterization, map_boundary_to_circle
from .reconstruction import LeastSquaresMesh

__all__ = [
    "HalfedgeMesh",
    "MeshUtils",
    "LinearSystem",
    "Triplet",
    "TripletMatrix",
    "ScipySparseSolver",
    "SolverError",
    "SolverKind",
    "SparseSolver",
    "LaplaceBeltrami",
    "Curvature",
    "LaplacianSmoothing",
    "HarmonicParameterization",
    "map_boundary_to_circle",
    "LeastSquaresMesh",
]

__version__ = "0.1.0"
