"""Sparse linear solver capability."""

import enum
import logging

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import splu
from typing import Iterable

from .sparse import LinearSystem, Triplet

logger = logging.getLogger(__name__)


class SolverKind(enum.IntEnum):
    """Factorization used by :meth:`SparseSolver.solve`."""

    LU = 0
    CHOLESKY = 1


class SolverError(RuntimeError):
    """The linear system could not be solved (singular or not SPD)."""


class SparseSolver:
    """
    Interface for solving square sparse systems given as triplets.

    Implementations return the solution as a flat array of length ``n * m``
    laid out column by column: the value of column ``c`` for unknown ``i``
    sits at offset ``c * n + i``.
    """

    def solve(
        self,
        kind: int,
        a: Iterable[Triplet],
        nnz_a: int,
        n: int,
        b: Iterable[Triplet],
        nnz_b: int,
        m: int
    ) -> np.ndarray:
        """
        Solve ``A X = B``.

        Args:
            kind: 0 for general sparse LU, 1 for symmetric positive definite
            a: Triplets of the n x n coefficient matrix (duplicates are summed)
            nnz_a: Number of triplets in ``a``
            n: Dimension of the coefficient matrix
            b: Triplets of the n x m right-hand side
            nnz_b: Number of triplets in ``b``
            m: Number of right-hand side columns

        Returns:
            Solution of length n * m, column-major

        Raises:
            SolverError: If the system is singular or not SPD under kind 1
        """
        raise NotImplementedError

    def solve_system(self, system: LinearSystem, kind: int = SolverKind.LU) -> np.ndarray:
        """
        Solve an assembled square system.

        Args:
            system: Assembled linear system
            kind: Solver kind

        Returns:
            Solution array (n, m)
        """
        if system.A.shape[0] != system.A.shape[1]:
            raise ValueError(
                f"Coefficient matrix must be square, got {system.A.shape[0]}x{system.A.shape[1]}"
            )
        n, m = system.n, system.m
        X = self.solve(kind, list(system.A), system.A.nnz, n, list(system.B), system.B.nnz, m)
        return np.asarray(X, dtype=float).reshape(m, n).T

    @staticmethod
    def _to_matrix(triplets: Iterable[Triplet], nnz: int, shape) -> sparse.csc_matrix:
        triplets = list(triplets)
        if len(triplets) != nnz:
            raise ValueError(f"Expected {nnz} triplets, got {len(triplets)}")
        if nnz == 0:
            return sparse.csc_matrix(shape, dtype=float)
        rows, cols, values = zip(*triplets)
        return sparse.coo_matrix(
            (np.array(values, dtype=float), (np.array(rows, dtype=int), np.array(cols, dtype=int))),
            shape=shape
        ).tocsc()


class ScipySparseSolver(SparseSolver):
    """
    SuperLU-backed solver.

    The SPD mode requires a symmetric matrix and factors it with a symmetric
    fill-reducing ordering and diagonal pivoting only; every pivot of such a
    factorization is positive exactly when the matrix is positive definite.
    """

    def __init__(self, symmetry_tol: float = 1e-10):
        """
        Args:
            symmetry_tol: Relative tolerance for the symmetry check of kind 1
        """
        self.symmetry_tol = symmetry_tol

    def solve(self, kind, a, nnz_a, n, b, nnz_b, m):
        kind = SolverKind(kind)
        A = self._to_matrix(a, nnz_a, (n, n))
        B = self._to_matrix(b, nnz_b, (n, m)).toarray()

        if n == 0:
            return np.zeros(0)

        logger.debug("Solving %dx%d system (%s, nnz=%d, %d rhs)", n, n, kind.name, A.nnz, m)

        if kind == SolverKind.CHOLESKY:
            lu = self._factor_spd(A)
        else:
            lu = self._factor(A)

        X = lu.solve(B)
        if not np.all(np.isfinite(X)):
            raise SolverError("Solution contains non-finite values")

        return np.asarray(X, dtype=float).reshape(n, m).ravel(order="F")

    @staticmethod
    def _factor(A: sparse.csc_matrix, **options):
        try:
            return splu(A, **options)
        except RuntimeError as exc:
            raise SolverError(f"Factorization failed: {exc}") from exc

    def _factor_spd(self, A: sparse.csc_matrix):
        scale = max(abs(A).max(), 1.0)
        if abs(A - A.T).max() > self.symmetry_tol * scale:
            raise SolverError("Matrix is not symmetric")
        if np.any(A.diagonal() <= 0.0):
            raise SolverError("Matrix is not positive definite")

        lu = self._factor(
            A,
            permc_spec="MMD_AT_PLUS_A",
            diag_pivot_thresh=0.0,
            options=dict(SymmetricMode=True)
        )
        if not np.array_equal(lu.perm_r, lu.perm_c) or np.any(lu.U.diagonal() <= 0.0):
            raise SolverError("Matrix is not positive definite")
        return lu
